"""
Password verifiers.

bcrypt strings carry everything needed to check a password later:

    $2b$12$R9h/cIPz0gi.URNNX3kh2OPST9/PgBkqquzi.Ss7KIUgO2t0jWMUW
     │   │  └──────── salt ───────┘└────────── hash ───────────┘
     │   └─ cost factor (2^12 rounds)
     └─ algorithm id

Hashing is deliberately slow; callers run it outside the store lock.
"""

import bcrypt


MIN_ROUNDS = 4
MAX_ROUNDS = 31

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with a fresh salt."""
    hashed = bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a password against a stored verifier.

    A malformed verifier is a mismatch, not an error.
    """
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("ascii"))
    except ValueError:
        return False
