"""
Unit tests for the session table and password hashing.
"""

import pytest

from bulletinboard.store import SessionTable, hash_password, verify_password


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestSessionTable:
    """Tests for SessionTable."""

    def test_create_and_resolve(self):
        table = SessionTable()

        session = table.create(7)

        assert len(session.token) == 32
        int(session.token, 16)  # hex
        assert table.resolve(session.token) == 7
        assert len(table) == 1

    def test_tokens_unique(self):
        table = SessionTable()

        tokens = {table.create(1).token for _ in range(100)}

        assert len(tokens) == 100

    def test_unknown_token(self):
        assert SessionTable().resolve("nope") is None

    def test_destroy(self):
        table = SessionTable()
        session = table.create(1)

        assert table.destroy(session.token) is True
        assert table.destroy(session.token) is False
        assert table.resolve(session.token) is None

    def test_no_ttl_never_expires(self):
        clock = FakeClock()
        table = SessionTable(ttl=None, clock=clock)
        session = table.create(1)

        clock.now += 10 ** 9

        assert table.resolve(session.token) == 1
        assert table.purge_expired() == 0

    def test_expiry_boundary(self):
        """Test that a session is gone exactly ttl seconds after issue."""
        clock = FakeClock()
        table = SessionTable(ttl=10, clock=clock)
        session = table.create(1)

        clock.now += 9
        assert table.resolve(session.token) == 1

        clock.now += 1
        assert table.resolve(session.token) is None
        assert len(table) == 0

    def test_purge_expired(self):
        clock = FakeClock()
        table = SessionTable(ttl=10, clock=clock)
        old = table.create(1)
        clock.now += 5
        fresh = table.create(2)
        clock.now += 6

        assert table.purge_expired() == 1
        assert table.resolve(old.token) is None
        assert table.resolve(fresh.token) == 2

    def test_create_sweeps_abandoned_sessions(self):
        """Test that expired tokens nobody presents again do not pile up."""
        clock = FakeClock()
        table = SessionTable(ttl=10, clock=clock)
        table.create(1)
        table.create(2)

        clock.now += 10
        table.create(3)

        assert len(table) == 1

    def test_sweep_waits_a_full_ttl(self):
        clock = FakeClock()
        table = SessionTable(ttl=10, clock=clock)
        clock.now += 10
        table.create(1)  # sweeps, nothing to drop

        clock.now += 10
        table.create(2)  # sweeps again, drops the first
        clock.now += 5
        table.create(3)  # too soon for another sweep

        assert len(table) == 2


class TestPasswords:
    """Tests for hash_password() and verify_password()."""

    def test_roundtrip(self):
        hashed = hash_password("secret", rounds=4)

        assert hashed.startswith("$2b$04$")
        assert verify_password("secret", hashed) is True
        assert verify_password("Secret", hashed) is False

    def test_salted(self):
        assert hash_password("secret", rounds=4) != hash_password("secret", rounds=4)

    def test_malformed_hash_is_mismatch(self):
        assert verify_password("secret", "not-a-hash") is False

    def test_long_password(self):
        """Test that passwords past bcrypt's 72-byte limit still hash."""
        long_password = "x" * 100

        hashed = hash_password(long_password, rounds=4)

        assert verify_password(long_password, hashed) is True

    @pytest.mark.parametrize("password", ["", "pässwörd", "with space"])
    def test_unusual_passwords(self, password: str):
        assert verify_password(password, hash_password(password, rounds=4)) is True
