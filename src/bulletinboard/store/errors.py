"""
Store failures.

Every store operation either returns its result or raises one of these.
They are raised after the store lock has been released, and carry the
message the client gets to see:

    StoreError
    ├── ValidationError        missing / invalid input
    │   └── SelfResponse       owner responding to their own ad
    ├── Unauthorized           bad credentials
    ├── Forbidden              not the owner
    ├── NotFound               no such ad
    └── Conflict               duplicate email
        └── AlreadyResponded   duplicate response
"""


class StoreError(Exception):
    """Base class for all store failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    pass


class SelfResponse(ValidationError):
    def __init__(self, message: str = "You cannot respond to your own advertisement"):
        super().__init__(message)


class Unauthorized(StoreError):
    pass


class Forbidden(StoreError):
    pass


class NotFound(StoreError):
    def __init__(self, message: str = "Advertisement not found"):
        super().__init__(message)


class Conflict(StoreError):
    pass


class AlreadyResponded(Conflict):
    def __init__(self, message: str = "You have already responded to this advertisement"):
        super().__init__(message)
