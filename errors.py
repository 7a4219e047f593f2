"""
Typed error kinds raised by the services and mapped to HTTP responses in main.py.

Callers branch on ``kind`` (or the exception class) instead of parsing messages.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


class StoreError(Exception):
    kind = ErrorKind.INTERNAL
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {"message": self.message, "kind": self.kind.value}


class ValidationError(StoreError):
    kind = ErrorKind.VALIDATION
    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(StoreError):
    kind = ErrorKind.UNAUTHORIZED
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(StoreError):
    kind = ErrorKind.FORBIDDEN
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(StoreError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Not found"


class InternalError(StoreError):
    pass


def first_error_message(errors) -> str:
    """Reduce a list of pydantic error dicts to the single message the API returns."""
    if not errors:
        return ValidationError.default_message
    err = errors[0]
    msg = str(err.get("msg", ValidationError.default_message))
    if msg.startswith("Value error, "):
        return msg[len("Value error, "):]
    loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
    if loc:
        return f"{'.'.join(loc)}: {msg}"
    return msg


class InvalidStatusTransition(ForbiddenError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change order status from {current} to {requested}")
