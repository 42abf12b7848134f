"""
Typed failures returned by domain operations.

Operations return `(value, error)` pairs instead of raising, mirroring the
`(user, role, error_response, status_code)` tuples used by the auth helpers.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "Unauthenticated"
    PROFILE_NOT_FOUND = "ProfileNotFound"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    FULL = "Full"
    DUPLICATE = "Duplicate"
    INVALID_EMAIL = "InvalidEmail"
    VALIDATION_ERROR = "ValidationError"
    INTERNAL_ERROR = "InternalError"


STATUS_CODES = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.PROFILE_NOT_FOUND: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FULL: 400,
    ErrorKind.DUPLICATE: 400,
    ErrorKind.INVALID_EMAIL: 400,
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.INTERNAL_ERROR: 500,
}


@dataclass(frozen=True)
class DomainError:
    kind: ErrorKind
    message: str

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind.value}


def not_found(message: str) -> DomainError:
    return DomainError(ErrorKind.NOT_FOUND, message)


def validation_error(message: str) -> DomainError:
    return DomainError(ErrorKind.VALIDATION_ERROR, message)
