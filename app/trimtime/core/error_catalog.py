from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    NOT_FOUND = ErrorDefinition("NOT_FOUND", "Record not found", status.HTTP_404_NOT_FOUND)
    UNKNOWN_COLLECTION = ErrorDefinition(
        "UNKNOWN_COLLECTION",
        "Unknown collection",
        status.HTTP_404_NOT_FOUND,
    )
    DUPLICATE_ID = ErrorDefinition(
        "DUPLICATE_ID",
        "A record with this id already exists",
        status.HTTP_409_CONFLICT,
    )
    APPEND_ONLY_COLLECTION = ErrorDefinition(
        "APPEND_ONLY_COLLECTION",
        "Collection only accepts inserts",
        status.HTTP_405_METHOD_NOT_ALLOWED,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        422,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)


class PosError(Exception):
    """Base class for register-side failures."""


class ValidationError(PosError):
    """A sale cannot be committed; nothing was written."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Cannot commit sale, missing: {', '.join(self.missing)}")


class RemoteWriteError(PosError):
    """A write to the remote store failed. Logged, never raised to the register."""

    def __init__(self, collection: str, operation: str, cause: BaseException | None = None):
        self.collection = collection
        self.operation = operation
        self.cause = cause
        reason = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} on {collection} failed{reason}")


class LookupMiss(PosError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Not Found: {code}")


class CapabilityUnavailable(PosError):
    """A capture device could not be acquired; the operator falls back to manual entry."""

    def __init__(self, capability: str, reason: str):
        self.capability = capability
        self.reason = reason
        super().__init__(f"{capability} unavailable: {reason}")


class AuthenticationError(PosError):
    pass


class AssignmentNotAllowed(PosError):
    """A role-restricted operator tried to assign a ticket to someone else."""

    def __init__(self, operator_id: str, staff_id: str):
        self.operator_id = operator_id
        self.staff_id = staff_id
        super().__init__(f"operator {operator_id} cannot assign tickets to {staff_id}")


class HeldSaleNotFound(PosError):
    def __init__(self, held_id: str):
        self.held_id = held_id
        super().__init__(f"no held sale {held_id}")
