"""Domain Exceptions

Every failure raised by the domain carries an explicit ``kind`` so callers can
dispatch on it without relying on the order of ``except`` clauses.
"""
from typing import Any, List, Optional

from domain.enums import ErrorKind


class DomainError(Exception):
    """Base class for all domain failures"""

    kind: ErrorKind = ErrorKind.UNEXPECTED
    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DomainValidationError(DomainError):
    """Malformed input caught while building an aggregate"""

    kind = ErrorKind.VALIDATION
    error_code = "VALIDATION_FAILED"

    def __init__(self, property_name: str, *errors: str):
        self.property_name = property_name
        self.errors: List[str] = list(errors)
        super().__init__(
            f"Domain validation failed for '{property_name}': {'; '.join(self.errors)}"
        )


class BusinessRuleViolationError(DomainError):
    """Well-formed input that violates a reservation policy"""

    kind = ErrorKind.BUSINESS_RULE
    error_code = "BR_VIOLATION"

    def __init__(self, rule_name: str, message: str):
        self.rule_name = rule_name
        super().__init__(f"Business rule violation [{rule_name}]: {message}")


class InvalidStateError(DomainError):
    """Operation not allowed in the aggregate's current state"""

    kind = ErrorKind.INVALID_STATE
    error_code = "INVALID_STATE"

    def __init__(self, current_state: str, requested_operation: str, message: str):
        self.current_state = current_state
        self.requested_operation = requested_operation
        super().__init__(
            f"Cannot perform '{requested_operation}' when reservation is in "
            f"'{current_state}' state. {message}"
        )


class ConcurrencyConflictError(InvalidStateError):
    """Stale write: the stored aggregate changed after it was loaded"""

    error_code = "CONCURRENCY_CONFLICT"

    def __init__(self, aggregate_id: Any, expected_version: int, actual_version: int):
        self.aggregate_id = aggregate_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            current_state=f"version {actual_version}",
            requested_operation="save",
            message=(
                f"Reservation '{aggregate_id}' was modified concurrently "
                f"(expected version {expected_version})."
            ),
        )


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, aggregate_type: str, aggregate_id: Optional[Any]):
        self.aggregate_type = aggregate_type
        self.aggregate_id = aggregate_id
        super().__init__(f"{aggregate_type} with ID '{aggregate_id}' was not found.")
