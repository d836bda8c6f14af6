"""Domain Enums"""
from enum import Enum


class ReservationStatus(str, Enum):
    """Lifecycle state of a reservation. Created -> Confirmed -> Cancelled."""
    CREATED = "Created"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"

    @property
    def can_be_confirmed(self) -> bool:
        """Only a Created reservation can be confirmed"""
        return self is ReservationStatus.CREATED

    @property
    def can_be_cancelled(self) -> bool:
        """Cancelled is terminal"""
        return self is not ReservationStatus.CANCELLED

    @classmethod
    def from_string(cls, value: str) -> "ReservationStatus":
        """Parse a status name, case-insensitive"""
        # domain.exceptions imports ErrorKind from this module
        from domain.exceptions import DomainValidationError

        if isinstance(value, str):
            normalized = value.strip().lower()
            for status in cls:
                if status.value.lower() == normalized:
                    return status
        raise DomainValidationError("status", f"Invalid reservation status: '{value}'")

    def __str__(self) -> str:
        return self.value


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    BUSINESS_RULE = "BUSINESS_RULE"
    INVALID_STATE = "INVALID_STATE"
    NOT_FOUND = "NOT_FOUND"
    UNEXPECTED = "UNEXPECTED"


class SortKey(str, Enum):
    START_DATE = "start_date"
    CREATED_AT = "created_at"
    CONFIRMED_AT_OR_CREATED_AT = "confirmed_at_or_created_at"
