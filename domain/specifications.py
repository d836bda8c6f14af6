"""Domain Specifications - declarative reservation queries

A specification names *which* reservations a query wants, in what order and
with what page window. It holds no predicate code: the storage adapter
recognises each concrete shape and builds its own query for it, applying
criteria, then ordering, then paging.
"""
from datetime import datetime
from pydantic import BaseModel, Field, validator
from typing import Optional

from domain.clock import ensure_utc
from domain.enums import ReservationStatus, SortKey
from domain.exceptions import DomainValidationError


class ReservationSpecification(BaseModel):
    """Base specification: matches every reservation, no order, no paging"""
    order_by: Optional[SortKey] = None
    descending: bool = False
    skip: Optional[int] = Field(default=None, ge=0)
    take: Optional[int] = Field(default=None, ge=1)

    class Config:
        frozen = True

    @property
    def is_paging_enabled(self) -> bool:
        return self.skip is not None or self.take is not None


class ReservationsByCustomerSpecification(ReservationSpecification):
    """All reservations of one customer, newest start date first"""
    customer_id: str
    order_by: Optional[SortKey] = SortKey.START_DATE
    descending: bool = True


class ActiveReservationsSpecification(ReservationSpecification):
    """Not cancelled and not yet ended, soonest start first"""
    order_by: Optional[SortKey] = SortKey.START_DATE


class UpcomingReservationsSpecification(ReservationSpecification):
    """Not cancelled and not yet started, soonest start first"""
    order_by: Optional[SortKey] = SortKey.START_DATE


class ConfirmedReservationsForCustomerSpecification(ReservationSpecification):
    """Confirmed reservations of one customer, most recently confirmed first"""
    customer_id: str
    order_by: Optional[SortKey] = SortKey.CONFIRMED_AT_OR_CREATED_AT
    descending: bool = True


class ReservationsByStatusSpecification(ReservationSpecification):
    status: ReservationStatus
    order_by: Optional[SortKey] = SortKey.CREATED_AT
    descending: bool = True


class ReservationsInDateRangeSpecification(ReservationSpecification):
    """Non-cancelled reservations overlapping [range_start, range_end], soonest start first"""
    range_start: datetime
    range_end: datetime
    order_by: Optional[SortKey] = SortKey.START_DATE

    @validator('range_start', 'range_end')
    def normalize_to_utc(cls, v):
        return ensure_utc(v)

    @classmethod
    def between(cls, range_start: datetime, range_end: datetime) -> "ReservationsInDateRangeSpecification":
        range_start = ensure_utc(range_start)
        range_end = ensure_utc(range_end)
        if range_end < range_start:
            raise DomainValidationError(
                "range_end",
                f"Range end ({range_end.isoformat()}) cannot be earlier than range start ({range_start.isoformat()})"
            )
        return cls(range_start=range_start, range_end=range_end)


class PaginatedCustomerReservationsSpecification(ReservationsByCustomerSpecification):
    """One page of a customer's reservations, newest start date first"""

    @classmethod
    def for_page(cls, customer_id: str, page_number: int, page_size: int) -> "PaginatedCustomerReservationsSpecification":
        """Build from a 1-based page number"""
        if page_number < 1:
            raise DomainValidationError("page", "Page number must be 1 or greater")
        if page_size < 1:
            raise DomainValidationError("page_size", "Page size must be 1 or greater")
        return cls(
            customer_id=customer_id,
            skip=(page_number - 1) * page_size,
            take=page_size
        )

    def without_paging(self) -> ReservationsByCustomerSpecification:
        """Same criteria over the whole result set, used for totals"""
        return ReservationsByCustomerSpecification(customer_id=self.customer_id)
