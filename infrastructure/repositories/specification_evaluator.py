"""Translates reservation specifications into in-memory queries"""
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Type

from domain.entities import Reservation
from domain.enums import ReservationStatus, SortKey
from domain.specifications import (
    ReservationSpecification,
    ReservationsByCustomerSpecification,
    ActiveReservationsSpecification,
    UpcomingReservationsSpecification,
    ConfirmedReservationsForCustomerSpecification,
    ReservationsByStatusSpecification,
    ReservationsInDateRangeSpecification,
)

Predicate = Callable[[Reservation], bool]
CriteriaBuilder = Callable[[Any, datetime], Predicate]


def _match_all(spec: ReservationSpecification, now: datetime) -> Predicate:
    return lambda r: True


def _by_customer(spec: ReservationsByCustomerSpecification, now: datetime) -> Predicate:
    return lambda r: r.customer_id == spec.customer_id


def _active(spec: ActiveReservationsSpecification, now: datetime) -> Predicate:
    return lambda r: r.status != ReservationStatus.CANCELLED and now < r.end_date


def _upcoming(spec: UpcomingReservationsSpecification, now: datetime) -> Predicate:
    return lambda r: r.status != ReservationStatus.CANCELLED and now < r.start_date


def _confirmed_for_customer(spec: ConfirmedReservationsForCustomerSpecification, now: datetime) -> Predicate:
    return lambda r: r.customer_id == spec.customer_id and r.status == ReservationStatus.CONFIRMED


def _by_status(spec: ReservationsByStatusSpecification, now: datetime) -> Predicate:
    return lambda r: r.status == spec.status


def _in_date_range(spec: ReservationsInDateRangeSpecification, now: datetime) -> Predicate:
    return lambda r: (
        r.status != ReservationStatus.CANCELLED
        and r.start_date <= spec.range_end
        and r.end_date >= spec.range_start
    )


# Subclasses without an entry (the paginated variant) reuse their parent's criteria
CRITERIA_BUILDERS: Dict[Type[ReservationSpecification], CriteriaBuilder] = {
    ReservationSpecification: _match_all,
    ReservationsByCustomerSpecification: _by_customer,
    ActiveReservationsSpecification: _active,
    UpcomingReservationsSpecification: _upcoming,
    ConfirmedReservationsForCustomerSpecification: _confirmed_for_customer,
    ReservationsByStatusSpecification: _by_status,
    ReservationsInDateRangeSpecification: _in_date_range,
}

SORT_KEYS: Dict[SortKey, Callable[[Reservation], datetime]] = {
    SortKey.START_DATE: lambda r: r.start_date,
    SortKey.CREATED_AT: lambda r: r.created_at,
    SortKey.CONFIRMED_AT_OR_CREATED_AT: lambda r: r.confirmed_at or r.created_at,
}


def build_criteria(specification: ReservationSpecification, now: datetime) -> Predicate:
    for spec_type in type(specification).__mro__:
        builder = CRITERIA_BUILDERS.get(spec_type)
        if builder is not None:
            return builder(specification, now)
    raise TypeError(f"Unsupported reservation specification: {type(specification).__name__}")


def apply_specification(
    specification: ReservationSpecification,
    reservations: Iterable[Reservation],
    now: datetime,
    paging: bool = True
) -> List[Reservation]:
    """Criteria, then ordering, then skip before take"""
    criteria = build_criteria(specification, now)
    results = [r for r in reservations if criteria(r)]

    if specification.order_by is not None:
        sort_key = SORT_KEYS[specification.order_by]
        # sorted() is stable; tie-break on id for a deterministic order
        results.sort(key=lambda r: str(r.reservation_id))
        results.sort(key=sort_key, reverse=specification.descending)

    if paging and specification.is_paging_enabled:
        start = specification.skip or 0
        end = start + specification.take if specification.take is not None else None
        results = results[start:end]

    return results
