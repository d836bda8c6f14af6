"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field, PrivateAttr, validator
from uuid import UUID, uuid4
from datetime import datetime
from typing import Optional, List, Tuple

from domain.clock import Clock, utc_now, ensure_utc
from domain.enums import ReservationStatus
from domain.events import (
    DomainEvent,
    ReservationCreatedEvent,
    ReservationConfirmedEvent,
    ReservationCancelledEvent,
)
from domain.exceptions import (
    DomainValidationError,
    BusinessRuleViolationError,
    InvalidStateError,
)


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity

    Lifecycle: Created -> Confirmed -> Cancelled. Only ``create``, ``confirm``
    and ``cancel`` change state; each records a domain event that stays pending
    until the unit of work drains it after a successful save.
    """

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)

    # Reference to the requester
    customer_id: str

    # Reservation period
    start_date: datetime
    end_date: datetime

    # Status
    status: ReservationStatus = ReservationStatus.CREATED

    # Audit
    created_at: datetime
    modified_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    version: int = 1

    _pending_events: List[DomainEvent] = PrivateAttr(default_factory=list)

    class Config:
        from_attributes = True

    @validator('start_date', 'end_date', 'created_at', 'modified_at', 'confirmed_at', 'cancelled_at')
    def normalize_to_utc(cls, v):
        if v is None:
            return v
        return ensure_utc(v)

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        customer_id: str,
        start_date: datetime,
        end_date: datetime,
        clock: Clock = utc_now
    ) -> "Reservation":
        """Create new reservation with validation"""
        if customer_id is None or not str(customer_id).strip():
            raise DomainValidationError("customer_id", "Customer id is required and cannot be empty")

        start_date = ensure_utc(start_date)
        end_date = ensure_utc(end_date)

        if end_date < start_date:
            raise DomainValidationError(
                "end_date",
                f"Reservation end date ({end_date.isoformat()}) cannot be earlier "
                f"than start date ({start_date.isoformat()})"
            )

        now = ensure_utc(clock())
        if end_date <= now:
            raise BusinessRuleViolationError(
                "ReservationMustEndInFuture",
                f"Reservation end date ({end_date.isoformat()}) must be in the future"
            )

        reservation = Reservation(
            customer_id=str(customer_id),
            start_date=start_date,
            end_date=end_date,
            status=ReservationStatus.CREATED,
            created_at=now
        )
        reservation._record(
            ReservationCreatedEvent(
                occurred_on=now,
                reservation_id=reservation.reservation_id,
                customer_id=reservation.customer_id,
                start_date=start_date,
                end_date=end_date
            )
        )
        return reservation

    # ==================== STATE TRANSITION METHODS ====================
    def confirm(self, clock: Clock = utc_now) -> ReservationConfirmedEvent:
        """Confirm a Created reservation"""
        if not self.status.can_be_confirmed:
            raise InvalidStateError(
                self.status.value,
                "Confirm",
                "Only 'Created' reservations can be confirmed."
            )

        now = ensure_utc(clock())
        self.status = ReservationStatus.CONFIRMED
        self.confirmed_at = now
        self._touch(now)

        event = ReservationConfirmedEvent(
            occurred_on=now,
            reservation_id=self.reservation_id,
            confirmed_at=now
        )
        self._record(event)
        return event

    def cancel(self, reason: Optional[str] = None, clock: Clock = utc_now) -> ReservationCancelledEvent:
        """Cancel reservation

        A Created reservation can be cancelled at any time. A Confirmed one
        only before its start date.
        """
        if not self.status.can_be_cancelled:
            raise InvalidStateError(
                self.status.value,
                "Cancel",
                "Cannot cancel a reservation that is already cancelled."
            )

        now = ensure_utc(clock())
        if self.status == ReservationStatus.CONFIRMED and now >= self.start_date:
            raise BusinessRuleViolationError(
                "ConfirmedReservationCancellationWindow",
                f"Confirmed reservation cannot be cancelled after its start date "
                f"({self.start_date.isoformat()}). Current time: {now.isoformat()}"
            )

        self.status = ReservationStatus.CANCELLED
        self.cancelled_at = now
        self.cancellation_reason = reason
        self._touch(now)

        event = ReservationCancelledEvent(
            occurred_on=now,
            reservation_id=self.reservation_id,
            cancelled_at=now,
            reason=reason
        )
        self._record(event)
        return event

    # ==================== QUERY METHODS ====================
    def is_active(self, clock: Clock = utc_now) -> bool:
        """Not cancelled and not yet ended"""
        return self.status != ReservationStatus.CANCELLED and ensure_utc(clock()) < self.end_date

    def has_started(self, clock: Clock = utc_now) -> bool:
        return ensure_utc(clock()) >= self.start_date

    def has_ended(self, clock: Clock = utc_now) -> bool:
        return ensure_utc(clock()) >= self.end_date

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days

    # ==================== DOMAIN EVENTS ====================
    @property
    def domain_events(self) -> Tuple[DomainEvent, ...]:
        """Pending events, oldest first"""
        return tuple(self._pending_events)

    def pull_domain_events(self) -> List[DomainEvent]:
        """Return pending events and clear the buffer"""
        events = list(self._pending_events)
        self._pending_events.clear()
        return events

    # ==================== IDENTITY ====================
    def __eq__(self, other: object) -> bool:
        if other is None or type(other) is not type(self):
            return False
        return self.reservation_id == other.reservation_id

    def __hash__(self) -> int:
        return hash(self.reservation_id)

    # ==================== PRIVATE METHODS ====================
    def _touch(self, now: datetime) -> None:
        self.modified_at = now
        self.version += 1

    def _record(self, event: DomainEvent) -> None:
        self._pending_events.append(event)
