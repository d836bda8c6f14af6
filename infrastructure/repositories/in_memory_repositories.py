"""In-Memory Repository Implementations"""
import logging
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Set, Tuple
from uuid import UUID

from application.events import DomainEventPublisher
from domain.clock import Clock, ensure_utc, utc_now
from domain.entities import Reservation
from domain.exceptions import ConcurrencyConflictError, NotFoundError
from domain.repositories import ReservationRepository, UnitOfWork
from domain.specifications import (
    ReservationSpecification,
    ReservationsByCustomerSpecification,
    ConfirmedReservationsForCustomerSpecification,
    ReservationsInDateRangeSpecification,
)
from infrastructure.repositories.specification_evaluator import apply_specification

logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    REMOVED = "REMOVED"


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository

    Reads return detached copies of committed rows so a caller's uncommitted
    mutations never leak into storage. Writes are staged until ``commit``.
    """

    def __init__(self, storage: Optional[Dict[UUID, Reservation]] = None, clock: Clock = utc_now):
        self._storage: Dict[UUID, Reservation] = storage if storage is not None else {}
        self._clock = clock
        self._pending: List[Tuple[ChangeType, Reservation]] = []
        self._loaded_versions: Dict[UUID, int] = {}

    async def add(self, reservation: Reservation) -> None:
        """Stage a new reservation"""
        self._pending.append((ChangeType.ADDED, reservation))

    async def get_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        return self._detached(self._storage.get(reservation_id))

    async def update(self, reservation: Reservation) -> None:
        """Stage changes to a reservation"""
        self._pending.append((ChangeType.MODIFIED, reservation))

    async def delete(self, reservation: Reservation) -> None:
        """Stage removal of a reservation"""
        self._pending.append((ChangeType.REMOVED, reservation))

    async def exists(self, reservation_id: UUID) -> bool:
        return reservation_id in self._storage

    async def query(self, specification: ReservationSpecification) -> List[Reservation]:
        results = apply_specification(specification, self._storage.values(), self._now())
        return [self._detached(r) for r in results]

    async def query_first(self, specification: ReservationSpecification) -> Optional[Reservation]:
        results = apply_specification(specification, self._storage.values(), self._now())
        return self._detached(results[0]) if results else None

    async def count(self, specification: ReservationSpecification) -> int:
        return len(apply_specification(specification, self._storage.values(), self._now(), paging=False))

    async def get_by_customer_id(self, customer_id: str) -> List[Reservation]:
        return await self.query(ReservationsByCustomerSpecification(customer_id=customer_id))

    async def count_active_by_customer(self, customer_id: str) -> int:
        return await self.count(ConfirmedReservationsForCustomerSpecification(customer_id=customer_id))

    async def get_by_date_range(self, range_start: datetime, range_end: datetime) -> List[Reservation]:
        return await self.query(ReservationsInDateRangeSpecification.between(range_start, range_end))

    # ==================== CHANGE TRACKING ====================
    @property
    def has_pending_changes(self) -> bool:
        return bool(self._pending)

    def commit(self) -> List[Reservation]:
        """Apply staged changes all-or-nothing and return the written aggregates"""
        staged = self._pending
        self._pending = []
        self._validate(staged)

        written: List[Reservation] = []
        for change, reservation in staged:
            if change is ChangeType.REMOVED:
                self._storage.pop(reservation.reservation_id, None)
            else:
                self._storage[reservation.reservation_id] = self._detached(reservation)
            if not any(reservation is seen for seen in written):
                written.append(reservation)
        return written

    def discard(self) -> None:
        self._pending = []

    def _validate(self, staged: List[Tuple[ChangeType, Reservation]]) -> None:
        # Ids added earlier in this batch have no committed row to check against
        added_in_batch: Set[UUID] = set()
        for change, reservation in staged:
            reservation_id = reservation.reservation_id
            stored = self._storage.get(reservation_id)
            if change is ChangeType.ADDED:
                if stored is not None or reservation_id in added_in_batch:
                    actual = stored.version if stored is not None else reservation.version
                    raise ConcurrencyConflictError(reservation_id, 0, actual)
                added_in_batch.add(reservation_id)
                continue
            if reservation_id in added_in_batch:
                if change is ChangeType.REMOVED:
                    added_in_batch.discard(reservation_id)
                continue
            if stored is None:
                raise NotFoundError("Reservation", reservation_id)
            # Compare-and-swap against the version this repository handed out
            expected = self._loaded_versions.get(reservation_id)
            if change is ChangeType.MODIFIED and expected is not None and stored.version != expected:
                raise ConcurrencyConflictError(reservation_id, expected, stored.version)

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    def _detached(self, reservation: Optional[Reservation]) -> Optional[Reservation]:
        if reservation is None:
            return None
        self._loaded_versions[reservation.reservation_id] = reservation.version
        copy = reservation.model_copy(deep=True)
        copy.pull_domain_events()
        return copy


class InMemoryUnitOfWork(UnitOfWork):
    """Unit of work over an InMemoryReservationRepository

    Domain events of written aggregates are drained and forwarded only after
    the changes are committed.
    """

    def __init__(
        self,
        repository: InMemoryReservationRepository,
        event_publisher: Optional[DomainEventPublisher] = None
    ):
        self.reservations = repository
        self._event_publisher = event_publisher

    async def save_changes(self) -> int:
        written = self.reservations.commit()
        saved = len({reservation.reservation_id for reservation in written})
        logger.debug("Saved %d reservation(s)", saved)

        events = [event for reservation in written for event in reservation.pull_domain_events()]
        if events and self._event_publisher is not None:
            await self._event_publisher.publish(events)
        return saved

    async def rollback(self) -> None:
        if self.reservations.has_pending_changes:
            logger.debug("Discarding uncommitted reservation changes")
        self.reservations.discard()
