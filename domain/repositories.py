"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List
from uuid import UUID

from domain.entities import Reservation
from domain.specifications import ReservationSpecification


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate

    ``add``, ``update`` and ``delete`` only stage changes; nothing is durable
    until the owning unit of work saves.
    """

    @abstractmethod
    async def add(self, reservation: Reservation) -> None:
        """Stage a new reservation"""
        pass

    @abstractmethod
    async def get_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation) -> None:
        """Stage changes to an existing reservation"""
        pass

    @abstractmethod
    async def delete(self, reservation: Reservation) -> None:
        """Stage removal of a reservation"""
        pass

    @abstractmethod
    async def exists(self, reservation_id: UUID) -> bool:
        """Check if a reservation exists"""
        pass

    @abstractmethod
    async def query(self, specification: ReservationSpecification) -> List[Reservation]:
        """Reservations matching the specification, ordered and paged by it"""
        pass

    @abstractmethod
    async def query_first(self, specification: ReservationSpecification) -> Optional[Reservation]:
        """First reservation matching the specification"""
        pass

    @abstractmethod
    async def count(self, specification: ReservationSpecification) -> int:
        """Number of reservations matching the specification criteria"""
        pass

    @abstractmethod
    async def get_by_customer_id(self, customer_id: str) -> List[Reservation]:
        """Find reservations by customer, newest start date first"""
        pass

    @abstractmethod
    async def get_by_date_range(self, range_start: datetime, range_end: datetime) -> List[Reservation]:
        """Non-cancelled reservations overlapping the range, soonest start first"""
        pass

    @abstractmethod
    async def count_active_by_customer(self, customer_id: str) -> int:
        """Count confirmed reservations of a customer"""
        pass


class UnitOfWork(ABC):
    """Coordinates persistence of staged changes"""

    reservations: ReservationRepository

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    @abstractmethod
    async def save_changes(self) -> int:
        """Persist staged changes and return how many aggregates were written"""
        pass

    @abstractmethod
    async def rollback(self) -> None:
        """Discard staged changes"""
        pass
