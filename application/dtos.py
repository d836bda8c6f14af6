"""Application DTOs - shapes returned to callers"""
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from typing import Optional

from domain.entities import Reservation
from domain.enums import ErrorKind


class ReservationDto(BaseModel):
    """Read model of a reservation"""
    reservation_id: UUID
    customer_id: str
    start_date: datetime
    end_date: datetime
    status: str
    created_at: datetime
    modified_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, reservation: Reservation) -> "ReservationDto":
        return cls(
            reservation_id=reservation.reservation_id,
            customer_id=reservation.customer_id,
            start_date=reservation.start_date,
            end_date=reservation.end_date,
            status=reservation.status.value,
            created_at=reservation.created_at,
            modified_at=reservation.modified_at
        )


class ReservationOperationResult(BaseModel):
    """Uniform result of create / confirm / cancel"""
    success: bool
    reservation_id: Optional[UUID] = None
    status: Optional[str] = None
    error_message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def succeeded(cls, reservation: Reservation) -> "ReservationOperationResult":
        return cls(
            success=True,
            reservation_id=reservation.reservation_id,
            status=reservation.status.value
        )

    @classmethod
    def failed(cls, kind: ErrorKind, error_message: str) -> "ReservationOperationResult":
        return cls(success=False, error_kind=kind, error_message=error_message)
