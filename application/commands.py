"""Application Commands and Queries"""
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from typing import Optional


class CreateReservationCommand(BaseModel):
    customer_id: str
    start_date: datetime
    end_date: datetime


class ConfirmReservationCommand(BaseModel):
    reservation_id: UUID


class CancelReservationCommand(BaseModel):
    reservation_id: UUID
    reason: Optional[str] = None


class GetReservationsQuery(BaseModel):
    """Reservations of one customer; paged when ``page`` is given"""
    customer_id: str
    page: Optional[int] = None
    page_size: Optional[int] = None


class GetReservationByIdQuery(BaseModel):
    reservation_id: UUID


class GetReservationsInDateRangeQuery(BaseModel):
    """Non-cancelled reservations overlapping [start_date, end_date]"""
    start_date: datetime
    end_date: datetime
