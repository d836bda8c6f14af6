"""Domain Events - immutable records of reservation lifecycle facts"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime
from typing import Optional


class DomainEvent(BaseModel):
    """Base Domain Event"""
    event_id: UUID = Field(default_factory=uuid4)
    occurred_on: datetime

    class Config:
        frozen = True

    @property
    def event_type(self) -> str:
        return type(self).__name__


class ReservationCreatedEvent(DomainEvent):
    reservation_id: UUID
    customer_id: str
    start_date: datetime
    end_date: datetime


class ReservationConfirmedEvent(DomainEvent):
    reservation_id: UUID
    confirmed_at: datetime


class ReservationCancelledEvent(DomainEvent):
    reservation_id: UUID
    cancelled_at: datetime
    reason: Optional[str] = None
