"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field, validator
from datetime import datetime, timedelta
from uuid import UUID
from typing import List, Optional

from domain.clock import ensure_utc
from infrastructure.config import get_settings


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    customer_id: str = Field(min_length=1)
    start_date: datetime
    end_date: datetime

    @validator('end_date')
    def duration_within_limit(cls, v, values):
        start_date = values.get('start_date')
        if start_date is None:
            return v
        max_days = get_settings().max_reservation_days
        if ensure_utc(v) - ensure_utc(start_date) > timedelta(days=max_days):
            raise ValueError(f'Reservation duration cannot exceed {max_days} days')
        return v


class CancelReservationRequest(BaseModel):
    """Cancel reservation request DTO"""
    reason: Optional[str] = None

    @validator('reason')
    def reason_not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError('If provided, reason cannot be empty or contain only whitespace')
        return v


class ReservationOperationResponse(BaseModel):
    """Result of create / confirm / cancel"""
    success: bool
    reservation_id: Optional[UUID] = None
    status: Optional[str] = None
    error_message: Optional[str] = None
    error_kind: Optional[str] = None


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    customer_id: str
    start_date: datetime
    end_date: datetime
    status: str
    created_at: datetime
    modified_at: Optional[datetime] = None


class ErrorDetail(BaseModel):
    type: str
    message: str
    correlation_id: str
    timestamp: str
    details: Optional[List[str]] = None


class ErrorResponse(BaseModel):
    """Envelope for errors raised outside the handlers"""
    error: ErrorDetail


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    dependencies: List[str] = []


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str

class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None

class RegisterRequest(BaseModel):
    """Register user request DTO"""
    username: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=2, max_length=200)
    email: Optional[str] = None

class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    roles: List[str] = []
    disabled: bool
