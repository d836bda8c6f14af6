"""API Dependencies - Authentication and handler wiring"""
import logging
from typing import Dict
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from application.handlers import (
    CreateReservationHandler,
    ConfirmReservationHandler,
    CancelReservationHandler,
    GetReservationsHandler,
    GetReservationByIdHandler,
    GetReservationsInDateRangeHandler,
)
from domain.auth import User, UserInDB
from domain.clock import Clock, utc_now
from domain.entities import Reservation
from infrastructure.config import get_settings
from infrastructure.events import LoggingDomainEventPublisher
from infrastructure.repositories.in_memory_repositories import (
    InMemoryReservationRepository, InMemoryUnitOfWork
)
from infrastructure.security import decode_access_token, get_password_hash
from api.schemas import TokenData

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# ============================================================================
# PERSISTENCE WIRING
# ============================================================================

# Committed reservations, shared by every request's unit of work
reservation_storage: Dict[UUID, Reservation] = {}
event_publisher = LoggingDomainEventPublisher()


def get_clock() -> Clock:
    return utc_now


def get_reservation_repository(clock: Clock = Depends(get_clock)) -> InMemoryReservationRepository:
    return InMemoryReservationRepository(reservation_storage, clock=clock)


def get_unit_of_work(
    repository: InMemoryReservationRepository = Depends(get_reservation_repository)
) -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork(repository, event_publisher)


def get_create_handler(
    unit_of_work: InMemoryUnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock)
) -> CreateReservationHandler:
    return CreateReservationHandler(unit_of_work, clock)


def get_confirm_handler(
    unit_of_work: InMemoryUnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock)
) -> ConfirmReservationHandler:
    return ConfirmReservationHandler(unit_of_work, clock)


def get_cancel_handler(
    unit_of_work: InMemoryUnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock)
) -> CancelReservationHandler:
    return CancelReservationHandler(unit_of_work, clock)


def get_reservations_handler(
    repository: InMemoryReservationRepository = Depends(get_reservation_repository)
) -> GetReservationsHandler:
    settings = get_settings()
    return GetReservationsHandler(
        repository,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size
    )


def get_reservation_by_id_handler(
    repository: InMemoryReservationRepository = Depends(get_reservation_repository)
) -> GetReservationByIdHandler:
    return GetReservationByIdHandler(repository)


def get_reservations_in_date_range_handler(
    repository: InMemoryReservationRepository = Depends(get_reservation_repository)
) -> GetReservationsInDateRangeHandler:
    return GetReservationsInDateRangeHandler(repository)


# ============================================================================
# AUTHENTICATION
# ============================================================================

# In-memory user store; passwords are hashed lazily on first lookup
_fake_users_db = {
    "admin": {
        "username": "admin",
        "full_name": "Admin User",
        "email": "admin@example.com",
        "plain_password": "admin123",
        "roles": ["admin"],
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174000"
    }
}

fake_users_db = _fake_users_db

_password_hash_cache = {}

def _get_hashed_password(username: str) -> str:
    """Lazily hash passwords on first access"""
    if username not in _password_hash_cache:
        user = _fake_users_db.get(username)
        if user and "plain_password" in user:
            _password_hash_cache[username] = get_password_hash(user["plain_password"])
    return _password_hash_cache.get(username, "")

def get_user(db, username: str):
    if username in db:
        user_dict = db[username].copy()
        if "plain_password" in user_dict:
            user_dict["hashed_password"] = _get_hashed_password(username)
            del user_dict["plain_password"]
        return UserInDB(**user_dict)
    return None

def add_user(db, username: str, password: str, full_name: str, email: str = None) -> UserInDB:
    """Register a user; raises ValueError when the username is taken"""
    if username in db:
        raise ValueError(f"User '{username}' already exists")
    user = UserInDB(
        username=username,
        full_name=full_name,
        email=email,
        roles=["user"],
        hashed_password=get_password_hash(password)
    )
    db[username] = user.model_dump()
    logger.info("Registered user %s", username)
    return user

async def get_current_user(token: str = Depends(oauth2_scheme)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username)
    except JWTError:
        logger.warning("Rejected invalid access token")
        raise credentials_exception

    user = get_user(_fake_users_db, username=token_data.username)
    if user is None:
        raise credentials_exception
    return user

async def get_current_active_user(current_user: User = Depends(get_current_user)):
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user
