import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from fastapi import FastAPI, HTTPException, Depends, Request, Response
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    CreateReservationRequest, CancelReservationRequest,
    ReservationOperationResponse, ReservationResponse,
    ErrorResponse, HealthResponse,
    Token, RegisterRequest, UserResponse
)
from api.dependencies import (
    get_current_active_user, fake_users_db, get_user, add_user,
    get_create_handler, get_confirm_handler, get_cancel_handler,
    get_reservations_handler, get_reservation_by_id_handler,
    get_reservations_in_date_range_handler,
)
from application.commands import (
    CreateReservationCommand, ConfirmReservationCommand, CancelReservationCommand,
    GetReservationsQuery, GetReservationByIdQuery, GetReservationsInDateRangeQuery,
)
from application.dtos import ReservationOperationResult
from application.handlers import (
    CreateReservationHandler, ConfirmReservationHandler, CancelReservationHandler,
    GetReservationsHandler, GetReservationByIdHandler, GetReservationsInDateRangeHandler,
)
from domain.auth import User
from domain.enums import ErrorKind, ReservationStatus
from domain.exceptions import (
    DomainError, DomainValidationError, BusinessRuleViolationError,
    InvalidStateError, NotFoundError,
)
from infrastructure.config import get_settings
from infrastructure.logging_config import configure_logging, correlation_id_var
from infrastructure.security import verify_password, create_access_token

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"

HTTP_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.BUSINESS_RULE: 422,
    ErrorKind.INVALID_STATE: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNEXPECTED: 500,
}

ERROR_TYPE_BY_KIND: Dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "ValidationError",
    ErrorKind.BUSINESS_RULE: "UnprocessableEntity",
    ErrorKind.INVALID_STATE: "ConflictError",
    ErrorKind.NOT_FOUND: "NotFoundError",
    ErrorKind.UNEXPECTED: "InternalServerError",
}

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    logger.info("%s starting", settings.api_title)
    yield
    logger.info("%s stopped", settings.api_title)


app = FastAPI(
    title=settings.api_title,
    description="Reservation lifecycle API: create, confirm and cancel reservations",
    version="1.0.0",
    lifespan=lifespan
)

# ============================================================================
# MIDDLEWARE & ERROR HANDLING
# ============================================================================

def _error_response(
    status_code: int,
    error_type: str,
    message: str,
    correlation_id: str,
    details: Optional[List[str]] = None
) -> JSONResponse:
    body = ErrorResponse(error={
        "type": error_type,
        "message": message,
        "correlation_id": correlation_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "details": details,
    })
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


def _error_details(error: DomainError) -> Optional[List[str]]:
    if isinstance(error, DomainValidationError):
        return error.errors
    if isinstance(error, InvalidStateError):
        return [f"Current state: {error.current_state}", f"Requested operation: {error.requested_operation}"]
    if isinstance(error, BusinessRuleViolationError):
        return [f"Rule: {error.rule_name}"]
    if isinstance(error, NotFoundError):
        return [f"{error.aggregate_type} with ID '{error.aggregate_id}'"]
    return None


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    correlation_id = request.headers.get(CORRELATION_ID_HEADER) or uuid4().hex
    token = correlation_id_var.set(correlation_id)
    request.state.correlation_id = correlation_id
    try:
        logger.debug("%s %s", request.method, request.url.path)
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled exception in %s %s", request.method, request.url.path)
            response = _error_response(
                500,
                ERROR_TYPE_BY_KIND[ErrorKind.UNEXPECTED],
                "An unexpected error occurred. Please try again later.",
                correlation_id
            )
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
    finally:
        correlation_id_var.reset(token)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, error: DomainError):
    logger.warning("%s in %s %s: %s", error.error_code, request.method, request.url.path, error.message)
    message = error.message
    if error.kind is ErrorKind.UNEXPECTED:
        message = "An unexpected error occurred. Please try again later."
    return _error_response(
        HTTP_STATUS_BY_KIND[error.kind],
        ERROR_TYPE_BY_KIND[error.kind],
        message,
        getattr(request.state, "correlation_id", correlation_id_var.get()),
        _error_details(error)
    )


def _operation_response(
    result: ReservationOperationResult,
    success_status: int = 200,
    headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    status_code = success_status if result.success else HTTP_STATUS_BY_KIND[result.error_kind]
    return JSONResponse(
        status_code=status_code,
        content=result.model_dump(mode="json"),
        headers=headers if result.success else None
    )

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/health/live", response_model=HealthResponse, tags=["Health"])
async def liveness():
    """Liveness check - the process is running"""
    return HealthResponse(status="alive", timestamp=datetime.now(timezone.utc))

@app.get("/health/ready", response_model=HealthResponse, tags=["Health"])
async def readiness():
    """Readiness check - ready for traffic"""
    return HealthResponse(status="ready", timestamp=datetime.now(timezone.utc), dependencies=["self"])

@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus values"""
    return {
        "values": [item.value for item in ReservationStatus],
        "description": "Reservation status values: Created, Confirmed, Cancelled"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(fake_users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.warning("Failed login for user %s", form_data.username)
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(user.username, email=user.email, roles=user.roles)
    return {"access_token": access_token, "token_type": "bearer"}

@app.post("/api/v1/auth/register", response_model=Token, status_code=201, tags=["Auth"])
async def register(request: RegisterRequest):
    """Register a user and return an access token"""
    try:
        user = add_user(
            fake_users_db,
            username=request.username,
            password=request.password,
            full_name=request.full_name,
            email=request.email
        )
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    access_token = create_access_token(user.username, email=user.email, roles=user.roles)
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post(
    "/api/v1/reservations",
    response_model=ReservationOperationResponse,
    status_code=201,
    tags=["Reservations"]
)
async def create_reservation(
    request: CreateReservationRequest,
    handler: CreateReservationHandler = Depends(get_create_handler),
    current_user: User = Depends(get_current_active_user)
):
    """Create a new reservation"""
    result = await handler.handle(CreateReservationCommand(
        customer_id=request.customer_id,
        start_date=request.start_date,
        end_date=request.end_date
    ))
    return _operation_response(
        result,
        success_status=201,
        headers={"Location": f"/api/v1/reservations/{result.reservation_id}"}
    )

@app.post(
    "/api/v1/reservations/{reservation_id}/confirm",
    response_model=ReservationOperationResponse,
    tags=["Reservations"]
)
async def confirm_reservation(
    reservation_id: UUID,
    handler: ConfirmReservationHandler = Depends(get_confirm_handler),
    current_user: User = Depends(get_current_active_user)
):
    """Confirm a Created reservation"""
    result = await handler.handle(ConfirmReservationCommand(reservation_id=reservation_id))
    return _operation_response(result)

@app.post(
    "/api/v1/reservations/{reservation_id}/cancel",
    response_model=ReservationOperationResponse,
    tags=["Reservations"]
)
async def cancel_reservation(
    reservation_id: UUID,
    request: Optional[CancelReservationRequest] = None,
    handler: CancelReservationHandler = Depends(get_cancel_handler),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel a reservation"""
    reason = request.reason if request else None
    result = await handler.handle(CancelReservationCommand(reservation_id=reservation_id, reason=reason))
    return _operation_response(result)

@app.get("/api/v1/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_reservations(
    response: Response,
    customer_id: str = "",
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    handler: GetReservationsHandler = Depends(get_reservations_handler),
    current_user: User = Depends(get_current_active_user)
):
    """Reservations of a customer, newest start date first"""
    query = GetReservationsQuery(customer_id=customer_id, page=page, page_size=page_size)
    reservations = await handler.handle(query)
    if page is not None:
        response.headers["X-Total-Count"] = str(await handler.total_count(query))
    return [ReservationResponse(**r.model_dump()) for r in reservations]

@app.get("/api/v1/reservations/by-date-range", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_reservations_in_date_range(
    start_date: datetime,
    end_date: datetime,
    handler: GetReservationsInDateRangeHandler = Depends(get_reservations_in_date_range_handler),
    current_user: User = Depends(get_current_active_user)
):
    """Non-cancelled reservations overlapping the period, soonest start first"""
    reservations = await handler.handle(
        GetReservationsInDateRangeQuery(start_date=start_date, end_date=end_date)
    )
    return [ReservationResponse(**r.model_dump()) for r in reservations]

@app.get("/api/v1/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    handler: GetReservationByIdHandler = Depends(get_reservation_by_id_handler),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by ID"""
    reservation = await handler.handle(GetReservationByIdQuery(reservation_id=reservation_id))
    return ReservationResponse(**reservation.model_dump())

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
