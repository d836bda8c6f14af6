"""Application Handlers - one use case each

Command handlers follow load -> mutate -> persist and never raise: every
failure is translated into a ``ReservationOperationResult``. Query handlers
are pure reads.
"""
import logging
from typing import Callable, Dict, List, Optional
from uuid import UUID

from application.behaviors import log_operation
from application.commands import (
    CreateReservationCommand,
    ConfirmReservationCommand,
    CancelReservationCommand,
    GetReservationsQuery,
    GetReservationByIdQuery,
    GetReservationsInDateRangeQuery,
)
from application.dtos import ReservationDto, ReservationOperationResult
from domain.clock import Clock, utc_now
from domain.entities import Reservation
from domain.enums import ErrorKind
from domain.exceptions import DomainError, DomainValidationError, NotFoundError
from domain.repositories import ReservationRepository, UnitOfWork
from domain.specifications import (
    ReservationSpecification,
    ReservationsByCustomerSpecification,
    PaginatedCustomerReservationsSpecification,
)

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred while processing the reservation."

# Expected outcomes stay below ERROR
_LOG_LEVELS: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: logging.INFO,
    ErrorKind.BUSINESS_RULE: logging.WARNING,
    ErrorKind.INVALID_STATE: logging.WARNING,
    ErrorKind.NOT_FOUND: logging.WARNING,
    ErrorKind.UNEXPECTED: logging.ERROR,
}


def failure_result(operation: str, error: DomainError) -> ReservationOperationResult:
    """Translate a domain failure into a failed result"""
    logger.log(
        _LOG_LEVELS[error.kind],
        "%s failed [%s/%s]: %s",
        operation, error.kind.value, error.error_code, error.message
    )
    if error.kind is ErrorKind.UNEXPECTED:
        return ReservationOperationResult.failed(ErrorKind.UNEXPECTED, UNEXPECTED_ERROR_MESSAGE)
    return ReservationOperationResult.failed(error.kind, error.message)


def unexpected_result(operation: str, reservation_id: Optional[UUID] = None) -> ReservationOperationResult:
    """Log the active exception with context and hide its detail from the caller"""
    logger.exception("Unexpected error during %s (reservation %s)", operation, reservation_id)
    return ReservationOperationResult.failed(ErrorKind.UNEXPECTED, UNEXPECTED_ERROR_MESSAGE)


def _require_customer_id(customer_id: Optional[str]) -> str:
    if customer_id is None or not customer_id.strip():
        raise DomainValidationError("customer_id", "Customer id is required and cannot be empty")
    return customer_id


class CreateReservationHandler:
    """Create a reservation and persist it"""

    def __init__(self, unit_of_work: UnitOfWork, clock: Clock = utc_now):
        self.unit_of_work = unit_of_work
        self.clock = clock

    @log_operation
    async def handle(self, command: CreateReservationCommand) -> ReservationOperationResult:
        try:
            reservation = Reservation.create(
                customer_id=command.customer_id,
                start_date=command.start_date,
                end_date=command.end_date,
                clock=self.clock
            )
        except DomainError as error:
            return failure_result("CreateReservation", error)

        try:
            async with self.unit_of_work:
                await self.unit_of_work.reservations.add(reservation)
                await self.unit_of_work.save_changes()
        except DomainError as error:
            return failure_result("CreateReservation", error)
        except Exception:
            return unexpected_result("CreateReservation", reservation.reservation_id)

        logger.info(
            "Reservation %s created for customer %s",
            reservation.reservation_id, reservation.customer_id
        )
        return ReservationOperationResult.succeeded(reservation)


class _ReservationTransitionHandler:
    """Shared load -> mutate -> persist flow for existing reservations"""

    operation = "ReservationTransition"

    def __init__(self, unit_of_work: UnitOfWork, clock: Clock = utc_now):
        self.unit_of_work = unit_of_work
        self.clock = clock

    async def _apply(
        self,
        reservation_id: UUID,
        mutate: Callable[[Reservation], object]
    ) -> ReservationOperationResult:
        try:
            async with self.unit_of_work:
                reservation = await self.unit_of_work.reservations.get_by_id(reservation_id)
                if reservation is None:
                    raise NotFoundError("Reservation", reservation_id)

                logger.debug(
                    "Loaded reservation %s with status %s",
                    reservation.reservation_id, reservation.status.value
                )
                mutate(reservation)

                await self.unit_of_work.reservations.update(reservation)
                await self.unit_of_work.save_changes()
        except DomainError as error:
            return failure_result(self.operation, error)
        except Exception:
            return unexpected_result(self.operation, reservation_id)

        logger.info(
            "%s succeeded for reservation %s, status now %s",
            self.operation, reservation.reservation_id, reservation.status.value
        )
        return ReservationOperationResult.succeeded(reservation)


class ConfirmReservationHandler(_ReservationTransitionHandler):
    operation = "ConfirmReservation"

    @log_operation
    async def handle(self, command: ConfirmReservationCommand) -> ReservationOperationResult:
        return await self._apply(
            command.reservation_id,
            lambda reservation: reservation.confirm(clock=self.clock)
        )


class CancelReservationHandler(_ReservationTransitionHandler):
    operation = "CancelReservation"

    @log_operation
    async def handle(self, command: CancelReservationCommand) -> ReservationOperationResult:
        return await self._apply(
            command.reservation_id,
            lambda reservation: reservation.cancel(reason=command.reason, clock=self.clock)
        )


class GetReservationsHandler:
    """Reservations of a customer, newest start date first"""

    def __init__(
        self,
        repository: ReservationRepository,
        default_page_size: int = 20,
        max_page_size: int = 100
    ):
        self.repository = repository
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def build_specification(self, query: GetReservationsQuery) -> ReservationSpecification:
        customer_id = _require_customer_id(query.customer_id)
        if query.page is None:
            if query.page_size is not None:
                raise DomainValidationError("page", "Page number is required when a page size is given")
            return ReservationsByCustomerSpecification(customer_id=customer_id)

        page_size = query.page_size if query.page_size is not None else self.default_page_size
        if page_size > self.max_page_size:
            raise DomainValidationError(
                "page_size", f"Page size cannot exceed {self.max_page_size}"
            )
        return PaginatedCustomerReservationsSpecification.for_page(customer_id, query.page, page_size)

    @log_operation
    async def handle(self, query: GetReservationsQuery) -> List[ReservationDto]:
        specification = self.build_specification(query)
        reservations = await self.repository.query(specification)
        return [ReservationDto.from_entity(r) for r in reservations]

    async def total_count(self, query: GetReservationsQuery) -> int:
        """Count of the customer's reservations, ignoring paging"""
        customer_id = _require_customer_id(query.customer_id)
        return await self.repository.count(
            ReservationsByCustomerSpecification(customer_id=customer_id)
        )


class GetReservationByIdHandler:

    def __init__(self, repository: ReservationRepository):
        self.repository = repository

    @log_operation
    async def handle(self, query: GetReservationByIdQuery) -> ReservationDto:
        reservation = await self.repository.get_by_id(query.reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation", query.reservation_id)
        return ReservationDto.from_entity(reservation)


class GetReservationsInDateRangeHandler:
    """Reservations occupying any part of a period, soonest start first"""

    def __init__(self, repository: ReservationRepository):
        self.repository = repository

    @log_operation
    async def handle(self, query: GetReservationsInDateRangeQuery) -> List[ReservationDto]:
        reservations = await self.repository.get_by_date_range(query.start_date, query.end_date)
        return [ReservationDto.from_entity(r) for r in reservations]
