"""Domain errors raised by the trip ledger and the reservation allocator."""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.logger import logger


class DomainError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT


class TripNotFound(NotFoundError):
    def __init__(self, trip_id):
        super().__init__(f"Trip {trip_id} not found")


class ReservationNotFound(NotFoundError):
    def __init__(self, reservation_id):
        super().__init__(f"Reservation {reservation_id} not found")


class SegmentNotFound(NotFoundError):
    def __init__(self, segment_id):
        super().__init__(f"Segment {segment_id} not found")


class CapacityExhausted(ConflictError):
    def __init__(self, trip_id):
        super().__init__(f"No seats left on trip {trip_id}")


class SeatTaken(ConflictError):
    def __init__(self, seat: int):
        super().__init__(f"Seat {seat} is already reserved")


class DuplicateTrip(ConflictError):
    pass


class InvalidStatusTransition(ConflictError):
    pass


class InvalidSeat(DomainError):
    def __init__(self, seat):
        super().__init__(f"Seat number must be a positive integer, got {seat}")


class InconsistentRoute(DomainError):
    pass


class InvalidTrip(DomainError):
    pass


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.warning(f'{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}')
    return JSONResponse(
        status_code=exc.status_code,
        content={'detail': exc.message, 'error': type(exc).__name__},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f'Validation error on {request.url.path}: {exc.errors()}')
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={'detail': jsonable_errors(exc)},
    )


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f'Unhandled exception on {request.method} {request.url.path}: {exc}')
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'detail': 'Internal server error'},
    )


def jsonable_errors(exc: RequestValidationError):
    return [
        {'loc': list(error.get('loc', ())), 'msg': error.get('msg'), 'type': error.get('type')}
        for error in exc.errors()
    ]


EXCEPTION_HANDLERS = {
    DomainError: domain_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: general_500_exception_handler,
}


def register_exception_handlers(app):
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
