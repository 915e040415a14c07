import logging
from typing import Union

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..deps import get_app_settings, get_session
from ..domain.errors import BookingError, StoreUnavailableError
from ..infrastructure.repositories import SqlAlchemyAppointmentRepository, SqlAlchemyBranchRepository
from ..infrastructure.store import store_errors
from ..schemas import BookingCreate, BookingFailure, BookingRead, BookingSuccess
from ..usecases import bookings as booking_usecase
from ..utils.audit_log import emit_audit_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["bookings"])


def booking_failure_response(exc: BookingError) -> JSONResponse:
    body = BookingFailure(error_kind=exc.error_kind, message=exc.message, field=getattr(exc, "field", None))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(by_alias=True, exclude_none=True))


@router.post(
    "/bookings",
    response_model=BookingSuccess,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": BookingFailure},
        404: {"model": BookingFailure},
        409: {"model": BookingFailure},
        503: {"model": BookingFailure},
    },
)
async def create_booking(
    payload: BookingCreate,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> Union[BookingSuccess, JSONResponse]:
    branch_repo = SqlAlchemyBranchRepository(session)
    appointment_repo = SqlAlchemyAppointmentRepository(session)
    try:
        async with store_errors(), session.begin():
            appointment = await booking_usecase.submit_booking(
                branch_repo,
                appointment_repo,
                candidate=payload.to_candidate(),
                reference_prefix=settings.reference_prefix,
                max_attempts=settings.reference_max_attempts,
            )
            # Inside the transaction: an unrecorded booking is rolled back.
            emit_audit_log(
                action="appointment.created",
                initiator="farmer",
                reference_number=appointment.reference_number,
                branch_id=appointment.branch_id,
                appointment_date=appointment.date,
                time_slot=appointment.time_slot,
                volume=appointment.volume,
                status=appointment.status,
            )
    except BookingError as exc:
        if isinstance(exc, StoreUnavailableError):
            logger.warning("booking failed: %s", exc.message)
        return booking_failure_response(exc)
    except RuntimeError:
        logger.exception("audit log failed; booking rolled back")
        return booking_failure_response(
            StoreUnavailableError("The booking could not be recorded. Please try again.")
        )

    return BookingSuccess(reference_number=appointment.reference_number)


@router.get("/bookings/{reference_number}", response_model=BookingRead)
async def get_booking(
    reference_number: str = Path(..., min_length=1, max_length=32),
    session: AsyncSession = Depends(get_session),
) -> BookingRead:
    appointment_repo = SqlAlchemyAppointmentRepository(session)
    try:
        async with store_errors():
            appointment = await booking_usecase.get_booking(appointment_repo, reference_number=reference_number)
    except BookingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    return BookingRead.from_db(appointment=appointment)
