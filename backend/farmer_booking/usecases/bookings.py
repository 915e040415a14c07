import logging

from ..domain.errors import (
    NotFoundError,
    ReferenceCollisionError,
    StoreUnavailableError,
    VolumeExceededError,
)
from ..domain.reference import generate_reference_number, normalize_reference_number
from ..domain.repositories import AppointmentRepository, BranchRepository
from ..domain.services import NO_CAPACITY, BookingSnapshot, VolumeSnapshot, validate_booking
from ..domain.validation import BookingCandidate, ValidatedBooking, validate_candidate
from ..models import Appointment

logger = logging.getLogger(__name__)


async def submit_booking(
    branch_repo: BranchRepository,
    appointment_repo: AppointmentRepository,
    *,
    candidate: BookingCandidate,
    reference_prefix: str,
    max_attempts: int = 3,
) -> Appointment:
    """Validate and persist one booking, reserving its volume.

    Must run inside a single store transaction owned by the caller: any raised
    error rolls back both the appointment row and the inventory increment.
    Locking the branch volume row first serializes concurrent commits for the
    same branch, so the headcount re-count below cannot go stale before insert.
    """
    booking = validate_candidate(candidate)
    branch_id = booking.branch_id

    volume_row = await branch_repo.get_volume_for_update(branch_id)
    if volume_row is None:
        if not await branch_repo.exists(branch_id):
            raise NotFoundError("branch not found")
        raise NotFoundError("branch has no warehouse capacity configured")

    capacity = await branch_repo.get_slot_capacity(branch_id, booking.date) or NO_CAPACITY
    booked = await appointment_repo.count_active(branch_id, booking.date, booking.time_slot)

    snapshot = BookingSnapshot(
        slot_capacity=capacity.for_slot(booking.time_slot),
        booked=booked,
        volume=VolumeSnapshot(
            warehouse_capacity=volume_row.warehouse_capacity,
            inventory=volume_row.inventory,
        ),
    )
    validate_booking(snapshot, volume=booking.volume)

    appointment = await _create_with_unique_reference(
        appointment_repo,
        booking,
        reference_prefix=reference_prefix,
        max_attempts=max_attempts,
    )

    # Conditional increment; guards the ceiling even where row locks are unavailable.
    if not await branch_repo.reserve_volume(branch_id, booking.volume):
        raise VolumeExceededError("The branch warehouse cannot accept this volume.")
    return appointment


async def get_booking(
    appointment_repo: AppointmentRepository,
    *,
    reference_number: str,
) -> Appointment:
    appointment = await appointment_repo.get_by_reference(normalize_reference_number(reference_number))
    if appointment is None:
        raise NotFoundError("booking not found")
    return appointment


async def _create_with_unique_reference(
    appointment_repo: AppointmentRepository,
    booking: ValidatedBooking,
    *,
    reference_prefix: str,
    max_attempts: int,
) -> Appointment:
    last_error: ReferenceCollisionError | None = None
    for attempt in range(1, max_attempts + 1):
        reference_number = generate_reference_number(reference_prefix, booking.date)
        try:
            return await appointment_repo.create(booking, reference_number=reference_number)
        except ReferenceCollisionError as exc:
            logger.warning("reference collision on attempt %d/%d: %s", attempt, max_attempts, exc)
            last_error = exc
    raise StoreUnavailableError("Could not allocate a booking reference number. Please try again.") from last_error
