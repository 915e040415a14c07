class BookingError(Exception):
    """Base class for failures reported to callers.

    ``error_kind`` is the stable identifier sent on the wire and
    ``status_code`` the HTTP status a router answers with. ``str(exc)`` is a
    human-readable message that is safe to show to the farmer.
    """

    error_kind = "BookingError"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(BookingError):
    error_kind = "NotFound"
    status_code = 404


class InvalidRangeError(BookingError):
    error_kind = "InvalidRange"
    status_code = 400


class InvalidInputError(BookingError):
    error_kind = "InvalidInput"
    status_code = 400

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class SlotFullError(BookingError):
    error_kind = "SlotFull"
    status_code = 409


class VolumeExceededError(BookingError):
    error_kind = "VolumeExceeded"
    status_code = 409


class StoreUnavailableError(BookingError):
    error_kind = "StoreUnavailable"
    status_code = 503


class ReferenceCollisionError(StoreUnavailableError):
    error_kind = "ReferenceCollision"
