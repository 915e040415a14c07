import logging
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError

from .config import get_settings
from .domain.errors import InvalidInputError
from .routers import availability, bookings, lookups
from .utils.request_id import REQUEST_ID_HEADER, resolve_request_id, set_request_id

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Farmer Appointment API")


async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
    set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    # Booking submissions always answer with the success/failure envelope.
    if request.method == "POST" and request.url.path == "/bookings":
        errors = exc.errors()
        field = ".".join(str(part) for part in errors[0]["loc"][1:]) if errors else None
        message = f"Invalid value for {field}." if field else "Malformed booking request."
        return bookings.booking_failure_response(InvalidInputError(message, field=field))
    return await request_validation_exception_handler(request, exc)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.middleware("http")(request_id_middleware)
app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
app.include_router(availability.router)
app.include_router(bookings.router)
app.include_router(lookups.router)
