from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from ..domain.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def store_errors() -> AsyncIterator[None]:
    """Translate driver and pool failures into StoreUnavailableError.

    Wrap the whole ``session.begin()`` block so the transaction is already
    rolled back when the translated error propagates.
    """
    try:
        yield
    except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
        logger.warning("store unavailable: %s", exc.__class__.__name__, exc_info=True)
        raise StoreUnavailableError("The booking service is temporarily unavailable. Please try again.") from exc
