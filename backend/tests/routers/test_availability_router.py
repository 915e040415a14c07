from datetime import date
from decimal import Decimal
from typing import Any, cast

import pytest
from farmer_booking.config import Settings
from farmer_booking.domain.errors import InvalidRangeError, NotFoundError
from farmer_booking.domain.services import DayAvailability, SlotCapacity, VolumeSnapshot
from farmer_booking.routers import availability as router
from farmer_booking.usecases.availability import BranchInfo
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

MONDAY = date(2025, 11, 3)


def _patch_repos(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(router, "SqlAlchemyBranchRepository", lambda s: s)  # type: ignore[assignment]
    monkeypatch.setattr(router, "SqlAlchemyAppointmentRepository", lambda s: s)  # type: ignore[assignment]
    monkeypatch.setattr(router, "SqlAlchemyHolidayRepository", lambda s: s)  # type: ignore[assignment]


@pytest.mark.asyncio
async def test_availability_is_keyed_by_iso_date(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}

    async def fake_compute(*args: object, **kwargs: Any) -> dict[date, DayAvailability]:
        seen.update(kwargs)
        return {MONDAY: DayAvailability(am_remaining=1, pm_remaining=2, am_capacity=2, pm_capacity=2, is_disabled=False)}

    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.availability_usecase, "compute_availability", fake_compute)  # type: ignore[attr-defined]

    result = await router.get_availability(
        branch_id=1,
        start_date=MONDAY,
        end_date=MONDAY,
        session=cast(AsyncSession, object()),
        settings=Settings(availability_max_days=31),
    )

    assert seen["max_days"] == 31
    assert list(result) == ["2025-11-03"]
    assert result["2025-11-03"].model_dump(by_alias=True) == {
        "amRemaining": 1,
        "pmRemaining": 2,
        "amCapacity": 2,
        "pmCapacity": 2,
        "isDisabled": False,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "status_code"),
    [(NotFoundError("branch not found"), 404), (InvalidRangeError("start date must not be after end date"), 400)],
)
async def test_availability_errors_map_to_http(
    monkeypatch: pytest.MonkeyPatch, error: Exception, status_code: int
) -> None:
    async def fake_compute(*args: object, **kwargs: object) -> Any:
        raise error

    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.availability_usecase, "compute_availability", fake_compute)  # type: ignore[attr-defined]

    with pytest.raises(HTTPException) as excinfo:
        await router.get_availability(
            branch_id=1,
            start_date=MONDAY,
            end_date=MONDAY,
            session=cast(AsyncSession, object()),
            settings=Settings(),
        )
    assert excinfo.value.status_code == status_code


@pytest.mark.asyncio
async def test_branch_info_defaults_to_current_month(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}

    async def fake_info(*args: object, **kwargs: Any) -> BranchInfo:
        seen.update(kwargs)
        return BranchInfo(
            volume=VolumeSnapshot(warehouse_capacity=Decimal("1000"), inventory=Decimal("950")),
            default_capacity=SlotCapacity(am=2, pm=2),
            daily={},
        )

    _patch_repos(monkeypatch)
    monkeypatch.setattr(router, "local_today", lambda tz_name: date(2025, 2, 14))
    monkeypatch.setattr(router.availability_usecase, "get_branch_info", fake_info)  # type: ignore[attr-defined]

    result = await router.get_branch_info(
        branch_id=1,
        start_date=None,
        end_date=None,
        session=cast(AsyncSession, object()),
        settings=Settings(),
    )

    assert (seen["start_date"], seen["end_date"]) == (date(2025, 2, 1), date(2025, 2, 28))
    body = result.model_dump(by_alias=True)
    assert body["capacityInfo"] == {"totalCapacity": 1000.0, "inventory": 950.0, "availableVolume": 50.0}
    assert body["defaultSlotCapacity"] == {"capacityAm": 2, "capacityPm": 2}
    assert body["dailyAvailability"] == {}
