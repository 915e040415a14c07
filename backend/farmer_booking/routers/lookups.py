from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path

from ..deps import get_lookup_repo
from ..domain.errors import BookingError
from ..infrastructure.repositories import SqlAlchemyLookupRepository
from ..infrastructure.store import store_errors
from ..schemas import BranchRead, FarmerTypeRead, RegionRead
from ..usecases import lookups as lookup_usecase

router = APIRouter(prefix="", tags=["lookups"])


@router.get("/regions", response_model=List[RegionRead])
async def list_regions(lookup_repo: SqlAlchemyLookupRepository = Depends(get_lookup_repo)) -> list[RegionRead]:
    try:
        async with store_errors():
            regions = await lookup_usecase.list_regions(lookup_repo)
    except BookingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    return [RegionRead.from_db(region) for region in regions]


@router.get("/regions/{region_id}/branches", response_model=List[BranchRead])
async def list_branches(
    region_id: int = Path(...),
    lookup_repo: SqlAlchemyLookupRepository = Depends(get_lookup_repo),
) -> list[BranchRead]:
    try:
        async with store_errors():
            branches = await lookup_usecase.list_branches(lookup_repo, region_id=region_id)
    except BookingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    return [BranchRead.from_db(branch) for branch in branches]


@router.get("/farmer-types", response_model=List[FarmerTypeRead])
async def list_farmer_types(
    lookup_repo: SqlAlchemyLookupRepository = Depends(get_lookup_repo),
) -> list[FarmerTypeRead]:
    try:
        async with store_errors():
            farmer_types = await lookup_usecase.list_farmer_types(lookup_repo)
    except BookingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    return [FarmerTypeRead.from_db(farmer_type) for farmer_type in farmer_types]
