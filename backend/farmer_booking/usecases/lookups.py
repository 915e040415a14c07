from ..domain.repositories import LookupRepository
from ..models import Branch, FarmerType, Region


async def list_regions(lookup_repo: LookupRepository) -> list[Region]:
    return await lookup_repo.list_regions()


async def list_branches(lookup_repo: LookupRepository, *, region_id: int) -> list[Branch]:
    if region_id <= 0:
        return []
    return await lookup_repo.list_branches(region_id)


async def list_farmer_types(lookup_repo: LookupRepository) -> list[FarmerType]:
    return await lookup_repo.list_farmer_types()
