from fastapi import APIRouter

from config import settings
from models import Country, LoanAmortization, Rating

router = APIRouter(prefix=settings.base_path, tags=["lookups"])


@router.get("/amortizations", response_model=list[dict])
async def list_amortizations():
    return [a.model_dump() for a in await LoanAmortization.get_all_as_model()]


@router.get("/countries", response_model=list[dict])
async def list_countries():
    return [c.get_api_model().model_dump() for c in await Country.get_all()]


@router.get("/ratings", response_model=list[dict])
async def list_ratings():
    return [r.get_api_model().model_dump(exclude_none=True) for r in await Rating.get_all()]
