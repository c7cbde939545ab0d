# app/routers/gig_router.py

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.common_schema import ApiResponse
from app.schemas.gig_schema import GigCreate, GigList, GigOut
from app.services.gig_service import GigService

router = APIRouter(
    prefix="/gigs",
    tags=["Gigs"]
)


def get_gig_service(db: AsyncSession = Depends(get_db)) -> GigService:
    return GigService(db)


@router.post("", response_model=ApiResponse[GigOut], status_code=status.HTTP_201_CREATED)
async def create_gig(
    gig_data: GigCreate,
    service: GigService = Depends(get_gig_service),
    current_user: User = Depends(get_current_user),
):
    """(Freelancer) Publish a gig"""
    gig = await service.create_gig(gig_data, current_user)
    return ApiResponse(message="Gig created successfully", data=GigOut.model_validate(gig))


@router.get("", response_model=ApiResponse[GigList])
async def list_gigs(
    seller_id: Optional[str] = Query(None, alias="sellerId"),
    service: GigService = Depends(get_gig_service),
):
    gigs = await service.list_gigs(seller_id)
    return ApiResponse(data=GigList(gigs=[GigOut.model_validate(g) for g in gigs]))


@router.get("/{gig_id}", response_model=ApiResponse[GigOut])
async def get_gig(
    gig_id: str,
    service: GigService = Depends(get_gig_service),
):
    gig = await service.get_gig(gig_id)
    return ApiResponse(data=GigOut.model_validate(gig))
