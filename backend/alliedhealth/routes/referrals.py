"""Referral API routes.

Referrals move a patient between departments. They are created pending
and resolved once by the destination department.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from alliedhealth.auth import get_caller
from alliedhealth.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from alliedhealth.database import get_db
from alliedhealth.identity import CallerContext
from alliedhealth.models.referral import ReferralStatus
from alliedhealth.schemas.dashboard import ReferralSummaryResponse
from alliedhealth.schemas.referral import (
    ReferralCreate,
    ReferralDetailResponse,
    ReferralDirection,
    ReferralListResponse,
    ReferralResolve,
    ReferralResponse,
)
from alliedhealth.services.referrals import ReferralService, direction_for
from alliedhealth.services.summary import SummaryService

router = APIRouter(prefix="/referrals", tags=["referrals"])


@router.get("", response_model=ReferralListResponse)
async def list_referrals(
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    direction: ReferralDirection | None = None,
    status_filter: ReferralStatus | None = Query(None, alias="status"),
) -> ReferralListResponse:
    """List referrals visible to the caller's departments.

    Args:
        direction: ``incoming`` (to the caller's departments) or
            ``outgoing`` (from them). Omitted means both.
        status_filter: Filter by referral status.
    """
    referrals = await ReferralService(db).list_referrals(caller, direction=direction, status=status_filter).all()
    return ReferralListResponse(
        items=[
            ReferralResponse.from_referral(r, direction_for(r, caller.department_ids))
            for r in referrals[skip : skip + limit]
        ],
        total=len(referrals),
        skip=skip,
        limit=limit,
    )


@router.post("", response_model=ReferralDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_referral(
    referral_data: ReferralCreate,
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> ReferralDetailResponse:
    """Create a pending referral."""
    referral = await ReferralService(db).create_referral(referral_data, caller)
    return ReferralDetailResponse.from_referral(referral, direction_for(referral, caller.department_ids))


@router.get("/summary", response_model=ReferralSummaryResponse)
async def referral_summary(
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> ReferralSummaryResponse:
    """Referral counts by status, direction and destination."""
    return await SummaryService(db).referral_summary(caller)


@router.get("/{referral_id}", response_model=ReferralDetailResponse)
async def get_referral(
    referral_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> ReferralDetailResponse:
    referral = await ReferralService(db).get_referral(referral_id)
    return ReferralDetailResponse.from_referral(referral, direction_for(referral, caller.department_ids))


@router.put("/{referral_id}", response_model=ReferralDetailResponse)
async def resolve_referral(
    referral_id: uuid.UUID,
    resolution: ReferralResolve,
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> ReferralDetailResponse:
    """Accept or reject a pending referral.

    Raises:
        400 for an unknown decision, 404 for an unknown referral, 403 if the
        caller is not in the destination department, 409 if the referral
        is already resolved.
    """
    referral = await ReferralService(db).resolve_referral(referral_id, resolution.decision, caller)
    return ReferralDetailResponse.from_referral(referral, direction_for(referral, caller.department_ids))


@router.delete("/{referral_id}", status_code=status.HTTP_204_NO_CONTENT)
async def retire_referral(
    referral_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> None:
    await ReferralService(db).retire_referral(referral_id, caller)
