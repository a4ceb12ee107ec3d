"""Dashboard API route."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from alliedhealth.auth import get_caller
from alliedhealth.database import get_db
from alliedhealth.identity import CallerContext
from alliedhealth.schemas.dashboard import DashboardResponse
from alliedhealth.services.summary import SummaryService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> DashboardResponse:
    """Catalog sizes plus task, referral and outcome breakdowns.

    Every counter is computed from current records on each call.
    """
    return await SummaryService(db).dashboard(caller)
