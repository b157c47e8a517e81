from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from jobplanner.api.deps import get_commute_resolver, get_messages
from jobplanner.database import get_db
from jobplanner.schemas import DailyPlanRequest, DailyPlanResponse
from jobplanner.services.commute import CommuteResolver
from jobplanner.services.errors import ProfileNotFound
from jobplanner.services.messages import MessageGenerator
from jobplanner.services.plans import DailyPlanService

router = APIRouter()


@router.get("", response_model=DailyPlanResponse)
async def get_daily_plan(
    user_id: str = Query(...),
    regenerate: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    commute_resolver: CommuteResolver = Depends(get_commute_resolver),
    messages: MessageGenerator = Depends(get_messages),
):
    service = DailyPlanService(db, commute_resolver=commute_resolver, message_generator=messages)
    try:
        plan, cached = await service.get_plan(user_id, regenerate=regenerate)
    except ProfileNotFound:
        raise HTTPException(status_code=404, detail="Profile not found")

    return DailyPlanResponse(plan=plan, cached=cached)


@router.post("", response_model=DailyPlanResponse)
async def create_daily_plan(
    request: DailyPlanRequest,
    db: AsyncSession = Depends(get_db),
    commute_resolver: CommuteResolver = Depends(get_commute_resolver),
    messages: MessageGenerator = Depends(get_messages),
):
    service = DailyPlanService(db, commute_resolver=commute_resolver, message_generator=messages)
    try:
        plan, cached = await service.get_plan(
            request.user_id,
            job_count=request.job_count,
            regenerate=request.force_regenerate,
        )
    except ProfileNotFound:
        raise HTTPException(status_code=404, detail="Profile not found")

    return DailyPlanResponse(plan=plan, cached=cached)
