"""Meal plan routes: generation, shopping list and the daily checklist."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path

from api.dependencies import get_controller, get_plan_generator, require_profile, unwrap_result
from config.settings import settings
from schemas.plan import DailyPlan, PlanRequest, ShoppingListResponse
from schemas.user import UserProfile
from services.plan_generator import PlanGenerator
from services.session_controller import AuthBootstrapController
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/v1/plan", tags=["plan"])


def _check_day(day: int):
    if day > settings.plan_duration_days:
        raise HTTPException(
            status_code=404,
            detail=f"The program has {settings.plan_duration_days} days; day {day} does not exist.",
        )


def _require_ai(generator: PlanGenerator):
    if not generator.is_enabled:
        raise HTTPException(
            status_code=503,
            detail="AI features are disabled: no AI service key is configured.",
        )


@router.post("/days/{day}", response_model=DailyPlan)
async def generate_day_plan(
    payload: Optional[PlanRequest] = None,
    day: int = Path(..., ge=1, description="Program day, starting at 1"),
    profile: UserProfile = Depends(require_profile),
    generator: PlanGenerator = Depends(get_plan_generator),
):
    """Generate (or regenerate with feedback) the plan for one day."""
    _check_day(day)
    _require_ai(generator)

    feedback = payload.feedback if payload else None
    plan = await generator.generate_daily_plan(profile, day, feedback)
    if plan is None:
        raise HTTPException(
            status_code=502,
            detail="We could not generate your plan right now. Please try again.",
        )
    return plan


@router.post("/shopping-list", response_model=ShoppingListResponse, dependencies=[Depends(require_profile)])
async def shopping_list(
    plan: DailyPlan,
    generator: PlanGenerator = Depends(get_plan_generator),
):
    """Build a categorised shopping list from a plan."""
    _require_ai(generator)
    text = await generator.generate_shopping_list(plan)
    return ShoppingListResponse(day=plan.day, shopping_list=text)


@router.post("/days/{day}/items/{item_id}/toggle", dependencies=[Depends(require_profile)])
async def toggle_item(
    day: int = Path(..., ge=1),
    item_id: str = Path(..., min_length=1, max_length=100),
    controller: AuthBootstrapController = Depends(get_controller),
):
    """Flip the completion flag of a checklist item."""
    _check_day(day)
    profile = unwrap_result(await controller.toggle_item_completion(day, item_id), "update your checklist")
    return {"day": day, "items": (profile.completed_items_by_day or {}).get(day, {})}


@router.delete("/days/{day}/completion", dependencies=[Depends(require_profile)])
async def reset_day(
    day: int = Path(..., ge=1),
    controller: AuthBootstrapController = Depends(get_controller),
):
    """Clear every completion flag of a day."""
    _check_day(day)
    unwrap_result(await controller.reset_day_completion(day), "reset the day")
    return {"day": day, "items": {}}
