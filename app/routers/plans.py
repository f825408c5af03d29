"""Routes for reading plans and task completion."""
from typing import List

from fastapi import APIRouter, Depends, Path

from app.models.schemas import PlanBookGroup, PlanDayGroup, PlanDetailResponse, PlanSummary, ReadingPlan
from app.services.plan_generator import tasks_by_book, tasks_by_day
from app.services.progress_tracker import ProgressTracker, count_completed, get_progress_tracker
from app.utils.exceptions import PlanNotFoundError

router = APIRouter(prefix="/api/plans", tags=["reading-plans"])


def _summarize(plan: ReadingPlan) -> PlanSummary:
    return PlanSummary(
        id=plan.id,
        name=plan.name,
        description=plan.description,
        duration_days=plan.duration_days,
        progress=plan.progress,
        completed_tasks=count_completed(plan),
        total_tasks=len(plan.tasks),
    )


def _detail(plan: ReadingPlan) -> PlanDetailResponse:
    return PlanDetailResponse(
        plan=_summarize(plan),
        books=[PlanBookGroup(book=book, tasks=tasks) for book, tasks in tasks_by_book(plan.tasks)],
        days=[PlanDayGroup(day=day, tasks=tasks) for day, tasks in tasks_by_day(plan.tasks, plan.duration_days).items()],
    )


@router.get("", response_model=List[PlanSummary], response_model_by_alias=True)
async def list_reading_plans(tracker: ProgressTracker = Depends(get_progress_tracker)):
    return [_summarize(plan) for plan in tracker.list_plans()]


@router.get("/{plan_id}", response_model=PlanDetailResponse, response_model_by_alias=True)
async def get_reading_plan(
    plan_id: str = Path(..., min_length=1),
    tracker: ProgressTracker = Depends(get_progress_tracker),
):
    plan = tracker.get_plan(plan_id)
    if plan is None:
        raise PlanNotFoundError()
    return _detail(plan)


@router.post("/{plan_id}/tasks/{task_id}/toggle", response_model=PlanDetailResponse, response_model_by_alias=True)
async def toggle_plan_task(
    plan_id: str = Path(..., min_length=1),
    task_id: str = Path(..., min_length=1),
    tracker: ProgressTracker = Depends(get_progress_tracker),
):
    """Flip a task. Unknown task ids leave the plan untouched."""
    tracker.toggle_task(plan_id, task_id)
    plan = tracker.get_plan(plan_id)
    if plan is None:
        raise PlanNotFoundError()
    return _detail(plan)
