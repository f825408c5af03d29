"""Routes for reader statistics and profile."""
from fastapi import APIRouter, Depends

from app.models.schemas import StatsResponse, UpdateNameRequest, UserStats
from app.services.persistence_sync import PersistenceSync, get_persistence_sync
from app.services.progress_tracker import (
    ProgressTracker,
    aggregate_history,
    current_streak,
    get_progress_tracker,
)

router = APIRouter(prefix="/api/stats", tags=["stats"])


def _stats_response(stats: UserStats) -> StatsResponse:
    return StatsResponse(
        stats=stats,
        daily_history=aggregate_history(stats.history),
        current_streak=current_streak(stats.history),
    )


@router.get("", response_model=StatsResponse, response_model_by_alias=True)
async def get_stats(tracker: ProgressTracker = Depends(get_progress_tracker)):
    return _stats_response(tracker.stats)


@router.put("/name", response_model=StatsResponse, response_model_by_alias=True)
async def update_user_name(
    payload: UpdateNameRequest,
    tracker: ProgressTracker = Depends(get_progress_tracker),
):
    tracker.update_user_name(payload.name)
    return _stats_response(tracker.stats)


@router.post("/reset", response_model=StatsResponse, response_model_by_alias=True)
async def reset_progress(
    tracker: ProgressTracker = Depends(get_progress_tracker),
    sync: PersistenceSync = Depends(get_persistence_sync),
):
    """Discard every plan's progress and zero the stats."""
    tracker.reset(sync.default_state())
    return _stats_response(tracker.stats)
