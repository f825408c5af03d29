"""Route offering the progress export as a download."""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response

from app.services.export_service import ExportService, get_export_service
from app.services.progress_tracker import ProgressTracker, get_progress_tracker

router = APIRouter(prefix="/api/export", tags=["export"])


@router.get("")
async def download_export(
    tracker: ProgressTracker = Depends(get_progress_tracker),
    service: ExportService = Depends(get_export_service),
):
    now = datetime.now(timezone.utc)
    body = service.render_export(tracker.state, now)
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{service.filename(now)}"'},
    )
