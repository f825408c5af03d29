"""Builds the downloadable progress export."""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.config import get_settings
from app.models.schemas import ExportDocument, PlanProgressExport
from app.services.progress_tracker import TrackerState, count_completed, current_streak
from app.utils.exceptions import ExportError

logger = logging.getLogger(__name__)


class ExportService:
    """Serializes stats and per-plan progress into the export artifact."""

    def __init__(self, app_name: Optional[str] = None) -> None:
        self.app_name = app_name or get_settings().app_name

    def build_export(self, state: TrackerState, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        # The stored streak dates from the last completion; report it as of the export
        stats = state.stats.model_copy(update={"streak": current_streak(state.stats.history, now.date())})
        document = ExportDocument(
            app=self.app_name,
            export_date=now,
            stats=stats,
            plans_progress=[
                PlanProgressExport(
                    id=plan.id,
                    name=plan.name,
                    progress=plan.progress,
                    completed_tasks=count_completed(plan),
                )
                for plan in state.plans
            ],
        )
        return document.model_dump(mode="json", by_alias=True)

    def render_export(self, state: TrackerState, now: Optional[datetime] = None) -> str:
        """JSON text of the export; raises ExportError rather than offering an empty file."""
        try:
            payload = self.build_export(state, now)
            serialized = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as exc:
            logger.error(f"Export serialization failed: {exc}")
            raise ExportError() from exc

        if not serialized or serialized.strip() in ("", "{}", "null"):
            logger.error("Export produced an empty document")
            raise ExportError()
        return serialized

    @staticmethod
    def filename(now: Optional[datetime] = None) -> str:
        stamp = (now or datetime.now(timezone.utc)).date().isoformat()
        return f"devocional-export-{stamp}.json"


def get_export_service() -> ExportService:
    """Dependency injector for export service."""
    return ExportService()
