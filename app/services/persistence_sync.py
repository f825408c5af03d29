"""Mirrors tracker state into the key-value store and restores it on startup."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from app.config import Settings, get_settings
from app.models.schemas import HistoryEntry, ReadingPlan, UserStats
from app.services.key_value_store import KeyValueStore, StorageError, get_store
from app.services.plan_generator import build_default_plans
from app.services.progress_tracker import (
    ProgressTracker,
    TrackerState,
    compute_progress,
    default_stats,
    set_progress_tracker,
)

logger = logging.getLogger(__name__)


def merge_defaults(stored: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay a stored record on the current defaults, key by key.

    Fields added after the record was written keep their default value.
    """
    merged = dict(defaults)
    merged.update(stored)
    return merged


def reseed_plans(defaults: Sequence[ReadingPlan], stored: Sequence[Dict[str, Any]]) -> List[ReadingPlan]:
    """Carry completion flags from stored plans onto freshly generated ones.

    Plans and tasks are matched by id; anything no longer in the catalog is
    dropped and progress is recomputed from the merged tasks.
    """
    completed_by_plan: Dict[str, set] = {}
    for raw_plan in stored:
        if not isinstance(raw_plan, dict) or "id" not in raw_plan:
            continue
        completed_by_plan[raw_plan["id"]] = {
            task.get("id")
            for task in raw_plan.get("tasks") or []
            if isinstance(task, dict) and (task.get("isCompleted") or task.get("is_completed"))
        }

    known_ids = {plan.id for plan in defaults}
    for plan_id in completed_by_plan.keys() - known_ids:
        logger.debug(f"Dropping stored plan no longer in catalog: {plan_id}")

    reseeded: List[ReadingPlan] = []
    for plan in defaults:
        completed = completed_by_plan.get(plan.id)
        if not completed:
            reseeded.append(plan)
            continue
        tasks = [
            task.model_copy(update={"is_completed": task.id in completed})
            for task in plan.tasks
        ]
        reseeded.append(plan.model_copy(update={"tasks": tasks, "progress": compute_progress(tasks)}))
    return reseeded


def salvage_stats(merged: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Keep the valid parts of a stats record.

    Invalid history entries are dropped one by one; any other field that
    fails validation takes its default value.
    """
    salvaged = dict(merged)
    history = salvaged.get("history")
    if isinstance(history, list):
        kept = []
        for entry in history:
            try:
                kept.append(HistoryEntry.model_validate(entry).model_dump(by_alias=True))
            except ValidationError:
                logger.debug(f"Dropping invalid history entry: {entry!r}")
        salvaged["history"] = kept

    try:
        UserStats.model_validate(salvaged)
    except ValidationError as e:
        for error in e.errors():
            field = error["loc"][0] if error["loc"] else None
            if field in defaults:
                salvaged[field] = defaults[field]
            elif field is not None:
                salvaged.pop(field, None)
    return salvaged


class PersistenceSync:
    """Best-effort persistence of plans and stats under dedicated keys."""

    def __init__(self, store: KeyValueStore, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self.store = store
        self.stats_key = settings.stats_key
        self.plans_key = settings.plans_key
        self.default_user_name = settings.default_user_name
        self._unsubscribe = None

    def _read_json(self, key: str) -> Optional[Any]:
        try:
            raw = self.store.get(key)
        except StorageError as e:
            logger.error(f"Failed to read {key}: {e}")
            return None

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding unparseable state under {key}")
            return None

    def _write(self, key: str, payload: Any) -> bool:
        try:
            self.store.set(key, json.dumps(payload, ensure_ascii=False))
            return True
        except (StorageError, TypeError, ValueError) as e:
            # In-memory state stays authoritative for the session
            logger.error(f"Failed to persist {key}: {e}")
            return False

    def default_state(self) -> TrackerState:
        return TrackerState(plans=tuple(build_default_plans()), stats=default_stats(self.default_user_name))

    def load_stats(self) -> UserStats:
        defaults = default_stats(self.default_user_name)
        stored = self._read_json(self.stats_key)
        if stored is None:
            return defaults
        if not isinstance(stored, dict):
            logger.warning(f"Stored stats under {self.stats_key} is not an object; using defaults")
            return defaults

        default_fields = defaults.model_dump(by_alias=True)
        merged = merge_defaults(stored, default_fields)
        try:
            return UserStats.model_validate(merged)
        except ValidationError as e:
            logger.warning(f"Stored stats failed validation; salvaging valid fields: {e.error_count()} errors")

        try:
            return UserStats.model_validate(salvage_stats(merged, default_fields))
        except ValidationError as e:
            logger.warning(f"Stored stats unrecoverable; using defaults: {e.error_count()} errors")
            return defaults

    def load_plans(self) -> List[ReadingPlan]:
        defaults = build_default_plans()
        stored = self._read_json(self.plans_key)
        if stored is None:
            return defaults
        if not isinstance(stored, list):
            logger.warning(f"Stored plans under {self.plans_key} is not a list; using catalog")
            return defaults
        return reseed_plans(defaults, stored)

    def load(self) -> TrackerState:
        """Restore state, substituting defaults for anything missing or corrupt."""
        return TrackerState(plans=tuple(self.load_plans()), stats=self.load_stats())

    def save_plans(self, plans: Sequence[ReadingPlan]) -> bool:
        return self._write(self.plans_key, [plan.model_dump(by_alias=True) for plan in plans])

    def save_stats(self, stats: UserStats) -> bool:
        return self._write(self.stats_key, stats.model_dump(by_alias=True))

    def on_change(self, previous: TrackerState, current: TrackerState) -> None:
        if current.plans is not previous.plans:
            self.save_plans(current.plans)
        if current.stats is not previous.stats:
            self.save_stats(current.stats)

    def attach(self, tracker: ProgressTracker) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = tracker.subscribe(self.on_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def clear(self) -> None:
        for key in (self.stats_key, self.plans_key):
            try:
                self.store.remove(key)
            except StorageError as e:
                logger.error(f"Failed to remove {key}: {e}")


def initialize_state(store: KeyValueStore, settings: Optional[Settings] = None) -> ProgressTracker:
    """Load persisted state, build the tracker and start mirroring changes."""
    settings = settings or get_settings()
    sync = PersistenceSync(store, settings)
    tracker = ProgressTracker(sync.load(), default_user_name=settings.default_user_name)
    sync.attach(tracker)
    set_progress_tracker(tracker)
    logger.info(f"Progress state loaded: {len(tracker.list_plans())} plans")
    return tracker


def get_persistence_sync() -> PersistenceSync:
    """Dependency injector for persistence sync."""
    return PersistenceSync(get_store())
