"""Reading progress state: a pure reducer plus the sequential tracker that owns it."""
from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Deque, Dict, List, Optional, Sequence, Tuple, Union

from app.models.schemas import HistoryEntry, PlanTask, ReadingPlan, UserStats

logger = logging.getLogger(__name__)

DEFAULT_USER_NAME = "Irmão(ã)"


def _today() -> str:
    return date.today().isoformat()


@dataclass(frozen=True)
class TrackerState:
    """Every plan and the single stats record."""
    plans: Tuple[ReadingPlan, ...]
    stats: UserStats


@dataclass(frozen=True)
class ToggleTask:
    plan_id: str
    task_id: str
    on_date: str = field(default_factory=_today)


@dataclass(frozen=True)
class UpdateName:
    name: str
    fallback: str = DEFAULT_USER_NAME


@dataclass(frozen=True)
class RecordRead:
    pass


@dataclass(frozen=True)
class ResetState:
    state: TrackerState


TrackerEvent = Union[ToggleTask, UpdateName, RecordRead, ResetState]
StateListener = Callable[[TrackerState, TrackerState], None]


def default_stats(user_name: str = DEFAULT_USER_NAME) -> UserStats:
    return UserStats(user_name=user_name)


def compute_progress(tasks: Sequence[PlanTask]) -> int:
    """Percentage of completed tasks rounded half-up; 0 for an empty plan."""
    total = len(tasks)
    if total == 0:
        return 0
    completed = sum(1 for task in tasks if task.is_completed)
    return (200 * completed + total) // (2 * total)


def count_completed(plan: ReadingPlan) -> int:
    return sum(1 for task in plan.tasks if task.is_completed)


def _toggle_task(state: TrackerState, event: ToggleTask) -> TrackerState:
    plan_index = next((i for i, p in enumerate(state.plans) if p.id == event.plan_id), None)
    if plan_index is None:
        logger.debug(f"Toggle ignored: unknown plan {event.plan_id!r}")
        return state

    plan = state.plans[plan_index]
    task_index = next((i for i, t in enumerate(plan.tasks) if t.id == event.task_id), None)
    if task_index is None:
        logger.debug(f"Toggle ignored: unknown task {event.task_id!r} in plan {plan.id!r}")
        return state

    task = plan.tasks[task_index]
    toggled = task.model_copy(update={"is_completed": not task.is_completed})
    tasks = list(plan.tasks)
    tasks[task_index] = toggled
    updated_plan = plan.model_copy(update={"tasks": tasks, "progress": compute_progress(tasks)})
    plans = state.plans[:plan_index] + (updated_plan,) + state.plans[plan_index + 1:]

    stats = state.stats
    if toggled.is_completed:
        # Un-checking never rolls these back: history is an audit log of reading events
        history = [*stats.history, HistoryEntry(date=event.on_date, chapters=1)]
        stats = stats.model_copy(
            update={
                "chapters_read": stats.chapters_read + 1,
                "history": history,
                "streak": _streak_on(history, event.on_date, stats.streak),
            }
        )
    return TrackerState(plans=plans, stats=stats)


def _streak_on(history: Sequence[HistoryEntry], on_date: str, fallback: int) -> int:
    try:
        return current_streak(history, date.fromisoformat(on_date))
    except ValueError:
        logger.debug(f"Keeping stored streak: malformed toggle date {on_date!r}")
        return fallback


def _update_name(state: TrackerState, event: UpdateName) -> TrackerState:
    name = (event.name or "").strip() or event.fallback
    if name == state.stats.user_name:
        return state
    return TrackerState(plans=state.plans, stats=state.stats.model_copy(update={"user_name": name}))


def _record_read(state: TrackerState) -> TrackerState:
    # Free reading bumps the counter without a history entry
    stats = state.stats.model_copy(update={"chapters_read": state.stats.chapters_read + 1})
    return TrackerState(plans=state.plans, stats=stats)


def reduce(state: TrackerState, event: TrackerEvent) -> TrackerState:
    """Apply one event. Returns the same object when nothing changed."""
    if isinstance(event, ToggleTask):
        return _toggle_task(state, event)
    if isinstance(event, UpdateName):
        return _update_name(state, event)
    if isinstance(event, RecordRead):
        return _record_read(state)
    if isinstance(event, ResetState):
        return event.state
    raise TypeError(f"Unsupported tracker event: {event!r}")


def aggregate_history(history: Sequence[HistoryEntry]) -> List[HistoryEntry]:
    """Merge same-day entries into one per date, oldest first."""
    totals: Dict[str, int] = {}
    for entry in history:
        totals[entry.date] = totals.get(entry.date, 0) + entry.chapters
    return [HistoryEntry(date=day, chapters=totals[day]) for day in sorted(totals)]


def current_streak(history: Sequence[HistoryEntry], today: Optional[date] = None) -> int:
    """Consecutive reading days ending today, or yesterday if nothing was read yet today."""
    today = today or date.today()
    days = set()
    for entry in history:
        try:
            days.add(date.fromisoformat(entry.date))
        except ValueError:
            logger.debug(f"Skipping malformed history date: {entry.date!r}")

    if today in days:
        cursor = today
    elif today - timedelta(days=1) in days:
        cursor = today - timedelta(days=1)
    else:
        return 0

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


class ProgressTracker:
    """Owns the plan/stats state and applies events strictly in order.

    Every mutation goes through ``dispatch``. Events are queued and drained
    one at a time against the latest state, so two toggles on the same plan
    both land in its progress regardless of which thread or listener sent
    them. A listener that dispatches while a drain is running has its event
    queued behind the current one. An event that fails to apply is logged
    and skipped; only its own dispatcher sees the exception.
    """

    def __init__(self, initial: TrackerState, default_user_name: str = DEFAULT_USER_NAME) -> None:
        self._state = initial
        self.default_user_name = default_user_name
        self._queue: Deque[TrackerEvent] = deque()
        self._lock = threading.RLock()
        self._draining = False
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def stats(self) -> UserStats:
        return self._state.stats

    def list_plans(self) -> Tuple[ReadingPlan, ...]:
        return self._state.plans

    def get_plan(self, plan_id: str) -> Optional[ReadingPlan]:
        return next((p for p in self._state.plans if p.id == plan_id), None)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, event: TrackerEvent) -> TrackerState:
        with self._lock:
            self._queue.append(event)
            if self._draining:
                return self._state
            self._draining = True
            own_failure = None
            try:
                while self._queue:
                    queued = self._queue.popleft()
                    try:
                        self._apply(queued)
                    except Exception as exc:
                        # Skip the failed event; the rest of the queue still drains
                        logger.exception(f"Failed to apply {type(queued).__name__}")
                        if queued is event and own_failure is None:
                            own_failure = exc
            finally:
                self._draining = False
            if own_failure is not None:
                raise own_failure
            return self._state

    def _apply(self, event: TrackerEvent) -> None:
        previous = self._state
        current = reduce(previous, event)
        if current is previous:
            return
        self._state = current
        for listener in list(self._listeners):
            try:
                listener(previous, current)
            except Exception:
                logger.exception(f"State listener failed after {type(event).__name__}")

    # Convenience wrappers

    def toggle_task(self, plan_id: str, task_id: str) -> TrackerState:
        return self.dispatch(ToggleTask(plan_id=plan_id, task_id=task_id))

    def update_user_name(self, name: str) -> TrackerState:
        return self.dispatch(UpdateName(name=name, fallback=self.default_user_name))

    def record_chapter_read(self) -> TrackerState:
        return self.dispatch(RecordRead())

    def reset(self, state: TrackerState) -> TrackerState:
        return self.dispatch(ResetState(state=state))


# Global tracker for the running application
_tracker: Optional[ProgressTracker] = None


def set_progress_tracker(tracker: Optional[ProgressTracker]) -> None:
    global _tracker
    _tracker = tracker


def get_progress_tracker() -> ProgressTracker:
    """Dependency injector for the progress tracker."""
    if _tracker is None:
        raise RuntimeError("Progress tracker not initialized")
    return _tracker
