"""Pydantic models for domain state and request/response schemas."""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, accepting either form on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BibleVersion(str, Enum):
    """Supported translations."""
    KJA = "King James Atualizada"
    NVI = "NVI"
    ARA = "ARA"
    NTLH = "NTLH"


class PlanTask(CamelModel):
    """Single-chapter reading assignment within a plan."""
    id: str
    day: int = Field(..., ge=1)
    book: str
    chapter: int = Field(..., ge=1)
    is_completed: bool = False


class ReadingPlan(CamelModel):
    """A named, day-partitioned reading schedule over a contiguous book range."""
    id: str
    name: str
    description: str = ""
    duration_days: int = Field(..., ge=1)
    progress: int = Field(default=0, ge=0, le=100)
    tasks: List[PlanTask] = Field(default_factory=list)


class HistoryEntry(CamelModel):
    """One reading event (or an aggregated day when summarized)."""
    date: str
    chapters: int = Field(default=1, ge=1)


class UserStats(CamelModel):
    """Aggregate reading statistics for the reader."""
    user_name: str
    streak: int = Field(default=0, ge=0)
    chapters_read: int = Field(default=0, ge=0)
    books_completed: int = Field(default=0, ge=0)
    total_minutes: int = Field(default=0, ge=0)
    history: List[HistoryEntry] = Field(default_factory=list)


class ChapterVerse(CamelModel):
    """One verse of a cached chapter payload."""
    verse: int = Field(..., ge=1)
    text: str


class ChapterResponse(CamelModel):
    """Response model for a chapter opened in the reader."""
    book: str
    chapter: int
    version: BibleVersion
    verses: List[ChapterVerse]
    has_next: bool
    has_previous: bool


class BookResponse(CamelModel):
    """Catalog entry exposed to clients."""
    name: str
    chapters: int


class PlanSummary(CamelModel):
    """Plan metadata without its task list."""
    id: str
    name: str
    description: str
    duration_days: int
    progress: int
    completed_tasks: int
    total_tasks: int


class PlanBookGroup(CamelModel):
    """Tasks of one book, in plan order."""
    book: str
    tasks: List[PlanTask]


class PlanDayGroup(CamelModel):
    """Tasks assigned to one day of the plan."""
    day: int
    tasks: List[PlanTask]


class PlanDetailResponse(CamelModel):
    """Plan detail grouped by book and by day for display."""
    plan: PlanSummary
    books: List[PlanBookGroup]
    days: List[PlanDayGroup]


class StatsResponse(CamelModel):
    """Stats plus consumer-side aggregates of the history log."""
    stats: UserStats
    daily_history: List[HistoryEntry]
    current_streak: int


class UpdateNameRequest(CamelModel):
    """Request model for renaming the reader."""
    name: str = Field(default="", max_length=100)


class DailyPause(CamelModel):
    """Short daily reflection."""
    verse: str
    reference: str
    reflection: str
    question: str


class Devotional(CamelModel):
    """Themed devotional."""
    title: str
    verse: str
    content: str


class PlanProgressExport(CamelModel):
    """Per-plan progress line of the export artifact."""
    id: str
    name: str
    progress: int
    completed_tasks: int


class ExportDocument(CamelModel):
    """Downloadable export artifact."""
    app: str
    export_date: datetime
    stats: UserStats
    plans_progress: List[PlanProgressExport]


class HealthCheck(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    version: str = "1.0.0"
    details: Optional[Dict[str, Any]] = None
