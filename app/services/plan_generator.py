"""Deterministic partitioning of a book range into day-sized reading plans."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from app.data.bible_catalog import BIBLE_STRUCTURE, BookCatalogEntry
from app.models.schemas import PlanTask, ReadingPlan


class PlanGenerationError(ValueError):
    """Raised when a plan is requested over an invalid range."""


@dataclass(frozen=True)
class PlanDefinition:
    """Static description of a bootstrap plan."""
    id: str
    seed: str
    name: str
    description: str
    start_book: str
    end_book: str
    duration_days: int


PLAN_DEFINITIONS: Tuple[PlanDefinition, ...] = (
    PlanDefinition(
        id="bible-1y",
        seed="1y",
        name="Bíblia Completa em 1 Ano",
        description="A jornada definitiva: do Gênesis ao Apocalipse em 365 dias, cobrindo todos os 1.189 capítulos.",
        start_book="Gênesis",
        end_book="Apocalipse",
        duration_days=365,
    ),
    PlanDefinition(
        id="ot-270d",
        seed="ot",
        name="Antigo Testamento em 9 meses",
        description="Explore as origens e as promessas: de Gênesis a Malaquias em uma jornada de 270 dias.",
        start_book="Gênesis",
        end_book="Malaquias",
        duration_days=270,
    ),
    PlanDefinition(
        id="pent-60d",
        seed="pent",
        name="O Pentateuco em 60 dias",
        description="Os cinco livros da Lei: a base da fé de Gênesis a Deuteronômio em 2 meses intensivos.",
        start_book="Gênesis",
        end_book="Deuteronômio",
        duration_days=60,
    ),
    PlanDefinition(
        id="psalms-60d",
        seed="psalms",
        name="Salmos em 60 dias",
        description="Uma jornada de louvor e oração através dos 150 salmos em 2 meses.",
        start_book="Salmos",
        end_book="Salmos",
        duration_days=60,
    ),
    PlanDefinition(
        id="proverbs-31d",
        seed="prov",
        name="Provérbios em 31 dias",
        description="Sabedoria diária: um capítulo por dia para um mês repleto de conselhos divinos.",
        start_book="Provérbios",
        end_book="Provérbios",
        duration_days=31,
    ),
    PlanDefinition(
        id="psalms-prov-90d",
        seed="psp",
        name="Salmos & Provérbios em 90 dias",
        description="O equilíbrio perfeito entre adoração e sabedoria em uma jornada de 3 meses.",
        start_book="Salmos",
        end_book="Provérbios",
        duration_days=90,
    ),
    PlanDefinition(
        id="nt-90d",
        seed="nt",
        name="Novo Testamento em 90 dias",
        description="Foco total na nova aliança: de Mateus ao Apocalipse em uma jornada de 3 meses.",
        start_book="Mateus",
        end_book="Apocalipse",
        duration_days=90,
    ),
    PlanDefinition(
        id="gospels-30d",
        seed="gsp",
        name="Evangelhos em 30 dias",
        description="A vida, morte e ressurreição de Cristo contada pelos quatro evangelistas em um mês.",
        start_book="Mateus",
        end_book="João",
        duration_days=30,
    ),
)


def make_task_id(plan_id: str, day: int, position: int, book: str, chapter: int) -> str:
    return f"plan-{plan_id}-day{day}-ch{position}-{book}-{chapter}"


def _chapters_in_range(
    start_book: str,
    end_book: str,
    catalog: Sequence[BookCatalogEntry],
) -> List[Tuple[str, int]]:
    names = [entry.name for entry in catalog]
    if start_book not in names:
        raise PlanGenerationError(f"Unknown start book: {start_book!r}")
    if end_book not in names:
        raise PlanGenerationError(f"Unknown end book: {end_book!r}")

    start_index = names.index(start_book)
    end_index = names.index(end_book)
    if start_index > end_index:
        raise PlanGenerationError(
            f"Start book {start_book!r} comes after end book {end_book!r} in canonical order"
        )

    return [
        (entry.name, chapter)
        for entry in catalog[start_index:end_index + 1]
        for chapter in range(1, entry.chapters + 1)
    ]


def generate(
    plan_id: str,
    start_book: str,
    end_book: str,
    duration_days: int,
    catalog: Sequence[BookCatalogEntry] = BIBLE_STRUCTURE,
) -> List[PlanTask]:
    """Split every chapter from start_book to end_book (inclusive) over duration_days.

    Day ``d`` receives the slice ``[floor((d-1)*T/D), floor(d*T/D))`` of the
    flattened chapter list, so day sizes differ by at most one and every
    chapter lands on exactly one day. When there are more days than chapters
    some days are simply empty.

    Raises:
        PlanGenerationError: unknown books, reversed range or duration < 1.
    """
    if duration_days < 1:
        raise PlanGenerationError(f"duration_days must be >= 1, got {duration_days}")

    chapters = _chapters_in_range(start_book, end_book, catalog)
    total = len(chapters)

    tasks: List[PlanTask] = []
    for day in range(1, duration_days + 1):
        start = (day - 1) * total // duration_days
        end = day * total // duration_days
        for position, (book, chapter) in enumerate(chapters[start:end]):
            tasks.append(
                PlanTask(
                    id=make_task_id(plan_id, day, position, book, chapter),
                    day=day,
                    book=book,
                    chapter=chapter,
                    is_completed=False,
                )
            )
    return tasks


def build_plan(definition: PlanDefinition) -> ReadingPlan:
    return ReadingPlan(
        id=definition.id,
        name=definition.name,
        description=definition.description,
        duration_days=definition.duration_days,
        progress=0,
        tasks=generate(
            definition.seed,
            definition.start_book,
            definition.end_book,
            definition.duration_days,
        ),
    )


def build_default_plans() -> List[ReadingPlan]:
    """Generate the bootstrap plan catalog with no progress."""
    return [build_plan(definition) for definition in PLAN_DEFINITIONS]


def tasks_by_day(tasks: Sequence[PlanTask], duration_days: int = 0) -> Dict[int, List[PlanTask]]:
    """Group tasks by day; every day up to ``duration_days`` is present, empty or not."""
    groups: Dict[int, List[PlanTask]] = {day: [] for day in range(1, duration_days + 1)}
    for task in tasks:
        groups.setdefault(task.day, []).append(task)
    return groups


def tasks_by_book(tasks: Sequence[PlanTask]) -> List[Tuple[str, List[PlanTask]]]:
    """Group tasks by book, books in first-appearance order."""
    groups: Dict[str, List[PlanTask]] = {}
    for task in tasks:
        groups.setdefault(task.book, []).append(task)
    return list(groups.items())
