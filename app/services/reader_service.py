"""Free-reading navigation: open chapters through the cache and prefetch the next one."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from app.config import get_settings
from app.data.bible_catalog import BIBLE_STRUCTURE, book_index, get_book
from app.models.schemas import BibleVersion, ChapterVerse
from app.services.cache_service import ChapterFetcher, ContentCache, get_content_cache
from app.services.content_service import get_content_service
from app.services.progress_tracker import ProgressTracker, get_progress_tracker
from app.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReaderPosition:
    book: str
    chapter: int
    version: str


@dataclass(frozen=True)
class ChapterLoad:
    position: ReaderPosition
    verses: List[ChapterVerse]
    is_current: bool


DEFAULT_POSITION = ReaderPosition(book="João", chapter=1, version=BibleVersion.KJA.value)


def next_position(position: ReaderPosition) -> Optional[ReaderPosition]:
    """Following chapter, crossing into the next book; None at the end of the canon."""
    entry = get_book(position.book)
    if entry is None:
        return None
    if position.chapter < entry.chapters:
        return ReaderPosition(position.book, position.chapter + 1, position.version)
    index = book_index(position.book)
    if index + 1 < len(BIBLE_STRUCTURE):
        return ReaderPosition(BIBLE_STRUCTURE[index + 1].name, 1, position.version)
    return None


def previous_position(position: ReaderPosition) -> Optional[ReaderPosition]:
    """Preceding chapter; from a first chapter go to the last chapter of the previous book."""
    if get_book(position.book) is None:
        return None
    if position.chapter > 1:
        return ReaderPosition(position.book, position.chapter - 1, position.version)
    index = book_index(position.book)
    if index > 0:
        previous_book = BIBLE_STRUCTURE[index - 1]
        return ReaderPosition(previous_book.name, previous_book.chapters, position.version)
    return None


class BibleReader:
    """Tracks the open chapter and keeps stale loads from overwriting newer ones.

    Each ``open_chapter`` call takes a new navigation token. A load whose
    token is no longer current when the fetch resolves still returns its
    verses, but does not count a chapter read nor schedule a prefetch.
    Prefetches only write to the cache.
    """

    def __init__(
        self,
        cache: ContentCache,
        fetcher: ChapterFetcher,
        tracker: ProgressTracker,
        prefetch_delay: float = 3.0,
    ) -> None:
        self.cache = cache
        self.fetcher = fetcher
        self.tracker = tracker
        self.prefetch_delay = prefetch_delay
        self._position = DEFAULT_POSITION
        self._token = 0
        self._prefetch_task: Optional[asyncio.Task] = None

    @property
    def position(self) -> ReaderPosition:
        return self._position

    async def open_chapter(self, book: str, chapter: int, version: str) -> ChapterLoad:
        entry = get_book(book)
        if entry is None:
            raise ValidationError(f"Livro desconhecido: {book}")
        if not 1 <= chapter <= entry.chapters:
            raise ValidationError(f"{book} tem {entry.chapters} capítulos")

        target = ReaderPosition(book, chapter, version)
        self._position = target
        self._token += 1
        token = self._token
        self.cancel_prefetch()

        verses = await self.cache.get(book, chapter, version, self.fetcher)

        if token != self._token:
            logger.info(f"Discarding superseded load of {book} {chapter}")
            return ChapterLoad(position=target, verses=verses, is_current=False)

        if verses:
            self.tracker.record_chapter_read()
            if chapter < entry.chapters:
                self._schedule_prefetch(ReaderPosition(book, chapter + 1, version))

        return ChapterLoad(position=target, verses=verses, is_current=True)

    async def open_next(self) -> Optional[ChapterLoad]:
        target = next_position(self._position)
        if target is None:
            return None
        return await self.open_chapter(target.book, target.chapter, target.version)

    async def open_previous(self) -> Optional[ChapterLoad]:
        target = previous_position(self._position)
        if target is None:
            return None
        return await self.open_chapter(target.book, target.chapter, target.version)

    def cancel_prefetch(self) -> None:
        if self._prefetch_task is not None and not self._prefetch_task.done():
            self._prefetch_task.cancel()
        self._prefetch_task = None

    def _schedule_prefetch(self, target: ReaderPosition) -> None:
        self._prefetch_task = asyncio.get_running_loop().create_task(self._prefetch(target))

    async def _prefetch(self, target: ReaderPosition) -> None:
        await asyncio.sleep(self.prefetch_delay)
        try:
            await self.cache.get(target.book, target.chapter, target.version, self.fetcher)
            logger.info(f"Prefetched {target.book} {target.chapter} ({target.version})")
        except Exception as exc:
            # Warming the cache is optional; the reader fetches again on demand
            logger.debug(f"Prefetch of {target.book} {target.chapter} failed: {exc}")


_reader: Optional[BibleReader] = None


def get_bible_reader() -> BibleReader:
    """Dependency injector for the shared reader."""
    global _reader
    if _reader is None:
        settings = get_settings()
        _reader = BibleReader(
            cache=get_content_cache(),
            fetcher=get_content_service().fetch_chapter_text,
            tracker=get_progress_tracker(),
            prefetch_delay=settings.prefetch_delay_seconds,
        )
    return _reader


def reset_bible_reader() -> None:
    global _reader
    if _reader is not None:
        _reader.cancel_prefetch()
    _reader = None
