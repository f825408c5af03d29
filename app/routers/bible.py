"""API routes for free Bible reading."""
from typing import List

from fastapi import APIRouter, Depends, Query

from app.data.bible_catalog import BIBLE_STRUCTURE
from app.models.schemas import BibleVersion, BookResponse, ChapterResponse
from app.services.reader_service import (
    BibleReader,
    ChapterLoad,
    get_bible_reader,
    next_position,
    previous_position,
)
from app.utils.exceptions import ValidationError

router = APIRouter(prefix="/api/bible", tags=["bible"])


def _chapter_response(load: ChapterLoad) -> ChapterResponse:
    position = load.position
    return ChapterResponse(
        book=position.book,
        chapter=position.chapter,
        version=position.version,
        verses=load.verses,
        has_next=next_position(position) is not None,
        has_previous=previous_position(position) is not None,
    )


@router.get("/books", response_model=List[BookResponse])
async def list_books():
    """Canonical book list with chapter counts."""
    return [BookResponse(name=entry.name, chapters=entry.chapters) for entry in BIBLE_STRUCTURE]


@router.get("/chapter", response_model=ChapterResponse, response_model_by_alias=True)
async def open_chapter(
    book: str = Query(..., min_length=1, description="Book name, e.g. 'João'"),
    chapter: int = Query(..., ge=1),
    version: BibleVersion = Query(default=BibleVersion.KJA),
    reader: BibleReader = Depends(get_bible_reader),
):
    load = await reader.open_chapter(book, chapter, version.value)
    return _chapter_response(load)


@router.get("/next", response_model=ChapterResponse, response_model_by_alias=True)
async def open_next_chapter(reader: BibleReader = Depends(get_bible_reader)):
    load = await reader.open_next()
    if load is None:
        raise ValidationError("Fim das Escrituras")
    return _chapter_response(load)


@router.get("/previous", response_model=ChapterResponse, response_model_by_alias=True)
async def open_previous_chapter(reader: BibleReader = Depends(get_bible_reader)):
    load = await reader.open_previous()
    if load is None:
        raise ValidationError("Início das Escrituras")
    return _chapter_response(load)
