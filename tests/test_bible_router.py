"""Tests for free-reading API endpoints."""
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.schemas import ChapterVerse
from app.routers import bible
from app.services.reader_service import ChapterLoad, ReaderPosition
from app.utils.exceptions import ContentGenerationError, ValidationError

client = TestClient(app)

VERSES = [ChapterVerse(verse=1, text="No princípio era o Verbo")]


@pytest.fixture(autouse=True)
def clear_overrides():
    """Ensure dependency overrides are cleared between tests."""
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()


def _override_reader(**methods):
    reader = Mock()
    for name, value in methods.items():
        setattr(reader, name, value)
    app.dependency_overrides[bible.get_bible_reader] = lambda: reader
    return reader


def test_list_books():
    response = client.get("/api/bible/books")

    assert response.status_code == 200
    books = response.json()
    assert len(books) == 66
    assert books[0] == {"name": "Gênesis", "chapters": 50}
    assert books[-1] == {"name": "Apocalipse", "chapters": 22}


def test_open_chapter():
    load = ChapterLoad(ReaderPosition("João", 1, "NVI"), VERSES, True)
    reader = _override_reader(open_chapter=AsyncMock(return_value=load))

    response = client.get("/api/bible/chapter", params={"book": "João", "chapter": 1, "version": "NVI"})

    assert response.status_code == 200
    data = response.json()
    assert data["verses"] == [{"verse": 1, "text": "No princípio era o Verbo"}]
    assert data["hasNext"] is True
    assert data["hasPrevious"] is True
    reader.open_chapter.assert_awaited_once_with("João", 1, "NVI")


def test_open_chapter_defaults_to_kja():
    load = ChapterLoad(ReaderPosition("Gênesis", 1, "King James Atualizada"), VERSES, True)
    reader = _override_reader(open_chapter=AsyncMock(return_value=load))

    response = client.get("/api/bible/chapter", params={"book": "Gênesis", "chapter": 1})

    assert response.json()["hasPrevious"] is False
    reader.open_chapter.assert_awaited_once_with("Gênesis", 1, "King James Atualizada")


def test_unknown_version_rejected():
    _override_reader(open_chapter=AsyncMock())

    response = client.get("/api/bible/chapter", params={"book": "João", "chapter": 1, "version": "XYZ"})

    assert response.status_code == 422


def test_invalid_reference_returns_400():
    _override_reader(open_chapter=AsyncMock(side_effect=ValidationError("Livro desconhecido: Hezequias")))

    response = client.get("/api/bible/chapter", params={"book": "Hezequias", "chapter": 1})

    assert response.status_code == 400
    assert response.json()["detail"] == "Livro desconhecido: Hezequias"


def test_fetch_failure_returns_503():
    _override_reader(open_chapter=AsyncMock(side_effect=ContentGenerationError("Não foi possível carregar o capítulo")))

    response = client.get("/api/bible/chapter", params={"book": "João", "chapter": 1})

    assert response.status_code == 503


def test_next_at_end_of_canon():
    _override_reader(open_next=AsyncMock(return_value=None))

    response = client.get("/api/bible/next")

    assert response.status_code == 400
    assert response.json()["detail"] == "Fim das Escrituras"


def test_previous_chapter():
    load = ChapterLoad(ReaderPosition("Malaquias", 4, "ARA"), VERSES, True)
    _override_reader(open_previous=AsyncMock(return_value=load))

    response = client.get("/api/bible/previous")

    assert response.status_code == 200
    assert response.json()["book"] == "Malaquias"
