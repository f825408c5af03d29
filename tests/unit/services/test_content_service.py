"""Unit tests for the content service."""
import asyncio
import json
import httpx
import pytest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from openai import APIConnectionError

from app.models.schemas import ChapterVerse, DailyPause, Devotional
from app.services.content_service import (
    CHAPTER_TEXT_SCHEMA,
    ContentOk,
    ContentParseError,
    ContentProviderError,
    ContentService,
    unwrap_or_raise,
)
from app.utils.exceptions import ContentGenerationError


def completion(content):
    """Minimal stand-in for a Chat Completions response."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def service(client, mock_settings):
    with patch('app.config.get_settings', return_value=mock_settings):
        return ContentService(client=client)


class TestGenerate:
    """Tests for the structured generation call."""

    @pytest.mark.asyncio
    async def test_ok_result(self, service, client):
        client.chat.completions.create.return_value = completion('{"title": "Fé"}')

        result = await service.generate("prompt", "devotional", {"type": "object"})

        assert result == ContentOk({"title": "Fé"})

    @pytest.mark.asyncio
    async def test_request_uses_strict_json_schema(self, service, client):
        client.chat.completions.create.return_value = completion('{"verses": []}')

        await service.generate("prompt", "chapter_text", CHAPTER_TEXT_SCHEMA)

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["response_format"]["type"] == "json_schema"
        assert kwargs["response_format"]["json_schema"]["strict"] is True
        assert kwargs["response_format"]["json_schema"]["schema"] is CHAPTER_TEXT_SCHEMA

    @pytest.mark.asyncio
    async def test_empty_response_is_parse_error(self, service, client):
        client.chat.completions.create.return_value = completion("   ")

        result = await service.generate("prompt", "daily_pause", {})

        assert isinstance(result, ContentParseError)
        assert result.message == "Empty response"

    @pytest.mark.asyncio
    async def test_invalid_json_is_parse_error(self, service, client):
        client.chat.completions.create.return_value = completion("Aqui está o texto: {")

        result = await service.generate("prompt", "daily_pause", {})

        assert isinstance(result, ContentParseError)
        assert result.raw == "Aqui está o texto: {"

    @pytest.mark.asyncio
    async def test_connection_failure_is_provider_error(self, service, client):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        client.chat.completions.create.side_effect = APIConnectionError(request=request)

        result = await service.generate("prompt", "daily_pause", {})

        assert isinstance(result, ContentProviderError)

    @pytest.mark.asyncio
    async def test_timeout_is_provider_error(self, service, client):
        service.request_timeout = 5

        async def fake_wait_for(awaitable, timeout):
            awaitable.close()
            raise asyncio.TimeoutError()

        with patch('app.services.content_service.asyncio.wait_for', side_effect=fake_wait_for):
            result = await service.generate("prompt", "daily_pause", {})

        assert isinstance(result, ContentProviderError)


class TestTypedGenerators:
    """Tests for the typed generation helpers."""

    @pytest.mark.asyncio
    async def test_daily_pause(self, service, client):
        payload = {
            "verse": "Aquietai-vos e sabei que eu sou Deus.",
            "reference": "Salmos 46:10",
            "reflection": "Pare por um minuto.",
            "question": "Do que você precisa se aquietar hoje?",
        }
        client.chat.completions.create.return_value = completion(json.dumps(payload))

        result = await service.generate_daily_pause()

        assert isinstance(result.data, DailyPause)
        assert result.data.reference == "Salmos 46:10"

    @pytest.mark.asyncio
    async def test_devotional_missing_field_is_parse_error(self, service, client):
        client.chat.completions.create.return_value = completion('{"title": "Perdão"}')

        result = await service.generate_devotional("Perdão")

        assert isinstance(result, ContentParseError)
        prompt = client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert "Perdão" in prompt

    @pytest.mark.asyncio
    async def test_devotional_ok(self, service, client):
        client.chat.completions.create.return_value = completion(
            '{"title": "Fé", "verse": "Hebreus 11:1", "content": "A fé é a certeza..."}'
        )

        result = await service.generate_devotional("Fé")

        assert isinstance(result.data, Devotional)

    @pytest.mark.asyncio
    async def test_chapter_text_unwraps_verses(self, service, client):
        client.chat.completions.create.return_value = completion(
            '{"verses": [{"verse": 1, "text": "O Senhor é o meu pastor"}]}'
        )

        result = await service.generate_chapter_text("Salmos", 23, "NVI")

        assert result.data == [ChapterVerse(verse=1, text="O Senhor é o meu pastor")]

    @pytest.mark.asyncio
    async def test_chapter_text_bad_verse_is_parse_error(self, service, client):
        client.chat.completions.create.return_value = completion('{"verses": [{"verse": 0, "text": "x"}]}')

        result = await service.generate_chapter_text("Salmos", 23, "NVI")

        assert isinstance(result, ContentParseError)


class TestFetchChapterText:
    """Tests for the cache-facing chapter fetcher."""

    @pytest.mark.asyncio
    async def test_returns_verses(self, service, client):
        client.chat.completions.create.return_value = completion('{"verses": [{"verse": 1, "text": "a"}]}')

        verses = await service.fetch_chapter_text("Jonas", 1, "ARA")

        assert verses[0].text == "a"

    @pytest.mark.asyncio
    async def test_parse_failure_raises(self, service, client):
        client.chat.completions.create.return_value = completion("not json")

        with pytest.raises(ContentGenerationError) as exc_info:
            await service.fetch_chapter_text("Jonas", 1, "ARA")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_provider_failure_raises(self, service, client):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        client.chat.completions.create.side_effect = APIConnectionError(request=request)

        with pytest.raises(ContentGenerationError):
            await service.fetch_chapter_text("Jonas", 1, "ARA")


class TestUnwrapOrRaise:

    def test_ok_returns_data(self):
        assert unwrap_or_raise(ContentOk(5), "falhou") == 5

    @pytest.mark.parametrize("result", [
        ContentParseError(raw="x", message="bad"),
        ContentProviderError(message="down"),
    ])
    def test_failures_raise_with_detail(self, result):
        with pytest.raises(ContentGenerationError) as exc_info:
            unwrap_or_raise(result, "Não foi possível gerar")
        assert exc_info.value.detail == "Não foi possível gerar"
