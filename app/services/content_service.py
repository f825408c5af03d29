"""Generative content provider boundary (devotionals, reflections, chapter text)."""
from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    BadRequestError,
    OpenAI,
    RateLimitError,
)
from pydantic import TypeAdapter, ValidationError

from app.models.schemas import ChapterVerse, DailyPause, Devotional
from app.utils.exceptions import ContentGenerationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentOk:
    data: Any


@dataclass(frozen=True)
class ContentParseError:
    raw: str
    message: str


@dataclass(frozen=True)
class ContentProviderError:
    message: str


ContentResult = Union[ContentOk, ContentParseError, ContentProviderError]


DAILY_PAUSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "verse": {"type": "string"},
        "reference": {"type": "string"},
        "reflection": {"type": "string"},
        "question": {"type": "string"},
    },
    "required": ["verse", "reference", "reflection", "question"],
    "additionalProperties": False,
}

DEVOTIONAL_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "verse": {"type": "string"},
        "content": {"type": "string"},
    },
    "required": ["title", "verse", "content"],
    "additionalProperties": False,
}

# Strict structured output needs an object root, so the verse array is wrapped
CHAPTER_TEXT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "verses": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "verse": {"type": "integer"},
                    "text": {"type": "string"},
                },
                "required": ["verse", "text"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["verses"],
    "additionalProperties": False,
}

DAILY_PAUSE_PROMPT = (
    'Gere uma "Pausa Diária" cristã em Português Brasil. Inclua 1 versículo curto, '
    "uma reflexão de 1 minuto e uma pergunta prática. Retorne estritamente em JSON."
)

_verses_adapter = TypeAdapter(List[ChapterVerse])


def devotional_prompt(theme: str) -> str:
    return (
        f"Gere um devocional cristão edificante sobre o tema: {theme}. "
        "Inclua título, versículo base e conteúdo. Resposta em JSON."
    )


def chapter_prompt(book: str, chapter: int, version: str) -> str:
    return (
        f"Retorne o texto de {book} capítulo {chapter} na versão {version}. "
        'Responda apenas com JSON contendo "verses": um array de objetos com "verse" (int) e "text" (string).'
    )


class ContentService:
    """Service for structured generation through the OpenAI Chat Completions API."""

    def __init__(self, client: Optional[OpenAI] = None) -> None:
        from app.config import get_settings

        settings = get_settings()
        self.client = client or OpenAI(api_key=settings.openai_api_key)
        self.model = settings.openai_model
        self.max_tokens = max(1, settings.openai_max_output_tokens)
        self.request_timeout = max(0, settings.openai_request_timeout)

    async def generate(self, prompt: str, schema_name: str, schema: Dict[str, Any]) -> ContentResult:
        """Run one structured generation; provider failures come back as values."""
        kwargs = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_completion_tokens": self.max_tokens,
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": schema_name, "schema": schema, "strict": True},
            },
        }

        start_time = time.time()
        try:
            task = asyncio.to_thread(self.client.chat.completions.create, **kwargs)
            if self.request_timeout > 0:
                response = await asyncio.wait_for(task, timeout=self.request_timeout)
            else:
                response = await task
        except asyncio.TimeoutError:
            logger.error(f"OpenAI request for {schema_name} timed out after {self.request_timeout}s")
            return ContentProviderError("Tempo esgotado ao gerar conteúdo")
        except (BadRequestError, RateLimitError, APITimeoutError, APIConnectionError, APIError) as exc:
            logger.error("OpenAI API error: %s", exc)
            return ContentProviderError(str(exc))

        elapsed = time.time() - start_time
        logger.info(f"OpenAI {schema_name} generation completed in {elapsed:.2f}s")

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            return ContentParseError(raw=content or "", message="Empty response")

        try:
            return ContentOk(json.loads(content))
        except json.JSONDecodeError as exc:
            logger.warning(f"Unparseable {schema_name} response: {exc}")
            return ContentParseError(raw=content, message=str(exc))

    async def generate_daily_pause(self) -> ContentResult:
        result = await self.generate(DAILY_PAUSE_PROMPT, "daily_pause", DAILY_PAUSE_SCHEMA)
        return _validate(result, DailyPause)

    async def generate_devotional(self, theme: str) -> ContentResult:
        result = await self.generate(devotional_prompt(theme), "devotional", DEVOTIONAL_SCHEMA)
        return _validate(result, Devotional)

    async def generate_chapter_text(self, book: str, chapter: int, version: str) -> ContentResult:
        result = await self.generate(chapter_prompt(book, chapter, version), "chapter_text", CHAPTER_TEXT_SCHEMA)
        if not isinstance(result, ContentOk):
            return result
        raw_verses = result.data.get("verses") if isinstance(result.data, dict) else result.data
        try:
            return ContentOk(_verses_adapter.validate_python(raw_verses))
        except ValidationError as exc:
            return ContentParseError(raw=json.dumps(result.data, ensure_ascii=False), message=str(exc))

    async def fetch_chapter_text(self, book: str, chapter: int, version: str) -> List[ChapterVerse]:
        """Chapter fetcher for the content cache; failures raise so nothing is cached."""
        result = await self.generate_chapter_text(book, chapter, version)
        if isinstance(result, ContentOk):
            return result.data
        if isinstance(result, ContentParseError):
            logger.error(f"Malformed chapter text for {book} {chapter} ({version}): {result.message}")
            raise ContentGenerationError("Resposta inválida ao carregar o capítulo")
        logger.error(f"Chapter text unavailable for {book} {chapter} ({version}): {result.message}")
        raise ContentGenerationError("Não foi possível carregar o capítulo")


def _validate(result: ContentResult, model) -> ContentResult:
    if not isinstance(result, ContentOk):
        return result
    try:
        return ContentOk(model.model_validate(result.data))
    except ValidationError as exc:
        return ContentParseError(raw=json.dumps(result.data, ensure_ascii=False), message=str(exc))


def unwrap_or_raise(result: ContentResult, failure_detail: str) -> Any:
    """Return the parsed value or raise a user-facing ContentGenerationError."""
    if isinstance(result, ContentOk):
        return result.data
    if isinstance(result, ContentParseError):
        logger.warning(f"Content parse error: {result.message}")
    else:
        logger.warning(f"Content provider error: {result.message}")
    raise ContentGenerationError(failure_detail)


_content_service: Optional[ContentService] = None


def get_content_service() -> ContentService:
    """Dependency injector for the content service."""
    global _content_service
    if _content_service is None:
        _content_service = ContentService()
    return _content_service
