"""Routes for AI-generated devotional content."""
from fastapi import APIRouter, Depends, Query

from app.models.schemas import DailyPause, Devotional
from app.services.content_service import ContentService, get_content_service, unwrap_or_raise

router = APIRouter(prefix="/api/content", tags=["content"])

DEVOTIONAL_THEMES = ["Fé", "Família", "Ansiedade", "Propósito", "Oração", "Perdão"]


@router.get("/daily-pause", response_model=DailyPause, response_model_by_alias=True)
async def get_daily_pause(service: ContentService = Depends(get_content_service)):
    result = await service.generate_daily_pause()
    return unwrap_or_raise(result, "Não foi possível gerar a pausa diária")


@router.get("/devotional", response_model=Devotional, response_model_by_alias=True)
async def get_devotional(
    theme: str = Query(default=DEVOTIONAL_THEMES[0], min_length=2, max_length=100),
    service: ContentService = Depends(get_content_service),
):
    result = await service.generate_devotional(theme.strip())
    return unwrap_or_raise(result, "Não foi possível gerar o devocional")


@router.get("/themes")
async def list_devotional_themes():
    return {"themes": DEVOTIONAL_THEMES}
