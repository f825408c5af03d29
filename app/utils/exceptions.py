"""Custom exceptions for the Devotional Companion API."""
from fastapi import HTTPException


class ContentGenerationError(HTTPException):
    """Generative content provider errors."""
    def __init__(self, detail: str = "Serviço de conteúdo indisponível"):
        super().__init__(status_code=503, detail=detail)


class ExportError(HTTPException):
    """Export artifact could not be produced."""
    def __init__(self, detail: str = "Não foi possível gerar o arquivo de exportação"):
        super().__init__(status_code=500, detail=detail)


class PlanNotFoundError(HTTPException):
    """Requested reading plan does not exist."""
    def __init__(self, detail: str = "Plano de leitura não encontrado"):
        super().__init__(status_code=404, detail=detail)


class ValidationError(HTTPException):
    """Input validation errors."""
    def __init__(self, detail: str = "Invalid input"):
        super().__init__(status_code=400, detail=detail)
