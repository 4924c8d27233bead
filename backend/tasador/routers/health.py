from fastapi import APIRouter

from tasador.config import settings

router = APIRouter()


@router.get("/health")
def health_check() -> dict:
    model = (
        settings.openai_model
        if settings.llm_provider == "openai"
        else settings.anthropic_model
    )
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "llm_provider": settings.llm_provider,
        "model": model,
    }
