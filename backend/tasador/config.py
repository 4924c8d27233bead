from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Tasador de Motos"
    debug: bool = False
    api_prefix: str = "/api"
    log_level: str = "INFO"

    llm_provider: Literal["openai", "claude"] = "openai"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    # Leave empty to use the official endpoint
    openai_base_url: str = ""
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    llm_temperature: float = 0.3
    llm_max_tokens: int = 900
    # Hard deadline for the single outbound completion call
    llm_timeout_seconds: float = 60.0

    # Sent back as Access-Control-Allow-Origin on every valuation response
    allowed_origin: str = "*"

    model_config = {"env_file": ".env"}


settings = Settings()
