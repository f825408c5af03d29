"""Configuration management for the Devotional Companion API."""
import os
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # API Configuration
    app_name: str = Field(default="Devocional Diário", env="APP_NAME")
    debug: bool = Field(default=False, env="DEBUG")
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    # Storage Configuration
    storage_backend: str = Field(default="memory", env="STORAGE_BACKEND")
    redis_url: str = Field(default="redis://localhost:6379/0", env="REDIS_URL")
    memory_store_capacity: int = Field(default=0, env="MEMORY_STORE_CAPACITY")

    # Key namespaces (cache prefix must stay disjoint from the state keys)
    cache_prefix: str = Field(default="bible_cache_v1_", env="CACHE_PREFIX")
    stats_key: str = Field(default="devocional_stats_v1", env="STATS_KEY")
    plans_key: str = Field(default="devocional_plans_v1", env="PLANS_KEY")

    # OpenAI Configuration
    openai_api_key: str = Field(default="", env="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", env="OPENAI_MODEL")
    openai_max_output_tokens: int = Field(default=4000, env="OPENAI_MAX_OUTPUT_TOKENS")
    openai_request_timeout: int = Field(default=25, env="OPENAI_REQUEST_TIMEOUT")

    # Reader / profile behaviour
    prefetch_delay_seconds: float = Field(default=3.0, env="PREFETCH_DELAY_SECONDS")
    default_user_name: str = Field(default="Irmão(ã)", env="DEFAULT_USER_NAME")

    # CORS Configuration
    @computed_field
    @property
    def allowed_origins(self) -> list[str]:
        """Parse allowed origins from environment variable or use defaults."""
        allowed_origins_str = os.getenv(
            "ALLOWED_ORIGINS",
            "http://localhost:5173,http://localhost:3000"
        )
        return [origin.strip() for origin in allowed_origins_str.split(",") if origin.strip()]

    @property
    def uses_redis(self) -> bool:
        """Whether state and cache should live in Redis."""
        return self.storage_backend.strip().lower() == "redis"

    model_config = SettingsConfigDict(
        env_file=None,  # Don't load from .env file
        case_sensitive=False,
        extra="ignore"
    )

def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()
