from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from apps/api so it works regardless of CWD
_env_file = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=_env_file, extra="ignore")

    # Chat (OpenAI-compatible gateway); None => provider-specific default
    chat_api_base_url: str | None = None
    chat_api_key: str | None = None
    chat_model: str | None = None

    openai_api_key: str | None = None

    # Coach streaming limits. Idle timeout applies per read, not to the whole reply.
    coach_stream_idle_timeout_seconds: float = 30.0
    coach_connect_timeout_seconds: float = 10.0
    coach_max_reply_chars: int = 20_000

    # Rate limiting (per client IP; multi-instance needs Redis later)
    coach_chat_rate_limit: str = "20/minute"

    # CORS (comma-separated origins; * allows all)
    cors_origins: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parsed CORS origins for middleware."""
        raw = self.cors_origins.strip()
        return ["*"] if not raw else [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
