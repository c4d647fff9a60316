import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


def _split_origins(value: str | None) -> list[str]:
    return [origin.strip() for origin in (value or "").split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    """Server configuration, read from the environment (and a .env file)"""
    allowed_origins: list[str] = field(default_factory=list)
    embed_token: str | None = None
    model_api_key: str | None = None
    model_name: str = "gemini-2.5-pro"
    model_base_url: str = GEMINI_OPENAI_BASE_URL
    model_timeout_seconds: float = 60.0
    cache_ttl_seconds: float = 60.0
    port: int = 8080

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            allowed_origins=_split_origins(os.getenv("ALLOWED_ORIGINS")),
            embed_token=os.getenv("EMBED_TOKEN") or None,
            model_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("OPENAI_API_KEY"),
            model_name=os.getenv("MODEL_NAME", cls.model_name),
            model_base_url=os.getenv("MODEL_BASE_URL", GEMINI_OPENAI_BASE_URL),
            model_timeout_seconds=float(os.getenv("MODEL_TIMEOUT_SECONDS", "60")),
            cache_ttl_seconds=float(os.getenv("CACHE_TTL_SECONDS", "60")),
            port=int(os.getenv("PORT", "8080")),
        )
