import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

BASE_DIR = Path(__file__).resolve().parent
ROOT_DIR = BASE_DIR.parent
ENV_PATH = ROOT_DIR / ".env"

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class ConfigError(RuntimeError):
    """Raised when the service cannot start with the current environment."""


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (ValueError, TypeError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (ValueError, TypeError):
        return default


def _split_origins(raw: str) -> List[str]:
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or list(DEFAULT_CORS_ORIGINS)


class Settings(BaseModel):
    google_api_key: str = Field(..., min_length=1)
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 5001
    cors_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    rate_limit: str = "100/15 minutes"
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL
    classifier_model: str = DEFAULT_GEMINI_MODEL
    remedy_model: str = DEFAULT_GEMINI_MODEL
    classifier_timeout_s: float = 10.0
    remedy_timeout_s: float = 30.0
    max_body_bytes: int = 10 * 1024

    @property
    def debug(self) -> bool:
        return self.environment != "production"

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "Settings":
        """Build settings from the process environment (and .env when present).

        Raises ConfigError when no Google AI key is configured.
        """
        env_path = env_path or ENV_PATH
        if Path(env_path).exists():
            load_dotenv(env_path, override=False)

        api_key = _env_str("GOOGLE_API_KEY") or _env_str("GEMINI_API_KEY")
        if not api_key:
            raise ConfigError("GOOGLE_API_KEY is not set; refusing to start without an AI provider key")

        default_model = _env_str("GEMINI_MODEL", DEFAULT_GEMINI_MODEL)
        return cls(
            google_api_key=api_key,
            environment=_env_str("APP_ENV", "development").lower(),
            host=_env_str("HOST", "0.0.0.0"),
            port=_env_int("PORT", 5001),
            cors_origins=_split_origins(_env_str("CORS_ORIGINS")),
            rate_limit=_env_str("RATE_LIMIT", "100/15 minutes"),
            gemini_base_url=_env_str("GEMINI_BASE_URL", DEFAULT_GEMINI_BASE_URL).rstrip("/"),
            classifier_model=_env_str("GEMINI_CLASSIFIER_MODEL", default_model),
            remedy_model=_env_str("GEMINI_REMEDY_MODEL", default_model),
            classifier_timeout_s=_env_float("AI_CLASSIFIER_TIMEOUT_S", 10.0),
            remedy_timeout_s=_env_float("AI_REMEDY_TIMEOUT_S", 30.0),
            max_body_bytes=_env_int("MAX_BODY_KB", 10) * 1024,
        )
