# src/hr_admin_bff/config.py

import logging
from pathlib import Path
from typing import Any, List, Optional, Union

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# .env is at the project root, two levels up from src/hr_admin_bff/
CONFIG_FILE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT_DIR = CONFIG_FILE_DIR.parent.parent
ENV_FILE_PATH = PROJECT_ROOT_DIR / ".env"

if ENV_FILE_PATH.exists():
    load_dotenv(dotenv_path=ENV_FILE_PATH, override=True)
    logger.info("HR-Admin-BFF: loaded .env file from %s", ENV_FILE_PATH)
else:
    logger.debug("HR-Admin-BFF: no .env file at %s, relying on environment variables", ENV_FILE_PATH)


def _split_comma_separated(name: str, v: Any) -> List[str]:
    if isinstance(v, str):
        if not v.strip():
            return []
        return [item.strip() for item in v.split(',') if item.strip()]
    if isinstance(v, list):
        return v
    raise TypeError(f"{name}: expected a comma-separated string or a list, got {type(v)}")


class Settings(BaseSettings):
    # === Upstream API gateway ===
    API_BASE_URL: str = Field(
        default="http://localhost:3030",
        validation_alias=AliasChoices("API_BASE_URL", "NEXT_PUBLIC_API_URL"),
    )
    UPSTREAM_TIMEOUT_SECONDS: float = 10.0

    # === Runtime environment ===
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # === Route guard ===
    # Pydantic sees these as strings from the env first; the validator turns them into lists.
    PROTECTED_ROUTE_PREFIXES: Union[str, List[str]] = ["/employees", "/settings"]
    AUTH_ROUTE_PREFIXES: Union[str, List[str]] = ["/sign-in", "/sign-up", "/forgot-password"]

    @property
    def COOKIE_SECURE(self) -> bool:
        return self.ENVIRONMENT.strip().lower() == "production"

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("API_BASE_URL", mode='after')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip('/')
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"API_BASE_URL must be an http(s) URL, got {v!r}")
        return v

    @field_validator("PROTECTED_ROUTE_PREFIXES", "AUTH_ROUTE_PREFIXES", mode='before')
    @classmethod
    def parse_comma_separated_prefixes(cls, v: Any, info: ValidationInfo) -> List[str]:
        return _split_comma_separated(info.field_name, v)

    @model_validator(mode='after')
    def check_prefixes(self) -> 'Settings':
        for name in ("PROTECTED_ROUTE_PREFIXES", "AUTH_ROUTE_PREFIXES"):
            prefixes = getattr(self, name)
            if not all(isinstance(p, str) and p.startswith('/') for p in prefixes):
                raise ValueError(f"All items in {name} must be paths starting with '/'.")
        return self


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    )


try:
    settings = Settings()
except Exception:
    logger.exception("HR-Admin-BFF: error instantiating Settings")
    raise
