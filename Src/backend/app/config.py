"""Configuration module that loads environment variables from ``.env``."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_BASE_ENV_PATH = Path(".env")
if _BASE_ENV_PATH.exists():
    load_dotenv(_BASE_ENV_PATH, override=False)

_LOCAL_ENV_PATH = Path(".env.local")
if "PYTEST_CURRENT_TEST" not in os.environ and _LOCAL_ENV_PATH.exists():
    load_dotenv(_LOCAL_ENV_PATH, override=False)


class Settings(BaseSettings):
    """Application configuration validated at import time."""

    model_config = SettingsConfigDict(env_file=(".env",), extra="ignore")

    env: Literal["dev", "staging", "prod", "test"] = Field(default="dev", alias="ENV")
    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_iss: str | None = Field(default=None, alias="JWT_ISS")
    jwt_aud: str | None = Field(default=None, alias="JWT_AUD")

    database_url: str = Field(default="sqlite:///./funnelhq.db", alias="DATABASE_URL")
    database_pool_size: int = Field(default=5, alias="DATABASE_POOL_SIZE", gt=0)

    sign_in_path: str = Field(default="/login", alias="SIGN_IN_PATH")
    organization_setup_path: str = Field(default="/organization-setup", alias="ORGANIZATION_SETUP_PATH")
    unauthorized_path: str = Field(default="/", alias="UNAUTHORIZED_PATH")

    seed_demo_data: bool = Field(default=False, alias="SEED_DEMO_DATA")
    preview_user_id: str | None = Field(default=None, alias="PREVIEW_USER_ID")
    trace_mode: bool = Field(default=False, alias="TRACE_MODE")
    trace_sampling: float = Field(default=1.0, alias="TRACE_SAMPLING")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    @field_validator("database_url", mode="before")
    @classmethod
    def _blank_database_url(cls, value: str | None) -> str:
        if value is None:
            return "sqlite:///./funnelhq.db"
        trimmed = value.strip()
        return trimmed or "sqlite:///./funnelhq.db"

    @field_validator("jwt_iss", "jwt_aud", "preview_user_id", mode="before")
    @classmethod
    def _blank_claim(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = str(value).strip()
        return trimmed or None


settings = Settings()
