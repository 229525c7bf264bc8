"""Runtime settings.

Populated from environment variables (with ``.env`` loading through
python-dotenv) by ``Settings.from_env()`` and shared through the
``get_settings()`` / ``reset_settings()`` pair.

Redis connection settings are not here; ``get_redis_client()`` reads its own
REDIS_* variables.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """Tokens, endpoints, timeouts and batching knobs for one deployment."""

    # Credentials
    github_token: Optional[str] = Field(None, description="Source-control API token")
    vercel_token: Optional[str] = Field(None, description="Deploy-host API token")
    vercel_team_id: Optional[str] = Field(None, description="Deploy-host team scope")
    github_webhook_secret: Optional[str] = Field(
        None, description="Shared secret for X-Hub-Signature-256; unset disables verification"
    )
    vercel_webhook_secret: Optional[str] = Field(
        None, description="Shared secret for x-vercel-signature; unset disables verification"
    )

    # Endpoints
    github_api_url: str = "https://api.github.com"
    vercel_api_url: str = "https://api.vercel.com"
    screenshot_api_url: str = "https://api.microlink.io"
    notifier_webhook_url: Optional[str] = Field(None, description="Where notifications are POSTed")

    # Time bounds (seconds)
    fetch_timeout_seconds: float = Field(10.0, gt=0)
    screenshot_timeout_seconds: float = Field(15.0, gt=0)
    evaluation_budget_seconds: float = Field(55.0, gt=0)

    # State TTLs (seconds)
    lock_ttl_seconds: int = Field(120, gt=0)
    verification_ttl_seconds: int = Field(24 * 60 * 60, gt=0)

    # Cross-project batching
    batch_size: int = Field(5, ge=1)
    batch_pause_seconds: float = Field(0.5, ge=0)
    active_window_days: int = Field(7, ge=1)
    max_projects: int = Field(10, ge=1)

    @field_validator("github_api_url", "vercel_api_url", "screenshot_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_timeouts_fit_budget(self):
        """Every fetch must be able to time out before the run's budget does"""
        for name in ("fetch_timeout_seconds", "screenshot_timeout_seconds"):
            if getattr(self, name) >= self.evaluation_budget_seconds:
                raise ValueError(
                    f"{name} ({getattr(self, name)}) must be shorter than "
                    f"evaluation_budget_seconds ({self.evaluation_budget_seconds})"
                )
        return self

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Build settings from the process environment.

        Args:
            env_file: Optional path to a dotenv file; values already present in
                the environment are not overridden
        """
        load_dotenv(env_file)

        mapping = {
            "github_token": "GITHUB_TOKEN",
            "vercel_token": "VERCEL_TOKEN",
            "vercel_team_id": "VERCEL_TEAM_ID",
            "github_webhook_secret": "GITHUB_WEBHOOK_SECRET",
            "vercel_webhook_secret": "VERCEL_WEBHOOK_SECRET",
            "github_api_url": "GITHUB_API_URL",
            "vercel_api_url": "VERCEL_API_URL",
            "screenshot_api_url": "SCREENSHOT_API_URL",
            "notifier_webhook_url": "NOTIFIER_WEBHOOK_URL",
            "fetch_timeout_seconds": "FETCH_TIMEOUT_SECONDS",
            "screenshot_timeout_seconds": "SCREENSHOT_TIMEOUT_SECONDS",
            "evaluation_budget_seconds": "EVALUATION_BUDGET_SECONDS",
            "lock_ttl_seconds": "LOCK_TTL_SECONDS",
            "verification_ttl_seconds": "VERIFICATION_TTL_SECONDS",
            "batch_size": "BATCH_SIZE",
            "batch_pause_seconds": "BATCH_PAUSE_SECONDS",
            "active_window_days": "ACTIVE_WINDOW_DAYS",
            "max_projects": "MAX_PROJECTS",
        }
        values = {}
        for field_name, env_var in mapping.items():
            value = os.getenv(env_var)
            if value not in (None, ""):
                values[field_name] = value
        return cls(**values)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process-wide settings, loading them on first use"""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        logger.info(
            f"Settings loaded: budget={_settings.evaluation_budget_seconds}s, "
            f"batch_size={_settings.batch_size}, max_projects={_settings.max_projects}"
        )
    return _settings


def reset_settings() -> None:
    """Forget the cached settings (mainly for testing)"""
    global _settings
    _settings = None
