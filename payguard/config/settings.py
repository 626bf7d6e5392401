"""
Environment configuration for the webhook security core.

Secrets are read from the process environment (optionally seeded from a
``.env`` file) into an immutable settings object. Components receive the
settings explicitly, so tests can build their own instances instead of
mutating ``os.environ``.
"""

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables
load_dotenv()


class SecuritySettings(BaseModel):
    """Process-wide secrets and knobs for encryption and webhook checks"""

    encryption_key: Optional[str] = Field(
        None, description="Master secret used to derive the AES-256 key"
    )
    meta_app_secret: Optional[str] = Field(
        None, description="Meta app secret for X-Hub-Signature-256"
    )
    meta_verify_token: Optional[str] = Field(
        None, description="Token Meta echoes during webhook subscription"
    )
    evolution_webhook_secret: Optional[str] = Field(
        None, description="Shared secret for Evolution API webhooks"
    )
    environment: str = Field("development", description="Deployment environment")

    model_config = {"frozen": True}

    @field_validator(
        "encryption_key",
        "meta_app_secret",
        "meta_verify_token",
        "evolution_webhook_secret",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v):
        # An empty variable in .env means "not configured"
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    @classmethod
    def from_env(cls) -> "SecuritySettings":
        """Build settings from the current process environment"""
        return cls(
            encryption_key=os.getenv("ENCRYPTION_KEY"),
            meta_app_secret=os.getenv("META_APP_SECRET"),
            meta_verify_token=os.getenv("META_VERIFY_TOKEN"),
            evolution_webhook_secret=os.getenv("EVOLUTION_WEBHOOK_SECRET"),
            environment=os.getenv("APP_ENV", "development"),
        )


@lru_cache(maxsize=1)
def get_settings() -> SecuritySettings:
    """Get cached settings loaded from the environment"""
    return SecuritySettings.from_env()


def reload_settings() -> SecuritySettings:
    """Drop cached settings and read the environment again"""
    get_settings.cache_clear()
    return get_settings()
