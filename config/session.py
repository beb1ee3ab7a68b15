"""Immutable session configuration handed to the session manager."""
from __future__ import annotations

from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from interview_session.errors import ConfigurationError

from .settings import Settings, settings as default_settings

TOKEN_PURPOSE = "interview_access"


class SessionConfig(BaseModel):
    """Signing material and session policy, fixed for the life of the process."""

    model_config = ConfigDict(frozen=True)

    secret: str = Field(min_length=1)
    algorithm: str = "HS256"
    token_ttl: timedelta = timedelta(hours=3)
    purpose: str = TOKEN_PURPOSE
    allow_raw_id_links: bool = True

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None) -> "SessionConfig":
        """Build from settings, failing fast when the signing secret is missing."""

        cfg = cfg or default_settings
        if not cfg.JWT_SECRET or not cfg.JWT_SECRET.strip():
            raise ConfigurationError("JWT_SECRET must be set to issue interview sessions")
        return cls(
            secret=cfg.JWT_SECRET,
            algorithm=cfg.JWT_ALGORITHM,
            token_ttl=timedelta(hours=cfg.TOKEN_TTL_HOURS),
            allow_raw_id_links=cfg.ALLOW_RAW_ID_LOGIN_LINKS,
        )


__all__ = ["SessionConfig", "TOKEN_PURPOSE"]
