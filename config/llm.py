from __future__ import annotations  # Configuration schema for the completion endpoint

from typing import Optional

from pydantic import BaseModel, Field

from .settings import Settings, settings as default_settings


class LlmRoute(BaseModel):  # LLM endpoint configuration
    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(ge=0.1)
    api_key_env: str | None = None
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    sequential: bool = False


def route_from_settings(cfg: Optional[Settings] = None, *, name: str = "default") -> LlmRoute:  # Build route from env settings
    cfg = cfg or default_settings
    return LlmRoute(
        name=name,
        base_url=cfg.LLM_BASE_URL,
        endpoint=cfg.LLM_ENDPOINT,
        model=cfg.LLM_MODEL,
        timeout_s=cfg.LLM_TIMEOUT_S,
        api_key_env=cfg.LLM_API_KEY_ENV,
        temperature=cfg.LLM_TEMPERATURE,
        sequential=cfg.LLM_SEQUENTIAL,
    )
