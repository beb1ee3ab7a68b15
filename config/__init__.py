"""Configuration package for the interview session engine."""
from .llm import LlmRoute, route_from_settings
from .session import TOKEN_PURPOSE, SessionConfig
from .settings import Settings, settings

__all__ = [
    "LlmRoute",
    "route_from_settings",
    "SessionConfig",
    "TOKEN_PURPOSE",
    "Settings",
    "settings",
]
