from __future__ import annotations  # Re-export llm_gateway public API

from .llm_gateway import (
    GatewayCompletion,
    HttpClient,
    HttpResponse,
    LlmGatewayError,
    TextCompletion,
    complete,
    strip_code_fences,
)

__all__ = [
    "GatewayCompletion",
    "HttpClient",
    "HttpResponse",
    "LlmGatewayError",
    "TextCompletion",
    "complete",
    "strip_code_fences",
]
