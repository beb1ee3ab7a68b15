from __future__ import annotations  # Text-completion gateway over an OpenAI-compatible chat endpoint

import logging
import os
import re
import threading
from typing import Any, Dict, Optional, Protocol

import httpx

from config import LlmRoute


logger = logging.getLogger(__name__)

_ROUTE_LOCKS: Dict[str, threading.Lock] = {}
_ROUTE_LOCKS_GUARD = threading.Lock()
_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*")
_PREVIEW_CHARS = 80


class HttpResponse(Protocol):  # Subset of httpx.Response the gateway reads
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...


class HttpClient(Protocol):  # Injectable transport, httpx.Client compatible
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> HttpResponse: ...


class TextCompletion(Protocol):  # Opaque prompt-in, text-out capability used by the engines
    def generate(self, prompt: str) -> str: ...


class LlmGatewayError(RuntimeError):  # Any failure to obtain completion text
    pass


def _route_lock(route: LlmRoute) -> threading.Lock:
    key = route.name or route.base_url + route.endpoint
    with _ROUTE_LOCKS_GUARD:
        return _ROUTE_LOCKS.setdefault(key, threading.Lock())


def _headers(route: LlmRoute) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    api_key = os.getenv(route.api_key_env) if route.api_key_env else None
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def _payload(route: LlmRoute, prompt: str) -> Dict[str, Any]:
    body: Dict[str, Any] = {"model": route.model, "messages": [{"role": "user", "content": prompt}]}
    if route.temperature is not None:
        body["temperature"] = route.temperature
    return body


def _reply_text(data: Any) -> str:
    """Pull the assistant text from a chat-completions body (or a bare ``content`` body)."""

    if not isinstance(data, dict):
        raise LlmGatewayError("LLM response was not an object")
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        content = data.get("content")
    if not isinstance(content, str):
        raise LlmGatewayError("LLM response missing content")
    return content


def _send(route: LlmRoute, body: Dict[str, Any], client: Optional[HttpClient]) -> HttpResponse:
    url = route.base_url.rstrip("/") + route.endpoint
    headers = _headers(route)
    if client is not None:
        return client.post(url, json=body, headers=headers, timeout=route.timeout_s)
    with httpx.Client(timeout=route.timeout_s) as owned:
        response = owned.post(url, json=body, headers=headers)
        return response


def complete(
    prompt: str,
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
) -> str:
    """Send one prompt and return the raw reply text.

    Raises ``LlmGatewayError`` on timeout, transport failure, an error status,
    a non-JSON body or a body without text. Nothing is retried here.
    """

    def _call() -> str:
        first_line = prompt.strip().splitlines()[0] if prompt.strip() else ""
        logger.info("completion start route=%s model=%s prompt=%s", cfg.name, cfg.model, first_line[:_PREVIEW_CHARS])
        try:
            response = _send(cfg, _payload(cfg, prompt), client)
        except httpx.TimeoutException as exc:
            logger.error("completion timed out after %.1fs route=%s", cfg.timeout_s, cfg.name)
            raise LlmGatewayError("LLM request timed out") from exc
        except Exception as exc:  # noqa: BLE001
            logger.error("completion transport failure route=%s: %s", cfg.name, exc)
            raise LlmGatewayError("LLM transport failed") from exc
        if response.status_code >= 400:
            logger.error("completion rejected route=%s status=%s", cfg.name, response.status_code)
            raise LlmGatewayError(f"LLM returned status {response.status_code}")
        try:
            data = response.json()
        except Exception as exc:  # noqa: BLE001
            raise LlmGatewayError("LLM payload was not JSON") from exc
        text = _reply_text(data)
        logger.info("completion done route=%s chars=%d", cfg.name, len(text))
        return text

    if not cfg.sequential:
        return _call()
    with _route_lock(cfg):
        return _call()


class GatewayCompletion:  # TextCompletion bound to one configured route
    def __init__(self, route: LlmRoute, *, client: Optional[HttpClient] = None) -> None:
        self._route = route
        self._client = client

    @property
    def route(self) -> LlmRoute:
        return self._route

    def generate(self, prompt: str) -> str:
        return complete(prompt, cfg=self._route, client=self._client)


def strip_code_fences(content: str) -> str:  # Drop ``` markers (with optional language tag)
    return _FENCE_RE.sub("", content).strip()
