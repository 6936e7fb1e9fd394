from __future__ import annotations

import json
import time
import uuid
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import httpx

from core.errors import ProviderHTTPError
from genai.types import (
    AdapterCapabilities,
    ChatCompletion,
    ChatRequest,
    ImageRequest,
    ImageResult,
    ResolvedSettings,
)


@runtime_checkable
class ChatAdapter(Protocol):
    """Interface for chat completion backends.

    Implementations raise on failure (``ProviderHTTPError`` for non-2xx
    answers; httpx transport errors propagate) and leave mapping to the caller.
    """

    id: str
    requires_credential: bool

    async def generate(
        self,
        request: ChatRequest,
        messages: List[Dict[str, Any]],
        settings: ResolvedSettings,
        credential: Optional[str],
    ) -> ChatCompletion:
        """Run one completion. ``messages`` already carries the system message if any."""


@runtime_checkable
class ImageAdapter(Protocol):
    """Interface for image generation backends, synchronous or job-based."""

    id: str
    capabilities: AdapterCapabilities
    requires_credential: bool

    async def generate(
        self,
        request: ImageRequest,
        resolved_prompt: str,
        settings: ResolvedSettings,
        credential: Optional[str],
    ) -> ImageResult:
        """Generate images and return once a terminal result is available."""


def supports_credential_check(adapter: Any) -> bool:
    return callable(getattr(adapter, 'validate_credential', None))


def supports_model_listing(adapter: Any) -> bool:
    return callable(getattr(adapter, 'list_models', None))


# ---------------------------------------------------------------------------
# Shared helpers for HTTP adapters
# ---------------------------------------------------------------------------

def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:24]}"


def now() -> int:
    return int(time.time())


def raise_for_provider(response: httpx.Response, provider: str) -> None:
    """Raises ProviderHTTPError carrying the provider's own message when the status is not 2xx."""
    if response.is_success:
        return
    payload: Any
    try:
        payload = response.json()
    except (ValueError, json.JSONDecodeError):
        payload = response.text
    message = None
    code = None
    if isinstance(payload, dict):
        error = payload.get('error')
        if isinstance(error, dict):
            message = error.get('message')
            code = error.get('code') or error.get('type')
        elif isinstance(error, str):
            message = error
        message = message or payload.get('message')
    if not message:
        message = f"HTTP {response.status_code}"
    raise ProviderHTTPError(
        f"{provider} API error ({response.status_code}): {message}",
        status=response.status_code,
        payload=payload,
        provider_code=code,
    )


class HttpAdapter:
    """Base for adapters speaking HTTP through httpx.AsyncClient.

    ``transport`` is handed to every client so tests can plug in an
    ``httpx.MockTransport``.
    """

    def __init__(self, base_url: str, timeout: float = 60.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.transport = transport

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)


def reasoning_budget(settings: ResolvedSettings, default: Optional[int] = None) -> Optional[int]:
    """Reasoning token budget, or None when reasoning is off."""
    reasoning = settings.get('reasoning') or {}
    if not reasoning.get('enabled'):
        return None
    budget = reasoning.get('max_tokens')
    return budget if budget else default
