"""llama.cpp server (OpenAI-compatible endpoints under /v1)."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from genai.adapters.base import raise_for_provider
from genai.adapters.openai import OpenAIChatAdapter
from genai.types import ChatRequest, ResolvedSettings

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080"


class LlamaCppChatAdapter(OpenAIChatAdapter):
    """Local llama.cpp server. Any model id is accepted, the server decides what runs."""

    requires_credential = False

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(base_url.rstrip('/') + '/v1', timeout, 'llamacpp', transport, logger or log)
        self.server_url = base_url.rstrip('/')

    def validate_credential(self, credential: str) -> bool:
        return True

    def build_payload(self, request: ChatRequest, messages: List[Dict[str, Any]],
                      settings: ResolvedSettings) -> Dict[str, Any]:
        payload = super().build_payload(request, messages, settings)
        # llama.cpp still expects the classic field name
        if "max_completion_tokens" in payload:
            payload["max_tokens"] = payload.pop("max_completion_tokens")
        payload.pop("reasoning_effort", None)
        reasoning = settings.get('reasoning')
        if reasoning is not None:
            payload["chat_template_kwargs"] = {"enable_thinking": bool(reasoning.get('enabled'))}
        return payload

    async def list_models(self, credential: Optional[str] = None) -> List[Dict[str, Any]]:
        async with self.client() as client:
            response = await client.get("/models")
        raise_for_provider(response, "llama.cpp")
        return response.json().get("data", [])

    async def health(self) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=5.0, transport=self.transport) as client:
            response = await client.get(f"{self.server_url}/health")
        raise_for_provider(response, "llama.cpp")
        return response.json()
