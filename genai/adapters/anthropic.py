"""Anthropic Messages API."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from genai.adapters.base import HttpAdapter, new_id, now, raise_for_provider, reasoning_budget
from genai.types import ChatChoice, ChatCompletion, ChatMessage, ChatRequest, ResolvedSettings

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
API_VERSION = "2023-06-01"
DEFAULT_THINKING_BUDGET = 1024


class AnthropicChatAdapter(HttpAdapter):
    """Claude models. Native thinking blocks become the message's reasoning."""

    id = 'anthropic'
    requires_credential = True

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(base_url, timeout, transport)
        self._logger = logger or log

    def validate_credential(self, credential: str) -> bool:
        return credential.startswith('sk-ant-') and len(credential) >= 20

    def build_payload(self, request: ChatRequest, messages: List[Dict[str, Any]],
                      settings: ResolvedSettings) -> Dict[str, Any]:
        # Anthropic takes the system prompt separately
        system_parts = [m["content"] for m in messages if m.get("role") == "system"]
        chat_messages = [
            {"role": m["role"], "content": m["content"]}
            for m in messages if m.get("role") != "system"
        ]
        payload: Dict[str, Any] = {
            "model": request.model_id,
            "messages": chat_messages,
            "max_tokens": settings.get('max_tokens', 4096),
        }
        if system_parts:
            payload["system"] = "\n\n".join(system_parts)
        if 'temperature' in settings:
            payload["temperature"] = settings['temperature']
        if 'top_p' in settings:
            payload["top_p"] = settings['top_p']
        if settings.get('stop_sequences'):
            payload["stop_sequences"] = settings['stop_sequences']
        if settings.get('user'):
            payload["metadata"] = {"user_id": settings['user']}

        budget = reasoning_budget(settings, DEFAULT_THINKING_BUDGET)
        if budget is not None:
            payload["thinking"] = {"type": "enabled", "budget_tokens": budget}
            # Extended thinking requires temperature 1 and no top_p
            payload["temperature"] = 1
            payload.pop("top_p", None)
            if payload["max_tokens"] <= budget:
                payload["max_tokens"] = budget + settings.get('max_tokens', 4096)
        return payload

    async def generate(
        self,
        request: ChatRequest,
        messages: List[Dict[str, Any]],
        settings: ResolvedSettings,
        credential: Optional[str],
    ) -> ChatCompletion:
        headers = {
            "x-api-key": credential or "",
            "anthropic-version": API_VERSION,
            "Content-Type": "application/json",
        }
        payload = self.build_payload(request, messages, settings)

        async with self.client() as client:
            try:
                response = await client.post("/messages", headers=headers, json=payload)
            except httpx.HTTPError as e:
                self._logger.error(f"Anthropic API error: {e}")
                raise
        raise_for_provider(response, "Anthropic")
        return self.parse_response(response.json(), request, settings)

    def parse_response(self, data: Dict[str, Any], request: ChatRequest,
                       settings: ResolvedSettings) -> ChatCompletion:
        text_parts = []
        thinking_parts = []
        for block in data.get("content") or []:
            if block.get("type") == "text":
                text_parts.append(block.get("text", ""))
            elif block.get("type") == "thinking":
                thinking_parts.append(block.get("thinking", ""))

        reasoning = "\n\n".join(thinking_parts) or None
        if (settings.get('reasoning') or {}).get('exclude'):
            reasoning = None

        usage = data.get("usage") or {}
        return ChatCompletion(
            id=data.get("id") or new_id("msg"),
            provider=self.id,
            model=data.get("model") or request.model_id or "",
            created=now(),
            choices=[ChatChoice(
                index=0,
                message=ChatMessage(content="".join(text_parts), reasoning=reasoning),
                finish_reason=data.get("stop_reason"),
            )],
            usage={
                "prompt_tokens": usage.get("input_tokens"),
                "completion_tokens": usage.get("output_tokens"),
                "total_tokens": (usage.get("input_tokens") or 0) + (usage.get("output_tokens") or 0),
            } if usage else None,
        )
