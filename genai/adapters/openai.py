"""OpenAI-compatible chat completions (OpenAI, and the compatible Gemini and Mistral endpoints)."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from genai.adapters.base import HttpAdapter, new_id, now, raise_for_provider
from genai.types import ChatChoice, ChatCompletion, ChatMessage, ChatRequest, ResolvedSettings

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAIChatAdapter(HttpAdapter):
    """Chat completion against any ``/chat/completions`` endpoint."""

    requires_credential = True

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        provider_id: str = 'openai',
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(base_url, timeout, transport)
        self.id = provider_id
        self._logger = logger or log

    def validate_credential(self, credential: str) -> bool:
        if self.id != 'openai':
            return bool(credential)
        return credential.startswith('sk-') and len(credential) >= 20

    def build_payload(self, request: ChatRequest, messages: List[Dict[str, Any]],
                      settings: ResolvedSettings) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": request.model_id,
            "messages": messages,
        }
        if 'temperature' in settings:
            payload["temperature"] = settings['temperature']
        if 'max_tokens' in settings:
            payload["max_completion_tokens"] = settings['max_tokens']
        if 'top_p' in settings:
            payload["top_p"] = settings['top_p']
        if settings.get('stop_sequences'):
            payload["stop"] = settings['stop_sequences']
        if 'frequency_penalty' in settings:
            payload["frequency_penalty"] = settings['frequency_penalty']
        if 'presence_penalty' in settings:
            payload["presence_penalty"] = settings['presence_penalty']
        if settings.get('user'):
            payload["user"] = settings['user']
        reasoning = settings.get('reasoning') or {}
        if reasoning.get('enabled') and reasoning.get('effort'):
            payload["reasoning_effort"] = reasoning['effort']
        return payload

    async def generate(
        self,
        request: ChatRequest,
        messages: List[Dict[str, Any]],
        settings: ResolvedSettings,
        credential: Optional[str],
    ) -> ChatCompletion:
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
        }
        payload = self.build_payload(request, messages, settings)
        self._logger.debug(f"{self.id} chat call for model {request.model_id} ({len(messages)} messages)")

        async with self.client() as client:
            try:
                response = await client.post("/chat/completions", headers=headers, json=payload)
            except httpx.HTTPError as e:
                self._logger.error(f"{self.id} API error: {e}")
                raise
        raise_for_provider(response, self.id)
        return self.parse_response(response.json(), request)

    def parse_response(self, data: Dict[str, Any], request: ChatRequest) -> ChatCompletion:
        choices = []
        for index, choice in enumerate(data.get("choices") or []):
            message = choice.get("message") or {}
            choices.append(ChatChoice(
                index=choice.get("index", index),
                message=ChatMessage(
                    role=message.get("role", "assistant"),
                    content=message.get("content") or "",
                    reasoning=message.get("reasoning_content") or message.get("reasoning"),
                ),
                finish_reason=choice.get("finish_reason"),
            ))
        return ChatCompletion(
            id=data.get("id") or new_id("chatcmpl"),
            provider=self.id,
            model=data.get("model") or request.model_id or "",
            created=data.get("created") or now(),
            choices=choices,
            usage=data.get("usage"),
        )
