"""Mock adapters: the registry fallback and a deterministic test double."""
from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional

from genai.adapters.base import new_id, now
from genai.types import (
    AdapterCapabilities,
    ChatChoice,
    ChatCompletion,
    ChatMessage,
    ChatRequest,
    GeneratedImage,
    ImageRequest,
    ImageResult,
    ResolvedSettings,
)

# 1x1 transparent PNG
MOCK_PNG_B64 = 'iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=='


class MockChatAdapter:
    """Echoes the last user message. Used whenever no real adapter is available."""

    id = 'mock'
    requires_credential = False

    def __init__(self, reply: Optional[str] = None):
        self.reply = reply

    async def generate(
        self,
        request: ChatRequest,
        messages: List[Dict[str, Any]],
        settings: ResolvedSettings,
        credential: Optional[str],
    ) -> ChatCompletion:
        last_user = next((m["content"] for m in reversed(messages) if m.get("role") == "user"), "")
        content = self.reply if self.reply is not None else f"Mock response to: {last_user}"
        prompt_tokens = sum(len(m.get("content", "").split()) for m in messages)
        completion_tokens = len(content.split())
        return ChatCompletion(
            id=new_id("mock"),
            provider=request.provider_id or self.id,
            model=request.model_id or "mock-model",
            created=now(),
            choices=[ChatChoice(index=0, message=ChatMessage(content=content), finish_reason="stop")],
            usage={
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
        )


class MockImageAdapter:
    """Returns ``count`` 1x1 PNGs."""

    id = 'mock-image-provider'
    requires_credential = False
    capabilities = AdapterCapabilities(
        supports_multiple_outputs=True,
        supports_b64_json=True,
        supports_negative_prompt=True,
    )

    async def generate(
        self,
        request: ImageRequest,
        resolved_prompt: str,
        settings: ResolvedSettings,
        credential: Optional[str],
    ) -> ImageResult:
        count = request.count or settings.get('n') or 1
        base_seed = (settings.get('diffusion') or {}).get('seed')
        if base_seed is None or base_seed < 0:
            base_seed = 0
        data = base64.b64decode(MOCK_PNG_B64)
        images = [
            GeneratedImage(
                index=index,
                mime_type='image/png',
                data=data,
                b64_json=MOCK_PNG_B64,
                prompt=resolved_prompt,
                seed=base_seed + index,
                metadata={'width': 1, 'height': 1},
            )
            for index in range(count)
        ]
        return ImageResult(
            id=new_id("img"),
            provider=request.provider_id or self.id,
            model=request.model_id or "mock-model",
            created=now(),
            data=images,
            usage={'time_taken': 100},
        )
