"""Provider adapters.

Every adapter satisfies :class:`ChatAdapter` or :class:`ImageAdapter`; the
constructor tables below are what the service registries instantiate.
"""

from __future__ import annotations

from .anthropic import AnthropicChatAdapter
from .base import ChatAdapter, ImageAdapter
from .diffusion import DiffusionImageAdapter
from .llamacpp import LlamaCppChatAdapter
from .mock import MockChatAdapter, MockImageAdapter
from .openai import OpenAIChatAdapter
from .openai_images import OpenAIImageAdapter

CHAT_ADAPTER_CONSTRUCTORS = {
    'openai': OpenAIChatAdapter,
    'anthropic': AnthropicChatAdapter,
    'gemini': OpenAIChatAdapter,
    'mistral': OpenAIChatAdapter,
    'llamacpp': LlamaCppChatAdapter,
    'mock': MockChatAdapter,
}

IMAGE_ADAPTER_CONSTRUCTORS = {
    'openai-images': OpenAIImageAdapter,
    'electron-diffusion': DiffusionImageAdapter,
}

__all__ = [
    "ChatAdapter",
    "ImageAdapter",
    "OpenAIChatAdapter",
    "AnthropicChatAdapter",
    "LlamaCppChatAdapter",
    "MockChatAdapter",
    "MockImageAdapter",
    "OpenAIImageAdapter",
    "DiffusionImageAdapter",
    "CHAT_ADAPTER_CONSTRUCTORS",
    "IMAGE_ADAPTER_CONSTRUCTORS",
]
