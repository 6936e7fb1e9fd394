"""Request resolution and execution pipeline for chat and image generation providers."""

from __future__ import annotations

from .service import GenerationService, create_service
from .types import (
    ChatCompletion,
    ChatRequest,
    ErrorEnvelope,
    FailureResponse,
    ImageRequest,
    ImageResult,
    JobProgress,
    Message,
    MessageRole,
)

__all__ = [
    "GenerationService",
    "create_service",
    "ChatRequest",
    "ImageRequest",
    "Message",
    "MessageRole",
    "ChatCompletion",
    "ImageResult",
    "FailureResponse",
    "ErrorEnvelope",
    "JobProgress",
]
