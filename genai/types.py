"""Shared data model: descriptors, presets, requests, jobs and response envelopes."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, Literal, Mapping, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field

# Request-scoped, fully merged configuration handed to adapters.
ResolvedSettings = Dict[str, Any]

ChatKind = Literal['chat']
ImageKind = Literal['image']


class MessageRole(str, Enum):
    """Message roles for chat completion."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """Chat message."""
    role: Union[MessageRole, str]
    content: str
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        role = self.role.value if isinstance(self.role, MessageRole) else self.role
        return {
            "role": role,
            "content": self.content,
            **({"name": self.name} if self.name else {}),
        }


def message_to_dict(message: Union[Message, Mapping[str, Any]]) -> Dict[str, Any]:
    """Accepts either a Message or a plain mapping and returns the wire-neutral dict."""
    if isinstance(message, Message):
        return message.to_dict()
    data = dict(message)
    if isinstance(data.get("role"), MessageRole):
        data["role"] = data["role"].value
    return data


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

class ReasoningCapability(BaseModel):
    """What a model can do with native reasoning."""
    supported: bool = False
    enabled_by_default: bool = False
    can_disable: bool = True
    min_budget: Optional[int] = None
    max_budget: Optional[int] = None


class AdapterCapabilities(BaseModel):
    supports_multiple_outputs: bool = False
    supports_progress_events: bool = False
    supports_negative_prompt: bool = False
    supports_hosted_urls: bool = False
    supports_b64_json: bool = False


class ProviderDescriptor(BaseModel):
    id: str
    name: str
    unsupported_parameters: Set[str] = Field(default_factory=set)
    allow_unknown_models: bool = False
    requires_credential: bool = True
    model_agnostic: bool = False
    default_model_id: Optional[str] = None
    default_settings: Dict[str, Any] = Field(default_factory=dict)
    capabilities: Optional[AdapterCapabilities] = None


class ModelDescriptor(BaseModel):
    id: str
    provider_id: str
    name: str = ""
    description: Optional[str] = None
    context_window: int = 4096
    max_tokens: Optional[int] = None
    supports_images: bool = False
    supports_prompt_cache: bool = False
    reasoning: ReasoningCapability = Field(default_factory=ReasoningCapability)
    unsupported_parameters: Set[str] = Field(default_factory=set)
    default_settings: Dict[str, Any] = Field(default_factory=dict)
    capabilities: Optional[AdapterCapabilities] = None
    is_fallback: bool = False


class ModelFingerprint(BaseModel):
    """A case-insensitive identifier fragment and the capabilities it implies."""
    pattern: str
    name: str
    context_window: int
    max_tokens: int
    reasoning: ReasoningCapability = Field(default_factory=ReasoningCapability)


class Preset(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    id: str
    display_name: str = ""
    description: Optional[str] = None
    provider_id: str
    model_id: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)


class ChatPreset(Preset):
    model_id: str


class ImagePreset(Preset):
    prompt_prefix: Optional[str] = None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

@dataclass
class ChatRequest:
    """A chat completion request, addressed by provider+model or by preset."""
    kind: ClassVar[str] = 'chat'

    messages: List[Union[Message, Dict[str, Any]]]
    provider_id: Optional[str] = None
    model_id: Optional[str] = None
    preset_id: Optional[str] = None
    settings: Dict[str, Any] = field(default_factory=dict)
    system_message: Optional[str] = None


@dataclass
class ImageRequest:
    """An image generation request.

    ``on_progress`` is called synchronously with a :class:`JobProgress` for every
    in-progress poll of a job-based backend. Setting ``cancel_event`` aborts a
    running job at the next poll boundary.
    """
    kind: ClassVar[str] = 'image'

    prompt: str
    provider_id: Optional[str] = None
    model_id: Optional[str] = None
    preset_id: Optional[str] = None
    settings: Dict[str, Any] = field(default_factory=dict)
    count: Optional[int] = None
    on_progress: Optional[Callable[["JobProgress"], None]] = None
    cancel_event: Optional[asyncio.Event] = None


GenerationRequest = Union[ChatRequest, ImageRequest]


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------

class JobStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETE, JobStatus.ERROR)


class JobProgress(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    stage: str = "diffusion"
    current_step: int = Field(0, alias="currentStep")
    total_steps: int = Field(0, alias="totalSteps")
    percentage: Optional[float] = None


class JobError(BaseModel):
    message: str = "Unknown error"
    code: Optional[str] = None


class GenerationJob(BaseModel):
    """One status snapshot of a backend job, parsed from the camelCase payload."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    status: JobStatus
    progress: Optional[JobProgress] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[JobError] = None
    created_at: Optional[float] = Field(None, alias="createdAt")


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------

class ErrorEnvelope(BaseModel):
    code: str
    type: str
    message: str
    status: Optional[int] = None
    param: Optional[str] = None
    provider_error: Any = None


class ChatMessage(BaseModel):
    role: str = "assistant"
    content: str = ""
    reasoning: Optional[str] = None


class ChatChoice(BaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: Optional[str] = None


class ChatCompletion(BaseModel):
    object: Literal['chat.completion'] = 'chat.completion'
    id: str
    provider: str
    model: str
    created: int
    choices: List[ChatChoice]
    usage: Optional[Dict[str, Any]] = None


class GeneratedImage(BaseModel):
    index: int
    mime_type: str = "image/png"
    data: bytes = b""
    b64_json: Optional[str] = None
    url: Optional[str] = None
    prompt: Optional[str] = None
    seed: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ImageResult(BaseModel):
    object: Literal['image.result'] = 'image.result'
    id: str
    provider: str
    model: str
    created: int
    data: List[GeneratedImage]
    usage: Optional[Dict[str, Any]] = None


class FailureResponse(BaseModel):
    object: Literal['error'] = 'error'
    provider: Optional[str] = None
    model: Optional[str] = None
    error: ErrorEnvelope
    partial_response: Optional[ChatCompletion] = None


@dataclass
class ModelResolution:
    """Outcome of resolving a request to a (provider, model) pair."""
    provider_id: Optional[str] = None
    model_id: Optional[str] = None
    model_info: Optional[ModelDescriptor] = None
    settings: Dict[str, Any] = field(default_factory=dict)
    preset: Optional[Preset] = None
    error: Optional[ErrorEnvelope] = None
