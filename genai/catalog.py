"""Static provider/model catalogs, global defaults and model-family fingerprints.

Everything here is plain data loaded once when a service is built. A
:class:`Catalog` indexes one kind (chat or image) and refuses malformed input
at construction, which is the only place a configuration problem may raise.
"""
from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from core.config import GatewaySettings, load_presets
from core.errors import ConfigError
from genai.types import (
    AdapterCapabilities,
    ChatPreset,
    ImagePreset,
    ModelDescriptor,
    ModelFingerprint,
    ProviderDescriptor,
    ReasoningCapability,
)

DATA_DIR = Path(__file__).resolve().parent / 'data'


class Catalog:
    """Read-only index of providers and models for one request kind."""

    def __init__(
        self,
        kind: str,
        providers: Iterable[ProviderDescriptor],
        models: Iterable[ModelDescriptor],
        defaults: Dict[str, Any],
        fingerprints: Iterable[ModelFingerprint] = (),
    ):
        self.kind = kind
        self.defaults = defaults
        self.fingerprints: List[ModelFingerprint] = list(fingerprints)
        self._providers: Dict[str, ProviderDescriptor] = {}
        self._models: Dict[str, Dict[str, ModelDescriptor]] = {}

        for provider in providers:
            self._providers[provider.id] = provider
            self._models.setdefault(provider.id, {})
        for model in models:
            if model.provider_id not in self._providers:
                raise ConfigError(
                    f"Model '{model.id}' references unknown provider '{model.provider_id}'"
                )
            self._models[model.provider_id][model.id] = model

    def provider_ids(self) -> List[str]:
        return list(self._providers)

    def get_providers(self) -> List[ProviderDescriptor]:
        return list(self._providers.values())

    def get_provider(self, provider_id: str) -> Optional[ProviderDescriptor]:
        return self._providers.get(provider_id)

    def get_models(self, provider_id: str) -> List[ModelDescriptor]:
        return list(self._models.get(provider_id, {}).values())

    def get_model(self, provider_id: str, model_id: str) -> Optional[ModelDescriptor]:
        return self._models.get(provider_id, {}).get(model_id)

    def default_settings(self) -> Dict[str, Any]:
        """A deep copy of the global defaults, safe for the caller to mutate."""
        return copy.deepcopy(self.defaults)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

DEFAULT_CHAT_SETTINGS: Dict[str, Any] = {
    'temperature': 0.5,
    'max_tokens': 4096,
    'top_p': 0.95,
    'stop_sequences': [],
    'frequency_penalty': 0.0,
    'presence_penalty': 0.0,
    'supports_system_message': True,
    'reasoning': {
        'enabled': False,
        'exclude': False,
    },
    'thinking_extraction': {
        'enabled': False,
        'tag': 'thinking',
        'on_missing': 'auto',
    },
}

CHAT_PROVIDERS: List[ProviderDescriptor] = [
    ProviderDescriptor(id='openai', name='OpenAI', unsupported_parameters={'frequency_penalty'}),
    ProviderDescriptor(id='anthropic', name='Anthropic'),
    ProviderDescriptor(id='gemini', name='Google Gemini'),
    ProviderDescriptor(id='mistral', name='Mistral AI'),
    # Users load arbitrary GGUF files under their own names.
    ProviderDescriptor(id='llamacpp', name='llama.cpp', allow_unknown_models=True, requires_credential=False),
    ProviderDescriptor(id='mock', name='Mock Provider', allow_unknown_models=True, requires_credential=False),
]

_CLAUDE_THINKING = ReasoningCapability(
    supported=True, enabled_by_default=False, can_disable=True, min_budget=1024, max_budget=32000
)
_GPT5_REASONING = ReasoningCapability(supported=True, enabled_by_default=False, can_disable=True)


def _claude(model_id: str, name: str, reasoning: bool = True, images: bool = True) -> ModelDescriptor:
    return ModelDescriptor(
        id=model_id,
        provider_id='anthropic',
        name=name,
        context_window=200000,
        max_tokens=8192,
        supports_images=images,
        supports_prompt_cache=True,
        reasoning=_CLAUDE_THINKING if reasoning else ReasoningCapability(),
    )


CHAT_MODELS: List[ModelDescriptor] = [
    # Anthropic
    _claude('claude-opus-4-5-20251101', 'Claude Opus 4.5'),
    _claude('claude-sonnet-4-5-20250929', 'Claude Sonnet 4.5'),
    _claude('claude-haiku-4-5-20251001', 'Claude Haiku 4.5'),
    _claude('claude-sonnet-4-20250514', 'Claude Sonnet 4'),
    _claude('claude-3-7-sonnet-20250219', 'Claude 3.7 Sonnet'),
    _claude('claude-3-5-sonnet-20241022', 'Claude 3.5 Sonnet', reasoning=False),
    _claude('claude-3-5-haiku-20241022', 'Claude 3.5 Haiku', reasoning=False, images=False),

    # Google Gemini
    ModelDescriptor(
        id='gemini-2.5-pro', provider_id='gemini', name='Gemini 2.5 Pro',
        context_window=1048576, max_tokens=65536, supports_images=True, supports_prompt_cache=True,
        reasoning=ReasoningCapability(
            supported=True, enabled_by_default=True, can_disable=False, min_budget=1024, max_budget=65536
        ),
    ),
    ModelDescriptor(
        id='gemini-2.5-flash', provider_id='gemini', name='Gemini 2.5 Flash',
        context_window=1048576, max_tokens=65536, supports_images=True, supports_prompt_cache=True,
        reasoning=ReasoningCapability(
            supported=True, enabled_by_default=True, can_disable=True, min_budget=1024, max_budget=24576
        ),
    ),
    ModelDescriptor(
        id='gemini-2.0-flash', provider_id='gemini', name='Gemini 2.0 Flash',
        context_window=1048576, max_tokens=8192, supports_images=True, supports_prompt_cache=True,
    ),
    ModelDescriptor(
        id='gemini-2.0-flash-lite', provider_id='gemini', name='Gemini 2.0 Flash Lite',
        context_window=1048576, max_tokens=8192, supports_images=True,
    ),

    # OpenAI
    ModelDescriptor(
        id='gpt-5.1', provider_id='openai', name='GPT-5.1',
        context_window=272000, max_tokens=8192, supports_images=True, supports_prompt_cache=True,
        reasoning=_GPT5_REASONING,
    ),
    ModelDescriptor(
        id='gpt-5-mini-2025-08-07', provider_id='openai', name='GPT-5 Mini',
        context_window=272000, max_tokens=8192, supports_images=True, supports_prompt_cache=True,
        reasoning=_GPT5_REASONING,
    ),
    ModelDescriptor(
        id='o4-mini', provider_id='openai', name='o4-mini',
        context_window=200000, max_tokens=100000, supports_images=True, supports_prompt_cache=True,
        unsupported_parameters={'top_p'},
        reasoning=ReasoningCapability(supported=True, enabled_by_default=True, can_disable=False),
        default_settings={'temperature': 1.0},
    ),
    ModelDescriptor(
        id='gpt-4.1', provider_id='openai', name='GPT-4.1',
        context_window=1047576, max_tokens=32768, supports_images=True, supports_prompt_cache=True,
    ),
    ModelDescriptor(
        id='gpt-4.1-mini', provider_id='openai', name='GPT-4.1 Mini',
        context_window=1047576, max_tokens=32768, supports_images=True, supports_prompt_cache=True,
    ),

    # Mistral
    ModelDescriptor(
        id='codestral-2501', provider_id='mistral', name='Codestral',
        context_window=256000, max_tokens=32768,
    ),
    ModelDescriptor(
        id='devstral-small-2505', provider_id='mistral', name='Devstral Small',
        context_window=131072, max_tokens=32768,
    ),

    # llama.cpp: the server decides which model is loaded
    ModelDescriptor(
        id='llamacpp', provider_id='llamacpp', name='llama.cpp Local Model',
        context_window=8192, max_tokens=4096,
    ),
]


def _qwen3(pattern: str, name: str, max_tokens: int, context_window: int, budget: int) -> ModelFingerprint:
    return ModelFingerprint(
        pattern=pattern,
        name=name,
        max_tokens=max_tokens,
        context_window=context_window,
        reasoning=ReasoningCapability(
            supported=True, enabled_by_default=False, can_disable=True, max_budget=budget
        ),
    )


# Order matters: first match wins, so specific patterns go first.
GGUF_FINGERPRINTS: List[ModelFingerprint] = [
    _qwen3('qwen3-30b', 'Qwen 3 30B', 16384, 131072, 38912),
    _qwen3('qwen3-14b', 'Qwen 3 14B', 8192, 131072, 38912),
    _qwen3('qwen3-8b', 'Qwen 3 8B', 8192, 131072, 38912),
    _qwen3('qwen3-4b', 'Qwen 3 4B', 8192, 131072, 38912),
    _qwen3('qwen3-1.7b', 'Qwen 3 1.7B', 8192, 32768, 30720),
    _qwen3('qwen3-0.6b', 'Qwen 3 0.6B', 8192, 32768, 30720),
]

FALLBACK_CONTEXT_WINDOW = 4096
FALLBACK_MAX_TOKENS = 2048


# ---------------------------------------------------------------------------
# Image
# ---------------------------------------------------------------------------

DEFAULT_IMAGE_SETTINGS: Dict[str, Any] = {
    'width': 1024,
    'height': 1024,
    'response_format': 'buffer',
    'quality': 'standard',
    'style': 'natural',
}

DIFFUSION_DEFAULTS: Dict[str, Any] = {
    'steps': 20,
    'cfg_scale': 7.5,
}

_OPENAI_IMAGE_CAPS = AdapterCapabilities(
    supports_multiple_outputs=True,
    supports_b64_json=True,
    supports_hosted_urls=True,
)
_DIFFUSION_CAPS = AdapterCapabilities(
    supports_multiple_outputs=True,
    supports_b64_json=True,
    supports_progress_events=True,
    supports_negative_prompt=True,
)

IMAGE_PROVIDERS: List[ProviderDescriptor] = [
    ProviderDescriptor(
        id='openai-images', name='OpenAI Images',
        unsupported_parameters={'diffusion'},
        default_model_id='dall-e-3',
        capabilities=_OPENAI_IMAGE_CAPS,
    ),
    ProviderDescriptor(
        id='electron-diffusion', name='Local Diffusion',
        unsupported_parameters={'quality', 'style'},
        allow_unknown_models=True,
        requires_credential=False,
        model_agnostic=True,
        default_model_id='sdxl',
        capabilities=_DIFFUSION_CAPS,
    ),
]

IMAGE_MODELS: List[ModelDescriptor] = [
    ModelDescriptor(
        id='dall-e-3', provider_id='openai-images', name='DALL-E 3',
        capabilities=_OPENAI_IMAGE_CAPS,
        default_settings={'quality': 'standard', 'style': 'vivid', 'response_format': 'buffer'},
    ),
    ModelDescriptor(
        id='dall-e-2', provider_id='openai-images', name='DALL-E 2',
        capabilities=_OPENAI_IMAGE_CAPS,
        default_settings={'quality': 'standard', 'response_format': 'buffer'},
    ),
    ModelDescriptor(
        id='sdxl', provider_id='electron-diffusion', name='Stable Diffusion XL',
        capabilities=_DIFFUSION_CAPS,
        default_settings={
            'response_format': 'buffer',
            'diffusion': {
                'steps': 20,
                'cfg_scale': 7.5,
                'width': 512,
                'height': 512,
                'sampler': 'dpm++2m',
            },
        },
    ),
]


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def chat_catalog() -> Catalog:
    return Catalog('chat', CHAT_PROVIDERS, CHAT_MODELS, DEFAULT_CHAT_SETTINGS, GGUF_FINGERPRINTS)


def image_catalog() -> Catalog:
    return Catalog('image', IMAGE_PROVIDERS, IMAGE_MODELS, DEFAULT_IMAGE_SETTINGS)


def default_chat_presets() -> List[ChatPreset]:
    return load_presets(DATA_DIR / 'chat_presets.yml', ChatPreset)


def default_image_presets() -> List[ImagePreset]:
    return load_presets(DATA_DIR / 'image_presets.yml', ImagePreset)


def chat_adapter_configs(settings: GatewaySettings) -> Dict[str, Dict[str, Any]]:
    """Per-provider constructor arguments for the chat adapter table."""
    return {
        'openai': {'base_url': settings.OPENAI_BASE_URL, 'timeout': settings.REQUEST_TIMEOUT},
        'anthropic': {'base_url': settings.ANTHROPIC_BASE_URL, 'timeout': settings.REQUEST_TIMEOUT},
        'gemini': {
            'base_url': 'https://generativelanguage.googleapis.com/v1beta/openai',
            'timeout': settings.REQUEST_TIMEOUT,
            'provider_id': 'gemini',
        },
        'mistral': {
            'base_url': 'https://api.mistral.ai/v1',
            'timeout': settings.REQUEST_TIMEOUT,
            'provider_id': 'mistral',
        },
        'llamacpp': {'base_url': settings.LLAMACPP_BASE_URL, 'timeout': settings.REQUEST_TIMEOUT},
    }


def image_adapter_configs(settings: GatewaySettings) -> Dict[str, Dict[str, Any]]:
    return {
        'openai-images': {'base_url': settings.OPENAI_BASE_URL, 'timeout': 60.0},
        'electron-diffusion': {
            'base_url': settings.DIFFUSION_BASE_URL,
            'timeout': settings.DIFFUSION_TIMEOUT,
            'poll_interval': settings.POLL_INTERVAL,
            'poll_timeout': settings.POLL_TIMEOUT,
        },
    }
