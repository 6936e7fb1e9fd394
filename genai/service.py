"""
Generation service: the public entry point.

Per request the pipeline is resolve -> validate -> resolve settings -> pick
adapter -> check credential -> generate -> post-process. Every failure,
raised or returned, comes back as a :class:`FailureResponse`; nothing escapes
``send_message``/``generate_image``.
"""
from __future__ import annotations

import inspect
import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

from core import monitoring
from core.config import GatewaySettings, get_settings, load_presets
from core.env import from_environment
from core.logging import get_logger, setup_logging
from genai.adapters import CHAT_ADAPTER_CONSTRUCTORS, IMAGE_ADAPTER_CONSTRUCTORS, MockChatAdapter, MockImageAdapter
from genai.adapters.base import supports_credential_check, supports_model_listing
from genai.catalog import (
    Catalog,
    chat_adapter_configs,
    chat_catalog,
    default_chat_presets,
    default_image_presets,
    image_adapter_configs,
    image_catalog,
)
from genai.error_mapping import map_error
from genai.postprocess import apply_thinking_extraction
from genai.presets import PresetManager
from genai.registry import AdapterRegistry
from genai.resolver import ModelResolver
from genai.settings import SettingsResolver, merge_layers
from genai.types import (
    ChatCompletion,
    ChatPreset,
    ChatRequest,
    ErrorEnvelope,
    FailureResponse,
    GenerationRequest,
    ImagePreset,
    ImageRequest,
    ImageResult,
    ModelDescriptor,
    ModelResolution,
    Preset,
    ProviderDescriptor,
    ResolvedSettings,
    message_to_dict,
)
from genai.validation import (
    validate_chat_request,
    validate_chat_settings,
    validate_image_request,
    validate_image_settings,
    validate_reasoning_support,
)

CredentialProvider = Callable[[str], Union[Optional[str], Awaitable[Optional[str]]]]

CHAT = 'chat'
IMAGE = 'image'


class _Pipeline:
    """Everything the service keeps per request kind."""

    def __init__(self, catalog: Catalog, presets: PresetManager, registry: AdapterRegistry,
                 logger: logging.Logger):
        self.catalog = catalog
        self.presets = presets
        self.registry = registry
        self.resolver = ModelResolver(catalog, presets, logger.getChild('resolver'))
        self.settings = SettingsResolver(catalog, logger.getChild('settings'))


class GenerationService:
    """Resolves, validates and executes chat and image generation requests."""

    def __init__(
        self,
        credential_provider: CredentialProvider,
        chat_presets: Optional[Iterable[ChatPreset]] = None,
        image_presets: Optional[Iterable[ImagePreset]] = None,
        preset_mode: Optional[str] = None,
        chat_adapters: Optional[Dict[str, Any]] = None,
        image_adapters: Optional[Dict[str, Any]] = None,
        settings: Optional[GatewaySettings] = None,
        logger: Optional[logging.Logger] = None,
        catalogs: Optional[Dict[str, Catalog]] = None,
    ):
        self.credential_provider = credential_provider
        self.config = settings or get_settings()
        self._logger = logger or get_logger('service')
        mode = preset_mode or self.config.PRESET_MODE
        catalogs = catalogs or {}

        if chat_presets is None and self.config.CHAT_PRESETS_FILE:
            chat_presets = load_presets(self.config.CHAT_PRESETS_FILE, ChatPreset)
        if image_presets is None and self.config.IMAGE_PRESETS_FILE:
            image_presets = load_presets(self.config.IMAGE_PRESETS_FILE, ImagePreset)

        chat_cat = catalogs.get(CHAT) or chat_catalog()
        image_cat = catalogs.get(IMAGE) or image_catalog()

        self._pipelines: Dict[str, _Pipeline] = {
            CHAT: _Pipeline(
                chat_cat,
                PresetManager(default_chat_presets(), chat_presets or (), mode, self._logger.getChild('presets')),
                AdapterRegistry(
                    chat_cat.provider_ids(),
                    MockChatAdapter(),
                    CHAT_ADAPTER_CONSTRUCTORS,
                    chat_adapter_configs(self.config),
                    chat_adapters,
                    self._logger.getChild('registry'),
                ),
                self._logger,
            ),
            IMAGE: _Pipeline(
                image_cat,
                PresetManager(default_image_presets(), image_presets or (), mode, self._logger.getChild('presets')),
                AdapterRegistry(
                    image_cat.provider_ids(),
                    MockImageAdapter(),
                    IMAGE_ADAPTER_CONSTRUCTORS,
                    image_adapter_configs(self.config),
                    image_adapters,
                    self._logger.getChild('registry'),
                ),
                self._logger,
            ),
        }

    # ------------------------------------------------------------------
    # Catalog queries
    # ------------------------------------------------------------------

    def _pipeline(self, kind: str) -> _Pipeline:
        if kind not in self._pipelines:
            raise ValueError(f"Unknown request kind '{kind}', expected 'chat' or 'image'")
        return self._pipelines[kind]

    def get_providers(self, kind: str = CHAT) -> List[ProviderDescriptor]:
        return self._pipeline(kind).catalog.get_providers()

    def get_models(self, kind: str, provider_id: str) -> List[ModelDescriptor]:
        return self._pipeline(kind).catalog.get_models(provider_id)

    async def list_provider_models(self, kind: str, provider_id: str) -> List[Any]:
        """Asks the adapter for its live model list when it has one, else the catalog."""
        pipeline = self._pipeline(kind)
        adapter = pipeline.registry.get_adapter(provider_id)
        if supports_model_listing(adapter):
            credential = await self._lookup_credential(provider_id)
            return await adapter.list_models(credential)
        return pipeline.catalog.get_models(provider_id)

    def get_presets(self, kind: str = CHAT) -> List[Preset]:
        return self._pipeline(kind).presets.get_presets()

    def register_adapter(self, kind: str, provider_id: str, adapter: Any) -> None:
        self._pipeline(kind).registry.register_adapter(provider_id, adapter)

    def get_provider_summary(self, kind: str = CHAT) -> Dict[str, Any]:
        return self._pipeline(kind).registry.get_provider_summary()

    def get_registered_adapters(self, kind: str = CHAT) -> Dict[str, Dict[str, Any]]:
        return self._pipeline(kind).registry.get_registered_adapters()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def generate(self, request: GenerationRequest) -> Union[ChatCompletion, ImageResult, FailureResponse]:
        if isinstance(request, ChatRequest):
            return await self.send_message(request)
        if isinstance(request, ImageRequest):
            return await self.generate_image(request)
        return self._invalid_request(CHAT, request)

    async def send_message(self, request: ChatRequest) -> Union[ChatCompletion, FailureResponse]:
        pipeline = self._pipelines[CHAT]
        if not isinstance(request, ChatRequest):
            return self._invalid_request(CHAT, request)
        provider_id, model_id = request.provider_id, request.model_id
        try:
            resolution = pipeline.resolver.resolve(
                request.preset_id, request.provider_id, request.model_id, request.settings
            )
            provider_id = resolution.provider_id or provider_id
            model_id = resolution.model_id or model_id
            if resolution.error:
                return self._fail(CHAT, provider_id, model_id, resolution.error)

            model = resolution.model_info
            resolved_request = replace(request, provider_id=provider_id, model_id=model_id)
            preset_settings = resolution.preset.settings if resolution.preset else None
            explicit = merge_layers(preset_settings, request.settings)
            error = (
                validate_chat_request(resolved_request)
                or validate_chat_settings(explicit)
                or validate_reasoning_support(explicit, model)
            )
            if error:
                return self._fail(CHAT, provider_id, model_id, error)

            settings = pipeline.settings.resolve(model, preset_settings, request.settings)
            adapter = pipeline.registry.get_adapter(provider_id)
            credential, error = await self._credential(pipeline, adapter, provider_id)
            if error:
                return self._fail(CHAT, provider_id, model_id, error)

            messages = self.prepare_messages(resolved_request, settings)
            self._logger.info(f"Chat request to {provider_id}/{model_id}")
            completion = await adapter.generate(resolved_request, messages, settings, credential)

            completion, error = apply_thinking_extraction(completion, settings, model, self._logger)
            if error:
                failure = self._fail(CHAT, provider_id, model_id, error)
                failure.partial_response = completion
                return failure

            monitoring.record_success(CHAT, provider_id)
            return completion
        except Exception as e:
            self._logger.error(f"Chat request to {provider_id}/{model_id} failed: {e}")
            return self._fail(CHAT, provider_id, model_id, map_error(e))

    async def generate_image(self, request: ImageRequest) -> Union[ImageResult, FailureResponse]:
        pipeline = self._pipelines[IMAGE]
        if not isinstance(request, ImageRequest):
            return self._invalid_request(IMAGE, request)
        provider_id, model_id = request.provider_id, request.model_id
        try:
            resolution = pipeline.resolver.resolve(
                request.preset_id, request.provider_id, request.model_id, request.settings
            )
            provider_id = resolution.provider_id or provider_id
            model_id = resolution.model_id or model_id
            if resolution.error:
                return self._fail(IMAGE, provider_id, model_id, resolution.error)

            model = resolution.model_info
            resolved_request = replace(request, provider_id=provider_id, model_id=model_id)
            preset_settings = resolution.preset.settings if resolution.preset else None
            error = (
                validate_image_request(resolved_request)
                or validate_image_settings(merge_layers(preset_settings, request.settings))
            )
            if error:
                return self._fail(IMAGE, provider_id, model_id, error)

            settings = pipeline.settings.resolve(model, preset_settings, request.settings)
            adapter = pipeline.registry.get_adapter(provider_id)
            credential, error = await self._credential(pipeline, adapter, provider_id)
            if error:
                return self._fail(IMAGE, provider_id, model_id, error)

            prompt = self.resolve_prompt(resolution, request.prompt)
            self._logger.info(f"Image request to {provider_id}/{model_id}")
            result = await adapter.generate(resolved_request, prompt, settings, credential)
            monitoring.record_success(IMAGE, provider_id)
            return result
        except Exception as e:
            self._logger.error(f"Image request to {provider_id}/{model_id} failed: {e}")
            return self._fail(IMAGE, provider_id, model_id, map_error(e))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def prepare_messages(request: ChatRequest, settings: ResolvedSettings) -> List[Dict[str, Any]]:
        """
        Normalizes messages and places the system message.

        Models that cannot take a system role get the system text prefixed to
        the first user message instead.
        """
        messages = [message_to_dict(m) for m in request.messages]
        system_text = request.system_message
        if settings.get('supports_system_message', True):
            if system_text:
                messages.insert(0, {"role": "system", "content": system_text})
            return messages

        system_parts = [system_text] if system_text else []
        system_parts += [m["content"] for m in messages if m.get("role") == "system"]
        messages = [m for m in messages if m.get("role") != "system"]
        if system_parts:
            for message in messages:
                if message.get("role") == "user":
                    message["content"] = "\n\n".join(system_parts + [message["content"]])
                    break
        return messages

    @staticmethod
    def resolve_prompt(resolution: ModelResolution, prompt: str) -> str:
        prefix = getattr(resolution.preset, 'prompt_prefix', None)
        if prefix:
            return f"{prefix} {prompt}"
        return prompt

    async def _lookup_credential(self, provider_id: str) -> Optional[str]:
        credential = self.credential_provider(provider_id)
        if inspect.isawaitable(credential):
            credential = await credential
        return credential

    async def _credential(self, pipeline: _Pipeline, adapter: Any,
                          provider_id: str) -> Tuple[Optional[str], Optional[ErrorEnvelope]]:
        provider = pipeline.catalog.get_provider(provider_id)
        required = getattr(adapter, 'requires_credential', True) and (provider is None or provider.requires_credential)
        credential = await self._lookup_credential(provider_id)

        if not credential:
            if not required:
                return None, None
            return None, ErrorEnvelope(
                code='API_KEY_ERROR',
                type='authentication_error',
                message=f"API key for provider '{provider_id}' could not be retrieved. "
                        f"Ensure it is configured correctly.",
            )
        if required and supports_credential_check(adapter) and not adapter.validate_credential(credential):
            return None, ErrorEnvelope(
                code='INVALID_API_KEY',
                type='authentication_error',
                message=f"Invalid API key format for provider '{provider_id}'",
            )
        return credential, None

    def _fail(self, kind: str, provider_id: Optional[str], model_id: Optional[str],
              error: ErrorEnvelope) -> FailureResponse:
        monitoring.record_failure(kind, provider_id or 'unknown', error.code)
        if error.type == 'validation_error':
            self._logger.info(f"{kind} request rejected: {error.code}: {error.message}")
        return FailureResponse(provider=provider_id, model=model_id, error=error)

    def _invalid_request(self, kind: str, request: Any) -> FailureResponse:
        return self._fail(kind, None, None, ErrorEnvelope(
            code='INVALID_REQUEST', type='validation_error',
            message=f"Unsupported request type: {type(request).__name__}",
        ))


def create_service(credential_provider: Optional[CredentialProvider] = None, **kwargs: Any) -> GenerationService:
    """
    Builds a service from the environment: settings, logging and credentials.

    Credentials default to ``<PROVIDER>_API_KEY`` environment variables.
    """
    config = kwargs.pop('settings', None) or get_settings()
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)
    if config.METRICS_PORT:
        monitoring.start_metrics_server(config.METRICS_PORT)
    return GenerationService(credential_provider or from_environment, settings=config, **kwargs)
