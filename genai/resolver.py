"""Resolves a request's target (provider, model) pair and its preset settings."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from genai.catalog import FALLBACK_CONTEXT_WINDOW, FALLBACK_MAX_TOKENS, Catalog
from genai.presets import PresetManager
from genai.types import (
    ErrorEnvelope,
    ModelDescriptor,
    ModelFingerprint,
    ModelResolution,
    ReasoningCapability,
)

log = logging.getLogger(__name__)


def infer_capabilities(catalog: Catalog, model_id: str,
                       logger: Optional[logging.Logger] = None) -> Optional[ModelFingerprint]:
    """First fingerprint whose pattern occurs in ``model_id`` (case-insensitive), else None."""
    lowered = model_id.lower()
    for fingerprint in catalog.fingerprints:
        if fingerprint.pattern.lower() in lowered:
            (logger or log).debug(f"Detected model family {fingerprint.name} for '{model_id}'")
            return fingerprint
    return None


def build_fallback_model(catalog: Catalog, provider_id: str, model_id: str,
                         logger: Optional[logging.Logger] = None) -> ModelDescriptor:
    """Synthesizes a descriptor for a model the catalog does not know."""
    provider = catalog.get_provider(provider_id)
    fingerprint = infer_capabilities(catalog, model_id, logger)
    if fingerprint is not None:
        return ModelDescriptor(
            id=model_id,
            provider_id=provider_id,
            name=fingerprint.name,
            context_window=fingerprint.context_window,
            max_tokens=fingerprint.max_tokens,
            reasoning=fingerprint.reasoning.model_copy(),
            capabilities=provider.capabilities if provider else None,
            is_fallback=True,
        )
    return ModelDescriptor(
        id=model_id,
        provider_id=provider_id,
        name=model_id,
        context_window=FALLBACK_CONTEXT_WINDOW,
        max_tokens=FALLBACK_MAX_TOKENS,
        reasoning=ReasoningCapability(),
        capabilities=provider.capabilities if provider else None,
        is_fallback=True,
    )


def _resolution_error(code: str, message: str, param: Optional[str] = None) -> ErrorEnvelope:
    return ErrorEnvelope(code=code, type='validation_error', message=message, param=param)


class ModelResolver:
    """Turns a preset id or a (provider, model) pair into a model descriptor."""

    def __init__(self, catalog: Catalog, presets: PresetManager, logger: Optional[logging.Logger] = None):
        self.catalog = catalog
        self.presets = presets
        self._logger = logger or log

    def resolve(
        self,
        preset_id: Optional[str] = None,
        provider_id: Optional[str] = None,
        model_id: Optional[str] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> ModelResolution:
        settings = dict(settings or {})

        if preset_id:
            preset = self.presets.resolve_preset(preset_id)
            if preset is None:
                return ModelResolution(error=_resolution_error(
                    'PRESET_NOT_FOUND', f"Preset not found: {preset_id}", 'presetId'
                ))
            target_model = preset.model_id
            if not target_model:
                provider = self.catalog.get_provider(preset.provider_id)
                if provider is not None and provider.model_agnostic:
                    target_model = provider.default_model_id
            model_info = self.catalog.get_model(preset.provider_id, target_model) if target_model else None
            if model_info is None:
                return ModelResolution(
                    provider_id=preset.provider_id,
                    model_id=target_model,
                    preset=preset,
                    error=_resolution_error(
                        'MODEL_NOT_FOUND',
                        f"Model not found for preset '{preset_id}': {preset.provider_id}/{target_model}",
                        'presetId',
                    ),
                )
            merged = dict(preset.settings)
            merged.update(settings)
            return ModelResolution(
                provider_id=preset.provider_id,
                model_id=model_info.id,
                model_info=model_info,
                settings=merged,
                preset=preset,
            )

        if not provider_id or not model_id:
            return ModelResolution(
                provider_id=provider_id,
                model_id=model_id,
                error=_resolution_error(
                    'INVALID_MODEL_SELECTION',
                    "Either presetId or both providerId and modelId must be provided",
                    'providerId' if not provider_id else 'modelId',
                ),
            )

        provider = self.catalog.get_provider(provider_id)
        if provider is None:
            return ModelResolution(
                provider_id=provider_id,
                model_id=model_id,
                error=_resolution_error(
                    'UNSUPPORTED_PROVIDER',
                    f"Unsupported provider: {provider_id}. "
                    f"Supported providers: {', '.join(self.catalog.provider_ids())}",
                    'providerId',
                ),
            )

        model_info = self.catalog.get_model(provider_id, model_id)
        if model_info is None:
            if provider.allow_unknown_models:
                self._logger.debug(f"Using fallback descriptor for {provider_id}/{model_id}")
            else:
                self._logger.warning(
                    f"Unknown model '{model_id}' for provider '{provider_id}', "
                    f"using a fallback descriptor. The request may fail at the provider."
                )
            model_info = build_fallback_model(self.catalog, provider_id, model_id, self._logger)

        return ModelResolution(
            provider_id=provider_id,
            model_id=model_id,
            model_info=model_info,
            settings=settings,
        )
