"""
Layered settings resolution.

Precedence, lowest first: global defaults, provider defaults, model defaults,
preset settings, request settings. Scalars and lists are replaced by the
higher layer; the structured blocks in ``NESTED_KEYS`` are merged key by key so
that a preset setting ``diffusion.steps`` keeps a model-level
``diffusion.sampler``. ``None`` never erases a lower layer.

After merging, keys the provider or model declares unsupported are removed,
and the ``reasoning`` block is removed for models without reasoning support.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Mapping, Optional

from genai.catalog import DIFFUSION_DEFAULTS, Catalog
from genai.types import ModelDescriptor, ProviderDescriptor, ResolvedSettings

log = logging.getLogger(__name__)

NESTED_KEYS = ('reasoning', 'diffusion', 'thinking_extraction')


def merge_layer(base: Dict[str, Any], overlay: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Applies one overlay onto ``base`` in place and returns it."""
    for key, value in (overlay or {}).items():
        if value is None:
            continue
        current = base.get(key)
        if key in NESTED_KEYS and isinstance(value, Mapping) and isinstance(current, Mapping):
            merged = dict(current)
            merged.update({k: copy.deepcopy(v) for k, v in value.items() if v is not None})
            base[key] = merged
        else:
            base[key] = copy.deepcopy(value)
    return base


def merge_layers(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for layer in layers:
        merge_layer(merged, layer)
    return merged


class SettingsResolver:
    """Builds the complete, filtered settings object for one request."""

    def __init__(self, catalog: Catalog, logger: Optional[logging.Logger] = None):
        self.catalog = catalog
        self._logger = logger or log

    def model_layer(self, model: ModelDescriptor) -> Dict[str, Any]:
        layer: Dict[str, Any] = {}
        if self.catalog.kind == 'chat' and model.max_tokens:
            layer['max_tokens'] = model.max_tokens
        merge_layer(layer, model.default_settings)
        if model.reasoning.supported and model.reasoning.enabled_by_default:
            merge_layer(layer, {'reasoning': {'enabled': True}})
        return layer

    def resolve(
        self,
        model: ModelDescriptor,
        preset_settings: Optional[Mapping[str, Any]] = None,
        request_settings: Optional[Mapping[str, Any]] = None,
    ) -> ResolvedSettings:
        provider = self.catalog.get_provider(model.provider_id)
        resolved = merge_layers(
            self.catalog.default_settings(),
            provider.default_settings if provider else None,
            self.model_layer(model),
            preset_settings,
            request_settings,
        )
        if self.catalog.kind == 'image':
            self._complete_diffusion(resolved)
        return self.filter_unsupported(resolved, model, provider)

    @staticmethod
    def _complete_diffusion(resolved: Dict[str, Any]) -> None:
        diffusion = resolved.get('diffusion')
        if not isinstance(diffusion, Mapping):
            return
        completed = dict(DIFFUSION_DEFAULTS)
        completed['width'] = resolved.get('width')
        completed['height'] = resolved.get('height')
        merge_layer(completed, diffusion)
        resolved['diffusion'] = completed

    def filter_unsupported(
        self,
        resolved: Dict[str, Any],
        model: ModelDescriptor,
        provider: Optional[ProviderDescriptor] = None,
    ) -> ResolvedSettings:
        unsupported = set(model.unsupported_parameters)
        if provider is not None:
            unsupported |= set(provider.unsupported_parameters)
        for key in unsupported:
            if key in resolved:
                self._logger.debug(f"Dropping '{key}', unsupported by {model.provider_id}/{model.id}")
                resolved.pop(key)
        if not model.reasoning.supported and 'reasoning' in resolved:
            resolved.pop('reasoning')
        return resolved

