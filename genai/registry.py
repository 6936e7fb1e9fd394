"""Registry mapping provider ids to adapter instances."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Generic, Iterable, Mapping, Optional, TypeVar

log = logging.getLogger(__name__)

A = TypeVar('A')

AdapterFactory = Callable[..., A]


class AdapterRegistry(Generic[A]):
    """
    Holds one adapter per provider id and never comes back empty-handed.

    Construction order:
      1. ``custom_adapters`` are installed as given and never overwritten by step 2.
      2. ``adapter_constructors`` are instantiated with the matching entry from
         ``adapter_configs`` for every supported provider not covered yet. A
         constructor that raises is logged and its provider is left to the
         fallback.
      3. ``fallback_adapter`` answers every lookup that misses.
    """

    def __init__(
        self,
        supported_providers: Iterable[str],
        fallback_adapter: A,
        adapter_constructors: Optional[Mapping[str, AdapterFactory]] = None,
        adapter_configs: Optional[Mapping[str, Mapping[str, Any]]] = None,
        custom_adapters: Optional[Mapping[str, A]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._logger = logger or log
        self._supported = list(supported_providers)
        self._fallback = fallback_adapter
        self._adapters: Dict[str, A] = {}

        for provider_id, adapter in (custom_adapters or {}).items():
            self._adapters[provider_id] = adapter
            self._logger.info(f"Registered custom adapter for provider: {provider_id}")

        constructors = adapter_constructors or {}
        configs = adapter_configs or {}
        for provider_id in self._supported:
            if provider_id in self._adapters:
                continue
            factory = constructors.get(provider_id)
            if factory is None:
                continue
            try:
                self._adapters[provider_id] = factory(**dict(configs.get(provider_id, {})))
                self._logger.debug(f"Initialized adapter for provider: {provider_id}")
            except Exception as e:
                self._logger.error(
                    f"Failed to initialize adapter for provider '{provider_id}', using fallback: {e}"
                )

    def register_adapter(self, provider_id: str, adapter: A) -> None:
        """Installs or replaces the adapter for a provider."""
        self._adapters[provider_id] = adapter
        self._logger.info(f"Registered adapter for provider: {provider_id}")

    def get_adapter(self, provider_id: str) -> A:
        adapter = self._adapters.get(provider_id)
        if adapter is None:
            self._logger.warning(f"No adapter registered for provider '{provider_id}', using fallback")
            return self._fallback
        return adapter

    def get_registered_adapters(self) -> Dict[str, Dict[str, Any]]:
        """Provider id -> summary of the adapter registered for it."""
        return {
            provider_id: {
                'adapter': type(adapter).__name__,
                'adapter_id': getattr(adapter, 'id', provider_id),
            }
            for provider_id, adapter in self._adapters.items()
        }

    def get_provider_summary(self) -> Dict[str, Any]:
        available = [p for p in self._supported if p in self._adapters]
        unavailable = [p for p in self._supported if p not in self._adapters]
        return {
            'total_providers': len(self._supported),
            'providers_with_adapters': len(available),
            'available_providers': available,
            'unavailable_providers': unavailable,
        }
