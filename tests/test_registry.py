"""Tests for AdapterRegistry construction and lookup."""
import logging
from unittest.mock import Mock

import pytest

from genai.adapters import CHAT_ADAPTER_CONSTRUCTORS, MockChatAdapter, OpenAIChatAdapter
from genai.registry import AdapterRegistry


class FakeAdapter:
    def __init__(self, name='fake', **config):
        self.id = name
        self.config = config


def exploding_adapter(**config):
    raise RuntimeError("missing SDK")


@pytest.fixture
def fallback():
    return MockChatAdapter()


class TestAdapterRegistry:

    def test_constructor_table_is_instantiated_with_config(self, fallback):
        registry = AdapterRegistry(
            ['a', 'b'], fallback,
            adapter_constructors={'a': FakeAdapter},
            adapter_configs={'a': {'name': 'A', 'timeout': 3}},
        )
        adapter = registry.get_adapter('a')
        assert isinstance(adapter, FakeAdapter)
        assert adapter.id == 'A'
        assert adapter.config == {'timeout': 3}

    def test_custom_adapters_are_never_overwritten(self, fallback):
        custom = FakeAdapter('custom')
        registry = AdapterRegistry(
            ['a'], fallback,
            adapter_constructors={'a': FakeAdapter},
            custom_adapters={'a': custom},
        )
        assert registry.get_adapter('a') is custom

    def test_constructor_failure_falls_back_and_logs(self, fallback):
        logger = Mock(spec=logging.Logger)
        registry = AdapterRegistry(
            ['a'], fallback,
            adapter_constructors={'a': exploding_adapter},
            logger=logger,
        )
        assert registry.get_adapter('a') is fallback
        assert logger.error.called
        assert 'missing SDK' in logger.error.call_args[0][0]

    @pytest.mark.parametrize("provider_id", ['unregistered', '', 'openai', 'no-such-provider'])
    def test_get_adapter_never_returns_none(self, fallback, provider_id):
        registry = AdapterRegistry(['openai'], fallback)
        assert registry.get_adapter(provider_id) is not None

    def test_register_adapter_replaces(self, fallback):
        registry = AdapterRegistry(['a'], fallback, adapter_constructors={'a': FakeAdapter})
        replacement = FakeAdapter('replacement')
        registry.register_adapter('a', replacement)
        assert registry.get_adapter('a') is replacement

    def test_provider_summary(self, fallback):
        registry = AdapterRegistry(
            ['a', 'b', 'c'], fallback,
            adapter_constructors={'a': FakeAdapter, 'b': exploding_adapter},
        )
        summary = registry.get_provider_summary()
        assert summary['total_providers'] == 3
        assert summary['providers_with_adapters'] == 1
        assert summary['available_providers'] == ['a']
        assert summary['unavailable_providers'] == ['b', 'c']

    def test_registered_adapters_listing(self, fallback):
        registry = AdapterRegistry(
            ['openai', 'mock'], fallback,
            adapter_constructors=CHAT_ADAPTER_CONSTRUCTORS,
        )
        listing = registry.get_registered_adapters()
        assert listing['openai']['adapter'] == OpenAIChatAdapter.__name__
        assert listing['mock']['adapter_id'] == 'mock'
