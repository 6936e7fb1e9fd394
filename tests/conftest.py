"""Shared fixtures for the gateway tests."""
import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from core.config import GatewaySettings
from genai.catalog import Catalog
from genai.service import GenerationService
from genai.types import ModelDescriptor, ProviderDescriptor, ReasoningCapability

VALID_OPENAI_KEY = "sk-test-0123456789abcdefghij"
VALID_ANTHROPIC_KEY = "sk-ant-REDACTED"


@pytest.fixture
def gateway_settings():
    """Settings that ignore any .env in the working directory."""
    return GatewaySettings(_env_file=None, POLL_INTERVAL=0.01, POLL_TIMEOUT=5.0)


@pytest.fixture
def credentials():
    """Credential lookup backed by a dict; tests mutate it as needed."""
    keys = {
        'openai': VALID_OPENAI_KEY,
        'anthropic': VALID_ANTHROPIC_KEY,
        'gemini': 'gemini-test-key',
        'mistral': 'mistral-test-key',
        'openai-images': VALID_OPENAI_KEY,
    }

    def lookup(provider_id: str):
        return keys.get(provider_id)

    lookup.keys = keys
    return lookup


@pytest.fixture
def make_service(gateway_settings, credentials):
    def factory(**kwargs) -> GenerationService:
        kwargs.setdefault('settings', gateway_settings)
        return GenerationService(kwargs.pop('credential_provider', credentials), **kwargs)
    return factory


@pytest.fixture
def layered_catalog():
    """A chat catalog in which every precedence layer sets a distinct temperature."""
    providers = [
        ProviderDescriptor(
            id='X', name='Provider X',
            unsupported_parameters={'presence_penalty'},
            default_settings={'temperature': 0.3, 'top_p': 0.5},
        ),
    ]
    models = [
        ModelDescriptor(
            id='Y', provider_id='X', name='Model Y', max_tokens=1000,
            default_settings={'temperature': 0.4, 'top_p': 0.6, 'stop_sequences': ['END']},
        ),
        ModelDescriptor(
            id='R', provider_id='X', name='Reasoner',
            reasoning=ReasoningCapability(supported=True, enabled_by_default=True, can_disable=True),
        ),
    ]
    defaults = {
        'temperature': 0.1,
        'top_p': 0.9,
        'max_tokens': 100,
        'presence_penalty': 0.0,
        'stop_sequences': [],
        'reasoning': {'enabled': False, 'exclude': False},
        'thinking_extraction': {'enabled': False, 'tag': 'thinking', 'on_missing': 'auto'},
    }
    return Catalog('chat', providers, models, defaults)


class Recorder:
    """Collects requests seen by an httpx.MockTransport and replays queued responses."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        status, body = response
        return httpx.Response(status, json=body)

    def body(self, index: int) -> Dict[str, Any]:
        return json.loads(self.requests[index].content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def recorder() -> Callable[..., Recorder]:
    return lambda *responses: Recorder(list(responses))
