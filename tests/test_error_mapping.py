"""Tests for mapping provider failures onto error envelopes."""
import asyncio
import socket

import httpx
import pytest

from core.errors import ConfigError, GenerationJobError, GenerationTimeout, MalformedJobError, ProviderHTTPError
from genai.error_mapping import extract_status, is_network_error, map_error


class StatusError(Exception):
    def __init__(self, message, status):
        super().__init__(message)
        self.status = status


class CodedError(Exception):
    def __init__(self, message, code):
        super().__init__(message)
        self.code = code


def http_status_error(status, body=None):
    request = httpx.Request('POST', 'https://api.example.com/v1/chat')
    response = httpx.Response(status, json=body or {'error': {'message': 'nope'}}, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestStatusMapping:

    @pytest.mark.parametrize("status,code,error_type", [
        (401, 'INVALID_API_KEY', 'authentication_error'),
        (402, 'INSUFFICIENT_CREDITS', 'rate_limit_error'),
        (404, 'MODEL_NOT_FOUND', 'invalid_request_error'),
        (429, 'RATE_LIMIT_EXCEEDED', 'rate_limit_error'),
        (400, 'PROVIDER_ERROR', 'invalid_request_error'),
        (422, 'PROVIDER_ERROR', 'invalid_request_error'),
        (500, 'PROVIDER_ERROR', 'server_error'),
        (503, 'PROVIDER_ERROR', 'server_error'),
    ])
    def test_status_table(self, status, code, error_type):
        envelope = map_error(StatusError("boom", status))
        assert (envelope.code, envelope.type, envelope.status) == (code, error_type, status)
        assert envelope.message == "boom"

    def test_httpx_status_error_keeps_body(self):
        envelope = map_error(http_status_error(429, {'error': {'message': 'slow down'}}))
        assert envelope.code == 'RATE_LIMIT_EXCEEDED'
        assert envelope.provider_error == {'error': {'message': 'slow down'}}

    def test_provider_http_error(self):
        error = ProviderHTTPError("anthropic API error (401): bad key", status=401, payload={'type': 'error'})
        envelope = map_error(error)
        assert envelope.code == 'INVALID_API_KEY'
        assert envelope.provider_error == {'type': 'error'}

    def test_extract_status_variants(self):
        assert extract_status(StatusError("x", 418)) == 418
        assert extract_status(http_status_error(502)) == 502
        assert extract_status(ValueError("x")) is None


class TestGatewayErrors:

    def test_timeout(self):
        envelope = map_error(GenerationTimeout("Generation timed out after 120s"))
        assert (envelope.code, envelope.type) == ('TIMEOUT', 'timeout_error')

    def test_job_failure(self):
        envelope = map_error(GenerationJobError("CUDA out of memory", job_id='j', payload={'code': 'OOM'}))
        assert envelope.code == 'PROVIDER_ERROR'
        assert envelope.message == "CUDA out of memory"
        assert envelope.provider_error == {'code': 'OOM'}

    def test_malformed_job(self):
        assert map_error(MalformedJobError("no result available")).type == 'server_error'

    def test_config_error(self):
        assert map_error(ConfigError("bad presets")).code == 'CONFIG_ERROR'


class TestNetworkErrors:

    @pytest.mark.parametrize("error", [
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("read timed out"),
        ConnectionRefusedError(111, "Connection refused"),
        socket.gaierror(-2, "Name or service not known"),
        asyncio.TimeoutError(),
        CodedError("lookup failed", 'ENOTFOUND'),
        CodedError("reset", 'econnreset'),
        RuntimeError("getaddrinfo EAI_AGAIN api.openai.com"),
    ])
    def test_network_signatures(self, error):
        assert is_network_error(error)
        envelope = map_error(error)
        assert (envelope.code, envelope.type) == ('NETWORK_ERROR', 'connection_error')

    def test_plain_exception_is_not_network(self):
        assert not is_network_error(ValueError("bad value"))


class TestFallbacks:

    def test_generic_exception(self):
        envelope = map_error(ValueError("dall-e-3 only supports n=1"))
        assert (envelope.code, envelope.type) == ('UNKNOWN_ERROR', 'client_error')
        assert envelope.message == "dall-e-3 only supports n=1"

    def test_exception_without_message_uses_class_name(self):
        assert map_error(KeyError()).message == 'KeyError'

    @pytest.mark.parametrize("value", [None, "a string", 42, {'error': 'x'}])
    def test_non_exception_values(self, value):
        envelope = map_error(value)
        assert envelope.code == 'UNKNOWN_ERROR'
        assert envelope.type == 'server_error'
        assert envelope.message == "Unknown error occurred"

    def test_never_raises_on_hostile_errors(self):
        class Hostile(Exception):
            def __str__(self):
                raise RuntimeError("cannot render")

        envelope = map_error(Hostile())
        assert envelope.code == 'UNKNOWN_ERROR'
        assert envelope.message == "Unknown error occurred"
