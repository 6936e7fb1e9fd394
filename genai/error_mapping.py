"""Maps anything a provider call can raise onto the gateway's error taxonomy."""
from __future__ import annotations

import asyncio
import socket
from typing import Any, Optional

import httpx

from core.errors import GatewayError, ProviderHTTPError
from genai.types import ErrorEnvelope

UNKNOWN_MESSAGE = "Unknown error occurred"

NETWORK_ERRNO_NAMES = ('ENOTFOUND', 'ECONNREFUSED', 'ETIMEDOUT', 'ECONNRESET', 'EAI_AGAIN')

_STATUS_MAP = {
    401: ('INVALID_API_KEY', 'authentication_error'),
    402: ('INSUFFICIENT_CREDITS', 'rate_limit_error'),
    404: ('MODEL_NOT_FOUND', 'invalid_request_error'),
    429: ('RATE_LIMIT_EXCEEDED', 'rate_limit_error'),
}


def extract_status(error: Any) -> Optional[int]:
    """HTTP-like status from ``status``, ``status_code`` or an httpx response."""
    for attr in ('status', 'status_code'):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(error, 'response', None)
    if response is not None:
        value = getattr(response, 'status_code', None)
        if isinstance(value, int):
            return value
    return None


def is_network_error(error: BaseException) -> bool:
    if isinstance(error, (httpx.TransportError, ConnectionError, socket.gaierror, socket.timeout,
                          asyncio.TimeoutError, TimeoutError)):
        return True
    code = getattr(error, 'code', None)
    if isinstance(code, str) and code.upper() in NETWORK_ERRNO_NAMES:
        return True
    text = str(error)
    return any(name in text for name in NETWORK_ERRNO_NAMES)


def map_status(status: int) -> Optional[tuple]:
    if status in _STATUS_MAP:
        return _STATUS_MAP[status]
    if 400 <= status < 500:
        return 'PROVIDER_ERROR', 'invalid_request_error'
    if status >= 500:
        return 'PROVIDER_ERROR', 'server_error'
    return None


def _message_of(error: BaseException) -> str:
    return str(error) or type(error).__name__


def map_error(error: Any) -> ErrorEnvelope:
    """
    Always returns a complete envelope and never raises.

    Order: HTTP-like status first, then typed gateway errors (timeouts,
    cancellation, job failures), then transport signatures, then generic
    exceptions. Non-exception values map to a fixed message.
    """
    try:
        if isinstance(error, BaseException):
            status = extract_status(error)
            if status is not None:
                mapped = map_status(status)
                if mapped is not None:
                    return ErrorEnvelope(
                        code=mapped[0], type=mapped[1], message=_message_of(error),
                        status=status, provider_error=_provider_detail(error),
                    )

            if isinstance(error, GatewayError):
                return ErrorEnvelope(
                    code=error.code, type=error.type, message=error.message,
                    status=error.status, provider_error=error.payload,
                )

            if is_network_error(error):
                return ErrorEnvelope(
                    code='NETWORK_ERROR', type='connection_error', message=_message_of(error),
                    provider_error=_provider_detail(error),
                )

            if isinstance(error, Exception):
                return ErrorEnvelope(code='UNKNOWN_ERROR', type='client_error', message=_message_of(error))

        return ErrorEnvelope(code='UNKNOWN_ERROR', type='server_error', message=UNKNOWN_MESSAGE)
    except Exception:
        return ErrorEnvelope(code='UNKNOWN_ERROR', type='server_error', message=UNKNOWN_MESSAGE)


def _provider_detail(error: BaseException) -> Any:
    if isinstance(error, ProviderHTTPError):
        return error.payload
    response = getattr(error, 'response', None)
    if isinstance(response, httpx.Response):
        try:
            return response.json()
        except ValueError:
            return response.text
    return None
