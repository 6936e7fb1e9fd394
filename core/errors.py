from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Base exception class for the generation gateway.

    Every subclass carries the taxonomy ``code`` and ``type`` it maps to, so the
    error mapper can turn it into an envelope without guessing.
    """
    code = "UNKNOWN_ERROR"
    type = "client_error"

    def __init__(self, message: str, *, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload


class ConfigError(GatewayError):
    """Raised when static configuration (catalogs, preset files, modes) is malformed."""
    code = "CONFIG_ERROR"
    type = "server_error"


class ProviderHTTPError(GatewayError):
    """Raised when a provider answers with a non-2xx status."""
    code = "PROVIDER_ERROR"
    type = "server_error"

    def __init__(self, message: str, *, status: int, payload: Any = None, provider_code: Optional[str] = None):
        super().__init__(message, status=status, payload=payload)
        self.provider_code = provider_code


class GenerationTimeout(GatewayError):
    """Raised when a job does not reach a terminal state in time."""
    code = "TIMEOUT"
    type = "timeout_error"


class GenerationCancelled(GatewayError):
    """Raised when the caller cancels an in-flight job."""
    code = "CANCELLED"
    type = "cancelled_error"


class GenerationJobError(GatewayError):
    """Raised when a backend reports a job as failed."""
    code = "PROVIDER_ERROR"
    type = "server_error"

    def __init__(self, message: str, *, job_id: Optional[str] = None, error_code: Optional[str] = None,
                 payload: Optional[Dict[str, Any]] = None):
        super().__init__(message, payload=payload)
        self.job_id = job_id
        self.error_code = error_code


class MalformedJobError(GatewayError):
    """Raised when a backend breaks the job status protocol."""
    code = "PROVIDER_ERROR"
    type = "server_error"
