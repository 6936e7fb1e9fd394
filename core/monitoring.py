import logging

import prometheus_client as prom
from prometheus_client import start_http_server

logger = logging.getLogger(__name__)

# Module-level so that several service instances share one series.
REQUESTS = prom.Counter(
    'genai_requests_total',
    'Generation requests by outcome',
    ['kind', 'provider', 'outcome'],
)
ERRORS = prom.Counter(
    'genai_errors_total',
    'Failed generation requests by error code',
    ['kind', 'code'],
)
POLLS = prom.Counter(
    'genai_job_polls_total',
    'Status queries issued for job-based providers',
    ['provider'],
)


def record_success(kind: str, provider: str) -> None:
    REQUESTS.labels(kind=kind, provider=provider or 'unknown', outcome='success').inc()


def record_failure(kind: str, provider: str, code: str) -> None:
    REQUESTS.labels(kind=kind, provider=provider or 'unknown', outcome='error').inc()
    ERRORS.labels(kind=kind, code=code).inc()


def record_poll(provider: str) -> None:
    POLLS.labels(provider=provider).inc()


def start_metrics_server(port: int = 9090) -> None:
    """Exposes /metrics. Bound to 127.0.0.1 so the port is not exposed externally."""
    start_http_server(port, addr='127.0.0.1')
    logger.info(f"Metrics server listening on 127.0.0.1:{port}")
