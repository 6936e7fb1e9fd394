import json
import logging
import os
import sys

import pytest
from prometheus_client import REGISTRY

from core import monitoring
from core.env import env_key_for, from_environment, load_env_file
from core.errors import ConfigError
from core.logging import LEVELS, JsonFormatter, get_logger, resolve_level, setup_logging
from genai.catalog import Catalog
from genai.service import create_service
from genai.types import ChatRequest, ModelDescriptor, ProviderDescriptor

# --- Credential lookup ---

def test_env_key_names():
    assert env_key_for("openai") == "OPENAI_API_KEY"
    assert env_key_for("openai-images") == "OPENAI_IMAGES_API_KEY"


def test_from_environment_reads_provider_key(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-from-env")
    assert from_environment("anthropic") == "sk-ant-from-env"


def test_from_environment_falls_back_to_base_provider(monkeypatch):
    """openai-images shares the OpenAI account unless it has its own key."""
    monkeypatch.delenv("OPENAI_IMAGES_API_KEY", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-shared")
    assert from_environment("openai-images") == "sk-shared"
    monkeypatch.setenv("OPENAI_IMAGES_API_KEY", "sk-images")
    assert from_environment("openai-images") == "sk-images"


def test_from_environment_missing(monkeypatch):
    monkeypatch.delenv("MISTRAL_API_KEY", raising=False)
    assert from_environment("mistral") is None


def test_keyless_providers():
    assert from_environment("llamacpp") == "not-needed"
    assert from_environment("electron-diffusion") == "not-needed"


def test_dotenv_is_loaded_on_first_lookup(tmp_path, monkeypatch):
    """The .env file is read by the first lookup, not at import, and only once."""
    (tmp_path / ".env").write_text("ACME_API_KEY=sk-acme-from-file\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ACME_API_KEY", raising=False)
    load_env_file.cache_clear()
    try:
        assert "ACME_API_KEY" not in os.environ
        assert from_environment("acme") == "sk-acme-from-file"

        os.environ.pop("ACME_API_KEY")
        assert from_environment("acme") is None
        assert load_env_file.cache_info().misses == 1
    finally:
        os.environ.pop("ACME_API_KEY", None)
        load_env_file.cache_clear()


# --- Logging ---

@pytest.mark.parametrize("name,level", [
    ("silent", LEVELS["silent"]),
    ("error", logging.ERROR),
    ("warn", logging.WARNING),
    ("INFO", logging.INFO),
    ("debug", logging.DEBUG),
    ("nonsense", logging.WARNING),
])
def test_resolve_level(name, level):
    assert resolve_level(name) == level


def test_resolve_level_from_environment(monkeypatch):
    monkeypatch.setenv("GENAI_LOG_LEVEL", "debug")
    assert resolve_level() == logging.DEBUG
    monkeypatch.delenv("GENAI_LOG_LEVEL")
    assert resolve_level() == logging.WARNING


def test_silent_suppresses_everything():
    logger = get_logger("test.silent", "silent")
    assert not logger.isEnabledFor(logging.CRITICAL)


def test_get_logger_is_namespaced():
    assert get_logger("service").name == "genai.service"
    assert get_logger("genai.resolver").name == "genai.resolver"


def test_setup_logging_writes_json_file(tmp_path):
    log_file = tmp_path / "logs" / "genai.log"
    root = setup_logging("info", log_file)
    try:
        get_logger("test.file").info("hello file")
        for handler in root.handlers:
            handler.flush()
        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        record = json.loads(line)
        assert record["message"] == "hello file"
        assert record["level"] == "INFO"
        assert record["name"] == "genai.test.file"
    finally:
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)


def test_json_formatter_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord("genai", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
    payload = json.loads(JsonFormatter().format(record))
    assert "ValueError: boom" in payload["exc_info"]


# --- Metrics ---

def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_failure_metrics_are_counted():
    before = sample("genai_errors_total", kind="chat", code="TEST_CODE")
    monitoring.record_failure("chat", "openai", "TEST_CODE")
    assert sample("genai_errors_total", kind="chat", code="TEST_CODE") == before + 1


@pytest.mark.asyncio
async def test_service_records_outcomes(make_service):
    before = sample("genai_requests_total", kind="chat", provider="mock", outcome="success")
    await make_service().send_message(
        ChatRequest(messages=[{"role": "user", "content": "hi"}], provider_id="mock", model_id="m"))
    assert sample("genai_requests_total", kind="chat", provider="mock", outcome="success") == before + 1


def test_create_service_starts_metrics_server(monkeypatch, gateway_settings):
    """METRICS_PORT exposes /metrics on localhost only."""
    started = []
    monkeypatch.setattr(monitoring, "start_http_server", lambda port, addr: started.append((port, addr)))
    root = logging.getLogger("genai")
    try:
        create_service(settings=gateway_settings.model_copy(update={"METRICS_PORT": 9464}))
        assert started == [(9464, "127.0.0.1")]

        started.clear()
        create_service(settings=gateway_settings)
        assert started == []
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        root.propagate = True


# --- Catalog construction ---

def test_catalog_rejects_orphan_models():
    with pytest.raises(ConfigError):
        Catalog("chat", [ProviderDescriptor(id="a", name="A")],
                [ModelDescriptor(id="m", provider_id="b")], {})


def test_catalog_defaults_are_copies():
    catalog = Catalog("chat", [], [], {"stop_sequences": []})
    catalog.default_settings()["stop_sequences"].append("x")
    assert catalog.default_settings() == {"stop_sequences": []}
