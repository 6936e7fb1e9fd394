import logging
from pathlib import Path
from typing import Any, List, Optional, Type, TypeVar

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigError

# --- Base Path ---
BASE_DIR = Path(__file__).resolve().parent.parent
logger = logging.getLogger(__name__)

M = TypeVar('M', bound=BaseModel)

# --- Environment-based Settings ---

class GatewaySettings(BaseSettings):
    """
    Gateway settings loaded from environment variables (prefix ``GENAI_``).
    The .env file is loaded automatically by pydantic-settings.
    """
    model_config = SettingsConfigDict(
        env_prefix='GENAI_', env_file='.env', env_file_encoding='utf-8', extra='ignore'
    )

    # --- General & Core ---
    LOG_LEVEL: str = Field("warn", description="silent, error, warn, info or debug")
    LOG_FILE: Optional[str] = Field(None, description="Optional: rotating JSON log file.")
    PRESET_MODE: str = Field("extend", description="'extend' merges custom presets into the defaults, 'replace' drops the defaults.")
    CHAT_PRESETS_FILE: Optional[str] = Field(None, description="Optional: YAML file with custom chat presets.")
    IMAGE_PRESETS_FILE: Optional[str] = Field(None, description="Optional: YAML file with custom image presets.")

    # --- Job polling ---
    POLL_INTERVAL: float = Field(0.5, gt=0, description="Seconds between two status queries.")
    POLL_TIMEOUT: float = Field(120.0, gt=0, description="Seconds after submission before a job is abandoned.")

    # --- Provider endpoints ---
    REQUEST_TIMEOUT: float = Field(60.0, gt=0)
    OPENAI_BASE_URL: str = Field("https://api.openai.com/v1")
    ANTHROPIC_BASE_URL: str = Field("https://api.anthropic.com/v1")
    LLAMACPP_BASE_URL: str = Field("http://localhost:8080")
    DIFFUSION_BASE_URL: str = Field("http://localhost:8081")
    DIFFUSION_TIMEOUT: float = Field(120.0, gt=0)

    # --- Monitoring ---
    METRICS_PORT: Optional[int] = Field(None, description="Optional: serve Prometheus metrics on 127.0.0.1 at this port.")


# --- YAML-based Configuration ---

def load_yaml(path: Path) -> Any:
    """Reads a YAML file; a missing or unparsable file is a configuration error."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file '{path.name}' not found in {path.parent}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e


def load_presets(path: Path, model: Type[M]) -> List[M]:
    """
    Loads a preset catalog and validates each entry with the given Pydantic model.

    The file is either a bare list or a mapping with a ``presets`` key.
    """
    data = load_yaml(path)
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get('presets', [])
    if not isinstance(data, list):
        raise ConfigError(f"{path}: expected a list of presets")
    try:
        return [model.model_validate(entry) for entry in data]
    except ValidationError as e:
        raise ConfigError(f"{path}: invalid preset: {e}") from e


# --- Global Settings Instance ---
_settings_instance: Optional[GatewaySettings] = None

def get_settings() -> GatewaySettings:
    """
    Returns a singleton instance of the settings.
    Loading is deferred to the first call so tests can patch the environment first.
    """
    global _settings_instance
    if _settings_instance is None:
        try:
            _settings_instance = GatewaySettings()
        except ValidationError as e:
            logger.critical(f"Configuration validation error: {e}")
            raise ConfigError(f"Invalid gateway settings: {e}") from e
    return _settings_instance


def reset_settings() -> None:
    """Drops the cached settings (used by tests)."""
    global _settings_instance
    _settings_instance = None
