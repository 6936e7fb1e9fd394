# -*- coding: utf-8 -*-
"""
Environment-based credential lookup.

The generation service never reads the environment itself; it is handed a
callable keyed by provider id. ``from_environment`` is the stock one: it loads
a .env file once and reads ``<PROVIDER>_API_KEY``.

Example:
    from core.env import from_environment
    service = GenerationService(credential_provider=from_environment)
"""
import os
from functools import lru_cache
from typing import Optional

from dotenv import find_dotenv, load_dotenv

# Local backends that accept any (or no) key.
KEYLESS_PROVIDERS = {'llamacpp', 'mock', 'electron-diffusion'}
KEYLESS_PLACEHOLDER = 'not-needed'


@lru_cache(maxsize=None)
def load_env_file() -> bool:
    """
    Loads the nearest .env file into the environment, once per process.
    The search starts from the current working directory and goes up.
    Variables already set are left alone.
    """
    return load_dotenv(find_dotenv(usecwd=True))


def _first(*keys: str, default: Optional[str] = None) -> Optional[str]:
    """
    Return the value of the first environment variable that is set and not empty.

    Args:
        *keys: A sequence of environment variable names to check.
        default: The default value to return if no variable is found.

    Returns:
        The value of the first found environment variable, or the default value.
    """
    for key in keys:
        val = os.getenv(key)
        if val:
            return val
    return default


def env_key_for(provider_id: str) -> str:
    """'openai-images' -> 'OPENAI_IMAGES_API_KEY'."""
    return provider_id.upper().replace('-', '_') + '_API_KEY'


def from_environment(provider_id: str) -> Optional[str]:
    """
    Look up the credential for a provider.

    Image providers that share an account with a chat provider fall back to
    that provider's key (``openai-images`` uses ``OPENAI_API_KEY`` when its own
    variable is unset).
    """
    if provider_id in KEYLESS_PROVIDERS:
        return KEYLESS_PLACEHOLDER
    load_env_file()
    keys = [env_key_for(provider_id)]
    base = provider_id.split('-', 1)[0]
    if base != provider_id:
        keys.append(env_key_for(base))
    return _first(*keys)
