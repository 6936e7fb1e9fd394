"""
Request and settings validation.

Every function here is pure: it returns ``None`` when the input is valid and
an :class:`ErrorEnvelope` of type ``validation_error`` otherwise. Nothing is
raised and nothing touches the network.
"""
from __future__ import annotations

import math
from typing import Any, Mapping, Optional

from genai.types import ChatRequest, ErrorEnvelope, ImageRequest, Message, MessageRole, ModelDescriptor

VALID_ROLES = {role.value for role in MessageRole}
REASONING_EFFORTS = ('high', 'medium', 'low')
ON_MISSING_POLICIES = ('auto', 'error', 'warn', 'ignore')

MAX_CHAT_TOKENS = 100000
MAX_STOP_SEQUENCES = 4
MIN_IMAGE_COUNT, MAX_IMAGE_COUNT = 1, 10
MIN_DIMENSION, MAX_DIMENSION = 64, 2048
MIN_STEPS, MAX_STEPS = 1, 150
MIN_CFG_SCALE, MAX_CFG_SCALE = 0.1, 30


def validation_error(message: str, code: str = 'INVALID_SETTINGS', param: Optional[str] = None) -> ErrorEnvelope:
    return ErrorEnvelope(code=code, type='validation_error', message=message, param=param)


def is_number(value: Any) -> bool:
    """Real, finite numbers only; booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_integer(value: Any) -> bool:
    if not is_number(value):
        return False
    return isinstance(value, int) or float(value).is_integer()


def _in_range(value: Any, low: float, high: float) -> bool:
    return is_number(value) and low <= value <= high


def _int_in_range(value: Any, low: int, high: int) -> bool:
    return is_integer(value) and low <= value <= high


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------

def _check_target(request: Any) -> Optional[ErrorEnvelope]:
    preset_id = request.preset_id
    if preset_id is not None:
        if not isinstance(preset_id, str) or not preset_id.strip():
            return validation_error("presetId must be a non-empty string", 'INVALID_REQUEST', 'presetId')
        return None
    if not isinstance(request.provider_id, str) or not request.provider_id.strip():
        return validation_error("providerId is required", 'MISSING_PROVIDER_ID', 'providerId')
    if not isinstance(request.model_id, str) or not request.model_id.strip():
        return validation_error("modelId is required", 'MISSING_MODEL_ID', 'modelId')
    return None


def validate_chat_request(request: ChatRequest) -> Optional[ErrorEnvelope]:
    error = _check_target(request)
    if error:
        return error

    messages = request.messages
    if not isinstance(messages, list) or not messages:
        return validation_error("Request must contain at least one message", 'INVALID_REQUEST', 'messages')

    for index, message in enumerate(messages):
        if isinstance(message, Message):
            role, content = message.role, message.content
        elif isinstance(message, Mapping):
            role, content = message.get('role'), message.get('content')
        else:
            return validation_error(
                f"Message at index {index} must be an object with role and content",
                'INVALID_MESSAGE', f'messages[{index}]',
            )
        if isinstance(role, MessageRole):
            role = role.value
        if not role or not isinstance(content, str) or not content.strip():
            return validation_error(
                f"Message at index {index} must have both role and content",
                'INVALID_MESSAGE', f'messages[{index}]',
            )
        if role not in VALID_ROLES:
            return validation_error(
                f"Invalid message role '{role}' at index {index}. Must be 'user', 'assistant', or 'system'",
                'INVALID_MESSAGE_ROLE', f'messages[{index}].role',
            )
    return None


def validate_image_request(request: ImageRequest) -> Optional[ErrorEnvelope]:
    error = _check_target(request)
    if error:
        return error
    if request.prompt is None:
        return validation_error("Prompt is required", 'MISSING_PROMPT', 'prompt')
    if not isinstance(request.prompt, str) or not request.prompt.strip():
        return validation_error("Prompt must be a non-empty string", 'EMPTY_PROMPT', 'prompt')
    if request.count is not None:
        return validate_count(request.count)
    return None


def validate_count(count: Any) -> Optional[ErrorEnvelope]:
    if not _int_in_range(count, MIN_IMAGE_COUNT, MAX_IMAGE_COUNT):
        return validation_error(
            f"Count must be an integer between {MIN_IMAGE_COUNT} and {MAX_IMAGE_COUNT}",
            'INVALID_COUNT', 'count',
        )
    return None


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

def validate_chat_settings(settings: Optional[Mapping[str, Any]]) -> Optional[ErrorEnvelope]:
    """Checks ranges for every chat setting that is present."""
    if not settings:
        return None
    if not isinstance(settings, Mapping):
        return validation_error("Settings must be an object", param='settings')

    temperature = settings.get('temperature')
    if temperature is not None and not _in_range(temperature, 0, 2):
        return validation_error("temperature must be a number between 0 and 2", param='settings.temperature')

    max_tokens = settings.get('max_tokens')
    if max_tokens is not None and not _int_in_range(max_tokens, 1, MAX_CHAT_TOKENS):
        return validation_error(
            f"max_tokens must be an integer between 1 and {MAX_CHAT_TOKENS}", param='settings.max_tokens'
        )

    top_p = settings.get('top_p')
    if top_p is not None and not _in_range(top_p, 0, 1):
        return validation_error("top_p must be a number between 0 and 1", param='settings.top_p')

    for key in ('frequency_penalty', 'presence_penalty'):
        value = settings.get(key)
        if value is not None and not _in_range(value, -2, 2):
            return validation_error(f"{key} must be a number between -2 and 2", param=f'settings.{key}')

    stop = settings.get('stop_sequences')
    if stop is not None:
        if not isinstance(stop, list):
            return validation_error("stop_sequences must be a list", param='settings.stop_sequences')
        if len(stop) > MAX_STOP_SEQUENCES:
            return validation_error(
                f"stop_sequences can contain at most {MAX_STOP_SEQUENCES} sequences",
                param='settings.stop_sequences',
            )
        if any(not isinstance(s, str) or not s for s in stop):
            return validation_error(
                "stop_sequences must contain non-empty strings", param='settings.stop_sequences'
            )

    error = _validate_reasoning(settings.get('reasoning'))
    if error:
        return error
    return _validate_thinking_extraction(settings.get('thinking_extraction'))


def _validate_reasoning(reasoning: Any) -> Optional[ErrorEnvelope]:
    if reasoning is None:
        return None
    if not isinstance(reasoning, Mapping):
        return validation_error("reasoning must be an object", param='settings.reasoning')
    enabled = reasoning.get('enabled')
    if enabled is not None and not isinstance(enabled, bool):
        return validation_error("reasoning.enabled must be a boolean", param='settings.reasoning.enabled')
    effort = reasoning.get('effort')
    if effort is not None and effort not in REASONING_EFFORTS:
        return validation_error(
            "reasoning.effort must be 'high', 'medium', or 'low'", param='settings.reasoning.effort'
        )
    budget = reasoning.get('max_tokens')
    if budget is not None and not (is_integer(budget) and budget >= 0):
        return validation_error(
            "reasoning.max_tokens must be a non-negative integer", param='settings.reasoning.max_tokens'
        )
    exclude = reasoning.get('exclude')
    if exclude is not None and not isinstance(exclude, bool):
        return validation_error("reasoning.exclude must be a boolean", param='settings.reasoning.exclude')
    return None


def _validate_thinking_extraction(policy: Any) -> Optional[ErrorEnvelope]:
    if policy is None:
        return None
    if not isinstance(policy, Mapping):
        return validation_error("thinking_extraction must be an object", param='settings.thinking_extraction')
    tag = policy.get('tag')
    if tag is not None and (not isinstance(tag, str) or not tag.strip()):
        return validation_error(
            "thinking_extraction.tag must be a non-empty string", param='settings.thinking_extraction.tag'
        )
    on_missing = policy.get('on_missing')
    if on_missing is not None and on_missing not in ON_MISSING_POLICIES:
        return validation_error(
            f"thinking_extraction.on_missing must be one of {', '.join(ON_MISSING_POLICIES)}",
            param='settings.thinking_extraction.on_missing',
        )
    return None


def validate_image_settings(settings: Optional[Mapping[str, Any]]) -> Optional[ErrorEnvelope]:
    if not settings:
        return None
    if not isinstance(settings, Mapping):
        return validation_error("Settings must be an object", param='settings')

    for key, code in (('width', 'INVALID_WIDTH'), ('height', 'INVALID_HEIGHT')):
        value = settings.get(key)
        if value is not None and not _int_in_range(value, MIN_DIMENSION, MAX_DIMENSION):
            return validation_error(
                f"{key.capitalize()} must be an integer between {MIN_DIMENSION} and {MAX_DIMENSION}",
                code, f'settings.{key}',
            )

    n = settings.get('n')
    if n is not None and validate_count(n):
        return validation_error(
            f"n must be an integer between {MIN_IMAGE_COUNT} and {MAX_IMAGE_COUNT}", 'INVALID_COUNT', 'settings.n'
        )

    diffusion = settings.get('diffusion')
    if diffusion is None:
        return None
    if not isinstance(diffusion, Mapping):
        return validation_error("diffusion must be an object", param='settings.diffusion')

    steps = diffusion.get('steps')
    if steps is not None and not _int_in_range(steps, MIN_STEPS, MAX_STEPS):
        return validation_error(
            f"Diffusion steps must be between {MIN_STEPS} and {MAX_STEPS}",
            'INVALID_DIFFUSION_STEPS', 'settings.diffusion.steps',
        )
    cfg_scale = diffusion.get('cfg_scale')
    if cfg_scale is not None and not _in_range(cfg_scale, MIN_CFG_SCALE, MAX_CFG_SCALE):
        return validation_error(
            f"Diffusion cfg_scale must be between {MIN_CFG_SCALE} and {MAX_CFG_SCALE}",
            'INVALID_DIFFUSION_CFG_SCALE', 'settings.diffusion.cfg_scale',
        )
    for key, code in (('width', 'INVALID_WIDTH'), ('height', 'INVALID_HEIGHT')):
        value = diffusion.get(key)
        if value is not None and not _int_in_range(value, MIN_DIMENSION, MAX_DIMENSION):
            return validation_error(
                f"Diffusion {key} must be an integer between {MIN_DIMENSION} and {MAX_DIMENSION}",
                code, f'settings.diffusion.{key}',
            )
    seed = diffusion.get('seed')
    if seed is not None and not is_integer(seed):
        return validation_error("Diffusion seed must be an integer", param='settings.diffusion.seed')
    negative = diffusion.get('negative_prompt')
    if negative is not None and not isinstance(negative, str):
        return validation_error(
            "Diffusion negative_prompt must be a string", param='settings.diffusion.negative_prompt'
        )
    return None


def validate_reasoning_support(
    explicit_settings: Optional[Mapping[str, Any]],
    model: ModelDescriptor,
) -> Optional[ErrorEnvelope]:
    """
    Rejects an explicit request for reasoning on a model that has none.

    Only the caller- or preset-supplied settings count as explicit; inherited
    defaults never trigger this and are stripped during settings resolution.
    """
    if model.reasoning.supported or not explicit_settings:
        return None
    reasoning = explicit_settings.get('reasoning')
    if not isinstance(reasoning, Mapping):
        return None
    budget = reasoning.get('max_tokens')
    opted_in = (
        reasoning.get('enabled') is True
        or reasoning.get('effort') is not None
        or (is_number(budget) and budget > 0)
    )
    if not opted_in:
        return None
    return ErrorEnvelope(
        code='reasoning_not_supported',
        type='validation_error',
        message=f"Model {model.id} does not support reasoning",
        param='settings.reasoning',
    )
