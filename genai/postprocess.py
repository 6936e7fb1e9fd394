"""Thinking extraction for chat completions."""
from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional, Tuple

from genai.types import ChatCompletion, ErrorEnvelope, ModelDescriptor, ResolvedSettings

log = logging.getLogger(__name__)

DEFAULT_TAG = 'thinking'
REASONING_SEPARATOR = '\n\n#### Additional Reasoning\n\n'


def extract_initial_tagged_content(text: str, tag: str = DEFAULT_TAG) -> Tuple[Optional[str], str]:
    """
    Splits a leading ``<tag>...</tag>`` block off ``text``.

    Only a block at the very start (leading whitespace allowed) counts. Returns
    ``(extracted, remainder)`` with both stripped, or ``(None, text)`` when the
    text does not open with a closed block.
    """
    pattern = re.compile(
        r'^\s*<' + re.escape(tag) + r'>(.*?)</' + re.escape(tag) + r'>',
        re.DOTALL,
    )
    match = pattern.match(text)
    if not match:
        return None, text
    return match.group(1).strip(), text[match.end():].strip()


def is_native_reasoning_active(model: ModelDescriptor, settings: Mapping[str, Any]) -> bool:
    capability = model.reasoning
    if not capability.supported:
        return False
    reasoning = settings.get('reasoning') or {}
    enabled = reasoning.get('enabled')
    return (
        enabled is True
        or (capability.enabled_by_default and enabled is not False)
        or not capability.can_disable
    )


def effective_on_missing(policy: str, model: ModelDescriptor, settings: Mapping[str, Any]) -> str:
    """'auto' means the tag is optional only when the model reasons natively."""
    if policy != 'auto':
        return policy
    return 'ignore' if is_native_reasoning_active(model, settings) else 'error'


def apply_thinking_extraction(
    completion: ChatCompletion,
    settings: ResolvedSettings,
    model: ModelDescriptor,
    logger: Optional[logging.Logger] = None,
) -> Tuple[ChatCompletion, Optional[ErrorEnvelope]]:
    """
    Moves a leading thinking block from the first choice into its reasoning.

    Returns the (possibly updated) completion and, when the block is missing
    and the policy resolves to ``error``, the envelope to fail the request with.
    """
    logger = logger or log
    policy = settings.get('thinking_extraction') or {}
    if not policy.get('enabled') or not completion.choices:
        return completion, None

    tag = policy.get('tag') or DEFAULT_TAG
    message = completion.choices[0].message
    extracted, remainder = extract_initial_tagged_content(message.content or '', tag)

    if extracted is not None:
        reasoning = f"{message.reasoning}{REASONING_SEPARATOR}{extracted}" if message.reasoning else extracted
        updated_message = message.model_copy(update={'content': remainder, 'reasoning': reasoning})
        choices = list(completion.choices)
        choices[0] = choices[0].model_copy(update={'message': updated_message})
        return completion.model_copy(update={'choices': choices}), None

    outcome = effective_on_missing(policy.get('on_missing') or 'auto', model, settings)
    if outcome == 'error':
        return completion, ErrorEnvelope(
            code='MISSING_EXPECTED_TAG',
            type='validation_error',
            message=(
                f"The model ({model.id}) response was expected to start with a <{tag}> tag but it was not found. "
                f"This is enforced because the model does not have native reasoning active. "
                f"Either ensure your prompt instructs the model to use <{tag}> tags, "
                f"or enable native reasoning if supported."
            ),
        )
    if outcome == 'warn':
        logger.warning(f"Expected <{tag}> tag was not found in the response from model {model.id}")
    return completion, None
