"""Tests for request and settings validation."""
import math

import pytest

from genai.types import ChatRequest, ImageRequest, Message, MessageRole, ModelDescriptor, ReasoningCapability
from genai.validation import (
    is_integer,
    is_number,
    validate_chat_request,
    validate_chat_settings,
    validate_count,
    validate_image_request,
    validate_image_settings,
    validate_reasoning_support,
)


def chat(messages=None, **kwargs):
    kwargs.setdefault('provider_id', 'openai')
    kwargs.setdefault('model_id', 'gpt-4.1')
    if messages is None:
        messages = [{'role': 'user', 'content': 'hi'}]
    return ChatRequest(messages=messages, **kwargs)


class TestNumbers:

    @pytest.mark.parametrize("value", [0, 1.5, -3])
    def test_numbers(self, value):
        assert is_number(value)

    @pytest.mark.parametrize("value", [True, None, '1', math.nan, math.inf])
    def test_not_numbers(self, value):
        assert not is_number(value)

    def test_integral_float_is_integer(self):
        assert is_integer(2.0)
        assert not is_integer(2.5)


class TestChatRequest:

    def test_valid_request(self):
        assert validate_chat_request(chat()) is None

    def test_message_objects_are_accepted(self):
        request = chat([Message(role=MessageRole.SYSTEM, content='be brief'), Message(role='user', content='hi')])
        assert validate_chat_request(request) is None

    def test_preset_replaces_provider_and_model(self):
        request = ChatRequest(messages=[{'role': 'user', 'content': 'hi'}], preset_id='p1')
        assert validate_chat_request(request) is None

    def test_blank_preset(self):
        request = ChatRequest(messages=[{'role': 'user', 'content': 'hi'}], preset_id='  ')
        assert validate_chat_request(request).code == 'INVALID_REQUEST'

    def test_missing_provider(self):
        assert validate_chat_request(chat(provider_id=None)).code == 'MISSING_PROVIDER_ID'

    def test_missing_model(self):
        assert validate_chat_request(chat(model_id='')).code == 'MISSING_MODEL_ID'

    def test_empty_messages(self):
        error = validate_chat_request(chat([]))
        assert error.code == 'INVALID_REQUEST'
        assert error.type == 'validation_error'

    @pytest.mark.parametrize("message", [
        {'role': 'user'},
        {'role': 'user', 'content': '   '},
        {'content': 'hi'},
        'hi',
    ])
    def test_malformed_message(self, message):
        error = validate_chat_request(chat([{'role': 'user', 'content': 'ok'}, message]))
        assert error.code == 'INVALID_MESSAGE'
        assert error.param == 'messages[1]'

    def test_unknown_role(self):
        error = validate_chat_request(chat([{'role': 'tool', 'content': 'x'}]))
        assert error.code == 'INVALID_MESSAGE_ROLE'
        assert "'tool'" in error.message


class TestImageRequest:

    def image(self, **kwargs):
        kwargs.setdefault('prompt', 'a lighthouse')
        return ImageRequest(provider_id='openai-images', model_id='dall-e-3', **kwargs)

    @pytest.mark.parametrize("count", [0, -1, 2.5, 11, '3', True])
    def test_invalid_count(self, count):
        error = validate_image_request(self.image(count=count))
        assert error.code == 'INVALID_COUNT'
        assert error.type == 'validation_error'

    @pytest.mark.parametrize("count", [1, 10, None])
    def test_valid_count(self, count):
        assert validate_image_request(self.image(count=count)) is None

    def test_missing_prompt(self):
        assert validate_image_request(self.image(prompt=None)).code == 'MISSING_PROMPT'

    def test_empty_prompt(self):
        assert validate_image_request(self.image(prompt='  ')).code == 'EMPTY_PROMPT'

    def test_count_helper(self):
        assert validate_count(5) is None
        assert validate_count(0).param == 'count'


class TestChatSettings:

    def test_empty_settings(self):
        assert validate_chat_settings(None) is None
        assert validate_chat_settings({}) is None

    def test_valid_settings(self):
        settings = {
            'temperature': 0.7, 'max_tokens': 512, 'top_p': 1, 'presence_penalty': -1.5,
            'stop_sequences': ['END'],
            'reasoning': {'enabled': True, 'effort': 'medium', 'max_tokens': 0, 'exclude': False},
            'thinking_extraction': {'enabled': True, 'tag': 'think', 'on_missing': 'warn'},
        }
        assert validate_chat_settings(settings) is None

    def test_temperature_message(self):
        error = validate_chat_settings({'temperature': 3})
        assert error.message == "temperature must be a number between 0 and 2"
        assert error.param == 'settings.temperature'

    @pytest.mark.parametrize("settings,param", [
        ({'temperature': -0.1}, 'settings.temperature'),
        ({'temperature': 'hot'}, 'settings.temperature'),
        ({'max_tokens': 0}, 'settings.max_tokens'),
        ({'max_tokens': 100001}, 'settings.max_tokens'),
        ({'max_tokens': 10.5}, 'settings.max_tokens'),
        ({'top_p': 1.01}, 'settings.top_p'),
        ({'frequency_penalty': 2.5}, 'settings.frequency_penalty'),
        ({'stop_sequences': 'END'}, 'settings.stop_sequences'),
        ({'stop_sequences': ['a', 'b', 'c', 'd', 'e']}, 'settings.stop_sequences'),
        ({'stop_sequences': ['']}, 'settings.stop_sequences'),
        ({'reasoning': {'enabled': 'yes'}}, 'settings.reasoning.enabled'),
        ({'reasoning': {'effort': 'extreme'}}, 'settings.reasoning.effort'),
        ({'reasoning': {'max_tokens': -1}}, 'settings.reasoning.max_tokens'),
        ({'reasoning': {'exclude': 1}}, 'settings.reasoning.exclude'),
        ({'thinking_extraction': {'tag': ''}}, 'settings.thinking_extraction.tag'),
        ({'thinking_extraction': {'on_missing': 'explode'}}, 'settings.thinking_extraction.on_missing'),
    ])
    def test_out_of_range(self, settings, param):
        error = validate_chat_settings(settings)
        assert error is not None
        assert error.code == 'INVALID_SETTINGS'
        assert error.param == param


class TestImageSettings:

    def test_valid(self):
        settings = {'width': 512, 'height': 768, 'n': 2,
                    'diffusion': {'steps': 30, 'cfg_scale': 7, 'seed': 42, 'negative_prompt': 'blur'}}
        assert validate_image_settings(settings) is None

    def test_zero_steps(self):
        error = validate_image_settings({'diffusion': {'steps': 0}})
        assert error.code == 'INVALID_DIFFUSION_STEPS'
        assert 'steps' in error.message
        assert error.param == 'settings.diffusion.steps'

    @pytest.mark.parametrize("settings,code", [
        ({'width': 32}, 'INVALID_WIDTH'),
        ({'height': 4096}, 'INVALID_HEIGHT'),
        ({'n': 11}, 'INVALID_COUNT'),
        ({'diffusion': {'steps': 151}}, 'INVALID_DIFFUSION_STEPS'),
        ({'diffusion': {'cfg_scale': 0}}, 'INVALID_DIFFUSION_CFG_SCALE'),
        ({'diffusion': {'cfg_scale': 31}}, 'INVALID_DIFFUSION_CFG_SCALE'),
        ({'diffusion': {'width': 10}}, 'INVALID_WIDTH'),
        ({'diffusion': {'seed': 1.5}}, 'INVALID_SETTINGS'),
        ({'diffusion': {'negative_prompt': 3}}, 'INVALID_SETTINGS'),
    ])
    def test_out_of_range(self, settings, code):
        assert validate_image_settings(settings).code == code


class TestReasoningSupport:

    plain = ModelDescriptor(id='plain', provider_id='X')
    thinker = ModelDescriptor(id='thinker', provider_id='X', reasoning=ReasoningCapability(supported=True))

    @pytest.mark.parametrize("reasoning", [
        {'enabled': True},
        {'effort': 'high'},
        {'max_tokens': 2048},
    ])
    def test_explicit_opt_in_is_rejected(self, reasoning):
        error = validate_reasoning_support({'reasoning': reasoning}, self.plain)
        assert error.code == 'reasoning_not_supported'
        assert error.type == 'validation_error'

    @pytest.mark.parametrize("settings", [
        None,
        {},
        {'reasoning': {'enabled': False}},
        {'reasoning': {'max_tokens': 0}},
        {'temperature': 0.5},
    ])
    def test_no_opt_in_passes(self, settings):
        assert validate_reasoning_support(settings, self.plain) is None

    def test_supported_model_passes(self):
        assert validate_reasoning_support({'reasoning': {'enabled': True}}, self.thinker) is None
