"""Tests for the preset store and the built-in preset catalogs."""
import pytest

from core.errors import ConfigError
from genai.catalog import chat_catalog, default_chat_presets, default_image_presets, image_catalog
from genai.presets import PresetManager
from genai.types import ChatPreset, ImagePreset


def preset(preset_id, temperature=0.5, model_id='Y'):
    return ChatPreset(id=preset_id, display_name=preset_id, provider_id='X', model_id=model_id,
                      settings={'temperature': temperature})


class TestPresetManager:

    def test_extend_mode_merges_defaults_and_custom(self):
        manager = PresetManager([preset('a'), preset('b')], [preset('c')], mode='extend')
        assert {p.id for p in manager.get_presets()} == {'a', 'b', 'c'}

    def test_custom_overrides_default_with_same_id(self):
        manager = PresetManager([preset('a', 0.1)], [preset('a', 0.9)], mode='extend')
        assert manager.resolve_preset('a').settings['temperature'] == 0.9
        assert len(manager) == 1

    def test_replace_mode_ignores_defaults(self):
        manager = PresetManager([preset('a'), preset('b')], [preset('c')], mode='replace')
        assert [p.id for p in manager.get_presets()] == ['c']
        assert manager.resolve_preset('a') is None

    def test_duplicate_ids_last_write_wins(self):
        first = preset('dup', 0.2)
        second = preset('dup', 0.8)
        manager = PresetManager([], [first, second])
        assert manager.resolve_preset('dup') is second

    def test_register_replaces_existing(self):
        manager = PresetManager([preset('a', 0.1)])
        replacement = preset('a', 0.7)
        manager.register(replacement)
        assert manager.resolve_preset('a') is replacement

    def test_get_presets_returns_a_copy(self):
        manager = PresetManager([preset('a')])
        listing = manager.get_presets()
        listing.clear()
        assert len(manager.get_presets()) == 1

    def test_resolve_unknown_returns_none(self):
        assert PresetManager([preset('a')]).resolve_preset('missing') is None

    def test_unknown_mode_is_a_config_error(self):
        with pytest.raises(ConfigError):
            PresetManager([], [], mode='merge')


class TestBuiltinPresets:
    """The shipped YAML catalogs must point at models the catalogs know."""

    def test_chat_presets_target_known_models(self):
        catalog = chat_catalog()
        presets = default_chat_presets()
        assert presets
        for p in presets:
            assert catalog.get_model(p.provider_id, p.model_id) is not None, p.id

    def test_image_presets_target_known_models(self):
        catalog = image_catalog()
        presets = default_image_presets()
        assert presets
        for p in presets:
            provider = catalog.get_provider(p.provider_id)
            model_id = p.model_id or provider.default_model_id
            assert catalog.get_model(p.provider_id, model_id) is not None, p.id

    def test_image_presets_parse_prompt_prefix(self):
        portrait = {p.id: p for p in default_image_presets()}['diffusion-portrait']
        assert isinstance(portrait, ImagePreset)
        assert portrait.prompt_prefix.startswith('portrait photo')
