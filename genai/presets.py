"""Keyed preset store."""
from __future__ import annotations

import logging
from typing import Dict, Generic, Iterable, List, Optional, TypeVar

from core.errors import ConfigError
from genai.types import Preset

log = logging.getLogger(__name__)

T = TypeVar('T', bound=Preset)

PRESET_MODES = ('extend', 'replace')


class PresetManager(Generic[T]):
    """
    Holds named presets keyed by id.

    In ``extend`` mode the defaults are loaded first and custom presets then
    overwrite or add entries; in ``replace`` mode only the custom presets are
    kept. A later preset with an existing id always replaces the earlier one.
    """

    def __init__(
        self,
        defaults: Iterable[T] = (),
        custom: Iterable[T] = (),
        mode: str = 'extend',
        logger: Optional[logging.Logger] = None,
    ):
        if mode not in PRESET_MODES:
            raise ConfigError(f"Unknown preset mode '{mode}', expected one of {', '.join(PRESET_MODES)}")
        self.mode = mode
        self._logger = logger or log
        self._presets: Dict[str, T] = {}

        if mode == 'extend':
            self._load(defaults)
        self._load(custom)
        self._logger.debug(f"Loaded {len(self._presets)} presets (mode={mode})")

    def _load(self, presets: Iterable[T]) -> None:
        for preset in presets:
            self._presets[preset.id] = preset

    def get_presets(self) -> List[T]:
        """Returns a new list; mutating it does not affect the store."""
        return list(self._presets.values())

    def resolve_preset(self, preset_id: str) -> Optional[T]:
        return self._presets.get(preset_id)

    def register(self, preset: T) -> None:
        if preset.id in self._presets:
            self._logger.info(f"Replacing preset '{preset.id}'")
        self._presets[preset.id] = preset

    def __len__(self) -> int:
        return len(self._presets)
