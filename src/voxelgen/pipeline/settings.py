"""Validating builder for :class:`BiomeGenerationSettings`."""

from __future__ import annotations

from typing import Iterable, List, Optional

from .models import BiomeGenerationSettings, GroundCoverLayer, IllegalStateError
from .populators.base import GenerationPopulator, Populator

DEFAULT_MIN_HEIGHT = 0.1
DEFAULT_MAX_HEIGHT = 0.2


class BiomeGenerationSettingsBuilder:
    """Collects biome settings; list fields must be set explicitly before ``build``.

    An unset list (``None``) is distinct from an empty one so that a biome
    that deliberately has no populators is not confused with one whose
    author forgot to configure them.
    """

    def __init__(self) -> None:
        self._min_height = DEFAULT_MIN_HEIGHT
        self._max_height = DEFAULT_MAX_HEIGHT
        self._ground_cover_layers: Optional[List[GroundCoverLayer]] = None
        self._generation_populators: Optional[List[GenerationPopulator]] = None
        self._populators: Optional[List[Populator]] = None

    def min_height(self, value: float) -> "BiomeGenerationSettingsBuilder":
        self._min_height = float(value)
        return self

    def max_height(self, value: float) -> "BiomeGenerationSettingsBuilder":
        self._max_height = float(value)
        return self

    def ground_cover_layers(self, layers: Iterable[GroundCoverLayer]) -> "BiomeGenerationSettingsBuilder":
        self._ground_cover_layers = list(layers)
        return self

    def generation_populators(self, populators: Iterable[GenerationPopulator]) -> "BiomeGenerationSettingsBuilder":
        self._generation_populators = list(populators)
        return self

    def populators(self, populators: Iterable[Populator]) -> "BiomeGenerationSettingsBuilder":
        self._populators = list(populators)
        return self

    def reset(self, existing: Optional[BiomeGenerationSettings] = None) -> "BiomeGenerationSettingsBuilder":
        """Restore defaults, or copy every field from ``existing`` when given."""
        if existing is None:
            self._min_height = DEFAULT_MIN_HEIGHT
            self._max_height = DEFAULT_MAX_HEIGHT
            self._ground_cover_layers = None
            self._generation_populators = None
            self._populators = None
            return self
        self._min_height = existing.min_height
        self._max_height = existing.max_height
        self._ground_cover_layers = list(existing.ground_cover_layers)
        self._generation_populators = list(existing.generation_populators)
        self._populators = list(existing.populators)
        return self

    def build(self) -> BiomeGenerationSettings:
        if self._max_height < self._min_height:
            raise ValueError(
                f"max height {self._max_height} cannot be less than min height {self._min_height}"
            )
        if self._ground_cover_layers is None:
            raise IllegalStateError("ground cover layers were never set")
        if self._generation_populators is None:
            raise IllegalStateError("generation populators were never set")
        if self._populators is None:
            raise IllegalStateError("populators were never set")
        return BiomeGenerationSettings(
            min_height=self._min_height,
            max_height=self._max_height,
            ground_cover_layers=list(self._ground_cover_layers),
            generation_populators=list(self._generation_populators),
            populators=list(self._populators),
        )


__all__ = ["BiomeGenerationSettingsBuilder", "DEFAULT_MIN_HEIGHT", "DEFAULT_MAX_HEIGHT"]
