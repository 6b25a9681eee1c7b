"""The world generator: pluggable strategies, populator lists and biome settings."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Iterable, List, Optional, TypeVar, Union

from .biomes import BiomeGenerator
from .logging import NullLogger
from .models import BiomeGenerationSettings, IllegalStateError, World
from .populators.base import GenerationPopulator, Populator, PopulatorKind
from .registry import BiomeType

T = TypeVar("T")


@dataclass(frozen=True)
class OverrideConflict:
    """Returned when a strategy slot already holds an override."""

    slot: str
    owner: object

    def describe(self) -> str:
        return f"{self.slot} has already been overridden by {self.owner!r}"


class OverrideConflictError(IllegalStateError):
    def __init__(self, conflict: OverrideConflict) -> None:
        super().__init__(conflict.describe())
        self.slot = conflict.slot
        self.owner = conflict.owner


class StrategySlot(Generic[T]):
    """A strategy with a built-in default that may be overridden exactly once."""

    def __init__(self, name: str, default: T) -> None:
        self.name = name
        self._value = default
        self._owner: Optional[T] = None
        self._lock = threading.Lock()

    @property
    def value(self) -> T:
        return self._value

    @property
    def owner(self) -> Optional[T]:
        return self._owner

    @property
    def overridden(self) -> bool:
        return self._owner is not None

    def try_install(self, strategy: T) -> Optional[OverrideConflict]:
        if strategy is None:
            raise ValueError(f"{self.name} cannot be None")
        with self._lock:
            if self._owner is not None:
                return OverrideConflict(self.name, self._owner)
            self._owner = strategy
            self._value = strategy
        return None

    def install(self, strategy: T) -> None:
        conflict = self.try_install(strategy)
        if conflict is not None:
            raise OverrideConflictError(conflict)


class WorldGenerator:
    """Single source of truth for how a world's chunks are generated.

    The populator lists are plain owned lists: callers extend them in place
    and the chunk provider reads them in order. Per-biome settings are built
    lazily through each biome type's factory, at most once per biome.
    """

    def __init__(
        self,
        world: World,
        biome_generator: BiomeGenerator,
        base_generator: GenerationPopulator,
        generation_populators: Iterable[GenerationPopulator] = (),
        populators: Iterable[Populator] = (),
        logger: Optional[NullLogger] = None,
    ) -> None:
        self.world = world
        self.logger = logger or NullLogger()
        self._biome_generator: StrategySlot[BiomeGenerator] = StrategySlot("biome generator", biome_generator)
        self._base_generator: StrategySlot[GenerationPopulator] = StrategySlot("base generation populator", base_generator)
        self._generation_populators: List[GenerationPopulator] = list(generation_populators)
        self._populators: List[Populator] = list(populators)
        self._biome_settings: Dict[int, BiomeGenerationSettings] = {}
        self._settings_lock = threading.RLock()

    @property
    def biome_generator(self) -> BiomeGenerator:
        return self._biome_generator.value

    def set_biome_generator(self, generator: BiomeGenerator) -> None:
        self._install(self._biome_generator, generator)

    def try_set_biome_generator(self, generator: BiomeGenerator) -> Optional[OverrideConflict]:
        return self._biome_generator.try_install(generator)

    @property
    def base_generation_populator(self) -> GenerationPopulator:
        return self._base_generator.value

    def set_base_generation_populator(self, generator: GenerationPopulator) -> None:
        self._install(self._base_generator, generator)

    def try_set_base_generation_populator(self, generator: GenerationPopulator) -> Optional[OverrideConflict]:
        return self._base_generator.try_install(generator)

    def _install(self, slot: StrategySlot, strategy: object) -> None:
        conflict = slot.try_install(strategy)
        if conflict is not None:
            self.logger.log_event(
                {"type": "override_conflict", "slot": conflict.slot, "owner": repr(conflict.owner), "rejected": repr(strategy)}
            )
            raise OverrideConflictError(conflict)

    @property
    def generation_populators(self) -> List[GenerationPopulator]:
        return self._generation_populators

    @property
    def populators(self) -> List[Populator]:
        return self._populators

    def get_generation_populators(self, kind: Optional[PopulatorKind] = None) -> List[GenerationPopulator]:
        """The live list when ``kind`` is omitted, otherwise a filtered copy in list order."""
        if kind is None:
            return self._generation_populators
        return [populator for populator in self._generation_populators if populator.kind is kind]

    def get_populators(self, kind: Optional[PopulatorKind] = None) -> List[Populator]:
        """The live list when ``kind`` is omitted, otherwise a filtered copy in list order."""
        if kind is None:
            return self._populators
        return [populator for populator in self._populators if populator.kind is kind]

    def get_biome_settings(self, biome_type: BiomeType) -> BiomeGenerationSettings:
        with self._settings_lock:
            settings = self._biome_settings.get(biome_type.id)
            if settings is None:
                settings = biome_type.init_populators(self.world)
                self._biome_settings[biome_type.id] = settings
                self.logger.log_event({"type": "biome_settings_initialized", "biome": biome_type.name})
            return settings

    def override_biome_settings(
        self,
        biome_type: BiomeType,
        settings: Union[BiomeGenerationSettings, Callable[[BiomeGenerationSettings], BiomeGenerationSettings]],
    ) -> BiomeGenerationSettings:
        """Replace a biome's settings, or transform its current ones when given a callable."""
        if callable(settings):
            current = self.get_biome_settings(biome_type)
            settings = settings(current.copy())
        with self._settings_lock:
            self._biome_settings[biome_type.id] = settings
        return settings

    @property
    def biome_settings(self) -> Dict[int, BiomeGenerationSettings]:
        with self._settings_lock:
            return dict(self._biome_settings)


__all__ = [
    "OverrideConflict",
    "OverrideConflictError",
    "StrategySlot",
    "WorldGenerator",
]
