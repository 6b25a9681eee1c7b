"""Biome type registration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Tuple

from .models import BiomeGenerationSettings, World

BiomeFactory = Callable[[World], BiomeGenerationSettings]


@dataclass(frozen=True)
class CreatureEntry:
    entity: str
    weight: int
    min_group: int = 1
    max_group: int = 4

    def __post_init__(self) -> None:
        if self.weight <= 0:
            raise ValueError(f"Creature '{self.entity}' must have a positive weight")
        if self.max_group < self.min_group or self.min_group < 1:
            raise ValueError(f"Creature '{self.entity}' has an invalid group size range")


@dataclass(frozen=True)
class BiomeType:
    """A registered biome and the factory producing its default settings."""

    id: int
    name: str
    factory: BiomeFactory
    temperature: float = 0.5
    rainfall: float = 0.5
    tags: FrozenSet[str] = frozenset()
    creatures: Tuple[CreatureEntry, ...] = ()
    description: Optional[str] = None

    def init_populators(self, world: World) -> BiomeGenerationSettings:
        return self.factory(world)


class BiomeRegistry:
    """Biome lookup by numeric id and by name."""

    def __init__(self) -> None:
        self._biomes: Dict[int, BiomeType] = {}
        self._names: Dict[str, int] = {}

    def register(self, biome: BiomeType) -> None:
        if not 0 <= biome.id < 256:
            raise ValueError(f"Biome id {biome.id} does not fit in a biome array entry")
        if biome.id in self._biomes:
            raise ValueError(f"Biome id {biome.id} already registered")
        if biome.name in self._names:
            raise ValueError(f"Biome '{biome.name}' already registered")
        self._biomes[biome.id] = biome
        self._names[biome.name] = biome.id

    def get(self, biome_id: int) -> BiomeType:
        try:
            return self._biomes[int(biome_id)]
        except KeyError as exc:
            raise KeyError(f"Unknown biome id {biome_id}") from exc

    def by_name(self, name: str) -> BiomeType:
        try:
            return self._biomes[self._names[name]]
        except KeyError as exc:
            raise KeyError(f"Unknown biome '{name}'") from exc

    def clear(self) -> None:
        self._biomes.clear()
        self._names.clear()

    def descriptors(self) -> Dict[int, BiomeType]:
        return dict(self._biomes)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            return key in self._names
        return key in self._biomes

    def __len__(self) -> int:
        return len(self._biomes)


_REGISTRY = BiomeRegistry()


def biome(
    biome_id: int,
    name: str,
    *,
    temperature: float = 0.5,
    rainfall: float = 0.5,
    tags: Iterable[str] = (),
    creatures: Iterable[CreatureEntry] = (),
    target: Optional[BiomeRegistry] = None,
) -> Callable[[BiomeFactory], BiomeFactory]:
    """Decorator registering a default-settings factory as a biome type."""

    def decorator(func: BiomeFactory) -> BiomeFactory:
        descriptor = BiomeType(
            id=biome_id,
            name=name,
            factory=func,
            temperature=temperature,
            rainfall=rainfall,
            tags=frozenset(tags),
            creatures=tuple(creatures),
            description=getattr(func, "__doc__", None),
        )
        (_REGISTRY if target is None else target).register(descriptor)
        return func

    return decorator


def registry() -> BiomeRegistry:
    return _REGISTRY


__all__ = [
    "BiomeFactory",
    "BiomeRegistry",
    "BiomeType",
    "CreatureEntry",
    "biome",
    "registry",
]
