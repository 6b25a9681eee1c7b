"""Populator strategy interfaces and the per-phase decoration context."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from typing import Callable, ClassVar, Dict, Iterable, Optional, Tuple

import numpy as np

from ..models import CHUNK_WIDTH, BiomeArea, BlockVolume, Chunk, ChunkCoordinate, World


class PopulatorKind(enum.Enum):
    """Closed set of populator variants, used to filter populator lists."""

    TERRAIN = "terrain"
    CAVE = "cave"
    STRUCTURE = "structure"
    ORE = "ore"
    FOREST = "forest"
    SHRUB = "shrub"
    DEAD_BUSH = "dead_bush"
    LAKE = "lake"
    DUNGEON = "dungeon"
    SNOW = "snow"
    FAUNA = "fauna"
    CUSTOM = "custom"


class DecorationContext:
    """Flags shared by the populators of a single populate-phase invocation."""

    def __init__(self, coordinate: ChunkCoordinate) -> None:
        self.coordinate = coordinate
        self._flags: Dict[str, None] = {}

    def has_flag(self, flag: str) -> bool:
        return flag in self._flags

    def set_flag(self, flag: str) -> None:
        self._flags.setdefault(flag, None)

    def clear_flag(self, flag: str) -> None:
        self._flags.pop(flag, None)

    @property
    def flags(self) -> Tuple[str, ...]:
        return tuple(self._flags)

    def __repr__(self) -> str:
        return f"DecorationContext(coordinate={self.coordinate}, flags={list(self._flags)})"


class GenerationPopulator(ABC):
    """Mutates the raw block volume while a chunk is being generated."""

    kind: ClassVar[PopulatorKind] = PopulatorKind.CUSTOM

    @abstractmethod
    def populate(self, world: World, buffer: BlockVolume, biomes: BiomeArea) -> None:
        ...


class Populator(ABC):
    """Adds features to an assembled chunk during the decoration pass."""

    kind: ClassVar[PopulatorKind] = PopulatorKind.CUSTOM
    uses_flags: ClassVar[bool] = False

    @abstractmethod
    def populate(self, chunk: Chunk, rng: np.random.Generator) -> None:
        ...


class FlaggedPopulator(Populator):
    """A populator that reads or writes the decoration flags of its pass."""

    uses_flags: ClassVar[bool] = True

    @abstractmethod
    def populate_with_flags(self, chunk: Chunk, rng: np.random.Generator, context: DecorationContext) -> None:
        ...

    def populate(self, chunk: Chunk, rng: np.random.Generator) -> None:
        self.populate_with_flags(chunk, rng, DecorationContext(chunk.coordinate))


def run_populator(populator: Populator, chunk: Chunk, rng: np.random.Generator, context: DecorationContext) -> None:
    if populator.uses_flags:
        populator.populate_with_flags(chunk, rng, context)  # type: ignore[attr-defined]
    else:
        populator.populate(chunk, rng)


class FilteredPopulator(FlaggedPopulator):
    """Delegates to another populator only when its conditions hold.

    ``required_flags`` must all have been set earlier in the pass,
    ``excluded_flags`` must all be absent, and ``predicate`` (if given) must
    accept the chunk.
    """

    def __init__(
        self,
        delegate: Populator,
        predicate: Optional[Callable[[Chunk], bool]] = None,
        *,
        required_flags: Iterable[str] = (),
        excluded_flags: Iterable[str] = (),
    ) -> None:
        self.delegate = delegate
        self.predicate = predicate
        self.required_flags = tuple(required_flags)
        self.excluded_flags = tuple(excluded_flags)

    @property
    def kind(self) -> PopulatorKind:  # type: ignore[override]
        return self.delegate.kind

    def should_run(self, chunk: Chunk, context: DecorationContext) -> bool:
        if not all(context.has_flag(flag) for flag in self.required_flags):
            return False
        if any(context.has_flag(flag) for flag in self.excluded_flags):
            return False
        return self.predicate is None or bool(self.predicate(chunk))

    def populate_with_flags(self, chunk: Chunk, rng: np.random.Generator, context: DecorationContext) -> None:
        if self.should_run(chunk, context):
            run_populator(self.delegate, chunk, rng, context)

    def __repr__(self) -> str:
        return (
            f"FilteredPopulator(delegate={self.delegate!r}, required={list(self.required_flags)}, "
            f"excluded={list(self.excluded_flags)})"
        )


def random_column(rng: np.random.Generator) -> Tuple[int, int]:
    return int(rng.integers(CHUNK_WIDTH)), int(rng.integers(CHUNK_WIDTH))


__all__ = [
    "PopulatorKind",
    "DecorationContext",
    "GenerationPopulator",
    "Populator",
    "FlaggedPopulator",
    "FilteredPopulator",
    "run_populator",
    "random_column",
]
