"""Core data models shared across the generation pipeline."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import numpy as np

from .amounts import BlockSelector, SeededVariableAmount
from .blocks import (
    AIR,
    LEAVES,
    LIQUID_MASK,
    OPAQUE_MASK,
    SOLID_MASK,
    BlockPhysics,
    block_type,
)

if TYPE_CHECKING:
    from .config import WorldConfig
    from .populators.base import GenerationPopulator, Populator
    from .registry import BiomeRegistry

CHUNK_WIDTH = 16
CHUNK_HEIGHT = 256
MAX_LIGHT = 15


class IllegalStateError(RuntimeError):
    """Raised when an object is used before it is fully configured."""


@dataclass(frozen=True)
class ChunkCoordinate:
    x: int
    z: int

    @property
    def block_min(self) -> Tuple[int, int]:
        return self.x * CHUNK_WIDTH, self.z * CHUNK_WIDTH

    def __str__(self) -> str:
        return f"({self.x}, {self.z})"


class BlockVolume:
    """Mutable 16x256x16 grid of block ids indexed ``[x, y, z]``."""

    __slots__ = ("coordinate", "_blocks")

    def __init__(self, coordinate: ChunkCoordinate, blocks: Optional[np.ndarray] = None) -> None:
        self.coordinate = coordinate
        if blocks is None:
            blocks = np.zeros((CHUNK_WIDTH, CHUNK_HEIGHT, CHUNK_WIDTH), dtype=np.uint16)
        if blocks.shape != (CHUNK_WIDTH, CHUNK_HEIGHT, CHUNK_WIDTH):
            raise ValueError(f"Block volume must be shaped (16, 256, 16), got {blocks.shape}")
        self._blocks = blocks

    @property
    def array(self) -> np.ndarray:
        return self._blocks

    @property
    def block_min(self) -> Tuple[int, int, int]:
        x, z = self.coordinate.block_min
        return x, 0, z

    def get_block(self, x: int, y: int, z: int) -> int:
        return int(self._blocks[x, y, z])

    def set_block(self, x: int, y: int, z: int, block_id: int) -> None:
        self._blocks[x, y, z] = block_id

    def fill(self, block_id: int) -> None:
        self._blocks.fill(block_id)

    def checksum(self) -> str:
        return hashlib.blake2b(memoryview(np.ascontiguousarray(self._blocks))).hexdigest()


class BiomeArea:
    """Read-only 16x16 grid of biome ids indexed ``[x, z]``."""

    __slots__ = ("origin", "_biomes")

    def __init__(self, origin: Tuple[int, int], biomes: np.ndarray) -> None:
        self.origin = origin
        sealed = np.array(biomes, dtype=np.uint8, copy=True)
        sealed.setflags(write=False)
        self._biomes = sealed

    @property
    def array(self) -> np.ndarray:
        return self._biomes

    def get_biome(self, x: int, z: int) -> int:
        return int(self._biomes[x, z])

    def unique(self) -> List[int]:
        """Distinct biome ids in first-seen order, scanning x-major."""
        seen: Dict[int, None] = {}
        for value in self._biomes.ravel():
            seen.setdefault(int(value), None)
        return list(seen)


class MutableBiomeBuffer:
    """Reusable biome buffer written by a biome generator."""

    def __init__(self, origin: Tuple[int, int] = (0, 0)) -> None:
        self.origin = origin
        self._biomes = np.zeros((CHUNK_WIDTH, CHUNK_WIDTH), dtype=np.uint8)

    @property
    def array(self) -> np.ndarray:
        return self._biomes

    @property
    def size(self) -> Tuple[int, int]:
        return self._biomes.shape  # type: ignore[return-value]

    def reuse(self, origin: Tuple[int, int]) -> None:
        self.origin = origin
        self._biomes.fill(0)

    def set_biome(self, x: int, z: int, biome_id: int) -> None:
        self._biomes[x, z] = biome_id

    def get_biome(self, x: int, z: int) -> int:
        return int(self._biomes[x, z])

    def immutable_copy(self) -> BiomeArea:
        return BiomeArea(self.origin, self._biomes)


@dataclass(frozen=True)
class GroundCoverLayer:
    """A surface material band: block chosen from the column noise, with a depth."""

    block: BlockSelector
    depth: SeededVariableAmount

    @classmethod
    def of(cls, block_id: int, depth: SeededVariableAmount | int) -> "GroundCoverLayer":
        if not isinstance(depth, SeededVariableAmount):
            depth = SeededVariableAmount.wrap(depth)
        return cls(block=_ConstantBlock(block_id), depth=depth)


@dataclass(frozen=True)
class _ConstantBlock:
    block_id: int

    def __call__(self, noise: float) -> int:
        return self.block_id


@dataclass
class BiomeGenerationSettings:
    """Per-biome terrain bounds, ground cover and populator lists."""

    min_height: float
    max_height: float
    ground_cover_layers: List[GroundCoverLayer] = field(default_factory=list)
    generation_populators: List["GenerationPopulator"] = field(default_factory=list)
    populators: List["Populator"] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.max_height < self.min_height:
            raise ValueError("max height cannot be less than min height")

    def copy(self) -> "BiomeGenerationSettings":
        return BiomeGenerationSettings(
            min_height=self.min_height,
            max_height=self.max_height,
            ground_cover_layers=list(self.ground_cover_layers),
            generation_populators=list(self.generation_populators),
            populators=list(self.populators),
        )


@dataclass(frozen=True)
class World:
    """Handle passed to strategies: the world's configuration and biome registry."""

    config: "WorldConfig"
    registry: "BiomeRegistry"

    @property
    def seed(self) -> int:
        return self.config.seed

    @property
    def sea_level(self) -> int:
        return self.config.sea_level


@dataclass(frozen=True)
class SpawnRecord:
    entity: str
    x: int
    y: int
    z: int


class Chunk:
    """An assembled chunk: block volume, biome array and derived light data."""

    def __init__(self, world: World, coordinate: ChunkCoordinate, volume: BlockVolume, biomes: BiomeArea) -> None:
        self.world = world
        self.coordinate = coordinate
        self.blocks = volume
        # Stored z-major so that index ``z * 16 + x`` addresses a column.
        self.biome_array = np.ascontiguousarray(biomes.array.T).reshape(-1).copy()
        self.heightmap = np.zeros((CHUNK_WIDTH, CHUNK_WIDTH), dtype=np.int16)
        self.skylight = np.zeros((CHUNK_WIDTH, CHUNK_HEIGHT, CHUNK_WIDTH), dtype=np.uint8)
        self.scheduled_updates: List[Tuple[int, int, int]] = []
        self.spawns: List[SpawnRecord] = []
        self.tile_entities: Dict[Tuple[int, int, int], str] = {}
        self.populated = False

    @property
    def block_min(self) -> Tuple[int, int, int]:
        return self.blocks.block_min

    @staticmethod
    def in_bounds(x: int, y: int, z: int) -> bool:
        return 0 <= x < CHUNK_WIDTH and 0 <= z < CHUNK_WIDTH and 0 <= y < CHUNK_HEIGHT

    def get_block(self, x: int, y: int, z: int) -> int:
        if not self.in_bounds(x, y, z):
            return AIR
        return self.blocks.get_block(x, y, z)

    def is_air(self, x: int, y: int, z: int) -> bool:
        return self.in_bounds(x, y, z) and self.blocks.get_block(x, y, z) == AIR

    def set_block(self, x: int, y: int, z: int, block_id: int) -> bool:
        """Place a block, returning ``False`` when the position lies outside the chunk."""
        if not self.in_bounds(x, y, z):
            return False
        if block_type(block_id).falls and y > 0 and not SOLID_MASK[self.blocks.get_block(x, y - 1, z)]:
            if BlockPhysics.fall_instantly:
                while y > 0 and not SOLID_MASK[self.blocks.get_block(x, y - 1, z)]:
                    y -= 1
            else:
                self.scheduled_updates.append((x, y, z))
        self.blocks.set_block(x, y, z, block_id)
        self.tile_entities.pop((x, y, z), None)
        return True

    def top_solid_or_liquid(self, x: int, z: int) -> int:
        """Height of the topmost solid or liquid block in a column, ignoring foliage; -1 if none."""
        column = self.blocks.array[x, :, z]
        mask = (SOLID_MASK[column] | LIQUID_MASK[column]) & (column != LEAVES)
        hits = np.flatnonzero(mask)
        if hits.size == 0:
            return -1
        return int(hits[-1])

    def biome_at(self, x: int, z: int) -> int:
        return int(self.biome_array[(z & 15) * CHUNK_WIDTH + (x & 15)])

    @property
    def primary_biome(self) -> int:
        return self.biome_at(CHUNK_WIDTH // 2, CHUNK_WIDTH // 2)

    def generate_skylight_map(self) -> None:
        opaque = OPAQUE_MASK[self.blocks.array]
        any_opaque = opaque.any(axis=1)
        # Index of the highest opaque block per column, counted from the top.
        top_from_above = np.argmax(opaque[:, ::-1, :], axis=1)
        heights = np.where(any_opaque, CHUNK_HEIGHT - top_from_above, 0)
        self.heightmap = heights.astype(np.int16)
        ys = np.arange(CHUNK_HEIGHT, dtype=np.int16)[None, :, None]
        self.skylight = np.where(ys >= self.heightmap[:, None, :], MAX_LIGHT, 0).astype(np.uint8)


@dataclass
class PhaseStats:
    """Timing for one phase of one chunk."""

    phase: str
    chunk: Tuple[int, int]
    start_ns: int
    end_ns: int
    populator_count: int = 0

    @property
    def duration_ns(self) -> int:
        return self.end_ns - self.start_ns

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase,
            "chunk": list(self.chunk),
            "start_ns": self.start_ns,
            "end_ns": self.end_ns,
            "duration_ns": self.duration_ns,
            "populator_count": self.populator_count,
        }


__all__ = [
    "CHUNK_WIDTH",
    "CHUNK_HEIGHT",
    "IllegalStateError",
    "ChunkCoordinate",
    "BlockVolume",
    "BiomeArea",
    "MutableBiomeBuffer",
    "GroundCoverLayer",
    "BiomeGenerationSettings",
    "World",
    "SpawnRecord",
    "Chunk",
    "PhaseStats",
]
