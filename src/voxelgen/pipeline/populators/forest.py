"""Tree objects and the forest populator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..amounts import VariableAmount, WeightedTable
from ..blocks import BLOCKS, DIRT, GRASS, LEAVES, LOG, SOLID_MASK
from ..models import CHUNK_HEIGHT, Chunk
from .base import Populator, PopulatorKind, random_column


class PopulatorObject:
    """A multi-block feature that can be stamped into a chunk."""

    name = "object"

    def can_place_at(self, chunk: Chunk, x: int, y: int, z: int) -> bool:
        raise NotImplementedError

    def place_object(self, chunk: Chunk, rng: np.random.Generator, x: int, y: int, z: int) -> None:
        raise NotImplementedError


def _free(chunk: Chunk, x: int, y: int, z: int) -> bool:
    if not chunk.in_bounds(x, y, z):
        return False
    block = BLOCKS[chunk.get_block(x, y, z)]
    return block.replaceable or block.id == LEAVES


class SmallTree(PopulatorObject):
    """Straight trunk with a rounded leaf canopy."""

    def __init__(self, name: str = "oak", min_height: int = 4, height_variation: int = 3, canopy_radius: int = 2) -> None:
        self.name = name
        self.min_height = min_height
        self.height_variation = height_variation
        self.canopy_radius = canopy_radius

    def _roll_height(self, rng: np.random.Generator) -> int:
        return self.min_height + int(rng.integers(self.height_variation))

    def _fits(self, chunk: Chunk, x: int, y: int, z: int, height: int) -> bool:
        if y < 1 or y + height + 1 >= CHUNK_HEIGHT:
            return False
        if chunk.get_block(x, y - 1, z) not in (GRASS, DIRT):
            return False
        radius = self.canopy_radius
        for ty in range(y, y + height + 2):
            r = 0 if ty == y else radius if ty >= y + height - 2 else 1
            for tx in range(x - r, x + r + 1):
                for tz in range(z - r, z + r + 1):
                    if not _free(chunk, tx, ty, tz):
                        return False
        return True

    def can_place_at(self, chunk: Chunk, x: int, y: int, z: int) -> bool:
        return self._fits(chunk, x, y, z, self.min_height)

    def place_object(self, chunk: Chunk, rng: np.random.Generator, x: int, y: int, z: int) -> None:
        height = self._roll_height(rng)
        if not self._fits(chunk, x, y, z, height):
            return
        top = y + height
        for ly in range(top - 3, top + 1):
            offset = ly - top
            radius = 1 - offset // 2
            for lx in range(x - radius, x + radius + 1):
                for lz in range(z - radius, z + radius + 1):
                    corner = abs(lx - x) == radius and abs(lz - z) == radius
                    if corner and (offset == 0 or rng.integers(2) == 0):
                        continue
                    if _free(chunk, lx, ly, lz):
                        chunk.set_block(lx, ly, lz, LEAVES)
        for ty in range(y, top):
            chunk.set_block(x, ty, z, LOG)
        chunk.set_block(x, y - 1, z, DIRT)

    def __repr__(self) -> str:
        return f"SmallTree(name={self.name!r}, min_height={self.min_height})"


class ConiferTree(SmallTree):
    """Tall trunk with stacked, narrowing leaf rings."""

    def __init__(self, name: str = "spruce", min_height: int = 6, height_variation: int = 4) -> None:
        super().__init__(name, min_height, height_variation, canopy_radius=2)

    def place_object(self, chunk: Chunk, rng: np.random.Generator, x: int, y: int, z: int) -> None:
        height = self._roll_height(rng)
        if not self._fits(chunk, x, y, z, height):
            return
        top = y + height
        for ly in range(top, y + 1, -1):
            # Rings alternate between radius 1 and 2 below a single-block tip.
            radius = 0 if ly == top else 1 + (top - ly) % 2
            for lx in range(x - radius, x + radius + 1):
                for lz in range(z - radius, z + radius + 1):
                    if radius > 0 and abs(lx - x) == radius and abs(lz - z) == radius:
                        continue
                    if _free(chunk, lx, ly, lz):
                        chunk.set_block(lx, ly, lz, LEAVES)
        for ty in range(y, top):
            chunk.set_block(x, ty, z, LOG)
        chunk.set_block(x, y - 1, z, DIRT)


@dataclass
class BiomeTreeType:
    """A named tree with an optional large variant."""

    name: str
    populator_object: PopulatorObject
    large_populator_object: Optional[PopulatorObject] = None

    @property
    def has_large_equivalent(self) -> bool:
        return self.large_populator_object is not None

    def __eq__(self, other: object) -> bool:
        return isinstance(other, BiomeTreeType) and other.name == self.name

    def __hash__(self) -> int:
        return hash(self.name)


OAK = BiomeTreeType("oak", SmallTree("oak"), SmallTree("big_oak", min_height=6, height_variation=4))
BIRCH = BiomeTreeType("birch", SmallTree("birch", min_height=5, height_variation=3))
SPRUCE = BiomeTreeType("spruce", ConiferTree("spruce"), ConiferTree("mega_spruce", min_height=9, height_variation=5))
SWAMP = BiomeTreeType("swamp", SmallTree("swamp", min_height=5, height_variation=4))


class ForestPopulator(Populator):
    """Places a counted number of trees picked from a weighted table."""

    kind = PopulatorKind.FOREST

    def __init__(self, count: Optional[VariableAmount] = None, types: Optional[WeightedTable[PopulatorObject]] = None) -> None:
        self.count = count or VariableAmount.fixed(10)
        self.types: WeightedTable[PopulatorObject] = types or WeightedTable()

    def populate(self, chunk: Chunk, rng: np.random.Generator) -> None:
        n = self.count.get_floored_amount(rng)
        for _ in range(n):
            picks = self.types.get(rng)
            if not picks:
                continue
            tree = picks[0]
            x, z = random_column(rng)
            top = chunk.top_solid_or_liquid(x, z)
            if top < 0 or not SOLID_MASK[chunk.get_block(x, top, z)]:
                continue
            if tree.can_place_at(chunk, x, top + 1, z):
                tree.place_object(chunk, rng, x, top + 1, z)

    def __repr__(self) -> str:
        return f"ForestPopulator(count={self.count!r}, types={[obj.name for obj in self.types.values()]})"


def forest_of(*trees: tuple[BiomeTreeType, float], count: Optional[VariableAmount] = None, large_chance: float = 0.0) -> ForestPopulator:
    """Build a forest populator from tree types, mixing in large variants by weight."""
    table: WeightedTable[PopulatorObject] = WeightedTable()
    for tree_type, weight in trees:
        small_weight = weight
        if tree_type.large_populator_object is not None and large_chance > 0:
            table.add(tree_type.large_populator_object, weight * large_chance)
            small_weight = weight * (1.0 - large_chance)
        if small_weight > 0:
            table.add(tree_type.populator_object, small_weight)
    return ForestPopulator(count=count, types=table)


__all__ = [
    "PopulatorObject",
    "SmallTree",
    "ConiferTree",
    "BiomeTreeType",
    "ForestPopulator",
    "forest_of",
    "OAK",
    "BIRCH",
    "SPRUCE",
    "SWAMP",
]
