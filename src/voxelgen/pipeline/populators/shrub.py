"""Tall grass and dead bush placers."""

from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np

from ..amounts import VariableAmount, WeightedTable
from ..blocks import AIR, CLAY, DEAD_BUSH, DIRT, GRASS, LEAVES, SAND, TALL_GRASS
from ..models import Chunk
from .base import Populator, PopulatorKind, random_column

SHRUB_BATCH = 128
DEAD_BUSH_BATCH = 16


def _offset(rng: np.random.Generator, x: int, y: int, z: int) -> Tuple[int, int, int]:
    return (
        x + int(rng.integers(8)) - int(rng.integers(8)),
        y + int(rng.integers(4)) - int(rng.integers(4)),
        z + int(rng.integers(8)) - int(rng.integers(8)),
    )


class ShrubPopulator(Populator):
    """Scatters patches of tall grass over grass and dirt.

    The count is split into batches of 128 attempts so that grass forms
    patches around a handful of centres rather than a uniform sprinkle.
    """

    kind = PopulatorKind.SHRUB

    def __init__(self, count: Optional[VariableAmount] = None, types: Optional[WeightedTable[int]] = None) -> None:
        self.count = count or VariableAmount.fixed(SHRUB_BATCH)
        if types is None:
            types = WeightedTable()
            types.add(TALL_GRASS, 1)
        self.types = types

    def populate(self, chunk: Chunk, rng: np.random.Generator) -> None:
        n = math.ceil(self.count.get_floored_amount(rng) / SHRUB_BATCH)
        shrub = TALL_GRASS
        for _ in range(n):
            result = self.types.get(rng)
            if result:
                shrub = result[0]
            x, z = random_column(rng)
            y = chunk.top_solid_or_liquid(x, z) + 1
            self._place_patch(chunk, rng, shrub, x, y, z)

    @staticmethod
    def _place_patch(chunk: Chunk, rng: np.random.Generator, shrub: int, x: int, y: int, z: int) -> None:
        while y > 0 and chunk.get_block(x, y, z) in (AIR, LEAVES):
            y -= 1
        for _ in range(SHRUB_BATCH):
            px, py, pz = _offset(rng, x, y, z)
            if chunk.is_air(px, py, pz) and chunk.get_block(px, py - 1, pz) in (GRASS, DIRT):
                chunk.set_block(px, py, pz, shrub)


class DeadBushPopulator(Populator):
    """Places dead bushes on sand, dirt and clay, four tries per batch."""

    kind = PopulatorKind.DEAD_BUSH

    def __init__(self, count: Optional[VariableAmount] = None) -> None:
        self.count = count or VariableAmount.fixed(SHRUB_BATCH)

    def populate(self, chunk: Chunk, rng: np.random.Generator) -> None:
        n = math.ceil(self.count.get_floored_amount(rng) / DEAD_BUSH_BATCH)
        for _ in range(n):
            x, z = random_column(rng)
            y = chunk.top_solid_or_liquid(x, z) + 1
            for _ in range(4):
                px, py, pz = _offset(rng, x, y, z)
                if chunk.is_air(px, py, pz) and chunk.get_block(px, py - 1, pz) in (SAND, DIRT, CLAY):
                    chunk.set_block(px, py, pz, DEAD_BUSH)


__all__ = ["ShrubPopulator", "DeadBushPopulator"]
