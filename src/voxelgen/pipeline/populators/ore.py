"""Ore veins replacing stone."""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from ..amounts import VariableAmount
from ..blocks import STONE, block_type
from ..models import CHUNK_HEIGHT, CHUNK_WIDTH, Chunk
from .base import Populator, PopulatorKind, random_column


class OrePopulator(Populator):
    """Places ``count`` veins of roughly ``size`` blocks at heights drawn from ``height``."""

    kind = PopulatorKind.ORE

    def __init__(
        self,
        ore: int,
        size: int = 8,
        count: Optional[VariableAmount] = None,
        height: Optional[VariableAmount] = None,
        replaces: int = STONE,
    ) -> None:
        if size < 1:
            raise ValueError(f"ore vein size must be positive, got {size}")
        self.ore = block_type(ore).id
        self.size = size
        self.count = count or VariableAmount.fixed(16)
        self.height = height or VariableAmount.base_with_random_addition(0, 64)
        self.replaces = replaces

    def populate(self, chunk: Chunk, rng: np.random.Generator) -> None:
        for _ in range(self.count.get_floored_amount(rng)):
            x, z = random_column(rng)
            y = self.height.get_floored_amount(rng)
            self.place_vein(chunk, rng, x, y, z)

    def place_vein(self, chunk: Chunk, rng: np.random.Generator, x: int, y: int, z: int) -> int:
        """Stamp one vein centred near ``(x, y, z)``; returns the number of blocks replaced."""
        blocks = chunk.blocks.array
        size = self.size
        angle = float(rng.random()) * math.pi
        reach = size / 8.0
        x0, x1 = x + math.sin(angle) * reach, x - math.sin(angle) * reach
        z0, z1 = z + math.cos(angle) * reach, z - math.cos(angle) * reach
        y0 = y + int(rng.integers(3)) - 2
        y1 = y + int(rng.integers(3)) - 2
        placed = 0
        for step in range(size):
            t = step / size
            cx = x0 + (x1 - x0) * t
            cy = y0 + (y1 - y0) * t
            cz = z0 + (z1 - z0) * t
            radius = ((math.sin(math.pi * t) + 1.0) * float(rng.random()) * size / 16.0 + 1.0) / 2.0
            xs = np.arange(max(math.floor(cx - radius), 0), min(math.floor(cx + radius), CHUNK_WIDTH - 1) + 1)
            ys = np.arange(max(math.floor(cy - radius), 0), min(math.floor(cy + radius), CHUNK_HEIGHT - 1) + 1)
            zs = np.arange(max(math.floor(cz - radius), 0), min(math.floor(cz + radius), CHUNK_WIDTH - 1) + 1)
            if xs.size == 0 or ys.size == 0 or zs.size == 0:
                continue
            gx, gy, gz = np.meshgrid(xs, ys, zs, indexing="ij")
            inside = ((gx + 0.5 - cx) ** 2 + (gy + 0.5 - cy) ** 2 + (gz + 0.5 - cz) ** 2) < radius * radius
            region = blocks[xs[0] : xs[-1] + 1, ys[0] : ys[-1] + 1, zs[0] : zs[-1] + 1]
            hit = inside & (region == self.replaces)
            placed += int(hit.sum())
            region[hit] = self.ore
        return placed

    def __repr__(self) -> str:
        return f"OrePopulator(ore={block_type(self.ore).name}, size={self.size})"


__all__ = ["OrePopulator"]
