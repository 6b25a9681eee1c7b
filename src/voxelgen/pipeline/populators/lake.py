"""Blob-shaped lakes of water or lava."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..amounts import VariableAmount
from ..blocks import AIR, DIRT, GRASS, LAVA, LIQUID_MASK, SOLID_MASK, STONE, WATER, block_type
from ..models import CHUNK_HEIGHT, CHUNK_WIDTH, Chunk
from .base import Populator, PopulatorKind

LAKE_DEPTH = 8
# Rows below this offset hold liquid; rows at or above are cleared to air.
LIQUID_ROWS = 4

_GX, _GY, _GZ = np.meshgrid(
    np.arange(CHUNK_WIDTH), np.arange(LAKE_DEPTH), np.arange(CHUNK_WIDTH), indexing="ij"
)
_INTERIOR = (
    (_GX >= 1) & (_GX < CHUNK_WIDTH - 1) & (_GY >= 1) & (_GY < LAKE_DEPTH - 1) & (_GZ >= 1) & (_GZ < CHUNK_WIDTH - 1)
)
_UPPER = (np.arange(LAKE_DEPTH) >= LIQUID_ROWS)[None, :, None]


def carve_mask(rng: np.random.Generator) -> np.ndarray:
    """Union of 4-7 random ellipsoids inside a 16x8x16 box, indexed ``[x, y, z]``."""
    mask = np.zeros((CHUNK_WIDTH, LAKE_DEPTH, CHUNK_WIDTH), dtype=bool)
    for _ in range(int(rng.integers(4)) + 4):
        size_x = float(rng.random()) * 6.0 + 3.0
        size_y = float(rng.random()) * 4.0 + 2.0
        size_z = float(rng.random()) * 6.0 + 3.0
        centre_x = float(rng.random()) * (16.0 - size_x - 2.0) + 1.0 + size_x / 2.0
        centre_y = float(rng.random()) * (8.0 - size_y - 4.0) + 2.0 + size_y / 2.0
        centre_z = float(rng.random()) * (16.0 - size_z - 2.0) + 1.0 + size_z / 2.0
        distance = (
            ((_GX - centre_x) / (size_x / 2.0)) ** 2
            + ((_GY - centre_y) / (size_y / 2.0)) ** 2
            + ((_GZ - centre_z) / (size_z / 2.0)) ** 2
        )
        mask |= (distance < 1.0) & _INTERIOR
    return mask


def shell_of(mask: np.ndarray) -> np.ndarray:
    """Cells outside ``mask`` that share a face with it."""
    padded = np.pad(mask, 1)
    touching = (
        padded[2:, 1:-1, 1:-1]
        | padded[:-2, 1:-1, 1:-1]
        | padded[1:-1, 2:, 1:-1]
        | padded[1:-1, :-2, 1:-1]
        | padded[1:-1, 1:-1, 2:]
        | padded[1:-1, 1:-1, :-2]
    )
    return touching & ~mask


class LakePopulator(Populator):
    """Places a lake with probability ``chance`` at a height drawn from ``height``.

    A lake is rejected (silently) when its shell would breach into a
    different liquid below the surface line or leave its own liquid open to
    the side.
    """

    kind = PopulatorKind.LAKE

    def __init__(self, chance: float = 0.25, liquid: int = WATER, height: Optional[VariableAmount] = None) -> None:
        if not 0.0 <= chance <= 1.0:
            raise ValueError(f"lake chance must be within [0, 1], got {chance}")
        if not block_type(liquid).liquid:
            raise ValueError(f"lake liquid must be a liquid block, got {block_type(liquid).name}")
        self.chance = float(chance)
        self.liquid = liquid
        self.height = height or VariableAmount.base_with_random_addition(0, CHUNK_HEIGHT)

    def populate(self, chunk: Chunk, rng: np.random.Generator) -> None:
        if float(rng.random()) > self.chance:
            return
        y = min(max(self.height.get_floored_amount(rng), 0), CHUNK_HEIGHT - 1)
        self.place(chunk, rng, y)

    def place(self, chunk: Chunk, rng: np.random.Generator, y: int) -> bool:
        centre = CHUNK_WIDTH // 2
        while y > 5 and chunk.is_air(centre, y, centre):
            y -= 1
        if y <= 4:
            return False
        y -= LIQUID_ROWS
        if y + LAKE_DEPTH > CHUNK_HEIGHT:
            return False

        mask = carve_mask(rng)
        shell = shell_of(mask)
        region = chunk.blocks.array[:, y : y + LAKE_DEPTH, :]
        liquid = LIQUID_MASK[region]
        solid = SOLID_MASK[region]
        if np.any(shell & _UPPER & liquid):
            return False
        if np.any(shell & ~_UPPER & ~solid & (region != self.liquid)):
            return False

        region[mask & _UPPER] = AIR
        region[mask & ~_UPPER] = self.liquid

        # Exposed dirt on the former lake banks grows grass again.
        cleared = mask & _UPPER
        banks = np.zeros_like(mask)
        banks[:, :-1, :] = cleared[:, 1:, :] & (region[:, :-1, :] == DIRT)
        region[banks] = GRASS

        if self.liquid == LAVA:
            rolls = rng.integers(2, size=mask.shape) != 0
            crust = shell & (~_UPPER | rolls) & SOLID_MASK[region]
            region[crust] = STONE
        return True

    def __repr__(self) -> str:
        return f"LakePopulator(chance={self.chance}, liquid={block_type(self.liquid).name})"


__all__ = ["LakePopulator", "carve_mask", "shell_of"]
