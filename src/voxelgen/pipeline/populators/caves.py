"""Worm-style cave carving during the generate phase.

Every chunk within ``radius`` of the chunk being generated is treated as a
potential cave source. Each source draws from its own stream keyed by the
world seed and the source coordinates, so a tunnel crossing a chunk border
is carved identically from both sides regardless of generation order.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from ..blocks import AIR, DIRT, GRASS, GRAVEL, LAVA, SAND, SANDSTONE, STONE, WATER
from ..models import CHUNK_HEIGHT, CHUNK_WIDTH, BiomeArea, BlockVolume, World
from ..seeding import ChunkSeeder
from .base import GenerationPopulator, PopulatorKind

CARVABLE = np.zeros(256, dtype=bool)
CARVABLE[[STONE, DIRT, GRASS, SAND, GRAVEL, SANDSTONE]] = True
LAVA_LEVEL = 10


class CaveGenerationPopulator(GenerationPopulator):
    kind = PopulatorKind.CAVE

    def __init__(self, radius: int = 4, rarity: int = 7, max_start_height: int = 120) -> None:
        if radius < 0:
            raise ValueError("cave radius cannot be negative")
        self.radius = radius
        self.rarity = rarity
        self.max_start_height = max_start_height

    def populate(self, world: World, buffer: BlockVolume, biomes: BiomeArea) -> None:
        seeder = ChunkSeeder(world.seed)
        origin = buffer.coordinate
        for sx in range(origin.x - self.radius, origin.x + self.radius + 1):
            for sz in range(origin.z - self.radius, origin.z + self.radius + 1):
                self._carve_source(seeder.for_feature("cave", sx, sz), sx, sz, buffer)

    def _carve_source(self, rng: np.random.Generator, sx: int, sz: int, buffer: BlockVolume) -> None:
        count = int(rng.integers(int(rng.integers(int(rng.integers(15)) + 1)) + 1))
        if int(rng.integers(self.rarity)) != 0:
            return
        max_length = max(self.radius * CHUNK_WIDTH - CHUNK_WIDTH, CHUNK_WIDTH)
        for _ in range(count):
            x = sx * CHUNK_WIDTH + float(rng.integers(CHUNK_WIDTH))
            y = float(rng.integers(int(rng.integers(self.max_start_height)) + 8))
            z = sz * CHUNK_WIDTH + float(rng.integers(CHUNK_WIDTH))
            tunnels = 1
            if int(rng.integers(4)) == 0:
                width = 1.0 + float(rng.random()) * 6.0
                self._tunnel(rng, buffer, (x, y, z), width, 0.0, 0.0, -1, -1, 0.5, max_length)
                tunnels += int(rng.integers(4))
            for _ in range(tunnels):
                yaw = float(rng.random()) * math.pi * 2.0
                pitch = (float(rng.random()) - 0.5) * 2.0 / 8.0
                width = float(rng.random()) * 2.0 + float(rng.random())
                if int(rng.integers(10)) == 0:
                    width *= float(rng.random()) * float(rng.random()) * 3.0 + 1.0
                self._tunnel(rng, buffer, (x, y, z), width, yaw, pitch, 0, 0, 1.0, max_length)

    def _tunnel(
        self,
        rng: np.random.Generator,
        buffer: BlockVolume,
        start: Tuple[float, float, float],
        width: float,
        yaw: float,
        pitch: float,
        step: int,
        length: int,
        vertical_scale: float,
        max_length: int,
    ) -> None:
        # A negative step marks a single spherical room at ``start``.
        x, y, z = start
        local = np.random.default_rng(int(rng.integers(1 << 62)))
        centre_x, centre_z = buffer.block_min[0] + 8.0, buffer.block_min[2] + 8.0
        yaw_delta = 0.0
        pitch_delta = 0.0
        if length <= 0:
            length = max_length - int(local.integers(max_length // 4))
        room = step == -1
        if room:
            step = length // 2
        branch_at = int(local.integers(length // 2)) + length // 4
        steep = int(local.integers(6)) == 0

        while step < length:
            horizontal = 1.5 + math.sin(step * math.pi / length) * width
            vertical = horizontal * vertical_scale
            x += math.cos(yaw) * math.cos(pitch)
            y += math.sin(pitch)
            z += math.sin(yaw) * math.cos(pitch)
            pitch *= 0.92 if steep else 0.7
            pitch += pitch_delta * 0.1
            yaw += yaw_delta * 0.1
            pitch_delta *= 0.9
            yaw_delta *= 0.75
            pitch_delta += (float(local.random()) - float(local.random())) * float(local.random()) * 2.0
            yaw_delta += (float(local.random()) - float(local.random())) * float(local.random()) * 4.0

            if not room and step == branch_at and width > 1.0 and length > 0:
                self._tunnel(local, buffer, (x, y, z), float(local.random()) * 0.5 + 0.5,
                             yaw - math.pi / 2, pitch / 3.0, step, length, 1.0, max_length)
                self._tunnel(local, buffer, (x, y, z), float(local.random()) * 0.5 + 0.5,
                             yaw + math.pi / 2, pitch / 3.0, step, length, 1.0, max_length)
                return

            if room or int(local.integers(4)) != 0:
                dx, dz = x - centre_x, z - centre_z
                remaining = length - step
                reach = width + 2.0 + 16.0
                if dx * dx + dz * dz - remaining * remaining > reach * reach:
                    return
                self._carve(buffer, x, y, z, horizontal, vertical)
                if room:
                    return
            step += 1

    @staticmethod
    def _carve(buffer: BlockVolume, x: float, y: float, z: float, horizontal: float, vertical: float) -> None:
        min_x, _, min_z = buffer.block_min
        lx, lz = x - min_x, z - min_z
        if lx < -horizontal * 2 or lz < -horizontal * 2 or lx > CHUNK_WIDTH + horizontal * 2 or lz > CHUNK_WIDTH + horizontal * 2:
            return
        x0 = max(math.floor(lx - horizontal) - 1, 0)
        x1 = min(math.floor(lx + horizontal) + 1, CHUNK_WIDTH)
        y0 = max(math.floor(y - vertical) - 1, 1)
        y1 = min(math.floor(y + vertical) + 1, CHUNK_HEIGHT - 8)
        z0 = max(math.floor(lz - horizontal) - 1, 0)
        z1 = min(math.floor(lz + horizontal) + 1, CHUNK_WIDTH)
        if x0 >= x1 or y0 >= y1 or z0 >= z1:
            return
        region = buffer.array[x0:x1, y0:y1, z0:z1]
        # Never breach into standing water.
        if np.any(region == WATER):
            return
        gx, gy, gz = np.meshgrid(
            (np.arange(x0, x1) + 0.5 - lx) / horizontal,
            (np.arange(y0, y1) + 0.5 - y) / vertical,
            (np.arange(z0, z1) + 0.5 - lz) / horizontal,
            indexing="ij",
        )
        hollow = (gy > -0.7) & (gx * gx + gy * gy + gz * gz < 1.0) & CARVABLE[region]
        low = (np.arange(y0, y1) < LAVA_LEVEL)[None, :, None]
        region[hollow & low] = LAVA
        region[hollow & ~low] = AIR


__all__ = ["CaveGenerationPopulator", "CARVABLE"]
