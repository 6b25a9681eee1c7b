"""Villages: a plaza levelled while generating and a well built while decorating."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from ..blocks import AIR, COBBLESTONE, DIRT, GRAVEL, PLANKS, SOLID_MASK, WATER
from ..models import CHUNK_HEIGHT, BiomeArea, BlockVolume, Chunk, ChunkCoordinate, World
from ..seeding import ChunkSeeder
from .base import DecorationContext, FlaggedPopulator, GenerationPopulator, PopulatorKind

VILLAGE_FLAG = "VILLAGE"
VILLAGE_TAG = "village"
PLAZA_RADIUS = 3
CLEARANCE = 6


@dataclass
class VillageLayout:
    """Decides which chunks host a village: at most one per square region."""

    spacing: int = 8
    separation: int = 2

    def __post_init__(self) -> None:
        if self.spacing <= self.separation:
            raise ValueError("village spacing must exceed separation")
        self._seeders: Dict[int, ChunkSeeder] = {}

    def _seeder(self, seed: int) -> ChunkSeeder:
        seeder = self._seeders.get(seed)
        if seeder is None:
            seeder = self._seeders[seed] = ChunkSeeder(seed)
        return seeder

    def site_for(self, seed: int, coordinate: ChunkCoordinate) -> ChunkCoordinate:
        region_x = coordinate.x // self.spacing
        region_z = coordinate.z // self.spacing
        rng = self._seeder(seed).for_feature("village", region_x, region_z)
        span = self.spacing - self.separation
        return ChunkCoordinate(
            region_x * self.spacing + int(rng.integers(span)),
            region_z * self.spacing + int(rng.integers(span)),
        )

    def hosts_village(self, world: World, coordinate: ChunkCoordinate, biome_id: int) -> bool:
        if self.site_for(world.seed, coordinate) != coordinate:
            return False
        return VILLAGE_TAG in world.registry.get(biome_id).tags


class VillageGenerationPopulator(GenerationPopulator):
    """Levels a gravel plaza around the centre of village chunks."""

    kind = PopulatorKind.STRUCTURE

    def __init__(self, layout: Optional[VillageLayout] = None) -> None:
        self.layout = layout or VillageLayout()

    def populate(self, world: World, buffer: BlockVolume, biomes: BiomeArea) -> None:
        if not self.layout.hosts_village(world, buffer.coordinate, biomes.get_biome(8, 8)):
            return
        blocks = buffer.array
        lo, hi = 8 - PLAZA_RADIUS, 8 + PLAZA_RADIUS + 1
        solid = SOLID_MASK[blocks[lo:hi, :, lo:hi]]
        tops = CHUNK_HEIGHT - 1 - np.argmax(solid[:, ::-1, :], axis=1)
        level = int(np.median(tops))
        if level <= world.sea_level:
            return
        ceiling = min(level + CLEARANCE, CHUNK_HEIGHT)
        blocks[lo:hi, max(level - 3, 1) : level, lo:hi] = DIRT
        blocks[lo:hi, level, lo:hi] = GRAVEL
        blocks[lo:hi, level + 1 : ceiling, lo:hi] = AIR


class VillagePopulator(FlaggedPopulator):
    """Builds the village well and marks the pass with the ``VILLAGE`` flag."""

    kind = PopulatorKind.STRUCTURE

    def __init__(self, layout: Optional[VillageLayout] = None) -> None:
        self.layout = layout or VillageLayout()

    def populate_with_flags(self, chunk: Chunk, rng: np.random.Generator, context: DecorationContext) -> None:
        if not self.layout.hosts_village(chunk.world, chunk.coordinate, chunk.primary_biome):
            return
        context.set_flag(VILLAGE_FLAG)
        y = chunk.top_solid_or_liquid(8, 8)
        if y < 0 or y + 4 >= CHUNK_HEIGHT:
            return
        for x in range(6, 10):
            for z in range(6, 10):
                inner = x in (7, 8) and z in (7, 8)
                chunk.set_block(x, y, z, WATER if inner else COBBLESTONE)
                chunk.set_block(x, y + 1, z, AIR if inner else COBBLESTONE)
                for ly in range(y + 2, y + 4):
                    post = x in (6, 9) and z in (6, 9)
                    chunk.set_block(x, ly, z, COBBLESTONE if post else AIR)
                chunk.set_block(x, y + 4, z, PLANKS)


__all__ = [
    "VILLAGE_FLAG",
    "VILLAGE_TAG",
    "VillageLayout",
    "VillageGenerationPopulator",
    "VillagePopulator",
]
