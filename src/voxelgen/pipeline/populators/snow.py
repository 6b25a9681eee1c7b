"""Freezes surface water and lays snow in cold biomes."""

from __future__ import annotations

import numpy as np

from ..blocks import AIR, ICE, SNOW_LAYER, SOLID_MASK, WATER
from ..models import CHUNK_WIDTH, Chunk
from .base import Populator, PopulatorKind

FREEZING_TEMPERATURE = 0.15


class SnowPopulator(Populator):
    kind = PopulatorKind.SNOW

    def __init__(self, freezing_temperature: float = FREEZING_TEMPERATURE) -> None:
        self.freezing_temperature = freezing_temperature

    def populate(self, chunk: Chunk, rng: np.random.Generator) -> None:
        registry = chunk.world.registry
        for x in range(CHUNK_WIDTH):
            for z in range(CHUNK_WIDTH):
                biome = registry.get(chunk.biome_at(x, z))
                if biome.temperature >= self.freezing_temperature:
                    continue
                top = chunk.top_solid_or_liquid(x, z)
                if top < 0:
                    continue
                block = chunk.get_block(x, top, z)
                if block == WATER:
                    chunk.set_block(x, top, z, ICE)
                elif SOLID_MASK[block] and chunk.get_block(x, top + 1, z) == AIR:
                    chunk.set_block(x, top + 1, z, SNOW_LAYER)


__all__ = ["SnowPopulator", "FREEZING_TEMPERATURE"]
