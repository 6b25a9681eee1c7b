"""Built-in biome types and the biome generators that place them."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List

import numpy as np

from .amounts import SeededVariableAmount, VariableAmount
from .blocks import (
    COAL_ORE,
    DIAMOND_ORE,
    DIRT,
    GOLD_ORE,
    GRASS,
    GRAVEL,
    IRON_ORE,
    REDSTONE_ORE,
    SAND,
    SANDSTONE,
)
from .models import CHUNK_WIDTH, BiomeGenerationSettings, GroundCoverLayer, MutableBiomeBuffer, World
from .perlin import OctavePerlin
from .populators.base import Populator
from .populators.forest import BIRCH, OAK, SPRUCE, SWAMP, forest_of
from .populators.ore import OrePopulator
from .populators.shrub import SHRUB_BATCH, DeadBushPopulator, ShrubPopulator
from .registry import BiomeRegistry, BiomeType, CreatureEntry, biome
from .seeding import derive_seed
from .settings import BiomeGenerationSettingsBuilder

PASSIVE_CREATURES = (
    CreatureEntry("sheep", 12, 4, 4),
    CreatureEntry("pig", 10, 4, 4),
    CreatureEntry("chicken", 10, 4, 4),
    CreatureEntry("cow", 8, 4, 4),
)

DESERT_TAG = "desert"
OCEAN_TAG = "ocean"


def soil_layers(top: int = GRASS, filler: int = DIRT) -> List[GroundCoverLayer]:
    return [
        GroundCoverLayer.of(top, 1),
        GroundCoverLayer.of(filler, SeededVariableAmount.surface_noise_depth()),
    ]


def sand_layers() -> List[GroundCoverLayer]:
    return [
        GroundCoverLayer.of(SAND, 1),
        GroundCoverLayer.of(SAND, SeededVariableAmount.surface_noise_depth()),
        GroundCoverLayer.of(SANDSTONE, 3),
    ]


def ore_populators(world: World) -> List[Populator]:
    if not world.config.features.use_ores:
        return []
    span = VariableAmount.base_with_random_addition
    return [
        OrePopulator(DIRT, size=33, count=VariableAmount.fixed(10), height=span(0, 256)),
        OrePopulator(GRAVEL, size=33, count=VariableAmount.fixed(8), height=span(0, 256)),
        OrePopulator(COAL_ORE, size=17, count=VariableAmount.fixed(20), height=span(0, 128)),
        OrePopulator(IRON_ORE, size=9, count=VariableAmount.fixed(20), height=span(0, 64)),
        OrePopulator(GOLD_ORE, size=9, count=VariableAmount.fixed(2), height=span(0, 32)),
        OrePopulator(REDSTONE_ORE, size=8, count=VariableAmount.fixed(8), height=span(0, 16)),
        OrePopulator(DIAMOND_ORE, size=8, count=VariableAmount.fixed(1), height=span(0, 16)),
    ]


def grass(patches: int) -> ShrubPopulator:
    return ShrubPopulator(count=VariableAmount.fixed(patches * SHRUB_BATCH))


def _settings(world: World, min_height: float, max_height: float, layers, populators) -> BiomeGenerationSettings:
    return (
        BiomeGenerationSettingsBuilder()
        .min_height(min_height)
        .max_height(max_height)
        .ground_cover_layers(layers)
        .generation_populators([])
        .populators(ore_populators(world) + list(populators))
        .build()
    )


@biome(0, "ocean", temperature=0.5, rainfall=0.5, tags=(OCEAN_TAG,))
def ocean(world: World) -> BiomeGenerationSettings:
    return _settings(world, -1.0, -0.9, soil_layers(), [])


@biome(1, "plains", temperature=0.8, rainfall=0.4, tags=("village",), creatures=PASSIVE_CREATURES)
def plains(world: World) -> BiomeGenerationSettings:
    sparse = VariableAmount.base_with_optional_addition(0, 1, 0.05)
    return _settings(world, 0.125, 0.175, soil_layers(), [forest_of((OAK, 1), count=sparse), grass(10)])


@biome(2, "desert", temperature=2.0, rainfall=0.0, tags=(DESERT_TAG, "village"))
def desert(world: World) -> BiomeGenerationSettings:
    return _settings(world, 0.125, 0.175, sand_layers(), [DeadBushPopulator(VariableAmount.fixed(32))])


@biome(3, "extreme_hills", temperature=0.2, rainfall=0.3, creatures=PASSIVE_CREATURES)
def extreme_hills(world: World) -> BiomeGenerationSettings:
    sparse = VariableAmount.base_with_optional_addition(0, 1, 0.1)
    trees = forest_of((SPRUCE, 2), (OAK, 1), count=sparse)
    return _settings(world, 1.0, 1.5, soil_layers(), [trees, grass(1)])


@biome(4, "forest", temperature=0.7, rainfall=0.8, creatures=PASSIVE_CREATURES)
def forest(world: World) -> BiomeGenerationSettings:
    trees = forest_of((OAK, 4), (BIRCH, 1), count=VariableAmount.fixed(10), large_chance=0.1)
    return _settings(world, 0.1, 0.3, soil_layers(), [trees, grass(2)])


@biome(5, "taiga", temperature=0.25, rainfall=0.8, creatures=PASSIVE_CREATURES)
def taiga(world: World) -> BiomeGenerationSettings:
    trees = forest_of((SPRUCE, 1), count=VariableAmount.fixed(10), large_chance=0.33)
    return _settings(world, 0.2, 0.4, soil_layers(), [trees, grass(1)])


@biome(6, "swampland", temperature=0.8, rainfall=0.9, creatures=PASSIVE_CREATURES)
def swampland(world: World) -> BiomeGenerationSettings:
    trees = forest_of((SWAMP, 1), count=VariableAmount.fixed(2))
    populators = [trees, grass(5), DeadBushPopulator(VariableAmount.fixed(16))]
    return _settings(world, -0.2, -0.1, soil_layers(), populators)


@biome(12, "ice_plains", temperature=0.0, rainfall=0.5, creatures=PASSIVE_CREATURES)
def ice_plains(world: World) -> BiomeGenerationSettings:
    sparse = VariableAmount.base_with_optional_addition(0, 1, 0.1)
    return _settings(world, 0.125, 0.175, soil_layers(), [forest_of((SPRUCE, 1), count=sparse)])


@biome(16, "beach", temperature=0.8, rainfall=0.4)
def beach(world: World) -> BiomeGenerationSettings:
    layers = [GroundCoverLayer.of(SAND, 1), GroundCoverLayer.of(SAND, SeededVariableAmount.surface_noise_depth())]
    return _settings(world, 0.0, 0.025, layers, [])


@biome(17, "desert_hills", temperature=2.0, rainfall=0.0, tags=(DESERT_TAG,))
def desert_hills(world: World) -> BiomeGenerationSettings:
    return _settings(world, 0.45, 0.75, sand_layers(), [DeadBushPopulator(VariableAmount.fixed(32))])


class BiomeGenerator(ABC):
    """Fills a biome buffer for the chunk at the buffer's origin."""

    @abstractmethod
    def generate_biomes(self, buffer: MutableBiomeBuffer) -> None:
        ...


class SingleBiomeGenerator(BiomeGenerator):
    def __init__(self, biome_type: BiomeType) -> None:
        self.biome_type = biome_type

    def generate_biomes(self, buffer: MutableBiomeBuffer) -> None:
        buffer.array.fill(self.biome_type.id)

    def __repr__(self) -> str:
        return f"SingleBiomeGenerator({self.biome_type.name})"


class NoiseBiomeGenerator(BiomeGenerator):
    """Classifies columns from continent, temperature and moisture noise.

    Low continent values become ocean with a beach fringe; land is split by
    temperature first and moisture second, with a hill field turning part of
    the desert into desert hills.
    """

    scale = 1.0 / 256.0

    def __init__(self, seed: int, biomes: BiomeRegistry) -> None:
        self.seed = int(seed)
        self._continent = OctavePerlin(np.random.default_rng(derive_seed(seed, "continent")), 4)
        self._temperature = OctavePerlin(np.random.default_rng(derive_seed(seed, "temperature")), 3)
        self._moisture = OctavePerlin(np.random.default_rng(derive_seed(seed, "moisture")), 3)
        self._hills = OctavePerlin(np.random.default_rng(derive_seed(seed, "hills")), 2)
        names = (
            "ocean",
            "beach",
            "ice_plains",
            "taiga",
            "extreme_hills",
            "plains",
            "forest",
            "swampland",
            "desert",
            "desert_hills",
        )
        self._ids: Dict[str, int] = {name: biomes.by_name(name).id for name in names}

    def classify(self, continent: float, temperature: float, moisture: float, hills: float) -> str:
        if continent < -0.15:
            return "ocean"
        if continent < -0.1:
            return "beach"
        if temperature < 0.3:
            return "ice_plains"
        if temperature < 0.42:
            return "taiga" if moisture > 0.5 else "extreme_hills"
        if temperature < 0.6:
            if moisture > 0.65:
                return "swampland"
            return "forest" if moisture > 0.45 else "plains"
        if moisture < 0.45:
            return "desert_hills" if hills > 0.25 else "desert"
        return "plains"

    def generate_biomes(self, buffer: MutableBiomeBuffer) -> None:
        origin_x, origin_z = buffer.origin
        for x in range(CHUNK_WIDTH):
            for z in range(CHUNK_WIDTH):
                bx = (origin_x + x) * self.scale
                bz = (origin_z + z) * self.scale
                name = self.classify(
                    self._continent.sample2(bx, bz),
                    (self._temperature.sample2(bx, bz) + 1.0) * 0.5,
                    (self._moisture.sample2(bx, bz) + 1.0) * 0.5,
                    self._hills.sample2(bx * 4.0, bz * 4.0),
                )
                buffer.set_biome(x, z, self._ids[name])


__all__ = [
    "BiomeGenerator",
    "SingleBiomeGenerator",
    "NoiseBiomeGenerator",
    "soil_layers",
    "sand_layers",
    "ore_populators",
    "DESERT_TAG",
    "OCEAN_TAG",
    "PASSIVE_CREATURES",
]
