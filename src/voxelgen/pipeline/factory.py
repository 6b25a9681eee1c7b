"""Construction of configured populators and fully wired world generators."""

from __future__ import annotations

from typing import Optional

from .amounts import VariableAmount
from .biomes import DESERT_TAG, NoiseBiomeGenerator, SingleBiomeGenerator
from .blocks import WATER
from .config import WorldConfig
from .generator import WorldGenerator
from .logging import NullLogger
from .models import CHUNK_HEIGHT, Chunk, World
from .populators.base import FilteredPopulator
from .populators.caves import CaveGenerationPopulator
from .populators.dungeon import DungeonPopulator
from .populators.fauna import AnimalPopulator
from .populators.lake import LakePopulator
from .populators.ore import OrePopulator
from .populators.snow import SnowPopulator
from .populators.structures import VILLAGE_FLAG, VillageGenerationPopulator, VillageLayout, VillagePopulator
from .registry import BiomeRegistry, registry
from .terrain import TerrainGenerator


class PopulatorFactory:
    """Builds standard populators from declarative parameters."""

    def create_lake(self, chance: float, liquid: int = WATER, height: Optional[VariableAmount] = None) -> LakePopulator:
        return LakePopulator(chance=chance, liquid=liquid, height=height)

    def create_dungeon(self, attempts: int | VariableAmount = 8) -> DungeonPopulator:
        return DungeonPopulator(attempts=attempts)

    def create_ore(
        self,
        ore: int,
        size: int = 8,
        count: Optional[VariableAmount] = None,
        height: Optional[VariableAmount] = None,
    ) -> OrePopulator:
        return OrePopulator(ore, size=size, count=count, height=height)

    def add_default_populators(self, generator: WorldGenerator, config: WorldConfig) -> None:
        """Append the classic world's global populators in their usual order."""
        features = config.features
        world = generator.world

        if features.use_caves:
            generator.generation_populators.append(CaveGenerationPopulator())

        # Structures take part in both phases.
        if features.use_villages:
            layout = VillageLayout()
            generator.generation_populators.append(VillageGenerationPopulator(layout))
            generator.populators.append(VillagePopulator(layout))

        if features.use_water_lakes:
            lake = self.create_lake(
                chance=1.0 / features.water_lake_chance,
                liquid=WATER,
                height=VariableAmount.base_with_random_addition(0, CHUNK_HEIGHT),
            )

            def not_desert(chunk: Chunk) -> bool:
                return DESERT_TAG not in world.registry.get(chunk.primary_biome).tags

            generator.populators.append(FilteredPopulator(lake, not_desert, excluded_flags=(VILLAGE_FLAG,)))

        if features.use_lava_lakes:
            # Reuses the water lake chance and water as its liquid; lava_lake_chance is not consulted.
            lava_lake = self.create_lake(
                chance=1.0 / features.water_lake_chance,
                liquid=WATER,
                height=VariableAmount.base_with_variance(
                    0,
                    VariableAmount.base_with_random_addition(
                        8, VariableAmount.base_with_optional_addition(55, 193, 0.1)
                    ),
                ),
            )
            generator.populators.append(FilteredPopulator(lava_lake, excluded_flags=(VILLAGE_FLAG,)))

        if features.use_dungeons:
            generator.populators.append(self.create_dungeon(features.dungeon_chance))

        if features.use_fauna:
            generator.populators.append(AnimalPopulator())
        if features.use_snow:
            generator.populators.append(SnowPopulator())


def create_world_generator(
    config: WorldConfig,
    biomes: Optional[BiomeRegistry] = None,
    *,
    logger: Optional[NullLogger] = None,
    factory: Optional[PopulatorFactory] = None,
) -> WorldGenerator:
    """Wire a world generator with the configured biome generator and default populators."""
    biomes = registry() if biomes is None else biomes
    world = World(config, biomes)
    if config.biome_generator == "single":
        biome_generator = SingleBiomeGenerator(biomes.by_name(config.single_biome))
    else:
        biome_generator = NoiseBiomeGenerator(config.seed, biomes)
    terrain = TerrainGenerator()
    generator = WorldGenerator(world, biome_generator, terrain, logger=logger)
    terrain.settings_source = generator.get_biome_settings
    (factory or PopulatorFactory()).add_default_populators(generator, config)
    return generator


__all__ = ["PopulatorFactory", "create_world_generator"]
