"""World generation pipeline exports."""

from .amounts import SeededVariableAmount, VariableAmount, WeightedTable
from .config import FeatureSettings, WorldConfig, load_config
from .events import EventManager, PopulateChunkPost, PopulateChunkPre
from .execution import ChunkProvider
from .factory import PopulatorFactory, create_world_generator
from .generator import OverrideConflict, OverrideConflictError, StrategySlot, WorldGenerator
from .logging import NullLogger, RunLogger
from .models import (
    BiomeArea,
    BiomeGenerationSettings,
    BlockVolume,
    Chunk,
    ChunkCoordinate,
    GroundCoverLayer,
    IllegalStateError,
    MutableBiomeBuffer,
    PhaseStats,
    World,
)
from .perlin import sample_density_field
from .registry import BiomeRegistry, BiomeType, CreatureEntry, biome, registry
from .settings import BiomeGenerationSettingsBuilder
from .terrain import TerrainGenerator, generate_biome_terrain, replace_biome_blocks

# Ensure built-in biomes are registered on import.
from . import biomes  # noqa: F401,E402
from .biomes import BiomeGenerator, NoiseBiomeGenerator, SingleBiomeGenerator  # noqa: E402

__all__ = [
    "SeededVariableAmount",
    "VariableAmount",
    "WeightedTable",
    "FeatureSettings",
    "WorldConfig",
    "load_config",
    "EventManager",
    "PopulateChunkPost",
    "PopulateChunkPre",
    "ChunkProvider",
    "PopulatorFactory",
    "create_world_generator",
    "OverrideConflict",
    "OverrideConflictError",
    "StrategySlot",
    "WorldGenerator",
    "NullLogger",
    "RunLogger",
    "BiomeArea",
    "BiomeGenerationSettings",
    "BlockVolume",
    "Chunk",
    "ChunkCoordinate",
    "GroundCoverLayer",
    "IllegalStateError",
    "MutableBiomeBuffer",
    "PhaseStats",
    "World",
    "sample_density_field",
    "BiomeRegistry",
    "BiomeType",
    "CreatureEntry",
    "biome",
    "registry",
    "BiomeGenerationSettingsBuilder",
    "TerrainGenerator",
    "generate_biome_terrain",
    "replace_biome_blocks",
    "BiomeGenerator",
    "NoiseBiomeGenerator",
    "SingleBiomeGenerator",
]
