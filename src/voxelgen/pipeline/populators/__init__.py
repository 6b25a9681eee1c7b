"""Populator strategies."""

from .base import (
    DecorationContext,
    FilteredPopulator,
    FlaggedPopulator,
    GenerationPopulator,
    Populator,
    PopulatorKind,
    run_populator,
)
from .caves import CaveGenerationPopulator
from .dungeon import DungeonPopulator
from .fauna import AnimalPopulator
from .forest import BiomeTreeType, ForestPopulator, PopulatorObject, forest_of
from .lake import LakePopulator
from .ore import OrePopulator
from .shrub import DeadBushPopulator, ShrubPopulator
from .snow import SnowPopulator
from .structures import VILLAGE_FLAG, VillageGenerationPopulator, VillageLayout, VillagePopulator

__all__ = [
    "DecorationContext",
    "FilteredPopulator",
    "FlaggedPopulator",
    "GenerationPopulator",
    "Populator",
    "PopulatorKind",
    "run_populator",
    "CaveGenerationPopulator",
    "DungeonPopulator",
    "AnimalPopulator",
    "BiomeTreeType",
    "ForestPopulator",
    "PopulatorObject",
    "forest_of",
    "LakePopulator",
    "OrePopulator",
    "DeadBushPopulator",
    "ShrubPopulator",
    "SnowPopulator",
    "VILLAGE_FLAG",
    "VillageGenerationPopulator",
    "VillageLayout",
    "VillagePopulator",
]
