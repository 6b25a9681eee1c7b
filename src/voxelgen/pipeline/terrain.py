"""Base terrain: density lattice to stone/filler, then per-column ground cover."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .blocks import AIR, SOLID_MASK, STONE
from .models import (
    CHUNK_HEIGHT,
    CHUNK_WIDTH,
    BiomeArea,
    BiomeGenerationSettings,
    BlockVolume,
    GroundCoverLayer,
    World,
)
from .perlin import HORIZONTAL_CELL, LATTICE_XZ, LATTICE_Y, VERTICAL_CELL, terrain_noise, trilinear_upsample
from .populators.base import GenerationPopulator, PopulatorKind

if TYPE_CHECKING:
    from .registry import BiomeType

SettingsSource = Callable[["BiomeType"], BiomeGenerationSettings]

DEFAULT_HEIGHTS = (0.1, 0.2)
FLOOR_BAND = 5


class TerrainGenerator(GenerationPopulator):
    """Default base generator filling the block volume from the density field.

    Each lattice column blends the height bounds of the biomes around it, so
    terrain changes smoothly across biome borders. ``settings_source`` is
    wired by the world generator; without one every biome uses the default
    height range.
    """

    kind = PopulatorKind.TERRAIN

    def __init__(self, settings_source: Optional[SettingsSource] = None) -> None:
        self.settings_source = settings_source

    def _heights(self, world: World, biome_id: int, cache: Dict[int, Tuple[float, float]]) -> Tuple[float, float]:
        heights = cache.get(biome_id)
        if heights is None:
            if self.settings_source is None:
                heights = DEFAULT_HEIGHTS
            else:
                settings = self.settings_source(world.registry.get(biome_id))
                heights = (settings.min_height, settings.max_height)
            cache[biome_id] = heights
        return heights

    def column_heights(self, world: World, biomes: BiomeArea) -> Tuple[np.ndarray, np.ndarray]:
        """Averaged ``(min_height, max_height)`` per lattice column, each shaped ``(5, 5)``."""
        cache: Dict[int, Tuple[float, float]] = {}
        low = np.zeros((LATTICE_XZ, LATTICE_XZ))
        high = np.zeros((LATTICE_XZ, LATTICE_XZ))
        for i in range(LATTICE_XZ):
            for j in range(LATTICE_XZ):
                samples: List[Tuple[float, float]] = []
                for di in (-1, 0, 1):
                    for dj in (-1, 0, 1):
                        bx = min(max((i + di) * HORIZONTAL_CELL, 0), CHUNK_WIDTH - 1)
                        bz = min(max((j + dj) * HORIZONTAL_CELL, 0), CHUNK_WIDTH - 1)
                        samples.append(self._heights(world, biomes.get_biome(bx, bz), cache))
                low[i, j] = sum(s[0] for s in samples) / len(samples)
                high[i, j] = sum(s[1] for s in samples) / len(samples)
        return low, high

    def density(self, world: World, buffer: BlockVolume, biomes: BiomeArea) -> np.ndarray:
        noise = terrain_noise(world.seed)
        cx, cz = buffer.coordinate.x, buffer.coordinate.z
        raw = noise.density(cx, cz)
        blend = noise.height(cx, cz)
        low, high = self.column_heights(world, biomes)

        amplitude = 4.0 + (high - low) * 48.0
        target = world.sea_level + 1.0 + low * 17.0 + (blend - 0.5) * amplitude
        ys = (np.arange(LATTICE_Y) * VERTICAL_CELL).astype(np.float64)[None, :, None]
        return (target[:, None, :] - ys) / 8.0 + raw * (amplitude[:, None, :] / 16.0 + 0.5)

    def populate(self, world: World, buffer: BlockVolume, biomes: BiomeArea) -> None:
        field = trilinear_upsample(self.density(world, buffer, biomes))
        ys = np.arange(CHUNK_HEIGHT)[None, :, None]
        open_block = np.where(ys < world.sea_level, world.config.filler_block, AIR)
        blocks = np.where(field > 0.0, STONE, open_block)
        buffer.array[...] = blocks.astype(np.uint16)


def generate_biome_terrain(
    column: List[int],
    layers: Sequence[GroundCoverLayer],
    rng: np.random.Generator,
    surface_noise: float,
    sea_level: int,
    floor_block: int,
    sediment_block: int,
) -> None:
    """Apply ground cover to one column (a list of block ids, bottom first) in place.

    Walking down from the top, ``k`` counts the rows left in the current
    layer and ``i`` names that layer. ``k == -1`` means no span is active;
    any non-solid block returns to that state so overhangs restart layering.
    A layer whose depth comes out as zero ends the stack for that span.
    """
    k = -1
    i = 0
    layer: Optional[GroundCoverLayer] = None

    def advance() -> None:
        nonlocal k, i, layer
        i += 1
        if i >= len(layers):
            k = 0
            layer = None
            return
        layer = layers[i]
        k = max(layer.depth.get_floored_amount(rng, surface_noise), 0)

    for y in range(CHUNK_HEIGHT - 1, -1, -1):
        if y < FLOOR_BAND and y <= int(rng.integers(FLOOR_BAND)):
            column[y] = floor_block
            continue
        block = column[y]
        if not SOLID_MASK[block]:
            k = -1
            continue
        if block != STONE:
            continue
        if k == -1:
            if not layers:
                k = 0
                continue
            i = 0
            layer = layers[0]
            k = layer.depth.get_floored_amount(rng, surface_noise)
            if k <= 0:
                k = 0
                continue
            if y >= sea_level - 1:
                column[y] = layer.block(surface_noise)
                k -= 1
                if k == 0:
                    advance()
            elif y < sea_level - 7 - k:
                column[y] = sediment_block
                k = 0
            else:
                advance()
                if layer is not None and k > 0:
                    column[y] = layer.block(surface_noise)
                    k -= 1
                    if k == 0:
                        advance()
        elif k > 0 and layer is not None:
            column[y] = layer.block(surface_noise)
            k -= 1
            if k == 0:
                advance()


def replace_biome_blocks(
    world: World,
    buffer: BlockVolume,
    biomes: BiomeArea,
    settings_for: SettingsSource,
    rng: np.random.Generator,
) -> None:
    """Run the ground-cover pass over every column, x-major then z."""
    config = world.config
    surface = terrain_noise(world.seed).surface(buffer.coordinate.x, buffer.coordinate.z)
    layers_by_biome: Dict[int, List[GroundCoverLayer]] = {}
    blocks = buffer.array
    for x in range(CHUNK_WIDTH):
        for z in range(CHUNK_WIDTH):
            biome_id = biomes.get_biome(x, z)
            layers = layers_by_biome.get(biome_id)
            if layers is None:
                layers = layers_by_biome[biome_id] = settings_for(world.registry.get(biome_id)).ground_cover_layers
            column = blocks[x, :, z].tolist()
            generate_biome_terrain(
                column,
                layers,
                rng,
                float(surface[x, z]),
                config.sea_level,
                config.floor_block,
                config.sediment_block,
            )
            blocks[x, :, z] = column


__all__ = [
    "TerrainGenerator",
    "generate_biome_terrain",
    "replace_biome_blocks",
    "DEFAULT_HEIGHTS",
]
