"""Top-down previews of generated chunks."""

from __future__ import annotations

from typing import Dict, Mapping

import numpy as np
from PIL import Image

from .pipeline import blocks as B
from .pipeline.models import CHUNK_HEIGHT, CHUNK_WIDTH, Chunk, ChunkCoordinate

Array = np.ndarray

_PALETTE: Dict[int, tuple] = {
    B.STONE: (125, 125, 125),
    B.GRASS: (95, 159, 53),
    B.DIRT: (134, 96, 67),
    B.COBBLESTONE: (110, 110, 110),
    B.PLANKS: (157, 128, 79),
    B.BEDROCK: (40, 40, 40),
    B.WATER: (47, 67, 244),
    B.LAVA: (207, 92, 15),
    B.SAND: (219, 207, 163),
    B.GRAVEL: (136, 126, 126),
    B.LOG: (102, 81, 51),
    B.LEAVES: (48, 108, 24),
    B.SANDSTONE: (216, 203, 155),
    B.TALL_GRASS: (108, 170, 60),
    B.DEAD_BUSH: (148, 118, 62),
    B.MOSSY_COBBLESTONE: (90, 120, 90),
    B.SNOW_LAYER: (240, 250, 250),
    B.ICE: (160, 190, 250),
    B.CLAY: (160, 166, 179),
}

PALETTE = np.zeros((256, 3), dtype=np.uint8)
PALETTE[:] = (255, 0, 255)
for _block_id, _colour in _PALETTE.items():
    PALETTE[_block_id] = _colour
PALETTE[B.AIR] = (0, 0, 0)


def top_blocks(chunk: Chunk) -> Array:
    """Id of the highest non-air block per column, shaped ``(16, 16)`` and indexed ``[x, z]``."""
    blocks = chunk.blocks.array
    filled = blocks != B.AIR
    top_from_above = np.argmax(filled[:, ::-1, :], axis=1)
    heights = CHUNK_HEIGHT - 1 - top_from_above
    xs, zs = np.meshgrid(np.arange(CHUNK_WIDTH), np.arange(CHUNK_WIDTH), indexing="ij")
    tops = blocks[xs, heights, zs]
    return np.where(filled.any(axis=1), tops, B.AIR)


def render_png(chunks: Mapping[ChunkCoordinate, Chunk]) -> Image.Image:
    """Render chunks side by side, one pixel per column, shaded by surface height."""
    if not chunks:
        raise ValueError("Nothing to render: no chunks supplied")
    min_x = min(c.x for c in chunks)
    min_z = min(c.z for c in chunks)
    width = (max(c.x for c in chunks) - min_x + 1) * CHUNK_WIDTH
    depth = (max(c.z for c in chunks) - min_z + 1) * CHUNK_WIDTH
    img = np.zeros((depth, width, 3), dtype=np.uint8)
    for coordinate, chunk in chunks.items():
        colours = PALETTE[top_blocks(chunk)].astype(np.float32)
        shade = 0.6 + 0.4 * (chunk.heightmap.astype(np.float32) / CHUNK_HEIGHT)[..., None]
        tile = np.clip(colours * np.clip(shade * 1.5, 0.0, 1.2), 0, 255).astype(np.uint8)
        ox = (coordinate.x - min_x) * CHUNK_WIDTH
        oz = (coordinate.z - min_z) * CHUNK_WIDTH
        # Image rows run along z, columns along x.
        img[oz : oz + CHUNK_WIDTH, ox : ox + CHUNK_WIDTH] = tile.transpose(1, 0, 2)
    return Image.fromarray(img)


__all__ = ["render_png", "top_blocks", "PALETTE"]
