"""Block table and global block physics toggles."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator

import numpy as np


@dataclass(frozen=True)
class BlockType:
    id: int
    name: str
    solid: bool = True
    liquid: bool = False
    falls: bool = False
    opaque: bool = True
    replaceable: bool = False


_TABLE = (
    BlockType(0, "air", solid=False, opaque=False, replaceable=True),
    BlockType(1, "stone"),
    BlockType(2, "grass"),
    BlockType(3, "dirt"),
    BlockType(4, "cobblestone"),
    BlockType(5, "planks"),
    BlockType(7, "bedrock"),
    BlockType(9, "water", solid=False, liquid=True, opaque=False, replaceable=True),
    BlockType(11, "lava", solid=False, liquid=True, opaque=False, replaceable=True),
    BlockType(12, "sand", falls=True),
    BlockType(13, "gravel", falls=True),
    BlockType(14, "gold_ore"),
    BlockType(15, "iron_ore"),
    BlockType(16, "coal_ore"),
    BlockType(17, "log"),
    BlockType(18, "leaves", opaque=False),
    BlockType(24, "sandstone"),
    BlockType(31, "tall_grass", solid=False, opaque=False, replaceable=True),
    BlockType(32, "dead_bush", solid=False, opaque=False, replaceable=True),
    BlockType(48, "mossy_cobblestone"),
    BlockType(52, "mob_spawner", opaque=False),
    BlockType(54, "chest", opaque=False),
    BlockType(56, "diamond_ore"),
    BlockType(73, "redstone_ore"),
    BlockType(78, "snow_layer", solid=False, opaque=False, replaceable=True),
    BlockType(79, "ice", opaque=False),
    BlockType(82, "clay"),
    BlockType(110, "mycelium"),
)

BLOCKS: Dict[int, BlockType] = {block.id: block for block in _TABLE}
BLOCK_ID: Dict[str, int] = {block.name: block.id for block in _TABLE}

# Lookup tables indexed by block id for vectorised queries over volumes.
SOLID_MASK = np.zeros(256, dtype=bool)
LIQUID_MASK = np.zeros(256, dtype=bool)
OPAQUE_MASK = np.zeros(256, dtype=bool)
for _block in _TABLE:
    SOLID_MASK[_block.id] = _block.solid
    LIQUID_MASK[_block.id] = _block.liquid
    OPAQUE_MASK[_block.id] = _block.opaque
del _block

AIR = BLOCK_ID["air"]
STONE = BLOCK_ID["stone"]
GRASS = BLOCK_ID["grass"]
DIRT = BLOCK_ID["dirt"]
COBBLESTONE = BLOCK_ID["cobblestone"]
PLANKS = BLOCK_ID["planks"]
BEDROCK = BLOCK_ID["bedrock"]
WATER = BLOCK_ID["water"]
LAVA = BLOCK_ID["lava"]
SAND = BLOCK_ID["sand"]
GRAVEL = BLOCK_ID["gravel"]
GOLD_ORE = BLOCK_ID["gold_ore"]
IRON_ORE = BLOCK_ID["iron_ore"]
COAL_ORE = BLOCK_ID["coal_ore"]
LOG = BLOCK_ID["log"]
LEAVES = BLOCK_ID["leaves"]
SANDSTONE = BLOCK_ID["sandstone"]
TALL_GRASS = BLOCK_ID["tall_grass"]
DEAD_BUSH = BLOCK_ID["dead_bush"]
MOSSY_COBBLESTONE = BLOCK_ID["mossy_cobblestone"]
MOB_SPAWNER = BLOCK_ID["mob_spawner"]
CHEST = BLOCK_ID["chest"]
DIAMOND_ORE = BLOCK_ID["diamond_ore"]
REDSTONE_ORE = BLOCK_ID["redstone_ore"]
SNOW_LAYER = BLOCK_ID["snow_layer"]
ICE = BLOCK_ID["ice"]
CLAY = BLOCK_ID["clay"]
MYCELIUM = BLOCK_ID["mycelium"]


def block_type(block_id: int) -> BlockType:
    try:
        return BLOCKS[int(block_id)]
    except KeyError as exc:
        raise KeyError(f"Unknown block id {block_id}") from exc


def resolve_block(value: int | str) -> int:
    """Return a block id from either an id or a block name."""
    if isinstance(value, str):
        try:
            return BLOCK_ID[value]
        except KeyError as exc:
            raise KeyError(f"Unknown block '{value}'") from exc
    return block_type(value).id


class BlockPhysics:
    """Process-wide physics switches consulted while blocks are placed.

    ``fall_instantly`` makes gravity-affected blocks settle immediately instead
    of being scheduled for a later update tick. It stays set while at least
    one decoration pass is active, on any thread.
    """

    fall_instantly: bool = False
    _active_passes: int = 0
    _lock = threading.Lock()


@contextmanager
def suppressed_falling() -> Iterator[None]:
    with BlockPhysics._lock:
        BlockPhysics._active_passes += 1
        BlockPhysics.fall_instantly = True
    try:
        yield
    finally:
        with BlockPhysics._lock:
            BlockPhysics._active_passes -= 1
            BlockPhysics.fall_instantly = BlockPhysics._active_passes > 0


__all__ = [
    "BlockType",
    "BLOCKS",
    "BLOCK_ID",
    "SOLID_MASK",
    "LIQUID_MASK",
    "OPAQUE_MASK",
    "BlockPhysics",
    "block_type",
    "resolve_block",
    "suppressed_falling",
]
