"""Underground cobblestone rooms with loot chests and a mob spawner."""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from ..amounts import VariableAmount, WeightedTable
from ..blocks import AIR, CHEST, COBBLESTONE, MOB_SPAWNER, MOSSY_COBBLESTONE, SOLID_MASK
from ..models import CHUNK_HEIGHT, Chunk
from .base import Populator, PopulatorKind, random_column

ROOM_HEIGHT = 3
MIN_OPENINGS = 1
MAX_OPENINGS = 5


def default_mobs() -> WeightedTable[str]:
    table: WeightedTable[str] = WeightedTable()
    table.add("skeleton", 1).add("zombie", 2).add("spider", 1)
    return table


class DungeonPopulator(Populator):
    """Tries ``attempts`` times per chunk to carve a dungeon room.

    A room is only built where its floor and ceiling are fully solid and
    between one and five air openings exist at floor level around the walls.
    """

    kind = PopulatorKind.DUNGEON

    def __init__(self, attempts: VariableAmount | int = 8, mobs: Optional[WeightedTable[str]] = None) -> None:
        if not isinstance(attempts, VariableAmount):
            attempts = VariableAmount.fixed(attempts)
        self.attempts = attempts
        self.mobs = mobs or default_mobs()

    def populate(self, chunk: Chunk, rng: np.random.Generator) -> None:
        for _ in range(self.attempts.get_floored_amount(rng)):
            x, z = random_column(rng)
            y = int(rng.integers(CHUNK_HEIGHT))
            self.place(chunk, rng, x, y, z)

    def _count_openings(self, chunk: Chunk, x: int, y: int, z: int, rx: int, rz: int) -> Optional[int]:
        openings = 0
        for dx in range(-rx - 1, rx + 2):
            for dy in range(-1, ROOM_HEIGHT + 2):
                for dz in range(-rz - 1, rz + 2):
                    block = chunk.get_block(x + dx, y + dy, z + dz)
                    if dy in (-1, ROOM_HEIGHT + 1) and not SOLID_MASK[block]:
                        return None
                    wall = abs(dx) == rx + 1 or abs(dz) == rz + 1
                    if wall and dy == 0 and chunk.is_air(x + dx, y, z + dz) and chunk.is_air(x + dx, y + 1, z + dz):
                        openings += 1
        return openings

    def place(self, chunk: Chunk, rng: np.random.Generator, x: int, y: int, z: int) -> bool:
        rx = int(rng.integers(2)) + 2
        rz = int(rng.integers(2)) + 2
        openings = self._count_openings(chunk, x, y, z, rx, rz)
        if openings is None or not MIN_OPENINGS <= openings <= MAX_OPENINGS:
            return False

        for dx in range(-rx - 1, rx + 2):
            for dy in range(ROOM_HEIGHT, -2, -1):
                for dz in range(-rz - 1, rz + 2):
                    px, py, pz = x + dx, y + dy, z + dz
                    wall = abs(dx) == rx + 1 or abs(dz) == rz + 1
                    if not wall and dy != -1:
                        chunk.set_block(px, py, pz, AIR)
                    elif py >= 0 and not SOLID_MASK[chunk.get_block(px, py - 1, pz)]:
                        chunk.set_block(px, py, pz, AIR)
                    elif SOLID_MASK[chunk.get_block(px, py, pz)] and chunk.get_block(px, py, pz) != CHEST:
                        mossy = dy == -1 and int(rng.integers(4)) != 0
                        chunk.set_block(px, py, pz, MOSSY_COBBLESTONE if mossy else COBBLESTONE)

        for _ in range(2):
            for _ in range(3):
                spot = (
                    x + int(rng.integers(rx * 2 + 1)) - rx,
                    y,
                    z + int(rng.integers(rz * 2 + 1)) - rz,
                )
                if chunk.is_air(*spot) and self._solid_neighbours(chunk, spot) == 1:
                    chunk.set_block(*spot, CHEST)
                    chunk.tile_entities[spot] = "chest"
                    break

        chunk.set_block(x, y, z, MOB_SPAWNER)
        mob = self.mobs.get(rng)
        chunk.tile_entities[(x, y, z)] = f"mob_spawner:{mob[0] if mob else 'zombie'}"
        return True

    @staticmethod
    def _solid_neighbours(chunk: Chunk, spot: Tuple[int, int, int]) -> int:
        x, y, z = spot
        sides = ((x + 1, y, z), (x - 1, y, z), (x, y, z + 1), (x, y, z - 1))
        return sum(1 for side in sides if SOLID_MASK[chunk.get_block(*side)])

    def __repr__(self) -> str:
        return f"DungeonPopulator(attempts={self.attempts!r})"


__all__ = ["DungeonPopulator", "default_mobs"]
