"""Initial passive-creature spawns recorded on a freshly decorated chunk."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..blocks import LIQUID_MASK, SOLID_MASK
from ..models import CHUNK_WIDTH, Chunk, SpawnRecord
from .base import Populator, PopulatorKind, random_column

SPAWNING_CHANCE = 0.1
PLACEMENT_TRIES = 4


def can_spawn_at(chunk: Chunk, x: int, y: int, z: int) -> bool:
    if not chunk.in_bounds(x, y, z) or y < 1:
        return False
    below = chunk.get_block(x, y - 1, z)
    return (
        bool(SOLID_MASK[below])
        and not LIQUID_MASK[below]
        and chunk.is_air(x, y, z)
        and chunk.is_air(x, y + 1, z)
    )


class AnimalPopulator(Populator):
    """Rolls groups of the primary biome's creatures onto the surface.

    Spawns are recorded as :class:`SpawnRecord` entries on the chunk; entity
    construction belongs to the host.
    """

    kind = PopulatorKind.FAUNA

    def __init__(self, spawning_chance: Optional[float] = None) -> None:
        self.spawning_chance = SPAWNING_CHANCE if spawning_chance is None else spawning_chance

    def populate(self, chunk: Chunk, rng: np.random.Generator) -> None:
        biome = chunk.world.registry.get(chunk.primary_biome)
        if not biome.creatures:
            return
        weights = np.array([entry.weight for entry in biome.creatures], dtype=float)
        weights /= weights.sum()
        while float(rng.random()) < self.spawning_chance:
            entry = biome.creatures[int(rng.choice(len(biome.creatures), p=weights))]
            group = entry.min_group + int(rng.integers(1 + entry.max_group - entry.min_group))
            x, z = random_column(rng)
            for _ in range(group):
                spawned = False
                for _ in range(PLACEMENT_TRIES):
                    if spawned:
                        break
                    y = chunk.top_solid_or_liquid(x, z) + 1
                    if can_spawn_at(chunk, x, y, z):
                        chunk.spawns.append(SpawnRecord(entry.entity, x, y, z))
                        spawned = True
                    x = min(max(x + int(rng.integers(5)) - int(rng.integers(5)), 0), CHUNK_WIDTH - 1)
                    z = min(max(z + int(rng.integers(5)) - int(rng.integers(5)), 0), CHUNK_WIDTH - 1)


__all__ = ["AnimalPopulator", "can_spawn_at", "SPAWNING_CHANCE"]
