"""Deterministic seed derivation for chunks and features."""

from __future__ import annotations

import hashlib

import numpy as np

MASK64 = (1 << 64) - 1

# Large odd multipliers mixing chunk coordinates into the generate-phase seed.
GENERATION_X_MULTIPLIER = 341873128711
GENERATION_Z_MULTIPLIER = 132897987541


def to_unsigned(seed: int) -> int:
    return int(seed) & MASK64


def derive_seed(seed: int, label: str) -> int:
    payload = f"{label}:{to_unsigned(seed)}".encode("utf8")
    digest = hashlib.blake2b(payload, digest_size=16)
    return int.from_bytes(digest.digest()[:8], "little", signed=False)


class ChunkSeeder:
    """Per-chunk RNG factory keyed by world seed and chunk coordinates.

    Every call returns a fresh generator, so the stream a chunk sees never
    depends on which chunks were generated or populated before it.
    """

    def __init__(self, world_seed: int) -> None:
        self._seed = to_unsigned(world_seed)
        init = np.random.default_rng(self._seed)
        self._population_x = int(init.integers(0, 1 << 62)) * 2 + 1
        self._population_z = int(init.integers(0, 1 << 62)) * 2 + 1

    @property
    def world_seed(self) -> int:
        return self._seed

    def generation_seed(self, chunk_x: int, chunk_z: int) -> int:
        mixed = chunk_x * GENERATION_X_MULTIPLIER + chunk_z * GENERATION_Z_MULTIPLIER
        return (mixed ^ self._seed) & MASK64

    def population_seed(self, chunk_x: int, chunk_z: int) -> int:
        mixed = chunk_x * self._population_x + chunk_z * self._population_z
        return (mixed ^ self._seed) & MASK64

    def for_generation(self, chunk_x: int, chunk_z: int) -> np.random.Generator:
        return np.random.default_rng(self.generation_seed(chunk_x, chunk_z))

    def for_population(self, chunk_x: int, chunk_z: int) -> np.random.Generator:
        return np.random.default_rng(self.population_seed(chunk_x, chunk_z))

    def for_feature(self, label: str, chunk_x: int, chunk_z: int) -> np.random.Generator:
        return np.random.default_rng(derive_seed(self._seed, f"{label}:{chunk_x}:{chunk_z}"))


__all__ = ["MASK64", "ChunkSeeder", "derive_seed", "to_unsigned"]
