"""Seeded Perlin samplers for terrain density and surface variation."""

from __future__ import annotations

import threading
from typing import Dict

import numpy as np
from noise import pnoise2, pnoise3

from .models import CHUNK_WIDTH
from .seeding import derive_seed

# Coarse density lattice: one sample every 4 blocks horizontally, 8 vertically.
LATTICE_XZ = 5
LATTICE_Y = 33
HORIZONTAL_CELL = 4
VERTICAL_CELL = 8

_REPEAT = 1 << 16


class OctavePerlin:
    """Perlin noise with a seed-derived coordinate offset and permutation base."""

    def __init__(
        self,
        rng: np.random.Generator,
        octaves: int,
        *,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
    ) -> None:
        self.octaves = int(octaves)
        self.persistence = float(persistence)
        self.lacunarity = float(lacunarity)
        self.base = int(rng.integers(0, 256))
        self._offset = rng.random(3) * 256.0

    def sample2(self, x: float, z: float) -> float:
        return pnoise2(
            x + self._offset[0],
            z + self._offset[2],
            octaves=self.octaves,
            persistence=self.persistence,
            lacunarity=self.lacunarity,
            repeatx=_REPEAT,
            repeaty=_REPEAT,
            base=self.base,
        )

    def sample3(self, x: float, y: float, z: float) -> float:
        return pnoise3(
            x + self._offset[0],
            y + self._offset[1],
            z + self._offset[2],
            octaves=self.octaves,
            persistence=self.persistence,
            lacunarity=self.lacunarity,
            repeatx=_REPEAT,
            repeaty=_REPEAT,
            repeatz=_REPEAT,
            base=self.base,
        )


class TerrainNoise:
    """All noise fields the base terrain needs for one world seed."""

    horizontal_scale = 1.0 / 24.0
    vertical_scale = 1.0 / 12.0
    height_scale = 1.0 / 40.0
    surface_scale = 1.0 / 16.0

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)
        self._density = OctavePerlin(np.random.default_rng(derive_seed(seed, "density")), 6)
        self._height = OctavePerlin(np.random.default_rng(derive_seed(seed, "height")), 4)
        self._surface = OctavePerlin(np.random.default_rng(derive_seed(seed, "surface")), 4)

    def density(self, chunk_x: int, chunk_z: int) -> np.ndarray:
        """Raw density lattice shaped ``(5, 33, 5)`` indexed ``[x, y, z]``."""
        field = np.empty((LATTICE_XZ, LATTICE_Y, LATTICE_XZ), dtype=np.float64)
        for i in range(LATTICE_XZ):
            lx = (chunk_x * HORIZONTAL_CELL + i) * self.horizontal_scale
            for j in range(LATTICE_XZ):
                lz = (chunk_z * HORIZONTAL_CELL + j) * self.horizontal_scale
                for k in range(LATTICE_Y):
                    field[i, k, j] = self._density.sample3(lx, k * self.vertical_scale, lz)
        return field

    def height(self, chunk_x: int, chunk_z: int) -> np.ndarray:
        """Height blend factors in ``[0, 1]`` for each lattice column."""
        field = np.empty((LATTICE_XZ, LATTICE_XZ), dtype=np.float64)
        for i in range(LATTICE_XZ):
            lx = (chunk_x * HORIZONTAL_CELL + i) * self.height_scale
            for j in range(LATTICE_XZ):
                lz = (chunk_z * HORIZONTAL_CELL + j) * self.height_scale
                field[i, j] = self._height.sample2(lx, lz)
        return np.clip((field + 1.0) * 0.5, 0.0, 1.0)

    def surface(self, chunk_x: int, chunk_z: int) -> np.ndarray:
        """Secondary 2-D field steering ground-cover depth, shaped ``(16, 16)``."""
        field = np.empty((CHUNK_WIDTH, CHUNK_WIDTH), dtype=np.float64)
        base_x = chunk_x * CHUNK_WIDTH
        base_z = chunk_z * CHUNK_WIDTH
        for x in range(CHUNK_WIDTH):
            for z in range(CHUNK_WIDTH):
                field[x, z] = self._surface.sample2((base_x + x) * self.surface_scale, (base_z + z) * self.surface_scale)
        return field * 3.0


_NOISE_CACHE: Dict[int, TerrainNoise] = {}
_NOISE_LOCK = threading.Lock()


def terrain_noise(seed: int) -> TerrainNoise:
    with _NOISE_LOCK:
        noise = _NOISE_CACHE.get(seed)
        if noise is None:
            noise = TerrainNoise(seed)
            _NOISE_CACHE[seed] = noise
        return noise


def sample_density_field(seed: int, chunk_x: int, chunk_z: int) -> np.ndarray:
    """Density lattice for a chunk; depends only on the seed and coordinates."""
    return terrain_noise(seed).density(chunk_x, chunk_z)


def trilinear_upsample(lattice: np.ndarray) -> np.ndarray:
    """Interpolate a ``(5, 33, 5)`` lattice onto the full ``(16, 256, 16)`` block grid."""
    if lattice.shape != (LATTICE_XZ, LATTICE_Y, LATTICE_XZ):
        raise ValueError(f"Density lattice must be shaped (5, 33, 5), got {lattice.shape}")
    xs = np.arange(CHUNK_WIDTH)
    xi = xs // HORIZONTAL_CELL
    xt = (xs % HORIZONTAL_CELL) / HORIZONTAL_CELL
    ys = np.arange((LATTICE_Y - 1) * VERTICAL_CELL)
    yi = ys // VERTICAL_CELL
    yt = (ys % VERTICAL_CELL) / VERTICAL_CELL

    along_x = lattice[xi] * (1.0 - xt)[:, None, None] + lattice[xi + 1] * xt[:, None, None]
    along_y = along_x[:, yi] * (1.0 - yt)[None, :, None] + along_x[:, yi + 1] * yt[None, :, None]
    return along_y[:, :, xi] * (1.0 - xt)[None, None, :] + along_y[:, :, xi + 1] * xt[None, None, :]


__all__ = [
    "OctavePerlin",
    "TerrainNoise",
    "terrain_noise",
    "sample_density_field",
    "trilinear_upsample",
]
