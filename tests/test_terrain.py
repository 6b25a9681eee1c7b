from __future__ import annotations

import numpy as np
import pytest

from voxelgen.pipeline import GroundCoverLayer, generate_biome_terrain, sample_density_field
from voxelgen.pipeline.blocks import AIR, BEDROCK, DIRT, GRASS, GRAVEL, SANDSTONE, STONE, WATER
from voxelgen.pipeline.perlin import trilinear_upsample

SEA_LEVEL = 63


def _cover(column, layers, seed=0):
    generate_biome_terrain(column, layers, np.random.default_rng(seed), 0.0, SEA_LEVEL, BEDROCK, GRAVEL)
    return column


def test_single_layer_on_solid_column():
    column = _cover([STONE] * 256, [GroundCoverLayer.of(GRASS, 3)])
    assert column[253:256] == [GRASS] * 3
    assert column[5:253] == [STONE] * 248
    assert column[0] == BEDROCK
    assert set(column[1:5]) <= {BEDROCK, STONE}


def test_layer_starts_below_first_air_block():
    column = [STONE] * 100 + [AIR] * 156
    _cover(column, [GroundCoverLayer.of(GRASS, 3)])
    assert column[97:100] == [GRASS] * 3
    assert column[96] == STONE
    assert column[100:] == [AIR] * 156


def test_overhang_restarts_layering():
    column = [STONE] * 80 + [AIR] * 10 + [STONE] * 10 + [AIR] * 156
    layers = [GroundCoverLayer.of(GRASS, 1), GroundCoverLayer.of(DIRT, 2)]
    _cover(column, layers)
    assert column[99] == GRASS
    assert column[97:99] == [DIRT, DIRT]
    assert column[90:97] == [STONE] * 7
    assert column[79] == GRASS
    assert column[77:79] == [DIRT, DIRT]
    assert column[76] == STONE


def test_zero_depth_layer_ends_the_stack():
    column = [STONE] * 100 + [AIR] * 156
    layers = [GroundCoverLayer.of(GRASS, 1), GroundCoverLayer.of(DIRT, 0), GroundCoverLayer.of(SANDSTONE, 2)]
    _cover(column, layers)
    assert column[99] == GRASS
    assert column[5:99] == [STONE] * 94


def test_zero_depth_layer_below_water_places_nothing():
    column = [STONE] * 60 + [WATER] * 3 + [AIR] * 193
    _cover(column, [GroundCoverLayer.of(GRASS, 1), GroundCoverLayer.of(DIRT, 0), GroundCoverLayer.of(SANDSTONE, 2)])
    assert column[5:60] == [STONE] * 55


def test_deep_underwater_surface_gets_sediment():
    column = [STONE] * 40 + [WATER] * 23 + [AIR] * 193
    _cover(column, [GroundCoverLayer.of(GRASS, 1), GroundCoverLayer.of(DIRT, 2)])
    assert column[39] == GRAVEL
    assert column[38] == STONE


def test_shallow_underwater_surface_uses_next_layer():
    column = [STONE] * 60 + [WATER] * 3 + [AIR] * 193
    _cover(column, [GroundCoverLayer.of(GRASS, 1), GroundCoverLayer.of(DIRT, 2)])
    assert column[58:60] == [DIRT, DIRT]
    assert column[57] == STONE


def test_no_layers_leaves_stone():
    column = _cover([STONE] * 70 + [AIR] * 186, [])
    assert column[5:70] == [STONE] * 65
    assert column[0] == BEDROCK


def test_density_field_deterministic():
    first = sample_density_field(7, 2, -3)
    second = sample_density_field(7, 2, -3)
    other = sample_density_field(7, 3, -3)
    assert first.shape == (5, 33, 5)
    np.testing.assert_array_equal(first, second)
    assert not np.array_equal(first, other)


def test_trilinear_upsample_interpolates_between_samples():
    lattice = np.zeros((5, 33, 5))
    lattice[:] = np.arange(33)[None, :, None]
    field = trilinear_upsample(lattice)
    assert field.shape == (16, 256, 16)
    assert field[0, 8, 0] == pytest.approx(1.0)
    assert field[5, 12, 9] == pytest.approx(1.5)


def test_trilinear_upsample_rejects_bad_shape():
    with pytest.raises(ValueError):
        trilinear_upsample(np.zeros((4, 33, 4)))
