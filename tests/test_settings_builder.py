from __future__ import annotations

import numpy as np
import pytest

from voxelgen.pipeline import (
    BiomeGenerationSettingsBuilder,
    GroundCoverLayer,
    IllegalStateError,
    SeededVariableAmount,
    VariableAmount,
    WeightedTable,
)
from voxelgen.pipeline.blocks import BlockPhysics, GRASS, STONE, suppressed_falling
from voxelgen.pipeline.populators import DeadBushPopulator, ShrubPopulator


def _complete() -> BiomeGenerationSettingsBuilder:
    return (
        BiomeGenerationSettingsBuilder()
        .ground_cover_layers([GroundCoverLayer.of(GRASS, 1)])
        .generation_populators([])
        .populators([])
    )


@pytest.mark.parametrize("missing", ["ground_cover_layers", "generation_populators", "populators"])
def test_build_requires_every_list(missing):
    builder = BiomeGenerationSettingsBuilder().min_height(0.0).max_height(1.0)
    for name in ("ground_cover_layers", "generation_populators", "populators"):
        if name != missing:
            getattr(builder, name)([])
    with pytest.raises(IllegalStateError):
        builder.build()


def test_build_accepts_intentionally_empty_lists():
    settings = BiomeGenerationSettingsBuilder().ground_cover_layers([]).generation_populators([]).populators([]).build()
    assert settings.min_height == pytest.approx(0.1)
    assert settings.max_height == pytest.approx(0.2)
    assert settings.populators == []


def test_build_rejects_inverted_heights():
    with pytest.raises(ValueError):
        _complete().min_height(1.0).max_height(0.5).build()


def test_list_setters_copy_their_input():
    populators = [ShrubPopulator()]
    builder = _complete().populators(populators)
    populators.append(DeadBushPopulator())
    settings = builder.build()
    assert len(settings.populators) == 1
    settings.populators.append(DeadBushPopulator())
    assert len(builder.build().populators) == 1


def test_reset_restores_defaults_and_unsets_lists():
    builder = _complete().min_height(2.0).max_height(3.0)
    builder.reset()
    with pytest.raises(IllegalStateError):
        builder.build()
    settings = builder.ground_cover_layers([]).generation_populators([]).populators([]).build()
    assert (settings.min_height, settings.max_height) == (pytest.approx(0.1), pytest.approx(0.2))


def test_reset_from_existing_settings_clones_fields():
    shrub = ShrubPopulator()
    template = _complete().min_height(-0.5).max_height(0.5).populators([shrub]).build()
    derived = BiomeGenerationSettingsBuilder().reset(template).build()
    assert derived.min_height == -0.5
    assert derived.max_height == 0.5
    assert derived.populators == [shrub]
    assert derived.populators is not template.populators


def test_variable_amounts_stay_in_range():
    rng = np.random.default_rng(3)
    assert VariableAmount.fixed(4).get_floored_amount(rng) == 4
    for _ in range(50):
        assert 2.0 <= VariableAmount.range(2, 5).get_amount(rng) < 5.0
        assert 7.0 <= VariableAmount.base_with_variance(10, 3).get_amount(rng) <= 13.0
        assert VariableAmount.base_with_optional_addition(1, 4, 0.5).get_amount(rng) in (1.0, 5.0)
    with pytest.raises(ValueError):
        VariableAmount.range(5, 2)


def test_seeded_amount_uses_column_noise():
    rng = np.random.default_rng(0)
    depth = SeededVariableAmount.surface_noise_depth()
    assert 4.0 <= depth.get_amount(rng, 3.0) < 4.25
    assert SeededVariableAmount.wrap(2).get_floored_amount(rng, 99.0) == 2


def test_weighted_table_picks_only_weighted_entries():
    table: WeightedTable[str] = WeightedTable(rolls=3)
    table.add("a", 1).add("b", 3)
    picks = table.get(np.random.default_rng(1))
    assert len(picks) == 3
    assert set(picks) <= {"a", "b"}
    assert WeightedTable().get(np.random.default_rng(1)) == []
    with pytest.raises(ValueError):
        table.add("c", 0)


def test_suppressed_falling_restores_on_error():
    assert BlockPhysics.fall_instantly is False
    with pytest.raises(RuntimeError):
        with suppressed_falling():
            assert BlockPhysics.fall_instantly is True
            raise RuntimeError("boom")
    assert BlockPhysics.fall_instantly is False


def test_ground_cover_layer_wraps_fixed_depth():
    layer = GroundCoverLayer.of(STONE, 3)
    assert layer.block(0.7) == STONE
    assert layer.depth.get_floored_amount(np.random.default_rng(0), 0.0) == 3
