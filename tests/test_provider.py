from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from voxelgen.pipeline import (
    BiomeGenerationSettingsBuilder,
    BiomeGenerator,
    ChunkCoordinate,
    ChunkProvider,
    EventManager,
    FeatureSettings,
    PopulateChunkPost,
    PopulateChunkPre,
    WorldConfig,
    create_world_generator,
)
from voxelgen.pipeline.blocks import BLOCKS, GRASS, SAND, SOLID_MASK, STONE, BlockPhysics
from voxelgen.pipeline.populators import DecorationContext, FilteredPopulator, FlaggedPopulator, GenerationPopulator, Populator
from voxelgen.pipeline.seeding import ChunkSeeder

NO_FEATURES = dict(
    use_caves=False,
    use_villages=False,
    use_water_lakes=False,
    use_lava_lakes=False,
    use_dungeons=False,
    use_ores=False,
    use_fauna=False,
    use_snow=False,
)


class Recorder(Populator):
    def __init__(self, log, name):
        self.log = log
        self.name = name

    def populate(self, chunk, rng):
        self.log.append((self.name, chunk.coordinate, float(rng.random())))


class Marker(FlaggedPopulator):
    def __init__(self, flag, when=lambda chunk: True):
        self.flag = flag
        self.when = when

    def populate_with_flags(self, chunk, rng, context):
        if self.when(chunk):
            context.set_flag(self.flag)


class Boom(Populator):
    def populate(self, chunk, rng):
        raise RuntimeError("populator failed")


class SandDropper(Populator):
    def populate(self, chunk, rng):
        chunk.set_block(3, 200, 3, SAND)


class Gate(Populator):
    def __init__(self, entered, release):
        self.entered = entered
        self.release = release

    def populate(self, chunk, rng):
        self.entered.set()
        if not self.release.wait(5):
            raise RuntimeError("gate was never released")


class SplitBiomes(BiomeGenerator):
    def __init__(self, west, east):
        self.west = west
        self.east = east

    def generate_biomes(self, buffer):
        buffer.array[:8, :] = self.west.id
        buffer.array[8:, :] = self.east.id


class FlatStone(GenerationPopulator):
    def __init__(self, height):
        self.height = height

    def populate(self, world, buffer, biomes):
        buffer.array[:, : self.height, :] = STONE


def _plains_generator(seed=42, biome_populators=()):
    config = WorldConfig(
        seed=seed,
        biome_generator="single",
        single_biome="plains",
        features=FeatureSettings(**NO_FEATURES),
    )
    generator = create_world_generator(config)
    plains = generator.world.registry.by_name("plains")
    generator.override_biome_settings(
        plains,
        BiomeGenerationSettingsBuilder()
        .reset(generator.get_biome_settings(plains))
        .populators(biome_populators)
        .build(),
    )
    return generator


def test_region_is_deterministic_for_a_seed():
    first = ChunkProvider(create_world_generator(WorldConfig(seed=42))).provide_region(0, 0, 1, 0)
    second = ChunkProvider(create_world_generator(WorldConfig(seed=42))).provide_region(0, 0, 1, 0)
    assert first.keys() == second.keys()
    for key, chunk in first.items():
        other = second[key]
        assert chunk.blocks.checksum() == other.blocks.checksum()
        np.testing.assert_array_equal(chunk.biome_array, other.biome_array)
        assert chunk.spawns == other.spawns
        assert chunk.tile_entities == other.tile_entities


def test_chunk_does_not_depend_on_generation_order():
    direct = ChunkProvider(create_world_generator(WorldConfig(seed=7)))
    chunk = direct.provide_chunk(0, 0)
    direct.populate(chunk)

    detour = ChunkProvider(create_world_generator(WorldConfig(seed=7)))
    for cx, cz in ((2, 1), (-1, 0)):
        detour.populate(detour.provide_chunk(cx, cz))
    late = detour.provide_chunk(0, 0)
    detour.populate(late)

    assert chunk.blocks.checksum() == late.blocks.checksum()
    assert chunk.spawns == late.spawns


def test_population_stream_is_seeded_per_chunk():
    log = []
    generator = _plains_generator(seed=42, biome_populators=[Recorder(log, "recorder")])
    provider = ChunkProvider(generator)
    chunk = provider.provide_chunk(3, -2)
    provider.populate(chunk)
    provider.populate(provider.provide_chunk(0, 0))
    provider.populate(chunk)

    expected = float(ChunkSeeder(42).for_population(3, -2).random())
    draws = [draw for _, coordinate, draw in log if (coordinate.x, coordinate.z) == (3, -2)]
    assert draws == [pytest.approx(expected), pytest.approx(expected)]


def test_explicit_rng_replaces_population_stream():
    log = []
    provider = ChunkProvider(_plains_generator(biome_populators=[Recorder(log, "recorder")]))
    chunk = provider.provide_chunk(0, 0)
    provider.populate(chunk, np.random.default_rng(99))
    assert log[0][2] == pytest.approx(float(np.random.default_rng(99).random()))


def test_biome_populators_run_before_global_ones():
    log = []
    events = EventManager()
    seen = []
    events.subscribe(PopulateChunkPre, seen.append)
    events.subscribe(PopulateChunkPost, seen.append)

    biome_recorder = Recorder(log, "biome")
    generator = _plains_generator(biome_populators=[biome_recorder])
    global_recorder = Recorder(log, "global")
    generator.populators.append(global_recorder)
    provider = ChunkProvider(generator, events=events)
    chunk = provider.provide_chunk(0, 0)
    provider.populate(chunk)

    assert [name for name, _, _ in log] == ["biome", "global"]
    pre, post = seen
    assert isinstance(pre, PopulateChunkPre) and isinstance(post, PopulateChunkPost)
    assert pre.populators == (biome_recorder, global_recorder)
    assert post.chunk is chunk
    assert chunk.populated


def test_flags_propagate_within_a_pass_and_reset_between_passes():
    log = []
    generator = _plains_generator()
    generator.populators.extend(
        [
            Marker("MARK", when=lambda chunk: chunk.coordinate.x == 0),
            FilteredPopulator(Recorder(log, "required"), required_flags=("MARK",)),
            FilteredPopulator(Recorder(log, "excluded"), excluded_flags=("MARK",)),
        ]
    )
    provider = ChunkProvider(generator)

    marked = provider.populate(provider.provide_chunk(0, 0))
    assert marked.flags == ("MARK",)
    assert [name for name, _, _ in log] == ["required"]

    log.clear()
    unmarked = provider.populate(provider.provide_chunk(1, 0))
    assert unmarked.flags == ()
    assert [name for name, _, _ in log] == ["excluded"]


def test_failure_aborts_pass_and_restores_gravity():
    log = []
    generator = _plains_generator()
    generator.populators.extend([Boom(), Recorder(log, "after")])
    provider = ChunkProvider(generator)
    chunk = provider.provide_chunk(0, 0)

    with pytest.raises(RuntimeError, match="populator failed"):
        provider.populate(chunk)
    assert BlockPhysics.fall_instantly is False
    assert log == []
    assert not chunk.populated


def test_falling_blocks_settle_during_decoration():
    generator = _plains_generator()
    generator.populators.append(SandDropper())
    provider = ChunkProvider(generator)
    chunk = provider.provide_chunk(0, 0)
    ground = int(np.flatnonzero(SOLID_MASK[chunk.blocks.array[3, :, 3]])[-1])

    provider.populate(chunk)
    assert chunk.get_block(3, ground + 1, 3) == SAND
    assert chunk.get_block(3, 200, 3) != SAND
    assert chunk.scheduled_updates == []


def test_falling_blocks_are_scheduled_outside_decoration():
    provider = ChunkProvider(_plains_generator())
    chunk = provider.provide_chunk(0, 0)
    chunk.set_block(3, 200, 3, SAND)
    assert chunk.get_block(3, 200, 3) == SAND
    assert chunk.scheduled_updates == [(3, 200, 3)]


def test_end_to_end_chunk_is_complete():
    generator = create_world_generator(WorldConfig(seed=42))
    provider = ChunkProvider(generator)
    chunk = provider.provide_chunk(0, 0)
    provider.populate(chunk)

    assert chunk.biome_array.shape == (256,)
    assert all(int(biome_id) in generator.world.registry for biome_id in chunk.biome_array)
    assert np.isin(chunk.blocks.array, list(BLOCKS)).all()
    assert chunk.heightmap.shape == (16, 16)
    assert (chunk.heightmap > 0).all()
    assert chunk.populated
    for settings in generator.biome_settings.values():
        assert settings.max_height >= settings.min_height


def test_generate_phase_runs_global_then_biome_generation_populators():
    order = []

    class Tracer(GenerationPopulator):
        def __init__(self, name):
            self.name = name

        def populate(self, world, buffer, biomes):
            order.append(self.name)

    generator = _plains_generator()
    generator.generation_populators.append(Tracer("global"))
    plains = generator.world.registry.by_name("plains")
    generator.override_biome_settings(
        plains,
        lambda settings: BiomeGenerationSettingsBuilder()
        .reset(settings)
        .generation_populators([Tracer("biome")])
        .build(),
    )
    ChunkProvider(generator).provide_chunk(0, 0)
    assert order == ["global", "biome"]


def test_overlapping_passes_keep_gravity_until_the_last_one_ends():
    a_entered, a_release, b_entered, b_release = (threading.Event() for _ in range(4))
    provider_a = ChunkProvider(_plains_generator(biome_populators=[Gate(a_entered, a_release)]))
    provider_b = ChunkProvider(_plains_generator(biome_populators=[Gate(b_entered, b_release)]))
    chunk_a = provider_a.provide_chunk(0, 0)
    chunk_b = provider_b.provide_chunk(1, 0)

    try:
        with ThreadPoolExecutor(max_workers=2) as pool:
            first = pool.submit(provider_a.populate, chunk_a)
            assert a_entered.wait(5)
            second = pool.submit(provider_b.populate, chunk_b)
            assert b_entered.wait(5)

            a_release.set()
            first.result(timeout=5)
            assert BlockPhysics.fall_instantly is True

            b_release.set()
            second.result(timeout=5)
    finally:
        a_release.set()
        b_release.set()

    assert BlockPhysics.fall_instantly is False
    chunk_a.set_block(3, 200, 3, SAND)
    assert chunk_a.get_block(3, 200, 3) == SAND
    assert chunk_a.scheduled_updates == [(3, 200, 3)]


def test_shared_generation_populator_runs_once_per_distinct_biome():
    calls = []

    class Counter(GenerationPopulator):
        def populate(self, world, buffer, biomes):
            calls.append(buffer.coordinate)

    generator = _plains_generator()
    registry = generator.world.registry
    plains, desert = registry.by_name("plains"), registry.by_name("desert")
    generator.set_biome_generator(SplitBiomes(plains, desert))
    generator.set_base_generation_populator(FlatStone(70))
    shared = Counter()
    for biome_type in (plains, desert):
        generator.override_biome_settings(
            biome_type,
            lambda settings: BiomeGenerationSettingsBuilder()
            .reset(settings)
            .generation_populators([shared])
            .populators([])
            .build(),
        )

    chunk = ChunkProvider(generator).provide_chunk(0, 0)

    assert calls == [ChunkCoordinate(0, 0), ChunkCoordinate(0, 0)]
    assert (chunk.blocks.array[:8, 69, :] == GRASS).all()
    assert (chunk.blocks.array[8:, 69, :] == SAND).all()


def test_decoration_context_flags_can_be_cleared():
    context = DecorationContext(ChunkCoordinate(0, 0))
    context.set_flag("A")
    context.set_flag("B")
    context.set_flag("A")
    assert context.flags == ("A", "B")
    context.clear_flag("A")
    context.clear_flag("missing")
    assert not context.has_flag("A")
    assert context.flags == ("B",)
