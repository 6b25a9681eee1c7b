"""Chunk provider: the two-phase generate / populate pipeline."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

import numpy as np

from .blocks import suppressed_falling
from .events import EventManager, PopulateChunkPost, PopulateChunkPre
from .generator import WorldGenerator
from .logging import NullLogger
from .models import (
    BiomeGenerationSettings,
    BlockVolume,
    Chunk,
    ChunkCoordinate,
    MutableBiomeBuffer,
    PhaseStats,
)
from .populators.base import DecorationContext, Populator, run_populator
from .registry import BiomeType
from .seeding import ChunkSeeder
from .terrain import replace_biome_blocks


class ChunkProvider:
    """Drives chunk generation and decoration for one world generator.

    Both phases draw from a fresh generator seeded from the world seed and
    the chunk coordinates, so the result for a chunk never depends on which
    chunks were handled before it.
    """

    def __init__(
        self,
        generator: WorldGenerator,
        *,
        events: Optional[EventManager] = None,
        logger: Optional[NullLogger] = None,
    ) -> None:
        self.generator = generator
        self.world = generator.world
        self.events = events or EventManager()
        self.logger = logger or generator.logger
        self.seeder = ChunkSeeder(self.world.seed)

    @contextmanager
    def timed(self, phase: str, label: str) -> Iterator[None]:
        start = time.perf_counter_ns()
        try:
            yield
        finally:
            end = time.perf_counter_ns()
            self.logger.log_event(
                {
                    "type": "timed_scope",
                    "phase": phase,
                    "label": label,
                    "duration_ns": end - start,
                }
            )

    def _settings(self, biome_type: BiomeType) -> BiomeGenerationSettings:
        return self.generator.get_biome_settings(biome_type)

    def provide_chunk(self, chunk_x: int, chunk_z: int) -> Chunk:
        """Generate phase: biomes, base terrain, ground cover and generation populators."""
        coordinate = ChunkCoordinate(chunk_x, chunk_z)
        self.logger.log_phase_start("generate", coordinate)
        start_ns = time.perf_counter_ns()
        rng = self.seeder.for_generation(chunk_x, chunk_z)
        registry = self.world.registry

        buffer = MutableBiomeBuffer()
        buffer.reuse(coordinate.block_min)
        with self.timed("generate", "biomes"):
            self.generator.biome_generator.generate_biomes(buffer)
        biomes = buffer.immutable_copy()

        volume = BlockVolume(coordinate)
        with self.timed("generate", "base"):
            self.generator.base_generation_populator.populate(self.world, volume, biomes)
        with self.timed("generate", "ground_cover"):
            replace_biome_blocks(self.world, volume, biomes, self._settings, rng)

        count = 0
        with self.timed("generate", "generation_populators"):
            for populator in self.generator.generation_populators:
                populator.populate(self.world, volume, biomes)
                count += 1
            for biome_id in biomes.unique():
                for populator in self._settings(registry.get(biome_id)).generation_populators:
                    populator.populate(self.world, volume, biomes)
                    count += 1

        chunk = Chunk(self.world, coordinate, volume, biomes)
        chunk.generate_skylight_map()
        stats = PhaseStats("generate", (chunk_x, chunk_z), start_ns, time.perf_counter_ns(), count)
        self.logger.log_phase_end(stats, checksum=volume.checksum())
        return chunk

    def resolve_populators(self, chunk: Chunk) -> List[Populator]:
        """Primary biome populators followed by the global populators."""
        biome_type = self.world.registry.get(chunk.primary_biome)
        return list(self._settings(biome_type).populators) + list(self.generator.populators)

    def populate(self, chunk: Chunk, rng: Optional[np.random.Generator] = None) -> DecorationContext:
        """Decorate an assembled chunk, returning the flags its populators left set.

        Any populator error aborts the pass and propagates; gravity is restored
        either way.
        """
        coordinate = chunk.coordinate
        self.logger.log_phase_start("populate", coordinate)
        start_ns = time.perf_counter_ns()
        if rng is None:
            rng = self.seeder.for_population(coordinate.x, coordinate.z)
        populators = self.resolve_populators(chunk)
        self.events.post(PopulateChunkPre(tuple(populators), chunk))
        context = DecorationContext(coordinate)

        with self.timed("populate", "populators"), suppressed_falling():
            for populator in populators:
                try:
                    run_populator(populator, chunk, rng, context)
                except Exception as exc:
                    self.logger.log_event(
                        {
                            "type": "populate_failed",
                            "chunk": [coordinate.x, coordinate.z],
                            "populator": repr(populator),
                            "error": repr(exc),
                        }
                    )
                    raise

        chunk.populated = True
        self.events.post(PopulateChunkPost(context.flags, chunk))
        stats = PhaseStats("populate", (coordinate.x, coordinate.z), start_ns, time.perf_counter_ns(), len(populators))
        self.logger.log_phase_end(stats, flags=list(context.flags))
        return context

    def provide_region(self, min_x: int, min_z: int, max_x: int, max_z: int, *, populate: bool = True) -> Dict[ChunkCoordinate, Chunk]:
        """Generate (and optionally decorate) every chunk in an inclusive rectangle."""
        chunks: Dict[ChunkCoordinate, Chunk] = {}
        for cx in range(min_x, max_x + 1):
            for cz in range(min_z, max_z + 1):
                chunks[ChunkCoordinate(cx, cz)] = self.provide_chunk(cx, cz)
        if populate:
            for chunk in chunks.values():
                self.populate(chunk)
        return chunks


__all__ = ["ChunkProvider"]
