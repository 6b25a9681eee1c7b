"""Command-line entry point for chunk generation."""

from __future__ import annotations

import argparse
import json
import time
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from voxelgen.pipeline import ChunkProvider, RunLogger, WorldConfig, create_world_generator, load_config
from voxelgen.render import render_png


def build_config(path: Optional[str], seed: Optional[int], log_dir: Optional[str]) -> WorldConfig:
    config = load_config(path) if path else WorldConfig()
    if seed is not None:
        config.seed = seed & ((1 << 64) - 1)
    if log_dir is not None:
        config.log_dir = Path(log_dir).expanduser().resolve()
    return config


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser("voxelgen")
    parser.add_argument("--seed", type=int, default=None, help="World seed (overrides the config file)")
    parser.add_argument("--radius", type=int, default=2, help="Chunks generated on each side of the origin")
    parser.add_argument("--config", type=str, default=None, help="YAML or JSON world config")
    parser.add_argument("--log-dir", type=str, default=None)
    parser.add_argument("--no-populate", action="store_true", help="Skip the decoration pass")
    parser.add_argument("--out", type=str, default="out/region.png")
    args = parser.parse_args(argv)
    if args.radius < 0:
        parser.error("--radius cannot be negative")

    config = build_config(args.config, 42 if args.seed is None and not args.config else args.seed, args.log_dir)
    log_path = config.run_log_path()
    logger = RunLogger(log_path) if log_path else None

    t0 = time.time()
    try:
        generator = create_world_generator(config, logger=logger)
        provider = ChunkProvider(generator)
        radius = args.radius
        chunks = provider.provide_region(-radius, -radius, radius, radius, populate=not args.no_populate)
    finally:
        if logger is not None:
            logger.close()

    image = render_png(chunks)
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(out_path)

    stats: Dict[str, Any] = {
        "chunks": len(chunks),
        "spawns": sum(len(chunk.spawns) for chunk in chunks.values()),
        "tile_entities": sum(len(chunk.tile_entities) for chunk in chunks.values()),
        "biomes": sorted({generator.world.registry.get(b).name for chunk in chunks.values() for b in set(chunk.biome_array.tolist())}),
        "elapsed_s": round(time.time() - t0, 3),
    }
    metadata = {
        "seed": config.seed,
        "radius": radius,
        "config": config.to_dict(),
        "stats": stats,
    }
    with open(out_path.with_suffix(".json"), "w", encoding="utf-8") as fh:
        json.dump(metadata, fh, indent=2)

    print(f"Wrote {out_path} and {out_path.with_suffix('.json')} in {stats['elapsed_s']:.2f}s")


if __name__ == "__main__":
    main()
