from __future__ import annotations

import json
from pathlib import Path

import pytest
from PIL import Image

from voxelgen.cli import main
from voxelgen.pipeline import (
    ChunkProvider,
    ChunkCoordinate,
    FeatureSettings,
    PhaseStats,
    RunLogger,
    WorldConfig,
    create_world_generator,
    load_config,
)
from voxelgen.pipeline.blocks import BEDROCK, GRAVEL, LAVA, WATER
from voxelgen.render import render_png, top_blocks


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf8")
    return path


def test_yaml_config_round_trip(tmp_path: Path):
    path = _write(
        tmp_path / "world.yaml",
        "\n".join(
            [
                "seed: 77",
                "sea_level: 40",
                "filler_block: lava",
                "biome_generator: single",
                "single_biome: desert",
                f"log_dir: {tmp_path / 'logs'}",
                "run_id: fixed",
                "features:",
                "  use_caves: false",
                "  water_lake_chance: 6",
            ]
        ),
    )
    config = load_config(path)
    assert config.seed == 77
    assert config.sea_level == 40
    assert config.filler_block == LAVA
    assert config.floor_block == BEDROCK
    assert config.sediment_block == GRAVEL
    assert config.features.use_caves is False
    assert config.features.water_lake_chance == 6
    assert config.run_log_path() == (tmp_path / "logs" / "fixed.jsonl").resolve()
    assert config.to_dict()["filler_block"] == "lava"


def test_json_config_and_defaults(tmp_path: Path):
    path = _write(tmp_path / "world.json", json.dumps({"seed": 3, "filler_block": 9}))
    config = WorldConfig.from_file(path)
    assert config.filler_block == WATER
    assert config.sea_level == 63
    assert config.features == FeatureSettings()
    assert config.run_log_path() is None


def test_empty_yaml_uses_defaults(tmp_path: Path):
    config = load_config(_write(tmp_path / "empty.yml", ""))
    assert config.seed == 0
    assert config.biome_generator == "noise"


def test_missing_config_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


@pytest.mark.parametrize(
    "mapping, error",
    [
        ({"seed": "abc"}, TypeError),
        ({"seed": True}, TypeError),
        ({"sea_level": 0}, ValueError),
        ({"sea_level": 1.5}, TypeError),
        ({"filler_block": "stone"}, ValueError),
        ({"floor_block": "unobtainium"}, KeyError),
        ({"biome_generator": "voronoi"}, ValueError),
        ({"features": ["use_caves"]}, TypeError),
        ({"features": {"use_rivers": True}}, ValueError),
        ({"features": {"use_caves": "yes"}}, TypeError),
        ({"features": {"dungeon_chance": 0}}, ValueError),
    ],
)
def test_invalid_config_rejected(mapping, error):
    with pytest.raises(error):
        WorldConfig.from_mapping(mapping)


def test_seed_is_masked_to_64_bits():
    assert WorldConfig(seed=-1).seed == (1 << 64) - 1
    assert WorldConfig.from_mapping({"seed": 1 << 70}).seed == 0


def test_single_biome_generator_fills_every_column():
    config = WorldConfig(seed=5, biome_generator="single", single_biome="desert")
    generator = create_world_generator(config)
    chunk = ChunkProvider(generator).provide_chunk(2, 2)
    desert = generator.world.registry.by_name("desert").id
    assert (chunk.biome_array == desert).all()


def test_run_logger_writes_events_and_summary(tmp_path: Path):
    config = WorldConfig(seed=11, log_dir=tmp_path / "logs", run_id="logged")
    logger = RunLogger(config.run_log_path())
    generator = create_world_generator(config, logger=logger)
    provider = ChunkProvider(generator)
    provider.provide_region(0, 0, 1, 0)
    logger.close()
    logger.close()

    events = [json.loads(line) for line in logger.log_path.read_text().splitlines()]
    types = [event["type"] for event in events]
    assert types.count("chunk_generate_start") == 2
    assert types.count("chunk_populate_end") == 2
    assert "biome_settings_initialized" in types
    ends = [event for event in events if event["type"] == "chunk_generate_end"]
    assert all(len(event["checksum"]) == 128 for event in ends)
    timed = {event["label"]: event["phase"] for event in events if event["type"] == "timed_scope"}
    assert timed == {
        "biomes": "generate",
        "base": "generate",
        "ground_cover": "generate",
        "generation_populators": "generate",
        "populators": "populate",
    }

    summary = logger.summary_path.read_text()
    assert summary.startswith("# Generation Run Summary")
    assert "| generate | 2 |" in summary
    assert "| populate | 2 |" in summary


def test_run_logger_without_phases_writes_no_summary(tmp_path: Path):
    logger = RunLogger(tmp_path / "quiet.jsonl")
    logger.log_event({"type": "note"})
    logger.close()
    assert json.loads(logger.log_path.read_text())["type"] == "note"
    assert not logger.summary_path.exists()


def test_phase_stats_serialise():
    stats = PhaseStats("generate", (1, -1), 100, 350, 4)
    assert stats.to_dict() == {
        "phase": "generate",
        "chunk": [1, -1],
        "start_ns": 100,
        "end_ns": 350,
        "duration_ns": 250,
        "populator_count": 4,
    }


def test_render_png_tiles_chunks():
    generator = create_world_generator(WorldConfig(seed=2, features=FeatureSettings(use_caves=False)))
    chunks = ChunkProvider(generator).provide_region(-1, 0, 0, 0, populate=False)
    image = render_png(chunks)
    assert image.size == (32, 16)
    tops = top_blocks(chunks[ChunkCoordinate(0, 0)])
    assert tops.shape == (16, 16)
    assert (tops != 0).all()
    with pytest.raises(ValueError):
        render_png({})


def test_cli_writes_preview_metadata_and_logs(tmp_path: Path, capsys):
    out = tmp_path / "out" / "region.png"
    logs = tmp_path / "logs"
    main(["--seed", "5", "--radius", "0", "--out", str(out), "--log-dir", str(logs)])

    assert out.exists()
    with Image.open(out) as image:
        assert image.size == (16, 16)
    metadata = json.loads(out.with_suffix(".json").read_text())
    assert metadata["seed"] == 5
    assert metadata["radius"] == 0
    assert metadata["stats"]["chunks"] == 1
    assert metadata["config"]["features"] == FeatureSettings().to_dict()
    assert list(logs.glob("*.jsonl"))
    assert list(logs.glob("*.md"))
    assert "Wrote" in capsys.readouterr().out


def test_cli_rejects_negative_radius(tmp_path: Path):
    with pytest.raises(SystemExit):
        main(["--radius", "-1", "--out", str(tmp_path / "x.png")])


def test_checksum_changes_with_blocks():
    generator = create_world_generator(WorldConfig(seed=8, features=FeatureSettings(use_caves=False)))
    chunk = ChunkProvider(generator).provide_chunk(0, 0)
    before = chunk.blocks.checksum()
    chunk.blocks.array[0, 200, 0] = WATER
    assert chunk.blocks.checksum() != before
