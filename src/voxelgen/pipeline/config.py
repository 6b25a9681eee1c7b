"""Configuration models for world generation."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import uuid

import yaml

from .blocks import block_type, resolve_block
from .seeding import to_unsigned

BIOME_GENERATORS = ("noise", "single")


def _expand_dir(path: Path) -> Path:
    return Path(path).expanduser().resolve()


def _default_run_id() -> str:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return f"run-{timestamp}-{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class FeatureSettings:
    """Toggles and frequencies for the default decoration populators."""

    use_caves: bool = True
    use_villages: bool = True
    use_water_lakes: bool = True
    water_lake_chance: int = 4
    use_lava_lakes: bool = True
    lava_lake_chance: int = 80
    use_dungeons: bool = True
    dungeon_chance: int = 8
    use_ores: bool = True
    use_fauna: bool = True
    use_snow: bool = True

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "FeatureSettings":
        known = {f.name: f for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in mapping.items():
            if key not in known:
                raise ValueError(f"Unknown feature setting '{key}'")
            if known[key].type == "bool":
                if not isinstance(value, bool):
                    raise TypeError(f"Feature setting '{key}' must be a boolean, got {type(value)!r}")
                values[key] = value
            else:
                if isinstance(value, bool) or not isinstance(value, int):
                    raise TypeError(f"Feature setting '{key}' must be an integer, got {type(value)!r}")
                if value < 1:
                    raise ValueError(f"Feature setting '{key}' must be at least 1, got {value}")
                values[key] = value
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class WorldConfig:
    """Top-level configuration for a generated world."""

    seed: int = 0
    sea_level: int = 63
    filler_block: int = resolve_block("water")
    floor_block: int = resolve_block("bedrock")
    sediment_block: int = resolve_block("gravel")
    biome_generator: str = "noise"
    single_biome: str = "plains"
    features: FeatureSettings = field(default_factory=FeatureSettings)
    run_id: str = field(default_factory=_default_run_id)
    log_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        self.seed = to_unsigned(self.seed)
        if not 1 <= self.sea_level <= 255:
            raise ValueError(f"sea_level must be within [1, 255], got {self.sea_level}")
        if self.biome_generator not in BIOME_GENERATORS:
            raise ValueError(f"biome_generator must be one of {BIOME_GENERATORS}, got '{self.biome_generator}'")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "WorldConfig":
        seed = mapping.get("seed", 0)
        if isinstance(seed, bool) or not isinstance(seed, int):
            raise TypeError(f"seed must be an integer, got {type(seed)!r}")
        sea_level = mapping.get("sea_level", 63)
        if isinstance(sea_level, bool) or not isinstance(sea_level, int):
            raise TypeError(f"sea_level must be an integer, got {type(sea_level)!r}")

        blocks = {}
        for key, default in (("filler_block", "water"), ("floor_block", "bedrock"), ("sediment_block", "gravel")):
            blocks[key] = resolve_block(mapping.get(key, default))
        if not (block_type(blocks["filler_block"]).liquid or blocks["filler_block"] == resolve_block("air")):
            raise ValueError("filler_block must be a liquid or air")

        features = mapping.get("features", {})
        if not isinstance(features, Mapping):
            raise TypeError("features must be a mapping of feature names to values")

        log_dir = mapping.get("log_dir")
        return cls(
            seed=seed,
            sea_level=sea_level,
            biome_generator=str(mapping.get("biome_generator", "noise")),
            single_biome=str(mapping.get("single_biome", "plains")),
            features=FeatureSettings.from_mapping(features),
            run_id=str(mapping.get("run_id") or _default_run_id()),
            log_dir=_expand_dir(Path(log_dir)) if log_dir else None,
            **blocks,
        )

    @classmethod
    def from_file(cls, path: Path | str) -> "WorldConfig":
        path = Path(path).expanduser()
        if not path.exists():
            raise FileNotFoundError(path)
        with path.open("r", encoding="utf8") as fh:
            if path.suffix.lower() in {".yml", ".yaml"}:
                data = yaml.safe_load(fh)
            else:
                data = json.load(fh)
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise TypeError(f"Configuration file must contain a mapping, got {type(data)!r}")
        return cls.from_mapping(data)

    def run_log_path(self) -> Optional[Path]:
        if self.log_dir is None:
            return None
        return _expand_dir(self.log_dir / f"{self.run_id}.jsonl")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "sea_level": self.sea_level,
            "filler_block": block_type(self.filler_block).name,
            "floor_block": block_type(self.floor_block).name,
            "sediment_block": block_type(self.sediment_block).name,
            "biome_generator": self.biome_generator,
            "single_biome": self.single_biome,
            "features": self.features.to_dict(),
            "run_id": self.run_id,
            "log_dir": str(self.log_dir) if self.log_dir else None,
        }


def load_config(source: Path | str) -> WorldConfig:
    """Convenience helper for CLI consumers."""
    return WorldConfig.from_file(source)


__all__ = ["FeatureSettings", "WorldConfig", "load_config"]
