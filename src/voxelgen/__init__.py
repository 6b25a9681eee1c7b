"""Deterministic, pluggable voxel world generation."""

from .pipeline import ChunkProvider, WorldConfig, create_world_generator
from .render import render_png

__all__ = ["ChunkProvider", "WorldConfig", "create_world_generator", "render_png"]
__version__ = "0.1.0"
