# src/voxel_nav/testing/__init__.py
"""In-memory world and agent doubles for voxel_nav tests."""

from .fakes import BLOCK_PRESETS, FakeAgent, FakeWorld, make_block

__all__ = ["BLOCK_PRESETS", "FakeAgent", "FakeWorld", "make_block"]
