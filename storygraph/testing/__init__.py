"""
Testing Utilities

Tools for testing code built on storygraph.

Components:
    RecordingLayerSpec  - Layer spec that records creations and stops
    FailingLayerSpec    - Layer spec whose creation always fails
    MemoryAssetLoader   - In-memory assets with failure injection
    build_store         - Scene graph from a few scenes

Usage:
    from storygraph.testing import RecordingLayerSpec, build_store, make_scene

    wind = RecordingLayerSpec("wind")
    registry = LayerRegistry({Environment.FOREST: [wind]})
    manager = CrossfadeManager(registry, scheduler=ManualScheduler())
"""

from storygraph.testing.mock import (
    CallRecord,
    RecordingLayer,
    RecordingLayerSpec,
    FailingLayerSpec,
    MemoryAssetLoader,
)

from storygraph.testing.fixtures import (
    make_scene,
    build_store,
    branching_store,
    create_test_audio,
    rms,
)

__all__ = [
    # Mock
    "CallRecord",
    "RecordingLayer",
    "RecordingLayerSpec",
    "FailingLayerSpec",
    "MemoryAssetLoader",
    # Fixtures
    "make_scene",
    "build_store",
    "branching_store",
    "create_test_audio",
    "rms",
]
