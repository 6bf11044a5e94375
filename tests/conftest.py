"""
Shared fixtures.

All audio timing runs on a ManualScheduler; nothing touches a sound
device or the network.
"""

import io

import pytest

from storygraph.audio.crossfade import CrossfadeManager
from storygraph.audio.engine import AudioEngine
from storygraph.audio.registry import LayerRegistry
from storygraph.audio.scheduler import ManualScheduler
from storygraph.config import Config
from storygraph.monitoring.logging import LogLevel, StructuredLogger
from storygraph.story.types import Environment
from storygraph.testing import RecordingLayerSpec, branching_store


@pytest.fixture
def config(tmp_path):
    """Deterministic config with short, round fade timings."""
    return Config(
        sample_rate=8000,
        block_size=256,
        crossfade_seconds=2.0,
        unmute_fade_seconds=0.8,
        mute_fade_seconds=0.5,
        stop_margin_seconds=0.1,
        master_volume=0.8,
        music_asset=None,
        asset_dir=tmp_path / "assets",
        narration_dir=tmp_path / "narration",
        preferences_path=tmp_path / "prefs.json",
        seed=7,
    )


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def engine(config, scheduler):
    engine = AudioEngine(config, scheduler)
    engine.init()
    yield engine
    engine.dispose()


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def events(log_stream):
    """Structured logger writing JSON lines into log_stream."""
    return StructuredLogger("test", level=LogLevel.DEBUG, output=log_stream)


@pytest.fixture
def specs():
    """Recording layer specs by key."""
    return {
        key: RecordingLayerSpec(key, frequency=200.0 + 100 * i)
        for i, key in enumerate(["wind", "birds", "stream", "drips", "drone"])
    }


@pytest.fixture
def registry(specs):
    """forest: wind+birds, clearing: wind+birds+stream, cave: drips+drone."""
    return LayerRegistry({
        Environment.FOREST: [specs["wind"], specs["birds"]],
        Environment.CLEARING: [specs["wind"], specs["birds"], specs["stream"]],
        Environment.CAVE: [specs["drips"], specs["drone"]],
    })


@pytest.fixture
def manager(registry, config, scheduler, events):
    manager = CrossfadeManager(registry, config, scheduler=scheduler, events=events)
    yield manager
    manager.dispose()


@pytest.fixture
def store():
    return branching_store()
