"""
Ambient audio for storygraph.

Components:
    AudioEngine        - Audio context: clock, master gain, mixing
    CrossfadeManager   - Environment crossfades and session mute
    LayerRegistry      - Environment to layer specification table
    Layer specs        - Noise, periodic, tone and streamed layers
    Schedulers         - asyncio-backed or virtual-clock timers
"""

from storygraph.audio.assets import AssetLoader, FileAssetLoader
from storygraph.audio.crossfade import CrossfadeManager
from storygraph.audio.engine import AudioEngine, EngineState
from storygraph.audio.layers import (
    AssetState,
    AudioLayer,
    LayerSpec,
    NoiseLayerSpec,
    PeriodicLayerSpec,
    StreamedLayer,
    StreamedLayerSpec,
    ToneLayerSpec,
)
from storygraph.audio.params import AudioParam, fade_param
from storygraph.audio.registry import LayerRegistry, default_registry
from storygraph.audio.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    RepeatingTask,
    Scheduler,
)
from storygraph.audio.sources import EventVoice, NoiseColor

__all__ = [
    # Engine
    "AudioEngine",
    "EngineState",
    "AudioParam",
    "fade_param",
    # Scheduling
    "Scheduler",
    "AsyncioScheduler",
    "ManualScheduler",
    "RepeatingTask",
    # Layers
    "AudioLayer",
    "StreamedLayer",
    "AssetState",
    "LayerSpec",
    "NoiseLayerSpec",
    "PeriodicLayerSpec",
    "ToneLayerSpec",
    "StreamedLayerSpec",
    "EventVoice",
    "NoiseColor",
    # Assets
    "AssetLoader",
    "FileAssetLoader",
    # Orchestration
    "LayerRegistry",
    "default_registry",
    "CrossfadeManager",
]
