"""
Audio Layers - Layer specifications and the live layers they create.

A layer specification is plain data (cutoffs, gains, interval ranges)
plus create(engine), which builds a live AudioLayer, connects it to the
engine and starts any repeating tasks. Live layers start silent; the
crossfade manager fades them in.

Specifications:
    NoiseLayerSpec     - Band-limited noise (wind, water, surf)
    PeriodicLayerSpec  - Randomised short events on a random interval
                         (birds, bells, chimes, drips)
    ToneLayerSpec      - Sustained drone pad
    StreamedLayerSpec  - Named asset loaded without blocking; silent if
                         the asset cannot be loaded
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Protocol

import numpy as np

from storygraph.audio.assets import AssetLoader, FileAssetLoader
from storygraph.audio.params import RENDER_LAG_SECONDS, AudioParam
from storygraph.audio.scheduler import RepeatingTask, TimerHandle
from storygraph.audio.sources import (
    VOICE_DURATIONS,
    BufferSource,
    EventSource,
    EventVoice,
    NoiseColor,
    NoiseSource,
    Source,
    SoundEvent,
    ToneSource,
)

if TYPE_CHECKING:
    from storygraph.audio.engine import AudioEngine

logger = logging.getLogger(__name__)


def layer_rng(seed: int | None, key: str) -> random.Random:
    """Random generator for one layer.

    With a seed, every layer gets its own reproducible stream.
    """
    if seed is None:
        return random.Random()
    return random.Random(f"{seed}:{key}")


def _check_gain(gain: float, key: str) -> None:
    if not 0.0 <= gain <= 1.0:
        raise ValueError(f"layer '{key}': gain must be 0.0-1.0, got {gain}")


def _check_range(values: tuple[float, float], name: str, key: str) -> None:
    low, high = values
    if high < low:
        raise ValueError(f"layer '{key}': {name} must be (low, high), got {values}")


# =============================================================================
# Live Layers
# =============================================================================

class AudioLayer:
    """One live sound source with its own gain.

    Attributes:
        key: Layer key, unique within an environment's soundscape.
        source: What the layer renders.
        gain: Per-layer gain automation (starts at 0).
        target_gain: Gain the layer is faded in to.
        tasks: Repeating tasks feeding the source.
    """

    def __init__(
        self,
        key: str,
        source: Source,
        target_gain: float,
        tasks: list[RepeatingTask] | None = None,
        engine: "AudioEngine | None" = None,
    ):
        self.key = key
        self.source = source
        self.gain = AudioParam(0.0, name=key)
        self.target_gain = target_gain
        self.tasks = list(tasks or [])
        self._engine = engine
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def start(self) -> None:
        for task in self.tasks:
            task.start()

    def stop(self) -> None:
        """Stop tasks and source and leave the mix. Idempotent."""
        if self._stopped:
            return
        self._stopped = True
        for task in self.tasks:
            task.stop()
        self.source.stop()
        if self._engine is not None:
            self._engine.disconnect(self)

    def __repr__(self) -> str:
        state = "stopped" if self._stopped else "playing"
        return f"{type(self).__name__}({self.key!r}, {state})"


class AssetState(Enum):
    """Loading state of a streamed layer."""
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"
    STOPPED = "stopped"


class StreamedLayer(AudioLayer):
    """Layer that plays a loaded asset once it is available.

    Starts silent in LOADING. The load runs on the next scheduler tick,
    so creating the layer never blocks. A failed load leaves the layer
    silent in FAILED; it keeps its place in the soundscape and can be
    stopped like any other layer.

    Example:
        layer.on_ready(lambda l: print(f"{l.key} playing"))
    """

    def __init__(
        self,
        key: str,
        asset: str,
        loader: AssetLoader,
        target_gain: float,
        engine: "AudioEngine",
    ):
        super().__init__(key, BufferSource(engine.sample_rate), target_gain, engine=engine)
        self.asset = asset
        self._loader = loader
        self._state = AssetState.LOADING
        self._callbacks: list[Callable[["StreamedLayer"], None]] = []
        self._load_handle: TimerHandle | None = None
        self.error: Exception | None = None

    @property
    def state(self) -> AssetState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is AssetState.READY

    def start(self) -> None:
        if self._engine is None or self._load_handle is not None:
            return
        if self._state is not AssetState.LOADING:
            return
        # Decoding runs off the scheduler thread; the result comes back on it
        self._load_handle = self._engine.scheduler.run_blocking(
            self._loader.load,
            self.asset,
            self._engine.sample_rate,
            on_done=self._loaded,
        )

    def on_ready(self, callback: Callable[["StreamedLayer"], None]) -> None:
        """Call callback(layer) when the asset is playing (now if it already is)."""
        if self._state is AssetState.READY:
            callback(self)
        elif self._state is AssetState.LOADING:
            self._callbacks.append(callback)

    def _loaded(self, samples: np.ndarray | None, error: Exception | None) -> None:
        self._load_handle = None
        if self._state is not AssetState.LOADING:
            return

        if error is not None:
            self.error = error
            self._state = AssetState.FAILED
            self._callbacks.clear()
            logger.warning(f"Layer '{self.key}' could not load '{self.asset}': {error}")
            return

        self.source.attach(samples, start_time=self._engine.current_time)
        self._state = AssetState.READY
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(self)
            except Exception as e:
                logger.warning(f"Layer '{self.key}' ready callback failed: {e}")

    def stop(self) -> None:
        if self._stopped:
            return
        if self._load_handle is not None:
            self._load_handle.cancel()
            self._load_handle = None
        if self._state is AssetState.LOADING:
            self._state = AssetState.STOPPED
        self._callbacks.clear()
        super().stop()


# =============================================================================
# Specifications
# =============================================================================

class LayerSpec(Protocol):
    """Anything that can create a live layer for an engine."""

    key: str
    gain: float

    def create(self, engine: "AudioEngine") -> AudioLayer: ...


def _activate(layer: AudioLayer, engine: "AudioEngine") -> AudioLayer:
    engine.connect(layer)
    layer.start()
    return layer


@dataclass(frozen=True)
class NoiseLayerSpec:
    """Filtered noise bed.

    Example:
        NoiseLayerSpec("wind", low_hz=80, high_hz=500, gain=0.15,
                       swell_rate=0.1, swell_depth=0.6)
    """
    key: str
    low_hz: float = 0.0
    high_hz: float | None = None
    gain: float = 0.2
    color: NoiseColor = NoiseColor.WHITE
    swell_rate: float = 0.0
    swell_depth: float = 0.0
    loop_seconds: float = 4.0

    def __post_init__(self):
        _check_gain(self.gain, self.key)
        if self.high_hz is not None and self.high_hz <= self.low_hz:
            raise ValueError(f"layer '{self.key}': high_hz must be above low_hz")

    def create(self, engine: "AudioEngine") -> AudioLayer:
        rng = layer_rng(engine.config.seed, self.key)
        source = NoiseSource(
            engine.sample_rate,
            low_hz=self.low_hz,
            high_hz=self.high_hz,
            color=self.color,
            loop_seconds=self.loop_seconds,
            swell_rate=self.swell_rate,
            swell_depth=self.swell_depth,
            rng=np.random.default_rng(rng.getrandbits(64)),
        )
        return _activate(AudioLayer(self.key, source, self.gain, engine=engine), engine)


@dataclass(frozen=True)
class PeriodicLayerSpec:
    """Short synthesized events fired after random delays.

    Each firing picks a pitch from pitch_range and an event gain from
    gain_range, plays notes_range notes spaced note_spacing apart, then
    waits a delay from interval before the next firing.
    """
    key: str
    voice: EventVoice
    interval: tuple[float, float]
    pitch_range: tuple[float, float]
    gain_range: tuple[float, float] = (0.5, 1.0)
    gain: float = 0.2
    notes_range: tuple[int, int] = (1, 1)
    note_spacing: float = 0.12
    duration: float | None = None

    def __post_init__(self):
        _check_gain(self.gain, self.key)
        _check_range(self.pitch_range, "pitch_range", self.key)
        _check_range(self.gain_range, "gain_range", self.key)
        _check_range(self.notes_range, "notes_range", self.key)
        low, high = self.interval
        if low <= 0 or high < low:
            raise ValueError(f"layer '{self.key}': interval must satisfy 0 < low <= high")

    @property
    def event_duration(self) -> float:
        return self.duration if self.duration is not None else VOICE_DURATIONS[self.voice]

    def create(self, engine: "AudioEngine") -> AudioLayer:
        rng = layer_rng(engine.config.seed, self.key)
        source = EventSource(engine.sample_rate)

        def fire() -> None:
            now = engine.current_time
            source.prune(now - RENDER_LAG_SECONDS)
            pitch = rng.uniform(*self.pitch_range)
            level = rng.uniform(*self.gain_range)
            for n in range(rng.randint(*self.notes_range)):
                source.add(SoundEvent(
                    start=now + n * self.note_spacing,
                    # Each note a little higher than the last
                    frequency=pitch * (1.0 + 0.06 * n),
                    gain=level,
                    duration=self.event_duration,
                    voice=self.voice,
                ))

        task = RepeatingTask(engine.scheduler, fire, self.interval, rng=rng, name=self.key)
        layer = AudioLayer(self.key, source, self.gain, tasks=[task], engine=engine)
        return _activate(layer, engine)


@dataclass(frozen=True)
class ToneLayerSpec:
    """Sustained drone pad."""
    key: str
    frequencies: tuple[float, ...]
    gain: float = 0.1
    detune_hz: float = 0.0
    lfo_rate: float = 0.0
    lfo_depth: float = 0.0

    def __post_init__(self):
        _check_gain(self.gain, self.key)
        if not self.frequencies:
            raise ValueError(f"layer '{self.key}': needs at least one frequency")

    def create(self, engine: "AudioEngine") -> AudioLayer:
        source = ToneSource(
            engine.sample_rate,
            frequencies=self.frequencies,
            detune_hz=self.detune_hz,
            lfo_rate=self.lfo_rate,
            lfo_depth=self.lfo_depth,
        )
        return _activate(AudioLayer(self.key, source, self.gain, engine=engine), engine)


@dataclass(frozen=True)
class StreamedLayerSpec:
    """Looping named asset (background music).

    Without a loader, assets are read from the engine config's asset_dir.
    """
    key: str
    asset: str
    gain: float = 0.3
    loader: AssetLoader | None = field(default=None, compare=False)

    def __post_init__(self):
        _check_gain(self.gain, self.key)

    def create(self, engine: "AudioEngine") -> StreamedLayer:
        loader = self.loader or FileAssetLoader(engine.config.asset_dir)
        layer = StreamedLayer(self.key, self.asset, loader, self.gain, engine)
        _activate(layer, engine)
        return layer


__all__ = [
    "layer_rng",
    "AudioLayer",
    "AssetState",
    "StreamedLayer",
    "LayerSpec",
    "NoiseLayerSpec",
    "PeriodicLayerSpec",
    "ToneLayerSpec",
    "StreamedLayerSpec",
]
