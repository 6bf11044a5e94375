"""
Audio Engine - The audio processing context.

One engine per session. It owns the clock (via its scheduler), the
single master gain every layer routes through, and the list of
connected layers. render() mixes those layers into float32 blocks:

    layer.source -> layer.gain -> master_gain -> output

Lifecycle:
    SUSPENDED --resume()--> RUNNING --suspend()--> SUSPENDED
        \\                      |
         +------dispose()------+--> CLOSED

A suspended engine renders silence (like a browser audio context that
has not been unlocked by a user gesture yet).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

from storygraph.audio.params import AudioParam
from storygraph.audio.scheduler import ManualScheduler, Scheduler
from storygraph.config import Config
from storygraph.errors import AudioEngineError

if TYPE_CHECKING:
    from storygraph.audio.layers import AudioLayer

logger = logging.getLogger(__name__)


class EngineState(Enum):
    SUSPENDED = "suspended"
    RUNNING = "running"
    CLOSED = "closed"


class AudioEngine:
    """Audio processing context with explicit init/dispose.

    Example:
        engine = AudioEngine(Config(), ManualScheduler())
        engine.init()
        engine.resume()

        engine.connect(layer)
        block = engine.render(0.5)   # 0.5 s of mixed mono audio

        engine.dispose()
    """

    def __init__(
        self,
        config: Config | None = None,
        scheduler: Scheduler | None = None,
        autostart: bool = True,
    ):
        """
        Args:
            config: Sample rate, master volume, mute default.
            scheduler: Clock and timer source (virtual clock by default).
            autostart: Resume immediately on init().
        """
        self.config = config or Config()
        self.scheduler = scheduler or ManualScheduler()
        self._autostart = autostart

        self._state = EngineState.SUSPENDED
        self._master: AudioParam | None = None
        self._layers: list["AudioLayer"] = []
        self._origin = 0.0
        self._render_cursor = 0.0
        self._initialized = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def init(self) -> "AudioEngine":
        """Create the master gain. Calling init() twice is a no-op."""
        if self._state is EngineState.CLOSED:
            raise AudioEngineError("Cannot init a disposed audio engine")
        if self._initialized:
            return self

        self._origin = self.scheduler.time()
        self._render_cursor = 0.0
        initial = 0.0 if self.config.start_muted else self.config.master_volume
        self._master = AudioParam(initial, name="master")
        self._initialized = True

        if self._autostart:
            self.resume()

        logger.debug(f"Audio engine initialised at {self.config.sample_rate} Hz")
        return self

    def resume(self) -> None:
        """Start (or restart) processing.

        Raises:
            AudioEngineError: If the engine is closed.
        """
        if self._state is EngineState.CLOSED:
            raise AudioEngineError("Cannot resume a disposed audio engine")
        if not self._initialized:
            self.init()
        self._state = EngineState.RUNNING

    def suspend(self) -> None:
        if self._state is EngineState.RUNNING:
            self._state = EngineState.SUSPENDED

    def dispose(self) -> None:
        """Stop every connected layer and close the engine. Idempotent."""
        if self._state is EngineState.CLOSED:
            return
        for layer in list(self._layers):
            try:
                layer.stop()
            except Exception as e:
                logger.warning(f"Failed to stop layer '{layer.key}' on dispose: {e}")
        self._layers.clear()
        self._state = EngineState.CLOSED

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is EngineState.RUNNING

    @property
    def is_closed(self) -> bool:
        return self._state is EngineState.CLOSED

    @property
    def sample_rate(self) -> int:
        return self.config.sample_rate

    @property
    def current_time(self) -> float:
        """Seconds since init() on the scheduler's clock."""
        return self.scheduler.time() - self._origin

    @property
    def master_gain(self) -> AudioParam:
        if self._master is None:
            raise AudioEngineError("Audio engine not initialised")
        return self._master

    @property
    def layers(self) -> list["AudioLayer"]:
        return list(self._layers)

    @property
    def render_cursor(self) -> float:
        """Engine time up to which audio has been rendered."""
        return self._render_cursor

    # =========================================================================
    # Routing
    # =========================================================================

    def connect(self, layer: "AudioLayer") -> None:
        if self._state is EngineState.CLOSED:
            raise AudioEngineError("Cannot connect to a disposed audio engine")
        if layer not in self._layers:
            self._layers.append(layer)

    def disconnect(self, layer: "AudioLayer") -> None:
        if layer in self._layers:
            self._layers.remove(layer)

    # =========================================================================
    # Rendering
    # =========================================================================

    def render(self, duration: float) -> np.ndarray:
        """Render the next block of the mix.

        Starts where the previous render stopped. With a ManualScheduler,
        advance the clock first so the events of that window exist.

        Args:
            duration: Seconds to render.

        Returns:
            Float32 mono samples in [-1, 1].
        """
        frames = int(round(duration * self.sample_rate))
        start = self._render_cursor
        self._render_cursor = start + frames / self.sample_rate

        if frames <= 0 or not self.is_running or self._master is None:
            return np.zeros(max(frames, 0), dtype=np.float32)

        times = start + np.arange(frames, dtype=np.float64) / self.sample_rate
        mix = np.zeros(frames, dtype=np.float32)

        for layer in list(self._layers):
            if layer.stopped:
                self._layers.remove(layer)
                continue
            try:
                block = layer.source.render(start, frames)
                mix += block * layer.gain.values(times)
            except Exception as e:
                logger.warning(f"Layer '{layer.key}' failed to render: {e}")
                continue
            layer.gain.discard_before(start)

        mix *= self._master.values(times)
        self._master.discard_before(start)

        return np.clip(mix, -1.0, 1.0)

    def __repr__(self) -> str:
        return f"AudioEngine(state={self._state.value}, layers={len(self._layers)})"


__all__ = ["EngineState", "AudioEngine"]
