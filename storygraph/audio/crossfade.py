"""
Crossfade Manager - Keeps the live layers in step with the environment.

Owns the session's single AudioEngine (and through it the single
master gain). Holds exactly one set of active layers, the current
environment's, keyed by layer key.

Environment change:
    1. keys that are new      -> create, fade in from silence
    2. keys that were dropped -> fade out, stop after the fade + margin
    3. keys in both           -> untouched (no restart, no re-fade)

Mute only ever touches the master gain, so unmuting reveals exactly
the layers that are active at that moment.

A layer that is fading out is "retiring". Each retiring layer has
exactly one pending stop timer; retiring it again re-targets its fade
and replaces the timer, so no layer is ever stopped by two timers.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping

from storygraph.audio.engine import AudioEngine
from storygraph.audio.layers import AudioLayer
from storygraph.audio.params import fade_param
from storygraph.audio.registry import LayerRegistry
from storygraph.audio.scheduler import Scheduler, TimerHandle
from storygraph.config import Config
from storygraph.monitoring.logging import StructuredLogger, get_logger
from storygraph.story.types import Environment

logger = logging.getLogger(__name__)


class CrossfadeManager:
    """Ambient audio for one session.

    Example:
        manager = CrossfadeManager(default_registry(), Config())

        manager.set_environment(Environment.FOREST)
        manager.set_environment(Environment.CLEARING)   # wind, birds kept
        manager.set_muted(True)

        manager.teardown()
        manager.dispose()

    Or, with guaranteed cleanup:

        with CrossfadeManager(registry) as manager:
            manager.set_environment("cave")
    """

    def __init__(
        self,
        registry: LayerRegistry,
        config: Config | None = None,
        engine: AudioEngine | None = None,
        scheduler: Scheduler | None = None,
        events: StructuredLogger | None = None,
    ):
        """
        Args:
            registry: Environment to layer table.
            config: Fade timings and master volume.
            engine: Engine to use instead of creating one lazily.
            scheduler: Clock for a lazily created engine.
            events: Structured logger for environment changes.
        """
        self.registry = registry
        self.config = config or (engine.config if engine is not None else Config())
        self._engine = engine
        self._scheduler = scheduler
        self._events = events or get_logger()

        self._active: dict[str, AudioLayer] = {}
        self._retiring: dict[int, tuple[AudioLayer, TimerHandle]] = {}
        self._environment: Environment | str | None = None
        self._muted = self.config.start_muted

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def engine(self) -> AudioEngine:
        """The session's audio engine, created and started on first use."""
        if self._engine is None:
            self._engine = AudioEngine(self.config, self._scheduler)
            self._engine.init()
        return self._engine

    @property
    def has_engine(self) -> bool:
        return self._engine is not None

    @property
    def active_layers(self) -> Mapping[str, AudioLayer]:
        return MappingProxyType(self._active)

    @property
    def retiring_keys(self) -> tuple[str, ...]:
        return tuple(layer.key for layer, _ in self._retiring.values())

    @property
    def pending_stops(self) -> int:
        return len(self._retiring)

    @property
    def environment(self) -> Environment | str | None:
        return self._environment

    @property
    def muted(self) -> bool:
        return self._muted

    # =========================================================================
    # Operations
    # =========================================================================

    def set_environment(self, environment: Environment | str) -> None:
        """Crossfade to the layers of an environment.

        Unknown or unmapped environments fade everything out. Selecting
        the current environment again does nothing.
        """
        try:
            environment = Environment(environment)
        except ValueError:
            pass

        if self._environment is not None and environment == self._environment:
            return

        specs = self.registry.layers_for(environment)
        wanted = {spec.key for spec in specs}
        engine = self.engine
        now = engine.current_time

        added: list[str] = []
        for spec in specs:
            if spec.key in self._active:
                continue
            try:
                layer = spec.create(engine)
            except Exception as e:
                logger.warning(f"Failed to create layer '{spec.key}': {e}")
                self._events.audio_error(e, layer=spec.key)
                continue
            fade_param(layer.gain, layer.target_gain, self.config.crossfade_seconds, now, start_value=0.0)
            self._active[spec.key] = layer
            added.append(spec.key)

        removed: list[str] = []
        for key in list(self._active):
            if key not in wanted:
                self._retire(self._active.pop(key), now)
                removed.append(key)

        self._environment = environment
        name = environment.value if isinstance(environment, Environment) else str(environment)
        self._events.environment_changed(name, added=added, removed=removed)

    def set_muted(self, muted: bool) -> None:
        """Fade the master gain down to silence or back up to master_volume."""
        if muted == self._muted:
            return

        engine = self.engine
        self._muted = muted
        now = engine.current_time

        if muted:
            fade_param(engine.master_gain, 0.0, self.config.mute_fade_seconds, now)
            return

        try:
            engine.resume()
        except Exception as e:
            logger.warning(f"Could not resume audio engine: {e}")
            self._events.audio_error(e)
        fade_param(
            engine.master_gain,
            self.config.master_volume,
            self.config.unmute_fade_seconds,
            now,
        )

    def teardown(self) -> None:
        """Fade out and stop every layer, active and retiring."""
        if self._engine is None:
            return
        now = self._engine.current_time

        for layer in list(self._active.values()):
            self._retire(layer, now)
        self._active.clear()

        for layer, _ in list(self._retiring.values()):
            self._retire(layer, now)

        self._environment = None

    def reset(self) -> None:
        """Stop every layer now and cancel every pending stop timer."""
        for layer, handle in list(self._retiring.values()):
            handle.cancel()
            self._stop(layer)
        self._retiring.clear()

        for layer in list(self._active.values()):
            self._stop(layer)
        self._active.clear()

        self._environment = None

    def dispose(self) -> None:
        """reset() and close the engine. Safe to call more than once."""
        self.reset()
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    # =========================================================================
    # Retiring
    # =========================================================================

    def _retire(self, layer: AudioLayer, now: float) -> None:
        fade_param(layer.gain, 0.0, self.config.crossfade_seconds, now)

        previous = self._retiring.get(id(layer))
        if previous is not None:
            previous[1].cancel()

        handle = self.engine.scheduler.call_later(
            self.config.stop_delay, self._finish_retire, layer
        )
        self._retiring[id(layer)] = (layer, handle)

    def _finish_retire(self, layer: AudioLayer) -> None:
        if self._retiring.pop(id(layer), None) is None:
            return
        self._stop(layer)

    def _stop(self, layer: AudioLayer) -> None:
        try:
            layer.stop()
        except Exception as e:
            logger.warning(f"Failed to stop layer '{layer.key}': {e}")
            self._events.audio_error(e, layer=layer.key)

    # =========================================================================
    # Context Manager
    # =========================================================================

    def __enter__(self) -> "CrossfadeManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()

    def __repr__(self) -> str:
        env = self._environment.value if isinstance(self._environment, Environment) else self._environment
        return (
            f"CrossfadeManager(environment={env!r}, active={sorted(self._active)}, "
            f"retiring={len(self._retiring)}, muted={self._muted})"
        )


__all__ = ["CrossfadeManager"]
