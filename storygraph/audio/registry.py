"""
Layer Registry - Which layers make up each environment's soundscape.

The registry maps environments to ordered tuples of layer
specifications. Environments without an entry are silent; that is a
normal state, not an error.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from storygraph.audio.layers import (
    LayerSpec,
    NoiseLayerSpec,
    PeriodicLayerSpec,
    StreamedLayerSpec,
    ToneLayerSpec,
)
from storygraph.audio.sources import EventVoice, NoiseColor
from storygraph.config import Config
from storygraph.story.types import Environment


class LayerRegistry:
    """Environment to layer specification table.

    Example:
        registry = LayerRegistry({Environment.CAVE: [DRIPS, CAVE_DRONE]})
        registry.layers_for(Environment.CAVE)    # (DRIPS, CAVE_DRONE)
        registry.layers_for(Environment.SKY)     # ()
    """

    def __init__(self, table: Mapping[Environment, Iterable[LayerSpec]] | None = None):
        self._table: dict[Environment, tuple[LayerSpec, ...]] = {}
        for environment, specs in (table or {}).items():
            self.register(environment, specs)

    def register(self, environment: Environment | str, specs: Iterable[LayerSpec]) -> None:
        """Set the layers of an environment, replacing any previous entry.

        Raises:
            ValueError: If two specs share a key.
        """
        environment = Environment(environment)
        specs = tuple(specs)
        keys = [spec.key for spec in specs]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise ValueError(
                f"Duplicate layer keys for {environment.value}: {', '.join(duplicates)}"
            )
        self._table[environment] = specs

    def layers_for(self, environment: Environment | str) -> tuple[LayerSpec, ...]:
        """Layer specs of an environment, empty when it has none."""
        try:
            environment = Environment(environment)
        except ValueError:
            return ()
        return self._table.get(environment, ())

    def keys_for(self, environment: Environment | str) -> tuple[str, ...]:
        return tuple(spec.key for spec in self.layers_for(environment))

    def environments(self) -> list[Environment]:
        """Environments with at least one layer."""
        return [env for env, specs in self._table.items() if specs]

    def __contains__(self, environment: object) -> bool:
        try:
            return bool(self._table.get(Environment(environment)))
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self.environments())


# =============================================================================
# Built-in Soundscape
# =============================================================================

WIND = NoiseLayerSpec(
    "wind", low_hz=80, high_hz=500, gain=0.15,
    color=NoiseColor.PINK, swell_rate=0.1, swell_depth=0.6,
)
HIGH_WIND = NoiseLayerSpec(
    "highWind", low_hz=300, high_hz=1800, gain=0.12,
    color=NoiseColor.PINK, swell_rate=0.18, swell_depth=0.7,
)
LEAVES = NoiseLayerSpec(
    "leaves", low_hz=2000, high_hz=6000, gain=0.04,
    swell_rate=0.25, swell_depth=0.5,
)
STREAM = NoiseLayerSpec(
    "stream", low_hz=400, high_hz=2500, gain=0.1,
    color=NoiseColor.PINK, swell_rate=0.4, swell_depth=0.2,
)
SURF = NoiseLayerSpec(
    "surf", low_hz=60, high_hz=1200, gain=0.2,
    color=NoiseColor.BROWN, swell_rate=0.08, swell_depth=0.8,
)
CREAKING = NoiseLayerSpec(
    "creaking", low_hz=120, high_hz=400, gain=0.05,
    color=NoiseColor.BROWN, swell_rate=0.05, swell_depth=0.9,
)
FIRE = NoiseLayerSpec(
    "fire", low_hz=100, high_hz=900, gain=0.08,
    color=NoiseColor.BROWN, swell_rate=0.3, swell_depth=0.3,
)

BIRDS = PeriodicLayerSpec(
    "birds", voice=EventVoice.CHIRP, interval=(1.5, 5.0),
    pitch_range=(1800.0, 3200.0), gain_range=(0.3, 0.8), gain=0.08,
    notes_range=(1, 3),
)
GULLS = PeriodicLayerSpec(
    "gulls", voice=EventVoice.CHIRP, interval=(4.0, 10.0),
    pitch_range=(900.0, 1400.0), gain_range=(0.3, 0.6), gain=0.06,
    notes_range=(2, 4), note_spacing=0.25, duration=0.3,
)
DRIPS = PeriodicLayerSpec(
    "drips", voice=EventVoice.DRIP, interval=(0.8, 3.0),
    pitch_range=(600.0, 1400.0), gain_range=(0.4, 1.0), gain=0.12,
)
BELLS = PeriodicLayerSpec(
    "bells", voice=EventVoice.BELL, interval=(6.0, 14.0),
    pitch_range=(220.0, 440.0), gain_range=(0.4, 0.8), gain=0.1,
)
CHIMES = PeriodicLayerSpec(
    "chimes", voice=EventVoice.CHIME, interval=(2.0, 6.0),
    pitch_range=(880.0, 1760.0), gain_range=(0.3, 0.7), gain=0.06,
    notes_range=(1, 3), note_spacing=0.2,
)
CRACKLE = PeriodicLayerSpec(
    "crackle", voice=EventVoice.CRACKLE, interval=(0.1, 0.6),
    pitch_range=(1.0, 1.0), gain_range=(0.2, 0.7), gain=0.05,
)

CAVE_DRONE = ToneLayerSpec(
    "caveDrone", frequencies=(55.0, 82.5), gain=0.06,
    detune_hz=0.7, lfo_rate=0.05, lfo_depth=0.5,
)
TEMPLE_DRONE = ToneLayerSpec(
    "templeDrone", frequencies=(110.0, 165.0, 220.0), gain=0.05,
    detune_hz=0.5, lfo_rate=0.07, lfo_depth=0.4,
)
DAWN_PAD = ToneLayerSpec(
    "dawnPad", frequencies=(261.6, 329.6, 392.0), gain=0.04,
    detune_hz=1.2, lfo_rate=0.1, lfo_depth=0.3,
)

MUSIC_KEY = "music"

SOUNDSCAPES: dict[Environment, tuple[LayerSpec, ...]] = {
    Environment.FOREST: (WIND, LEAVES, BIRDS),
    Environment.CLEARING: (WIND, BIRDS, STREAM),
    Environment.GROVE: (LEAVES, BIRDS, CHIMES),
    Environment.MEADOW: (WIND, BIRDS),
    Environment.GARDEN: (STREAM, BIRDS, CHIMES),
    Environment.CAVE: (DRIPS, CAVE_DRONE),
    Environment.GORGE: (HIGH_WIND, STREAM, DRIPS),
    Environment.CLIFF: (HIGH_WIND, GULLS),
    Environment.TEMPLE: (TEMPLE_DRONE, BELLS),
    Environment.SANCTUM: (TEMPLE_DRONE, CHIMES),
    Environment.ALTAR: (TEMPLE_DRONE, BELLS, FIRE, CRACKLE),
    Environment.RUINS: (WIND, BELLS),
    Environment.SUNRISE: (DAWN_PAD, BIRDS),
    Environment.BEACH: (SURF, GULLS, WIND),
    Environment.OCEAN: (SURF, HIGH_WIND),
    Environment.SHIP: (SURF, CREAKING, GULLS),
    Environment.CABIN: (FIRE, CRACKLE, WIND),
    # SKY and DESERT are silent
}


def default_registry(config: Config | None = None) -> LayerRegistry:
    """The built-in soundscape table.

    When config.music_asset is set, a streamed "music" layer is added
    to every mapped environment. It is the same key everywhere, so it
    keeps playing across environment changes.
    """
    config = config or Config()
    table: dict[Environment, tuple[LayerSpec, ...]] = dict(SOUNDSCAPES)

    if config.music_asset:
        music = StreamedLayerSpec(MUSIC_KEY, config.music_asset, gain=config.music_volume)
        table = {env: specs + (music,) for env, specs in table.items()}

    return LayerRegistry(table)


__all__ = [
    "LayerRegistry",
    "SOUNDSCAPES",
    "MUSIC_KEY",
    "default_registry",
]
