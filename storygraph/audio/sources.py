"""
Sound Sources - Procedural generators rendered block by block.

Every source renders mono float32 audio for an absolute engine time
window, so rendering is independent of block size.

Sources:
    NoiseSource   - Band-limited looping noise (wind, water, surf, fire)
    ToneSource    - Sustained drone pad of detuned partials
    EventSource   - Sum of short synthesized events (chirps, bells, drips)
    BufferSource  - Looping decoded asset; silent until a buffer arrives

stop() is idempotent on all of them; a stopped source renders silence.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import numpy as np


class Source(ABC):
    """Base class for a renderable sound source."""

    def __init__(self, sample_rate: int):
        self.sample_rate = sample_rate
        self._stopped = False
        self._stop_time: float | None = None

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self, when: float | None = None) -> None:
        """Stop producing sound. Safe to call more than once."""
        if self._stopped:
            return
        self._stopped = True
        self._stop_time = when

    def render(self, start: float, frames: int) -> np.ndarray:
        if frames <= 0:
            return np.zeros(0, dtype=np.float32)
        if self._stopped and (self._stop_time is None or start >= self._stop_time):
            return np.zeros(frames, dtype=np.float32)
        block = self._render(start, frames).astype(np.float32, copy=False)
        if self._stop_time is not None:
            times = start + np.arange(frames) / self.sample_rate
            block = np.where(times < self._stop_time, block, 0.0).astype(np.float32)
        return block

    @abstractmethod
    def _render(self, start: float, frames: int) -> np.ndarray:
        ...


# =============================================================================
# Noise
# =============================================================================

class NoiseColor(Enum):
    """Spectral tilt of generated noise."""

    WHITE = "white"
    PINK = "pink"
    BROWN = "brown"


def band_noise(
    samples: int,
    sample_rate: int,
    low_hz: float = 0.0,
    high_hz: float | None = None,
    color: NoiseColor = NoiseColor.WHITE,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """Generate a seamlessly looping band-limited noise buffer.

    Shaped in the frequency domain, so the buffer's end joins its start
    without a click and can be tiled forever.

    Returns:
        Float32 samples normalised to a peak of 1.0.
    """
    rng = rng or np.random.default_rng()
    white = rng.standard_normal(samples)
    spectrum = np.fft.rfft(white)
    freqs = np.fft.rfftfreq(samples, d=1.0 / sample_rate)

    high = sample_rate / 2 if high_hz is None else min(high_hz, sample_rate / 2)
    mask = (freqs >= low_hz) & (freqs <= high)
    spectrum = spectrum * mask

    if color is not NoiseColor.WHITE:
        safe = np.maximum(freqs, 1.0)
        # Pink: -3 dB/octave, brown: -6 dB/octave
        exponent = 0.5 if color is NoiseColor.PINK else 1.0
        spectrum = spectrum / safe ** exponent

    shaped = np.fft.irfft(spectrum, n=samples)
    peak = np.max(np.abs(shaped))
    if peak > 0:
        shaped = shaped / peak
    return shaped.astype(np.float32)


class NoiseSource(Source):
    """Looping band-limited noise with an optional slow swell.

    Example:
        # Wind: low rumble that gusts every ~8 s
        wind = NoiseSource(24000, low_hz=80, high_hz=600,
                           swell_rate=0.12, swell_depth=0.5)
    """

    def __init__(
        self,
        sample_rate: int,
        low_hz: float = 0.0,
        high_hz: float | None = None,
        color: NoiseColor = NoiseColor.WHITE,
        loop_seconds: float = 4.0,
        swell_rate: float = 0.0,
        swell_depth: float = 0.0,
        rng: np.random.Generator | None = None,
    ):
        super().__init__(sample_rate)
        rng = rng or np.random.default_rng()
        self.buffer = band_noise(
            max(1, int(loop_seconds * sample_rate)),
            sample_rate,
            low_hz=low_hz,
            high_hz=high_hz,
            color=color,
            rng=rng,
        )
        self.swell_rate = swell_rate
        self.swell_depth = min(max(swell_depth, 0.0), 1.0)
        self._swell_phase = float(rng.uniform(0, 2 * np.pi))

    def _render(self, start: float, frames: int) -> np.ndarray:
        offset = int(round(start * self.sample_rate))
        idx = (offset + np.arange(frames)) % len(self.buffer)
        block = self.buffer[idx]

        if self.swell_rate > 0 and self.swell_depth > 0:
            times = start + np.arange(frames) / self.sample_rate
            lfo = 0.5 * (1.0 + np.sin(2 * np.pi * self.swell_rate * times + self._swell_phase))
            block = block * (1.0 - self.swell_depth * lfo)

        return block


# =============================================================================
# Tones
# =============================================================================

class ToneSource(Source):
    """Sustained pad: a few detuned sine partials with slow breathing.

    Phase is computed from absolute time, so blocks join seamlessly.
    """

    def __init__(
        self,
        sample_rate: int,
        frequencies: tuple[float, ...] = (110.0,),
        detune_hz: float = 0.0,
        lfo_rate: float = 0.0,
        lfo_depth: float = 0.0,
    ):
        super().__init__(sample_rate)
        if not frequencies:
            raise ValueError("ToneSource needs at least one frequency")
        partials: list[float] = []
        for f in frequencies:
            partials.append(f)
            if detune_hz:
                partials.append(f + detune_hz)
        self.partials = tuple(partials)
        self.lfo_rate = lfo_rate
        self.lfo_depth = min(max(lfo_depth, 0.0), 1.0)

    def _render(self, start: float, frames: int) -> np.ndarray:
        times = start + np.arange(frames, dtype=np.float64) / self.sample_rate
        block = np.zeros(frames, dtype=np.float64)
        for freq in self.partials:
            block += np.sin(2 * np.pi * freq * times)
        block /= len(self.partials)

        if self.lfo_rate > 0 and self.lfo_depth > 0:
            lfo = 0.5 * (1.0 + np.sin(2 * np.pi * self.lfo_rate * times))
            block *= 1.0 - self.lfo_depth * lfo

        return block


# =============================================================================
# Events
# =============================================================================

class EventVoice(str, Enum):
    """Synthesis recipe for one short sound event."""

    CHIRP = "chirp"   # Rising then falling sine, fast decay (birds)
    BELL = "bell"     # Inharmonic partials, long decay (bells)
    CHIME = "chime"   # Bright harmonic partials, medium decay
    DRIP = "drip"     # Quick downward pitch drop (cave water)
    CRACKLE = "crackle"  # Filtered click burst (fire)


# Default event length per voice, in seconds
VOICE_DURATIONS: dict[EventVoice, float] = {
    EventVoice.CHIRP: 0.18,
    EventVoice.BELL: 3.0,
    EventVoice.CHIME: 1.5,
    EventVoice.DRIP: 0.12,
    EventVoice.CRACKLE: 0.04,
}


@dataclass(frozen=True)
class SoundEvent:
    """A scheduled sound event."""
    start: float
    frequency: float
    gain: float
    duration: float
    voice: EventVoice = EventVoice.CHIRP

    @property
    def end(self) -> float:
        return self.start + self.duration


def synthesize_event(event: SoundEvent, t: np.ndarray, sample_rate: int) -> np.ndarray:
    """Render an event at times t (seconds since the event started).

    Every voice is a pure function of t, so an event split across
    render blocks sounds the same as one rendered whole.
    """
    f = event.frequency
    dur = event.duration
    voice = event.voice

    if voice is EventVoice.CHIRP:
        # Pitch glides up a fifth and back; phase is the integral of that glide
        phase = 2 * np.pi * f * (t + 0.5 * dur / np.pi * (1.0 - np.cos(np.pi * t / dur)))
        env = np.sin(np.pi * np.clip(t / dur, 0, 1)) ** 2
        wave = np.sin(phase)
    elif voice is EventVoice.BELL:
        ratios = (1.0, 2.76, 5.4, 8.93)
        wave = sum(np.sin(2 * np.pi * f * r * t) / (i + 1) for i, r in enumerate(ratios))
        wave = wave / 2.08
        env = np.exp(-3.0 * t / dur) * np.minimum(t / 0.005, 1.0)
    elif voice is EventVoice.CHIME:
        wave = sum(np.sin(2 * np.pi * f * k * t) / k for k in (1, 2, 3))
        wave = wave / 1.83
        env = np.exp(-4.0 * t / dur) * np.minimum(t / 0.003, 1.0)
    elif voice is EventVoice.DRIP:
        freq = f * np.exp(-t / (dur * 0.5))
        phase = 2 * np.pi * f * (dur * 0.5) * (1.0 - np.exp(-t / (dur * 0.5)))
        wave = np.sin(phase)
        env = np.exp(-6.0 * t / dur) * (freq > 0)
    else:
        # One noise buffer per event, indexed by sample offset
        seed = hash((event.start, event.frequency)) & 0xFFFFFFFF
        length = int(np.ceil(dur * sample_rate)) + 1
        noise = np.random.default_rng(seed).uniform(-1.0, 1.0, length)
        index = np.clip(np.round(t * sample_rate).astype(np.int64), 0, length - 1)
        wave = noise[index]
        env = np.exp(-10.0 * t / dur)

    out = wave * env * event.gain
    out[(t < 0) | (t >= dur)] = 0.0
    return out


class EventSource(Source):
    """Mixes short events that are added while the layer plays.

    Events that have fully played are pruned on render. Events are also
    pruned by prune(), so a clock that runs without rendering does not
    make the list grow.
    """

    def __init__(self, sample_rate: int):
        super().__init__(sample_rate)
        self._events: list[SoundEvent] = []
        self._total = 0

    @property
    def events(self) -> tuple[SoundEvent, ...]:
        return tuple(self._events)

    @property
    def total_events(self) -> int:
        """Events ever added, pruned ones included."""
        return self._total

    def add(self, event: SoundEvent) -> None:
        if self._stopped:
            return
        self._events.append(event)
        self._total += 1

    def prune(self, before: float) -> None:
        """Drop events that ended before the given engine time."""
        self._events = [e for e in self._events if e.end > before]

    def _render(self, start: float, frames: int) -> np.ndarray:
        end = start + frames / self.sample_rate
        times = start + np.arange(frames, dtype=np.float64) / self.sample_rate
        block = np.zeros(frames, dtype=np.float64)

        for event in self._events:
            if event.end <= start or event.start >= end:
                continue
            block += synthesize_event(event, times - event.start, self.sample_rate)

        self._events = [e for e in self._events if e.end > start]
        return block


# =============================================================================
# Buffers
# =============================================================================

class BufferSource(Source):
    """Loops a decoded buffer. Renders silence until one is attached."""

    def __init__(self, sample_rate: int, loop: bool = True):
        super().__init__(sample_rate)
        self.loop = loop
        self._buffer: np.ndarray | None = None
        self._start_time = 0.0

    @property
    def has_buffer(self) -> bool:
        return self._buffer is not None

    def attach(self, buffer: np.ndarray, start_time: float = 0.0) -> None:
        """Start playing buffer from start_time (engine time)."""
        self._buffer = np.asarray(buffer, dtype=np.float32)
        self._start_time = start_time

    def _render(self, start: float, frames: int) -> np.ndarray:
        if self._buffer is None or len(self._buffer) == 0:
            return np.zeros(frames, dtype=np.float32)

        offset = int(round((start - self._start_time) * self.sample_rate))
        idx = offset + np.arange(frames)
        block = np.zeros(frames, dtype=np.float32)
        valid = idx >= 0
        if self.loop:
            block[valid] = self._buffer[idx[valid] % len(self._buffer)]
        else:
            valid &= idx < len(self._buffer)
            block[valid] = self._buffer[idx[valid]]
        return block


__all__ = [
    "Source",
    "NoiseColor",
    "band_noise",
    "NoiseSource",
    "ToneSource",
    "EventVoice",
    "VOICE_DURATIONS",
    "SoundEvent",
    "synthesize_event",
    "EventSource",
    "BufferSource",
]
