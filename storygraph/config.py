"""
Storygraph configuration.

Reference timings for crossfades and mute ramps live here, together
with the asset and preference locations (overridable from the
environment).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class Config:
    """Storygraph configuration.
    
    Args:
        sample_rate: Engine sample rate in Hz.
        block_size: Frames per render block.
        crossfade_seconds: Fade duration when environments change.
        unmute_fade_seconds: Master ramp duration when un-muting.
        mute_fade_seconds: Master ramp duration when muting.
        stop_margin_seconds: Extra wait after a fade-out before a layer is stopped.
        master_volume: Nominal master gain while un-muted.
        start_muted: Start with the master gain at zero.
        asset_dir: Directory holding streamed assets (background music).
        music_asset: Asset name of the background music layer, or None.
        music_volume: Target gain of the music layer.
        narration_dir: Directory holding precomputed narration assets.
        preferences_path: JSON file for persisted user preferences.
        seed: Seed for procedural randomness (None = nondeterministic).
        strict_choices: Reject transitions the current scene does not offer.
    
    Example:
        config = Config(crossfade_seconds=1.0, seed=7)
    """
    
    sample_rate: int = 24000
    block_size: int = 1024
    
    # Fades
    crossfade_seconds: float = 2.5
    unmute_fade_seconds: float = 0.8
    mute_fade_seconds: float = 0.5
    stop_margin_seconds: float = 0.1
    
    master_volume: float = 0.8
    start_muted: bool = False
    
    # Assets
    asset_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("STORYGRAPH_ASSETS", "assets"))
    )
    music_asset: str | None = "soothing-music.mp3"
    music_volume: float = 0.3
    narration_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("STORYGRAPH_NARRATION", "narration"))
    )
    preferences_path: Path = field(
        default_factory=lambda: Path(
            os.environ.get("STORYGRAPH_PREFS", Path.home() / ".storygraph" / "preferences.json")
        )
    )
    
    seed: int | None = None
    strict_choices: bool = True
    
    def __post_init__(self) -> None:
        """Validate configuration."""
        self.asset_dir = Path(self.asset_dir)
        self.narration_dir = Path(self.narration_dir)
        self.preferences_path = Path(self.preferences_path)
        
        if self.sample_rate < 8000:
            raise ValueError("sample_rate must be >= 8000 Hz")
        if self.block_size < 1:
            raise ValueError("block_size must be >= 1")
        for name in (
            "crossfade_seconds",
            "unmute_fade_seconds",
            "mute_fade_seconds",
            "stop_margin_seconds",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if not 0.0 <= self.master_volume <= 1.0:
            raise ValueError(f"master_volume must be 0.0-1.0, got {self.master_volume}")
        if not 0.0 <= self.music_volume <= 1.0:
            raise ValueError(f"music_volume must be 0.0-1.0, got {self.music_volume}")
    
    @property
    def stop_delay(self) -> float:
        """Delay between the start of a fade-out and the layer stop."""
        return self.crossfade_seconds + self.stop_margin_seconds


__all__ = ["Config"]
