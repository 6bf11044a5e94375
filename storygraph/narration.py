"""
Narration - Playing precomputed voice lines for dialogue.

Each dialogue line maps to one narration asset named
"<sceneId>-<lineIndex>". Narration is an enhancement: a missing or
broken asset means the line is simply not voiced, and the story goes on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

import numpy as np

from storygraph.audio.assets import AssetLoader
from storygraph.story.types import Emotion, Scene

logger = logging.getLogger(__name__)


# Delivery instructions handed to a speech synthesizer per emotion
EMOTION_STYLE_MAP: dict[Emotion, str] = {
    Emotion.NEUTRAL: "Read in a calm, neutral tone.",
    Emotion.HAPPY: "Read in a friendly, upbeat tone with a slightly faster pace.",
    Emotion.SAD: "Read slowly with a soft, melancholic tone.",
    Emotion.ANGRY: "Read with a firm, intense tone and quicker pace.",
    Emotion.SURPRISED: (
        "Read with a brighter tone and slightly higher pitch, "
        "with emphasis on exclamations."
    ),
    Emotion.FEARFUL: "Read with a hushed, tense tone and slower pace.",
    Emotion.AUTHORITATIVE: "Say in an authoritative tone, clear and steady.",
}


def narration_key(scene_id: str, line_index: int) -> str:
    """Asset name of a dialogue line's narration."""
    return f"{scene_id}-{line_index}"


@dataclass(frozen=True)
class NarrationCue:
    """One line to narrate."""
    scene_id: str
    line_index: int
    text: str
    emotion: Emotion = Emotion.NEUTRAL

    @property
    def asset_key(self) -> str:
        return narration_key(self.scene_id, self.line_index)

    @property
    def style_prompt(self) -> str:
        return EMOTION_STYLE_MAP.get(self.emotion, EMOTION_STYLE_MAP[Emotion.NEUTRAL])


@dataclass
class NarrationResult:
    """Availability of one cue's asset, as reported by Narrator.batch()."""
    scene_id: str
    line_index: int
    asset: str | None = None
    available: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        d = {"sceneId": self.scene_id, "lineIndex": self.line_index}
        if self.error:
            d["error"] = self.error
        else:
            d["asset"] = self.asset
            d["available"] = self.available
        return d


NarrationPlayer = Callable[[NarrationCue, np.ndarray], None]


class Narrator:
    """Plays narration assets through a player callback.

    Example:
        narrator = Narrator(FileAssetLoader("narration"), player=play)
        cue = narrator.cue_for(scene, 0)
        narrator.narrate(cue)    # None if the asset is missing
    """

    def __init__(
        self,
        loader: AssetLoader | None,
        enabled: bool = True,
        player: NarrationPlayer | None = None,
        sample_rate: int = 24000,
    ):
        self.loader = loader
        self.enabled = enabled
        self.player = player
        self.sample_rate = sample_rate
        self.last_cue: NarrationCue | None = None

    def cue_for(self, scene: Scene, line_index: int) -> NarrationCue:
        line = scene.dialogue[line_index]
        return NarrationCue(scene.id, line_index, line.text, line.emotion)

    def narrate(self, cue: NarrationCue) -> np.ndarray | None:
        """Play a cue's asset.

        Returns:
            The samples played, or None if disabled or the asset could
            not be loaded or played.
        """
        if not self.enabled or self.loader is None:
            return None

        try:
            samples = self.loader.load(cue.asset_key, self.sample_rate)
            if self.player is not None:
                self.player(cue, samples)
        except Exception as e:
            logger.warning(f"Narration unavailable for {cue.asset_key}: {e}")
            return None

        self.last_cue = cue
        return samples

    def batch(self, cues: Iterable[NarrationCue]) -> list[NarrationResult]:
        """Check which cues have narration, one result per cue."""
        results = []
        for cue in cues:
            if not cue.scene_id or cue.line_index is None or not cue.text:
                results.append(NarrationResult(
                    cue.scene_id,
                    cue.line_index,
                    error="scene_id, line_index, text required",
                ))
                continue

            available = False
            if self.loader is not None:
                try:
                    available = self.loader.exists(cue.asset_key)
                except Exception as e:
                    logger.warning(f"Narration lookup failed for {cue.asset_key}: {e}")
            results.append(NarrationResult(
                cue.scene_id,
                cue.line_index,
                asset=cue.asset_key,
                available=available,
            ))
        return results

    def cues_for_scene(self, scene: Scene) -> list[NarrationCue]:
        return [self.cue_for(scene, i) for i in range(len(scene.dialogue))]


__all__ = [
    "EMOTION_STYLE_MAP",
    "narration_key",
    "NarrationCue",
    "NarrationResult",
    "NarrationPlayer",
    "Narrator",
]
