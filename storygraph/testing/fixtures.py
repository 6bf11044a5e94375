"""
Test Fixtures - Small stories and audio for tests.

Provides:
    - Scene construction with sensible defaults
    - A compact branching story
    - Test audio generation
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from storygraph.story.store import SceneGraphStore
from storygraph.story.types import (
    Choice,
    DialogueLine,
    EndingType,
    Environment,
    Scene,
)


def make_scene(
    scene_id: str,
    lines: int | Iterable[str] = 1,
    choices: Iterable[str] | dict[str, str] = (),
    environment: Environment | str = Environment.FOREST,
    ending: EndingType | str | None = None,
) -> Scene:
    """Build a scene.

    Args:
        scene_id: Scene id (also used as the title).
        lines: Number of placeholder lines, or the line texts.
        choices: Target ids, or {target id: choice text}.
        environment: Scene environment.
        ending: Ending type; makes the scene an ending.
    """
    if isinstance(lines, int):
        texts = [f"{scene_id} line {i}" for i in range(lines)]
    else:
        texts = list(lines)

    if isinstance(choices, dict):
        edges = tuple(Choice(text, target) for target, text in choices.items())
    else:
        edges = tuple(Choice(f"Go to {target}", target) for target in choices)

    return Scene(
        id=scene_id,
        title=scene_id,
        description=f"The {scene_id} scene.",
        dialogue=tuple(DialogueLine("Narrator", text) for text in texts),
        environment=Environment(environment),
        choices=edges,
        is_ending=ending is not None,
        ending_type=EndingType(ending) if ending is not None else None,
    )


def build_store(*scenes: Scene, entry: str | None = None, validate: bool = True) -> SceneGraphStore:
    """Store from scenes; the first scene is the entry unless given."""
    if not scenes:
        raise ValueError("build_store needs at least one scene")
    return SceneGraphStore(scenes, entry=entry or scenes[0].id, validate=validate)


def branching_store() -> SceneGraphStore:
    """Three-level story: start -> left | right -> good | bad endings.

    start is in the forest, left in the clearing, right in the cave.
    """
    return build_store(
        make_scene("start", 3, ["left", "right"], Environment.FOREST),
        make_scene("left", 2, ["good"], Environment.CLEARING),
        make_scene("right", 2, ["bad", "good"], Environment.CAVE),
        make_scene("good", 1, environment=Environment.SUNRISE, ending=EndingType.GOOD),
        make_scene("bad", 1, environment=Environment.SKY, ending=EndingType.BAD),
    )


def create_test_audio(
    duration: float = 1.0,
    sample_rate: int = 24000,
    frequency: float = 440.0,
    amplitude: float = 0.5,
) -> np.ndarray:
    """Sine tone as float32."""
    t = np.arange(int(duration * sample_rate)) / sample_rate
    return (np.sin(2 * np.pi * frequency * t) * amplitude).astype(np.float32)


def rms(audio: np.ndarray) -> float:
    if len(audio) == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(audio, dtype=np.float64))))


__all__ = [
    "make_scene",
    "build_store",
    "branching_store",
    "create_test_audio",
    "rms",
]
