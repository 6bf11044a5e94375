"""
Story loading from JSON authoring files.

Format:
    {
        "entry": "start",
        "scenes": {
            "start": {"id": "start", "dialogue": [...], "choices": [...], ...},
            ...
        }
    }

"scenes" may also be a list of scene objects.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

from storygraph.errors import StoryConfigurationError
from storygraph.story.store import SceneGraphStore
from storygraph.story.types import Scene

logger = logging.getLogger(__name__)


def scenes_from_data(raw: Any) -> dict[str, Scene]:
    """Parse the "scenes" section (mapping or list) into Scene records."""
    if isinstance(raw, Mapping):
        return {str(key): Scene.from_dict(value, scene_id=str(key)) for key, value in raw.items()}
    if isinstance(raw, list):
        scenes: dict[str, Scene] = {}
        for item in raw:
            scene = Scene.from_dict(item)
            if scene.id in scenes:
                raise StoryConfigurationError(f"Duplicate scene id '{scene.id}'")
            scenes[scene.id] = scene
        return scenes
    raise StoryConfigurationError(
        f"'scenes' must be an object or a list, got {type(raw).__name__}"
    )


def story_from_dict(data: Mapping[str, Any], validate: bool = True) -> SceneGraphStore:
    """Build a store from an already-parsed story document."""
    if "scenes" not in data:
        raise StoryConfigurationError("Story document has no 'scenes' section")
    scenes = scenes_from_data(data["scenes"])
    entry = str(data.get("entry", "start"))
    return SceneGraphStore(scenes, entry=entry, validate=validate)


def load_story(path: str | Path, validate: bool = True) -> SceneGraphStore:
    """Load and validate a story file.

    Raises:
        StoryConfigurationError: If the file is unreadable, malformed or invalid.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise StoryConfigurationError(f"Cannot read story file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise StoryConfigurationError(f"Story file {path} is not valid JSON: {e}") from e

    if not isinstance(data, Mapping):
        raise StoryConfigurationError(f"Story file {path} must contain a JSON object")

    store = story_from_dict(data, validate=validate)
    logger.info(f"Loaded {len(store)} scenes from {path}")
    return store


def dump_story(store: SceneGraphStore, path: str | Path) -> Path:
    """Write a store back out in the authoring format."""
    path = Path(path)
    data = {
        "entry": store.entry,
        "scenes": {scene_id: scene.to_dict() for scene_id, scene in store.items()},
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return path


__all__ = ["scenes_from_data", "story_from_dict", "load_story", "dump_story"]
