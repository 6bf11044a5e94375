"""
Scene Graph Store - Read-only lookup from scene id to Scene.

The store is built once from authored data and never changes. Building
it validates the graph, so a store that exists is a store whose choices
all resolve.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from storygraph.errors import StoryConfigurationError, UnknownSceneError
from storygraph.story.types import Scene
from storygraph.story.validation import (
    ValidationResult,
    reachable_scenes,
    validate_scenes,
)


class SceneGraphStore(Mapping[str, Scene]):
    """Immutable scene graph.

    Example:
        store = SceneGraphStore(scenes, entry="start")
        scene = store.lookup("lightPath")

        for target in store.successors("start"):
            print(target)
    """

    def __init__(
        self,
        scenes: Mapping[str, Scene] | Iterable[Scene],
        entry: str = "start",
        validate: bool = True,
    ):
        """Build the store.

        Args:
            scenes: Scene id -> Scene, or an iterable of scenes keyed by their id.
            entry: Id of the scene every session starts in.
            validate: Check graph integrity now.

        Raises:
            StoryConfigurationError: If validation finds ERROR-level issues.
        """
        if isinstance(scenes, Mapping):
            table = dict(scenes)
        else:
            table = {}
            for scene in scenes:
                if scene.id in table:
                    raise StoryConfigurationError(
                        f"Duplicate scene id '{scene.id}'",
                        details={"scene": scene.id},
                    )
                table[scene.id] = scene

        self._scenes = MappingProxyType(table)
        self._entry = entry
        self._validation: ValidationResult | None = None

        if validate:
            self._validation = validate_scenes(self._scenes, entry)
            self._validation.raise_if_invalid()

    @property
    def entry(self) -> str:
        """Id of the entry scene."""
        return self._entry

    @property
    def validation(self) -> ValidationResult:
        """Validation report (computed on demand when construction skipped it)."""
        if self._validation is None:
            self._validation = validate_scenes(self._scenes, self._entry)
        return self._validation

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(self._scenes)

    def lookup(self, scene_id: str) -> Scene:
        """Resolve a scene id.

        Raises:
            UnknownSceneError: If the id is not in the store.
        """
        try:
            return self._scenes[scene_id]
        except KeyError:
            raise UnknownSceneError(scene_id) from None

    def successors(self, scene_id: str) -> tuple[str, ...]:
        """Choice targets of a scene, in authored order."""
        return self.lookup(scene_id).choice_targets

    def reachable_from(self, scene_id: str | None = None) -> set[str]:
        """Ids reachable by following choices (entry scene by default)."""
        return reachable_scenes(self._scenes, scene_id or self._entry)

    def endings(self) -> tuple[Scene, ...]:
        return tuple(s for s in self._scenes.values() if s.is_ending)

    # Mapping protocol

    def __getitem__(self, scene_id: str) -> Scene:
        return self.lookup(scene_id)

    def __iter__(self) -> Iterator[str]:
        return iter(self._scenes)

    def __len__(self) -> int:
        return len(self._scenes)

    def __contains__(self, scene_id: object) -> bool:
        return scene_id in self._scenes

    def __repr__(self) -> str:
        return f"SceneGraphStore(scenes={len(self)}, entry={self._entry!r})"


__all__ = ["SceneGraphStore"]
