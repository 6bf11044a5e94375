"""
Story Types - The authored data model and the mutable session record.

Scenes form a directed graph through their choices. Everything here is
immutable: transitions build new GameState values rather than editing
the old one.

Serialized form uses the camelCase authoring keys (nextScene,
cameraPosition, isEnding, ...) so story files written for the browser
game load unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from storygraph.errors import StoryConfigurationError


class Environment(str, Enum):
    """Audio/visual theme of a scene."""
    FOREST = "forest"
    CLEARING = "clearing"
    CAVE = "cave"
    CLIFF = "cliff"
    TEMPLE = "temple"
    SUNRISE = "sunrise"
    RUINS = "ruins"
    GORGE = "gorge"
    SANCTUM = "sanctum"
    GARDEN = "garden"
    GROVE = "grove"
    MEADOW = "meadow"
    SHIP = "ship"
    CABIN = "cabin"
    BEACH = "beach"
    ALTAR = "altar"
    SKY = "sky"
    OCEAN = "ocean"
    DESERT = "desert"


class Emotion(str, Enum):
    """Delivery style of a dialogue line (presentation and narration only)."""
    NEUTRAL = "neutral"
    HAPPY = "happy"
    SAD = "sad"
    WORRIED = "worried"
    HOPEFUL = "hopeful"
    ANGRY = "angry"
    SURPRISED = "surprised"
    FEARFUL = "fearful"
    AUTHORITATIVE = "authoritative"


class Impact(str, Enum):
    """Presentation tag of a choice. Never affects traversal."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class EndingType(str, Enum):
    """Kind of ending reached."""
    GOOD = "good"
    BAD = "bad"
    NEUTRAL = "neutral"


def _enum_value(enum_cls: type[Enum], value: Any, where: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(e.value for e in enum_cls)
        raise StoryConfigurationError(
            f"{where}: invalid {enum_cls.__name__.lower()} '{value}'. Valid: {valid}",
            details={"value": value, "field": enum_cls.__name__},
        ) from None


def _object(data: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise StoryConfigurationError(
            f"{where}: expected an object, got {type(data).__name__}",
            details={"value": data},
        )
    return data


def _items(value: Any, where: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise StoryConfigurationError(
            f"{where}: expected a list, got {type(value).__name__}",
            details={"value": value},
        )
    return list(value)


def _vector(value: Any, where: str) -> tuple[float, float, float]:
    try:
        x, y, z = value
        return (float(x), float(y), float(z))
    except (TypeError, ValueError):
        raise StoryConfigurationError(
            f"{where}: expected three numbers, got {value!r}",
            details={"value": value},
        ) from None


@dataclass(frozen=True)
class DialogueLine:
    """One line of a scene's script."""
    speaker: str
    text: str
    emotion: Emotion = Emotion.NEUTRAL

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], where: str = "dialogue") -> DialogueLine:
        data = _object(data, where)
        try:
            speaker = data["speaker"]
            text = data["text"]
        except KeyError as e:
            raise StoryConfigurationError(f"{where}: missing field {e}") from None
        emotion = data.get("emotion") or Emotion.NEUTRAL
        return cls(
            speaker=str(speaker),
            text=str(text),
            emotion=_enum_value(Emotion, emotion, where),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"speaker": self.speaker, "text": self.text, "emotion": self.emotion.value}


@dataclass(frozen=True)
class Choice:
    """An edge from one scene to the next."""
    text: str
    next_scene: str
    impact: Impact | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], where: str = "choice") -> Choice:
        data = _object(data, where)
        try:
            text = data["text"]
            next_scene = data.get("nextScene", data.get("next_scene"))
        except KeyError as e:
            raise StoryConfigurationError(f"{where}: missing field {e}") from None
        if not next_scene:
            raise StoryConfigurationError(f"{where}: missing field 'nextScene'")
        impact = data.get("impact")
        return cls(
            text=str(text),
            next_scene=str(next_scene),
            impact=_enum_value(Impact, impact, where) if impact else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"text": self.text, "nextScene": self.next_scene}
        if self.impact is not None:
            d["impact"] = self.impact.value
        return d


@dataclass(frozen=True)
class Scene:
    """A node in the story graph.

    camera_position/camera_target are carried for the renderer and are
    opaque to the engine.
    """
    id: str
    title: str
    description: str
    dialogue: tuple[DialogueLine, ...]
    environment: Environment
    choices: tuple[Choice, ...] = ()
    camera_position: tuple[float, float, float] = (0.0, 5.0, 10.0)
    camera_target: tuple[float, float, float] = (0.0, 0.0, 0.0)
    is_ending: bool = False
    ending_type: EndingType | None = None

    @property
    def last_line_index(self) -> int:
        return len(self.dialogue) - 1

    @property
    def choice_targets(self) -> tuple[str, ...]:
        return tuple(c.next_scene for c in self.choices)

    @property
    def has_choices(self) -> bool:
        return len(self.choices) > 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], scene_id: str | None = None) -> Scene:
        """Build a scene from its authoring dict.

        Args:
            data: Scene mapping (camelCase or snake_case keys).
            scene_id: Fallback id when the mapping has no "id".

        Raises:
            StoryConfigurationError: On missing fields or invalid enum values.
        """
        data = _object(data, f"scenes[{scene_id}]" if scene_id else "scene")
        sid = data.get("id", scene_id)
        if not sid:
            raise StoryConfigurationError("scene: missing field 'id'")
        where = f"scenes[{sid}]"

        if "environment" not in data:
            raise StoryConfigurationError(f"{where}: missing field 'environment'")

        dialogue = tuple(
            DialogueLine.from_dict(line, f"{where}.dialogue[{i}]")
            for i, line in enumerate(_items(data.get("dialogue"), f"{where}.dialogue"))
        )
        choices = tuple(
            Choice.from_dict(choice, f"{where}.choices[{i}]")
            for i, choice in enumerate(_items(data.get("choices"), f"{where}.choices"))
        )

        ending_type = data.get("endingType", data.get("ending_type"))
        camera_position = data.get("cameraPosition", data.get("camera_position"))
        camera_target = data.get("cameraTarget", data.get("camera_target"))

        return cls(
            id=str(sid),
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            dialogue=dialogue,
            environment=_enum_value(Environment, data["environment"], where),
            choices=choices,
            camera_position=_vector(camera_position, f"{where}.cameraPosition")
            if camera_position is not None else (0.0, 5.0, 10.0),
            camera_target=_vector(camera_target, f"{where}.cameraTarget")
            if camera_target is not None else (0.0, 0.0, 0.0),
            is_ending=bool(data.get("isEnding", data.get("is_ending", False))),
            ending_type=_enum_value(EndingType, ending_type, where) if ending_type else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "dialogue": [line.to_dict() for line in self.dialogue],
            "environment": self.environment.value,
            "cameraPosition": list(self.camera_position),
            "cameraTarget": list(self.camera_target),
        }
        if self.choices:
            d["choices"] = [c.to_dict() for c in self.choices]
        if self.is_ending:
            d["isEnding"] = True
        if self.ending_type is not None:
            d["endingType"] = self.ending_type.value
        return d


@dataclass(frozen=True)
class GameState:
    """The player's session.

    Attributes:
        current_scene: Id of the scene being played.
        visited_scenes: Every scene entered, in order, revisits included.
        choices: Scene id -> the next_scene picked from it (last pick wins).
        line_index: Dialogue cursor within the current scene. Display state:
            reset to 0 on every scene change and not part of to_dict().
    """
    current_scene: str
    visited_scenes: tuple[str, ...]
    choices: Mapping[str, str] = field(default_factory=dict)
    line_index: int = 0

    def __post_init__(self):
        # Always a read-only copy of the mapping passed in
        object.__setattr__(self, "choices", MappingProxyType(dict(self.choices)))

    @classmethod
    def start(cls, entry: str) -> GameState:
        """Fresh session state positioned at the entry scene."""
        return cls(current_scene=entry, visited_scenes=(entry,), choices={}, line_index=0)

    def with_line(self, line_index: int) -> GameState:
        return replace(self, line_index=line_index)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GameState:
        data = _object(data, "state")
        current = data.get("currentScene", data.get("current_scene"))
        if not current:
            raise StoryConfigurationError("state: missing field 'currentScene'")
        visited = _items(data.get("visitedScenes", data.get("visited_scenes")), "state.visitedScenes")
        visited = visited or [current]
        return cls(
            current_scene=str(current),
            visited_scenes=tuple(str(v) for v in visited),
            choices={
                str(k): str(v)
                for k, v in _object(data.get("choices") or {}, "state.choices").items()
            },
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentScene": self.current_scene,
            "visitedScenes": list(self.visited_scenes),
            "choices": dict(self.choices),
        }


__all__ = [
    "Environment",
    "Emotion",
    "Impact",
    "EndingType",
    "DialogueLine",
    "Choice",
    "Scene",
    "GameState",
]
