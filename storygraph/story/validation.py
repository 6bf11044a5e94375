"""
Story Validation - Actionable load-time errors for scene graphs.

Broken authored data (a choice pointing nowhere, a scene with nothing to
say) is a configuration error. It is reported here, before a session
ever starts, instead of surfacing mid-playthrough.

Every issue answers:
1. WHAT is wrong?
2. WHERE in the graph?
3. HOW to fix it?
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from storygraph.errors import StoryConfigurationError
from storygraph.story.types import Scene


class ValidationSeverity(str, Enum):
    """Severity level for validation issues."""

    ERROR = "error"      # Story cannot be played
    WARNING = "warning"  # Story plays but has suspicious content
    INFO = "info"


@dataclass
class ValidationIssue:
    """A single validation issue with actionable details."""
    location: str
    message: str
    severity: ValidationSeverity = ValidationSeverity.ERROR
    suggestion: str | None = None

    code: str = "UNKNOWN"
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"{self.severity.value.upper()}: {self.location}: {self.message}"]
        if self.suggestion:
            parts.append(f"  Suggestion: {self.suggestion}")
        return "\n".join(parts)

    @classmethod
    def dangling_next_scene(cls, location: str, target: str) -> ValidationIssue:
        return cls(
            location=location,
            message=f"Choice leads to unknown scene '{target}'",
            suggestion="Add the missing scene or fix the nextScene id",
            code="DANGLING_NEXT_SCENE",
            context={"target": target},
        )

    @classmethod
    def empty_dialogue(cls, location: str) -> ValidationIssue:
        return cls(
            location=location,
            message="Scene has no dialogue lines",
            suggestion="Every scene needs at least one line",
            code="EMPTY_DIALOGUE",
        )

    @classmethod
    def missing_ending_type(cls, location: str) -> ValidationIssue:
        return cls(
            location=location,
            message="Ending scene has no endingType",
            suggestion="Set endingType to good, bad or neutral",
            code="MISSING_ENDING_TYPE",
        )

    @classmethod
    def unexpected_ending_type(cls, location: str) -> ValidationIssue:
        return cls(
            location=location,
            message="endingType set on a scene that is not an ending",
            suggestion="Remove endingType or set isEnding",
            code="UNEXPECTED_ENDING_TYPE",
        )

    @classmethod
    def dead_end(cls, location: str) -> ValidationIssue:
        return cls(
            location=location,
            message="Scene has no choices but is not an ending",
            suggestion="Add a choice or mark the scene with isEnding",
            code="DEAD_END",
        )

    @classmethod
    def id_mismatch(cls, location: str, key: str, scene_id: str) -> ValidationIssue:
        return cls(
            location=location,
            message=f"Stored under '{key}' but its id is '{scene_id}'",
            suggestion="Make the mapping key and the scene id identical",
            code="ID_MISMATCH",
            context={"key": key, "id": scene_id},
        )

    @classmethod
    def missing_entry(cls, entry: str) -> ValidationIssue:
        return cls(
            location="entry",
            message=f"Entry scene '{entry}' does not exist",
            suggestion="Point the entry at an existing scene",
            code="MISSING_ENTRY",
            context={"entry": entry},
        )

    @classmethod
    def unreachable(cls, location: str, entry: str) -> ValidationIssue:
        return cls(
            location=location,
            message=f"Scene cannot be reached from '{entry}'",
            severity=ValidationSeverity.WARNING,
            suggestion="Link it from another scene or delete it",
            code="UNREACHABLE_SCENE",
        )


@dataclass
class ValidationResult:
    """Result of story validation."""
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """True if no ERROR-level issues."""
        return not any(e.severity == ValidationSeverity.ERROR for e in self.issues)

    @property
    def has_warnings(self) -> bool:
        return any(e.severity == ValidationSeverity.WARNING for e in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self.issues if e.severity == ValidationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self.issues if e.severity == ValidationSeverity.WARNING)

    def filter_by_code(self, code: str) -> list[ValidationIssue]:
        return [e for e in self.issues if e.code == code]

    def add(self, issue: ValidationIssue) -> None:
        self.issues.append(issue)

    def raise_if_invalid(self) -> None:
        """Raise StoryConfigurationError if any ERROR-level issues."""
        if not self.is_valid:
            raise StoryConfigurationError(str(self), result=self)

    def __str__(self) -> str:
        if not self.issues:
            return "Validation passed"

        lines = [f"Validation found {len(self.issues)} issue(s):"]
        for issue in self.issues:
            lines.append(f"  {issue}")
        return "\n".join(lines)

    def __bool__(self) -> bool:
        return self.is_valid

    def __iter__(self):
        return iter(self.issues)

    def __len__(self) -> int:
        return len(self.issues)


def reachable_scenes(scenes: Mapping[str, Scene], entry: str) -> set[str]:
    """Breadth-first walk of choice edges from entry (dangling edges ignored)."""
    if entry not in scenes:
        return set()
    seen = {entry}
    queue = deque([entry])
    while queue:
        for target in scenes[queue.popleft()].choice_targets:
            if target in scenes and target not in seen:
                seen.add(target)
                queue.append(target)
    return seen


def validate_scenes(scenes: Mapping[str, Scene], entry: str = "start") -> ValidationResult:
    """Check a scene mapping for integrity problems.

    Args:
        scenes: Scene id -> Scene.
        entry: Id of the scene sessions start in.

    Returns:
        ValidationResult with every issue found.
    """
    result = ValidationResult()

    if entry not in scenes:
        result.add(ValidationIssue.missing_entry(entry))

    for key, scene in scenes.items():
        location = f"scenes[{key}]"

        if key != scene.id:
            result.add(ValidationIssue.id_mismatch(location, key, scene.id))

        if not scene.dialogue:
            result.add(ValidationIssue.empty_dialogue(location))

        if scene.is_ending and scene.ending_type is None:
            result.add(ValidationIssue.missing_ending_type(location))
        if not scene.is_ending and scene.ending_type is not None:
            result.add(ValidationIssue.unexpected_ending_type(location))

        if not scene.is_ending and not scene.choices:
            result.add(ValidationIssue.dead_end(location))

        for i, choice in enumerate(scene.choices):
            if choice.next_scene not in scenes:
                result.add(ValidationIssue.dangling_next_scene(
                    f"{location}.choices[{i}]", choice.next_scene,
                ))

    if entry in scenes:
        reachable = reachable_scenes(scenes, entry)
        for key in scenes:
            if key not in reachable:
                result.add(ValidationIssue.unreachable(f"scenes[{key}]", entry))

    return result


__all__ = [
    "ValidationSeverity",
    "ValidationIssue",
    "ValidationResult",
    "reachable_scenes",
    "validate_scenes",
]
