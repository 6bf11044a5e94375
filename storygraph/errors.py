"""
Storygraph Errors - Domain-specific error types.

Error hierarchy:
    StoryError (base)
    ├── StoryConfigurationError   (fatal, surfaced at load time)
    ├── UnknownSceneError
    ├── InvalidChoiceError
    ├── AudioEngineError          (always caught inside the audio layer)
    └── AssetNotFoundError        (always caught inside the audio layer)
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from storygraph.story.validation import ValidationResult


class StoryError(Exception):
    """Base error for all storygraph errors."""
    
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class StoryConfigurationError(StoryError):
    """
    Raised for malformed authored data.
    
    Examples:
    - A choice pointing at a scene that does not exist
    - A scene with an empty dialogue list
    - A story file that cannot be parsed
    
    Configuration errors are fatal and never retried.
    """
    
    def __init__(
        self,
        message: str,
        result: "ValidationResult | None" = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.result = result


class UnknownSceneError(StoryError, KeyError):
    """Raised when a scene id does not resolve against the store."""
    
    def __init__(self, scene_id: str, details: dict[str, Any] | None = None):
        StoryError.__init__(self, f"Unknown scene: '{scene_id}'", details)
        self.scene_id = scene_id
    
    def __str__(self) -> str:
        return self.message


class InvalidChoiceError(StoryError):
    """
    Raised when a transition targets a scene the current scene does not offer.
    
    The state the caller passed in is left unchanged.
    """
    
    def __init__(
        self,
        scene_id: str,
        next_scene: str,
        allowed: tuple[str, ...] = (),
        details: dict[str, Any] | None = None,
    ):
        if allowed:
            msg = (
                f"Scene '{scene_id}' has no choice leading to '{next_scene}'. "
                f"Allowed: {', '.join(allowed)}"
            )
        else:
            msg = f"Scene '{scene_id}' offers no choices (tried '{next_scene}')"
        super().__init__(msg, details)
        self.scene_id = scene_id
        self.next_scene = next_scene
        self.allowed = allowed


class AudioEngineError(StoryError):
    """Raised by the audio engine for context lifecycle failures."""


class AssetNotFoundError(StoryError):
    """Raised by asset loaders when a named asset does not exist."""
    
    def __init__(self, name: str, details: dict[str, Any] | None = None):
        super().__init__(f"Audio asset not found: '{name}'", details)
        self.name = name


__all__ = [
    "StoryError",
    "StoryConfigurationError",
    "UnknownSceneError",
    "InvalidChoiceError",
    "AudioEngineError",
    "AssetNotFoundError",
]
