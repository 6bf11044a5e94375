"""
Story Graph - authored scenes and the traversal rules over them.

Components:
    Scene, Choice, DialogueLine  - Authored data model
    GameState                    - The player's session record
    SceneGraphStore              - Validated read-only scene lookup
    NarrativeStateMachine        - Pure transitions (advance, choose, restart)

Usage:
    from storygraph.story import NarrativeStateMachine, default_story

    machine = NarrativeStateMachine(default_story())
    state = machine.initial_state()
    state = machine.choose(state, "lightPath")
"""

from storygraph.story.types import (
    Environment,
    Emotion,
    Impact,
    EndingType,
    DialogueLine,
    Choice,
    Scene,
    GameState,
)
from storygraph.story.validation import (
    ValidationSeverity,
    ValidationIssue,
    ValidationResult,
    validate_scenes,
)
from storygraph.story.store import SceneGraphStore
from storygraph.story.machine import NarrativePhase, NarrativeStateMachine
from storygraph.story.loader import load_story, story_from_dict, dump_story
from storygraph.story.library import default_story

__all__ = [
    # Types
    "Environment",
    "Emotion",
    "Impact",
    "EndingType",
    "DialogueLine",
    "Choice",
    "Scene",
    "GameState",
    # Validation
    "ValidationSeverity",
    "ValidationIssue",
    "ValidationResult",
    "validate_scenes",
    # Store / machine
    "SceneGraphStore",
    "NarrativePhase",
    "NarrativeStateMachine",
    # Loading
    "load_story",
    "story_from_dict",
    "dump_story",
    "default_story",
]
