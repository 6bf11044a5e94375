"""
Storygraph - Branching visual-novel engine with ambient soundscapes.

Architecture:
    SceneGraphStore → NarrativeStateMachine → GameSession
                                                ├─ CrossfadeManager → AudioEngine → PCM
                                                └─ Narrator

Public API (stable):
    GameSession           - One playthrough. start(), advance(), choose(), restart().
    SceneView             - Returned by the session: what to draw right now.
    Config                - Session configuration.
    default_story         - The built-in story.

Story:
    Scene, Choice, DialogueLine, GameState - Data model
    SceneGraphStore       - Validated, read-only scene lookup
    NarrativeStateMachine - Pure transitions over GameState
    load_story            - Load a story JSON file

Audio:
    CrossfadeManager      - Environment crossfades and session mute
    AudioEngine           - Clock, master gain, offline mixing
    LayerRegistry         - Environment to layer table (default_registry())

Example:
    from storygraph import GameSession

    with GameSession() as session:
        view = session.start()
        while not view.is_choice_point:
            view = session.advance()
        view = session.choose(view.choices[0].next_scene)
"""

from storygraph.config import Config
from storygraph.errors import (
    StoryError,
    StoryConfigurationError,
    UnknownSceneError,
    InvalidChoiceError,
    AudioEngineError,
    AssetNotFoundError,
)
from storygraph.story import (
    Environment,
    Emotion,
    EndingType,
    Scene,
    Choice,
    DialogueLine,
    GameState,
    SceneGraphStore,
    NarrativeStateMachine,
    NarrativePhase,
    load_story,
    default_story,
)
from storygraph.audio import (
    AudioEngine,
    CrossfadeManager,
    LayerRegistry,
    default_registry,
)
from storygraph.narration import Narrator, NarrationCue
from storygraph.preferences import PreferenceStore
from storygraph.session import GameSession, SceneView

__version__ = "1.0.0"

__all__ = [
    "__version__",
    # Session
    "GameSession",
    "SceneView",
    "Config",
    # Errors
    "StoryError",
    "StoryConfigurationError",
    "UnknownSceneError",
    "InvalidChoiceError",
    "AudioEngineError",
    "AssetNotFoundError",
    # Story
    "Environment",
    "Emotion",
    "EndingType",
    "Scene",
    "Choice",
    "DialogueLine",
    "GameState",
    "SceneGraphStore",
    "NarrativeStateMachine",
    "NarrativePhase",
    "load_story",
    "default_story",
    # Audio
    "AudioEngine",
    "CrossfadeManager",
    "LayerRegistry",
    "default_registry",
    # Narration
    "Narrator",
    "NarrationCue",
    "PreferenceStore",
]
