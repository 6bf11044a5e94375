"""
Game Session - One playthrough: story state, ambience and narration.

The session is the only stateful piece that ties the pure narrative
machine to the audio side. Audio and narration failures are logged and
never interrupt the story; only invalid transitions raise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from storygraph.audio.assets import FileAssetLoader
from storygraph.audio.crossfade import CrossfadeManager
from storygraph.audio.registry import LayerRegistry, default_registry
from storygraph.audio.scheduler import Scheduler
from storygraph.config import Config
from storygraph.errors import StoryError
from storygraph.monitoring.logging import StructuredLogger, get_logger
from storygraph.narration import Narrator
from storygraph.preferences import PreferenceStore
from storygraph.story.library import default_story
from storygraph.story.machine import NarrativePhase, NarrativeStateMachine
from storygraph.story.store import SceneGraphStore
from storygraph.story.types import Choice, Emotion, EndingType, Environment, GameState

logger = logging.getLogger(__name__)


ENDING_TITLES: dict[EndingType, str] = {
    EndingType.GOOD: "A Meaningful End",
    EndingType.BAD: "A Tragic End",
    EndingType.NEUTRAL: "A New Beginning",
}


@dataclass(frozen=True)
class SceneView:
    """Everything a renderer needs to draw the current moment."""
    scene_id: str
    title: str
    description: str
    environment: Environment
    camera_position: tuple[float, float, float]
    camera_target: tuple[float, float, float]
    speaker: str
    text: str
    emotion: Emotion
    line_index: int
    line_count: int
    choices: tuple[Choice, ...]
    phase: NarrativePhase
    is_ending: bool = False
    ending_type: EndingType | None = None

    @property
    def is_choice_point(self) -> bool:
        return self.phase is NarrativePhase.CHOICE_POINT

    @property
    def is_terminal(self) -> bool:
        return self.phase is NarrativePhase.ENDING

    @property
    def ending_title(self) -> str | None:
        if not self.is_ending or self.ending_type is None:
            return None
        return ENDING_TITLES[self.ending_type]


class GameSession:
    """A playthrough of a story.

    Example:
        with GameSession(config=Config(seed=1)) as session:
            session.start()
            while not session.view().is_choice_point:
                session.advance()
            session.choose("lightPath")
    """

    def __init__(
        self,
        store: SceneGraphStore | None = None,
        config: Config | None = None,
        registry: LayerRegistry | None = None,
        scheduler: Scheduler | None = None,
        narrator: Narrator | None = None,
        preferences: PreferenceStore | None = None,
        events: StructuredLogger | None = None,
    ):
        """
        Args:
            store: Story to play (the built-in story by default).
            config: Session configuration.
            registry: Environment soundscapes (built-in by default).
            scheduler: Audio clock and timers.
            narrator: Narration player (reads config.narration_dir by default).
            preferences: Persisted narration preference, if any.
            events: Structured logger for narrative events.
        """
        self.config = config or Config()
        self.store = store or default_story()
        self.machine = NarrativeStateMachine(self.store, strict_choices=self.config.strict_choices)
        self._events = events or get_logger()

        self.audio = CrossfadeManager(
            registry or default_registry(self.config),
            self.config,
            scheduler=scheduler,
            events=self._events,
        )

        self.narrator = narrator or Narrator(
            FileAssetLoader(self.config.narration_dir),
            sample_rate=self.config.sample_rate,
        )
        self.preferences = preferences
        if preferences is not None:
            self.narrator.enabled = preferences.narration_enabled

        self._state: GameState | None = None
        self._closed = False

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> GameState:
        if self._state is None:
            raise StoryError("Session not started")
        return self._state

    @property
    def started(self) -> bool:
        return self._state is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def view(self) -> SceneView:
        state = self.state
        scene = self.machine.current_scene(state)
        line = self.machine.current_line(state)
        return SceneView(
            scene_id=scene.id,
            title=scene.title,
            description=scene.description,
            environment=scene.environment,
            camera_position=scene.camera_position,
            camera_target=scene.camera_target,
            speaker=line.speaker,
            text=line.text,
            emotion=line.emotion,
            line_index=state.line_index,
            line_count=len(scene.dialogue),
            choices=scene.choices,
            phase=self.machine.phase(state),
            is_ending=scene.is_ending,
            ending_type=scene.ending_type,
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    def start(self) -> SceneView:
        """Enter the entry scene."""
        self._check_open()
        self._state = self.machine.initial_state()
        self._enter_scene()
        return self.view()

    def advance(self) -> SceneView:
        """Show the next dialogue line (no-op on the last line)."""
        self._check_open()
        previous = self.state
        self._state = self.machine.advance_line(previous)
        if self._state.line_index != previous.line_index:
            self._narrate()
        return self.view()

    def choose(self, next_scene_id: str) -> SceneView:
        """Follow a choice from the current scene.

        Raises:
            UnknownSceneError: If the target does not exist.
            InvalidChoiceError: If the scene does not offer the target.
        """
        self._check_open()
        previous = self.state
        self._state = self.machine.choose(previous, next_scene_id)
        self._events.choice_made(previous.current_scene, next_scene_id)
        self._enter_scene()
        return self.view()

    def restart(self) -> SceneView:
        """Back to the entry scene with fresh state and fresh ambience."""
        self._check_open()
        self.audio.reset()
        self._state = self.machine.restart()
        self._events.info("session_restarted", "Story restarted", scene=self._state.current_scene)
        self._enter_scene()
        return self.view()

    # =========================================================================
    # Settings
    # =========================================================================

    def set_muted(self, muted: bool) -> None:
        try:
            self.audio.set_muted(muted)
        except Exception as e:
            logger.warning(f"Failed to {'mute' if muted else 'unmute'} audio: {e}")
            self._events.audio_error(e)

    def set_narration_enabled(self, enabled: bool) -> None:
        self.narrator.enabled = enabled
        if self.preferences is None:
            return
        try:
            self.preferences.set_narration_enabled(enabled)
        except OSError as e:
            logger.warning(f"Failed to save narration preference: {e}")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Stop every layer and release the audio engine without fading.

        For a faded exit call audio.teardown() and let the clock run past
        the crossfade first. Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        self.audio.dispose()

    def __enter__(self) -> "GameSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # =========================================================================
    # Internals
    # =========================================================================

    def _check_open(self) -> None:
        if self._closed:
            raise StoryError("Session is closed")

    def _enter_scene(self) -> None:
        scene = self.machine.current_scene(self.state)
        self._events.scene_entered(scene.id, scene.environment.value)

        try:
            self.audio.set_environment(scene.environment)
        except Exception as e:
            logger.warning(f"Ambience failed for {scene.environment.value}: {e}")
            self._events.audio_error(e, scene=scene.id)

        self._narrate()

    def _narrate(self) -> None:
        state = self.state
        scene = self.machine.current_scene(state)
        self.narrator.narrate(self.narrator.cue_for(scene, state.line_index))


__all__ = ["ENDING_TITLES", "SceneView", "GameSession"]
