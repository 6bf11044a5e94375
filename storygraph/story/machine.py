"""
Narrative State Machine - Pure transitions over GameState.

States (per scene):
    MID_DIALOGUE  - cursor before the last line
    CHOICE_POINT  - cursor on the last line, scene offers choices
    ENDING        - cursor on the last line of an ending scene

Transitions:
    advance_line  - cursor += 1, no-op on the last line
    choose        - move to a choice target, cursor back to 0
    restart       - fresh state at the entry scene

ENDING is terminal: nothing leaves it except an explicit restart.

Every operation returns a new GameState; the input is never modified,
so a rejected transition cannot corrupt the caller's state.
"""

from __future__ import annotations

from enum import Enum

from storygraph.errors import InvalidChoiceError, UnknownSceneError
from storygraph.story.store import SceneGraphStore
from storygraph.story.types import Choice, DialogueLine, GameState, Scene


class NarrativePhase(Enum):
    """Where the player is within the current scene."""
    MID_DIALOGUE = "mid_dialogue"
    CHOICE_POINT = "choice_point"
    ENDING = "ending"


class NarrativeStateMachine:
    """Traversal rules for a scene graph.

    Example:
        machine = NarrativeStateMachine(store)
        state = machine.initial_state()

        while not machine.is_choice_point(state):
            state = machine.advance_line(state)

        state = machine.choose(state, "lightPath")
    """

    def __init__(self, store: SceneGraphStore, strict_choices: bool = True):
        """
        Args:
            store: The scene graph.
            strict_choices: Reject targets the current scene does not list
                as a choice. When False any existing scene is accepted.
        """
        self._store = store
        self._strict = strict_choices

    @property
    def store(self) -> SceneGraphStore:
        return self._store

    @property
    def strict_choices(self) -> bool:
        return self._strict

    def initial_state(self) -> GameState:
        return GameState.start(self._store.entry)

    def restart(self) -> GameState:
        """Full reset to the entry scene. The only way out of an ending."""
        return self.initial_state()

    def current_scene(self, state: GameState) -> Scene:
        """Resolve the state's scene.

        Raises:
            UnknownSceneError: If the id is not in the store.
        """
        return self._store.lookup(state.current_scene)

    def current_line(self, state: GameState) -> DialogueLine:
        scene = self.current_scene(state)
        index = min(max(state.line_index, 0), scene.last_line_index)
        return scene.dialogue[index]

    def available_choices(self, state: GameState) -> tuple[Choice, ...]:
        return self.current_scene(state).choices

    def advance_line(self, state: GameState) -> GameState:
        """Move the cursor one line forward, stopping on the last line."""
        scene = self.current_scene(state)
        if state.line_index < scene.last_line_index:
            return state.with_line(state.line_index + 1)
        return state

    def choose(self, state: GameState, next_scene_id: str) -> GameState:
        """Follow a choice edge.

        Raises:
            UnknownSceneError: If next_scene_id is not a scene.
            InvalidChoiceError: If strict and the current scene does not
                offer next_scene_id.
        """
        scene = self.current_scene(state)

        if next_scene_id not in self._store:
            raise UnknownSceneError(
                next_scene_id,
                details={"from_scene": scene.id},
            )

        if self._strict and next_scene_id not in scene.choice_targets:
            raise InvalidChoiceError(
                scene.id,
                next_scene_id,
                allowed=scene.choice_targets,
            )

        choices = dict(state.choices)
        choices[scene.id] = next_scene_id

        return GameState(
            current_scene=next_scene_id,
            visited_scenes=state.visited_scenes + (next_scene_id,),
            choices=choices,
            line_index=0,
        )

    def is_on_last_line(self, state: GameState) -> bool:
        return state.line_index >= self.current_scene(state).last_line_index

    def is_choice_point(self, state: GameState) -> bool:
        scene = self.current_scene(state)
        return state.line_index >= scene.last_line_index and scene.has_choices

    def is_terminal(self, state: GameState) -> bool:
        scene = self.current_scene(state)
        return scene.is_ending and state.line_index >= scene.last_line_index

    def phase(self, state: GameState) -> NarrativePhase:
        if self.is_terminal(state):
            return NarrativePhase.ENDING
        if self.is_choice_point(state):
            return NarrativePhase.CHOICE_POINT
        return NarrativePhase.MID_DIALOGUE


__all__ = ["NarrativePhase", "NarrativeStateMachine"]
