"""
Game Session Tests - Story, ambience and narration together.
"""

import json

import numpy as np
import pytest

from storygraph.errors import InvalidChoiceError, StoryError, UnknownSceneError
from storygraph.narration import Narrator
from storygraph.preferences import PreferenceStore
from storygraph.session import ENDING_TITLES, GameSession
from storygraph.story.machine import NarrativePhase
from storygraph.story.types import EndingType, Environment
from storygraph.testing import MemoryAssetLoader


@pytest.fixture
def played():
    return []


@pytest.fixture
def narrator(played):
    loader = MemoryAssetLoader({"start-0": np.zeros(10), "start-1": np.zeros(10), "left-0": np.zeros(10)})
    return Narrator(loader, player=lambda cue, samples: played.append(cue.asset_key))


@pytest.fixture
def session(store, config, registry, scheduler, narrator, events):
    session = GameSession(
        store,
        config=config,
        registry=registry,
        scheduler=scheduler,
        narrator=narrator,
        events=events,
    )
    yield session
    session.close()


def _to_choice_point(session):
    view = session.view()
    while not view.is_choice_point and not view.is_terminal:
        view = session.advance()
    return view


class TestStart:
    """Tests for starting a session."""

    def test_state_before_start(self, session):
        assert not session.started
        with pytest.raises(StoryError, match="not started"):
            session.state

    def test_start_view(self, session):
        view = session.start()

        assert view.scene_id == "start"
        assert view.line_index == 0
        assert view.line_count == 3
        assert view.text == "start line 0"
        assert view.speaker == "Narrator"
        assert view.phase is NarrativePhase.MID_DIALOGUE
        assert view.environment is Environment.FOREST
        assert session.state.visited_scenes == ("start",)

    def test_start_sets_ambience(self, session):
        session.start()

        assert session.audio.environment is Environment.FOREST
        assert set(session.audio.active_layers) == {"wind", "birds"}

    def test_start_narrates_first_line(self, session, played):
        session.start()

        assert played == ["start-0"]

    def test_builtin_story(self, config, registry, scheduler):
        with GameSession(config=config, registry=registry, scheduler=scheduler) as session:
            view = session.start()
            assert view.title == "Awakening"

            _to_choice_point(session)
            view = session.choose("lightPath")

            assert view.title == "The Clearing"
            assert view.environment is Environment.CLEARING


class TestAdvance:
    """Tests for moving through dialogue."""

    def test_advance_to_choice_point(self, session):
        session.start()

        session.advance()
        view = session.advance()

        assert view.line_index == 2
        assert view.is_choice_point
        assert [c.next_scene for c in view.choices] == ["left", "right"]

    def test_advance_past_last_line_is_noop(self, session, played):
        session.start()
        for _ in range(5):
            view = session.advance()

        assert view.line_index == 2
        # start-2 has no asset; the repeats never narrate again
        assert played == ["start-0", "start-1"]
        assert session.narrator.last_cue.line_index == 1

    def test_advance_does_not_touch_ambience(self, session, specs):
        session.start()
        session.advance()

        assert specs["wind"].create_count == 1
        assert session.audio.pending_stops == 0


class TestChoose:
    """Tests for following choices."""

    def test_choose_enters_scene(self, session, played):
        session.start()
        _to_choice_point(session)

        view = session.choose("left")

        assert view.scene_id == "left"
        assert view.line_index == 0
        assert session.state.visited_scenes == ("start", "left")
        assert dict(session.state.choices) == {"start": "left"}
        assert played[-1] == "left-0"

    def test_choose_crossfades_ambience(self, session, specs):
        session.start()
        session.choose("left")

        assert set(session.audio.active_layers) == {"wind", "birds", "stream"}
        assert specs["wind"].create_count == 1

        session.choose("good")

        assert dict(session.audio.active_layers) == {}
        assert set(session.audio.retiring_keys) == {"wind", "birds", "stream"}

    def test_choose_logs_choice(self, session, log_stream):
        session.start()
        session.choose("right")

        records = [json.loads(line) for line in log_stream.getvalue().splitlines()]
        made = [r for r in records if r["event"] == "choice_made"]
        entered = [r["scene"] for r in records if r["event"] == "scene_entered"]

        assert made[0]["from_scene"] == "start"
        assert made[0]["to_scene"] == "right"
        assert entered == ["start", "right"]

    def test_invalid_choice_keeps_state(self, session):
        session.start()
        before = session.state

        with pytest.raises(InvalidChoiceError):
            session.choose("good")

        assert session.state == before
        assert session.audio.environment is Environment.FOREST

    def test_unknown_scene(self, session):
        session.start()

        with pytest.raises(UnknownSceneError):
            session.choose("nowhere")

    def test_reaching_endings(self, session):
        session.start()
        session.choose("right")

        view = session.choose("bad")

        assert view.is_terminal
        assert view.is_ending
        assert view.ending_type is EndingType.BAD
        assert view.ending_title == "A Tragic End"
        assert view.choices == ()

    def test_ending_titles(self):
        assert ENDING_TITLES[EndingType.GOOD] == "A Meaningful End"
        assert ENDING_TITLES[EndingType.NEUTRAL] == "A New Beginning"


class TestRestart:
    """Tests for restarting a playthrough."""

    def test_restart_resets_state_and_audio(self, session, specs, scheduler):
        session.start()
        session.choose("right")

        view = session.restart()

        assert view.scene_id == "start"
        assert session.state.visited_scenes == ("start",)
        assert dict(session.state.choices) == {}
        assert scheduler.pending == 0
        assert specs["drips"].stop_count == 1
        assert specs["wind"].create_count == 2
        assert set(session.audio.active_layers) == {"wind", "birds"}

    def test_restart_from_ending(self, session):
        session.start()
        session.choose("left")
        session.choose("good")

        view = session.restart()

        assert not view.is_terminal
        assert view.scene_id == "start"


class TestFailureTolerance:
    """Audio and narration failures never interrupt the story."""

    def test_ambience_failure_logged(self, session, log_stream, monkeypatch):
        def broken(environment):
            raise RuntimeError("audio device lost")

        monkeypatch.setattr(session.audio, "set_environment", broken)

        view = session.start()

        assert view.scene_id == "start"
        assert "audio device lost" in log_stream.getvalue()

    def test_missing_narration_continues(self, session, played):
        session.start()
        session.advance()
        session.advance()

        view = session.choose("right")

        assert view.scene_id == "right"
        assert "right-0" not in played

    def test_mute_failure_swallowed(self, session, monkeypatch):
        def broken(muted):
            raise RuntimeError("no audio")

        session.start()
        monkeypatch.setattr(session.audio, "set_muted", broken)

        session.set_muted(True)

    def test_mute_and_unmute(self, session):
        session.start()

        session.set_muted(True)
        assert session.audio.muted
        session.set_muted(False)
        assert not session.audio.muted


class TestNarrationPreference:
    """Tests for the persisted narration flag."""

    def test_preference_disables_narrator(self, store, config, registry, scheduler, narrator, played):
        prefs = PreferenceStore(config.preferences_path)
        prefs.set_narration_enabled(False)

        with GameSession(
            store, config=config, registry=registry, scheduler=scheduler,
            narrator=narrator, preferences=prefs,
        ) as session:
            session.start()

        assert not narrator.enabled
        assert played == []

    def test_toggle_persists(self, store, config, registry, scheduler, narrator):
        prefs = PreferenceStore(config.preferences_path)

        with GameSession(
            store, config=config, registry=registry, scheduler=scheduler,
            narrator=narrator, preferences=prefs,
        ) as session:
            session.set_narration_enabled(False)

        assert not narrator.enabled
        assert PreferenceStore(config.preferences_path).narration_enabled is False

    def test_save_failure_keeps_toggle(self, session, monkeypatch, caplog):
        prefs = PreferenceStore(session.config.preferences_path)

        def broken(enabled):
            raise OSError("read-only filesystem")

        monkeypatch.setattr(prefs, "set_narration_enabled", broken)
        session.preferences = prefs

        session.set_narration_enabled(False)

        assert not session.narrator.enabled
        assert "read-only filesystem" in caplog.text


class TestClose:
    """Tests for closing a session."""

    def test_close_releases_audio(self, session, specs):
        session.start()
        engine = session.audio.engine

        session.close()
        session.close()

        assert session.closed
        assert engine.is_closed
        assert specs["wind"].stop_count == 1

    def test_close_stops_without_fading(self, session, specs, scheduler):
        session.start()
        wind = specs["wind"].latest

        session.close()

        assert wind.stopped
        assert scheduler.pending == 0
        assert session.audio.retiring_keys == ()

    def test_teardown_then_close_fades_first(self, session, specs, scheduler, config):
        session.start()
        scheduler.advance(config.crossfade_seconds)
        wind = specs["wind"].latest

        session.audio.teardown()
        scheduler.advance(config.crossfade_seconds / 2)
        assert not wind.stopped
        assert 0.0 < wind.gain.value_at(scheduler.time()) < wind.gain.value_at(config.crossfade_seconds)

        scheduler.advance(config.stop_delay)
        session.close()

        assert wind.stopped
        assert specs["wind"].stop_count == 1

    def test_operations_after_close(self, session):
        session.start()
        session.close()

        with pytest.raises(StoryError, match="closed"):
            session.advance()
        with pytest.raises(StoryError, match="closed"):
            session.restart()

    def test_close_before_start(self, session):
        session.close()

        assert not session.audio.has_engine
