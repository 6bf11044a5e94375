"""
Story Graph Tests - Data model, validation, loading and the scene store.
"""

import json

import pytest

from storygraph.errors import StoryConfigurationError, UnknownSceneError
from storygraph.story import (
    Choice,
    DialogueLine,
    Emotion,
    EndingType,
    Environment,
    GameState,
    Impact,
    Scene,
    SceneGraphStore,
    ValidationSeverity,
    default_story,
    dump_story,
    load_story,
    story_from_dict,
    validate_scenes,
)
from storygraph.story.library import AWAKENING, ENTRY_SCENE
from storygraph.testing import build_store, make_scene


class TestSceneFromDict:
    """Tests for parsing authored scene dicts."""

    def test_camel_case_fields(self):
        """Authoring keys map onto the dataclass fields."""
        scene = Scene.from_dict({
            "id": "gate",
            "title": "The Gate",
            "description": "A rusted gate.",
            "dialogue": [{"speaker": "You", "text": "Hello?", "emotion": "worried"}],
            "choices": [{"text": "Open it", "nextScene": "yard", "impact": "positive"}],
            "environment": "ruins",
            "cameraPosition": [1, 2, 3],
            "cameraTarget": [0, 1, 0],
        })

        assert scene.id == "gate"
        assert scene.environment is Environment.RUINS
        assert scene.dialogue[0] == DialogueLine("You", "Hello?", Emotion.WORRIED)
        assert scene.choices[0] == Choice("Open it", "yard", Impact.POSITIVE)
        assert scene.camera_position == (1.0, 2.0, 3.0)
        assert scene.camera_target == (0.0, 1.0, 0.0)
        assert not scene.is_ending

    def test_defaults(self):
        """Missing optional fields get defaults."""
        scene = Scene.from_dict(
            {"dialogue": [{"speaker": "N", "text": "x"}], "environment": "forest"},
            scene_id="a",
        )

        assert scene.id == "a"
        assert scene.choices == ()
        assert scene.dialogue[0].emotion is Emotion.NEUTRAL
        assert scene.camera_position == (0.0, 5.0, 10.0)
        assert scene.ending_type is None

    def test_ending_fields(self):
        scene = Scene.from_dict({
            "id": "end",
            "dialogue": [{"speaker": "N", "text": "Fin."}],
            "environment": "sunrise",
            "isEnding": True,
            "endingType": "bad",
        })

        assert scene.is_ending
        assert scene.ending_type is EndingType.BAD

    def test_invalid_environment(self):
        """Unknown environment names are configuration errors."""
        with pytest.raises(StoryConfigurationError, match="invalid environment 'moon'"):
            Scene.from_dict({"id": "a", "dialogue": [], "environment": "moon"})

    def test_missing_environment(self):
        with pytest.raises(StoryConfigurationError, match="missing field 'environment'"):
            Scene.from_dict({"id": "a", "dialogue": []})

    def test_bad_camera_vector(self):
        with pytest.raises(StoryConfigurationError, match="expected three numbers"):
            Scene.from_dict({
                "id": "a",
                "dialogue": [],
                "environment": "forest",
                "cameraPosition": [1, 2],
            })

    def test_choice_requires_next_scene(self):
        with pytest.raises(StoryConfigurationError, match="nextScene"):
            Choice.from_dict({"text": "Go"})

    def test_round_trip(self):
        """to_dict output parses back into an equal scene."""
        scene = make_scene("a", 2, {"b": "Go on"}, Environment.GROVE)

        assert Scene.from_dict(scene.to_dict()) == scene

    def test_properties(self):
        scene = make_scene("a", 3, ["b", "c"])

        assert scene.last_line_index == 2
        assert scene.choice_targets == ("b", "c")
        assert scene.has_choices

    def test_frozen(self):
        scene = make_scene("a")

        with pytest.raises(Exception):  # FrozenInstanceError
            scene.title = "other"


class TestGameState:
    """Tests for the GameState record."""

    def test_start(self):
        state = GameState.start("start")

        assert state.current_scene == "start"
        assert state.visited_scenes == ("start",)
        assert dict(state.choices) == {}
        assert state.line_index == 0

    def test_to_dict(self):
        """Serialized state matches the session record layout."""
        state = GameState("b", ("a", "b"), {"a": "b"}, line_index=2)

        assert state.to_dict() == {
            "currentScene": "b",
            "visitedScenes": ["a", "b"],
            "choices": {"a": "b"},
        }

    def test_from_dict(self):
        state = GameState.from_dict({
            "currentScene": "b",
            "visitedScenes": ["a", "b"],
            "choices": {"a": "b"},
        })

        assert state.current_scene == "b"
        assert state.visited_scenes == ("a", "b")
        assert state.line_index == 0

    def test_with_line_copies(self):
        state = GameState.start("a")

        moved = state.with_line(2)

        assert moved.line_index == 2
        assert state.line_index == 0

    def test_choices_are_read_only(self):
        picks = {"a": "b"}
        state = GameState("b", ("a", "b"), picks)

        picks["a"] = "c"

        assert state.choices == {"a": "b"}
        with pytest.raises(TypeError):
            state.choices["a"] = "c"

    def test_with_line_does_not_share_choices(self):
        state = GameState("b", ("a", "b"), {"a": "b"})

        moved = state.with_line(1)

        assert moved.choices == state.choices
        assert moved.choices is not state.choices

    @pytest.mark.parametrize("data", [
        "start",
        {"currentScene": "a", "visitedScenes": "a"},
        {"currentScene": "a", "choices": ["a", "b"]},
    ])
    def test_from_dict_rejects_malformed(self, data):
        with pytest.raises(StoryConfigurationError):
            GameState.from_dict(data)


class TestValidation:
    """Tests for graph integrity checks."""

    def test_valid_graph(self):
        scenes = {s.id: s for s in [
            make_scene("a", 1, ["b"]),
            make_scene("b", 1, ending="good"),
        ]}

        result = validate_scenes(scenes, "a")

        assert result.is_valid
        assert len(result) == 0
        assert str(result) == "Validation passed"

    def test_dangling_next_scene(self):
        """A choice pointing at a missing scene is an error."""
        scenes = {"a": make_scene("a", 1, ["nowhere"])}

        result = validate_scenes(scenes, "a")

        issues = result.filter_by_code("DANGLING_NEXT_SCENE")
        assert not result.is_valid
        assert len(issues) == 1
        assert issues[0].context["target"] == "nowhere"
        assert issues[0].location == "scenes[a].choices[0]"

    def test_empty_dialogue(self):
        scenes = {"a": make_scene("a", 0, ending="good")}

        result = validate_scenes(scenes, "a")

        assert result.filter_by_code("EMPTY_DIALOGUE")
        assert not result.is_valid

    def test_missing_entry(self):
        scenes = {"a": make_scene("a", ending="good")}

        result = validate_scenes(scenes, "start")

        assert result.filter_by_code("MISSING_ENTRY")

    def test_dead_end(self):
        """A non-ending without choices would strand the player."""
        scenes = {"a": make_scene("a")}

        result = validate_scenes(scenes, "a")

        assert result.filter_by_code("DEAD_END")

    def test_ending_type_consistency(self):
        missing = Scene("a", "", "", (DialogueLine("N", "x"),), Environment.FOREST, is_ending=True)
        stray = Scene(
            "b", "", "", (DialogueLine("N", "x"),), Environment.FOREST,
            choices=(Choice("go", "a"),), ending_type=EndingType.GOOD,
        )

        result = validate_scenes({"a": missing, "b": stray}, "b")

        assert result.filter_by_code("MISSING_ENDING_TYPE")
        assert result.filter_by_code("UNEXPECTED_ENDING_TYPE")

    def test_unreachable_is_warning(self):
        """Orphan scenes only warn."""
        scenes = {s.id: s for s in [
            make_scene("a", ending="good"),
            make_scene("orphan", ending="bad"),
        ]}

        result = validate_scenes(scenes, "a")

        assert result.is_valid
        assert result.warning_count == 1
        assert result.issues[0].severity is ValidationSeverity.WARNING

    def test_raise_if_invalid_carries_result(self):
        result = validate_scenes({"a": make_scene("a", 1, ["x"])}, "a")

        with pytest.raises(StoryConfigurationError) as exc_info:
            result.raise_if_invalid()

        assert exc_info.value.result is result


class TestSceneGraphStore:
    """Tests for SceneGraphStore."""

    def test_every_choice_resolves(self, store):
        """Every nextScene of every scene exists in the store."""
        for scene in store.values():
            for choice in scene.choices:
                assert choice.next_scene in store

    def test_every_scene_has_dialogue(self, store):
        for scene in store.values():
            assert len(scene.dialogue) >= 1

    def test_invalid_graph_rejected(self):
        """Construction fails fast on dangling edges."""
        with pytest.raises(StoryConfigurationError, match="unknown scene 'ghost'"):
            build_store(make_scene("a", 1, ["ghost"]))

    def test_skip_validation(self):
        store = build_store(make_scene("a", 1, ["ghost"]), validate=False)

        assert not store.validation.is_valid

    def test_duplicate_ids_rejected(self):
        with pytest.raises(StoryConfigurationError, match="Duplicate scene id 'a'"):
            SceneGraphStore([make_scene("a", ending="good"), make_scene("a", ending="good")], entry="a")

    def test_lookup_unknown(self, store):
        """Unknown ids raise UnknownSceneError, which is also a KeyError."""
        with pytest.raises(UnknownSceneError) as exc_info:
            store.lookup("ghost")

        assert exc_info.value.scene_id == "ghost"
        assert isinstance(exc_info.value, KeyError)

    def test_mapping_protocol(self, store):
        assert len(store) == 5
        assert "start" in store
        assert "ghost" not in store
        assert store["left"].environment is Environment.CLEARING
        assert set(store) == {"start", "left", "right", "good", "bad"}

    def test_successors(self, store):
        assert store.successors("start") == ("left", "right")
        assert store.successors("good") == ()

    def test_reachable(self, store):
        assert store.reachable_from() == set(store.ids)
        assert store.reachable_from("left") == {"left", "good"}

    def test_endings(self, store):
        assert {s.id for s in store.endings()} == {"good", "bad"}

    def test_read_only(self, store):
        with pytest.raises(TypeError):
            store["new"] = make_scene("new")


class TestLoader:
    """Tests for story files."""

    def test_load_and_dump(self, tmp_path, store):
        path = dump_story(store, tmp_path / "story.json")

        loaded = load_story(path)

        assert loaded.entry == "start"
        assert dict(loaded) == dict(store)

    def test_scene_list_format(self):
        """Scenes may be given as a list keyed by their ids."""
        store = story_from_dict({
            "entry": "a",
            "scenes": [
                {"id": "a", "dialogue": [{"speaker": "N", "text": "x"}],
                 "environment": "forest", "choices": [{"text": "go", "nextScene": "b"}]},
                {"id": "b", "dialogue": [{"speaker": "N", "text": "y"}],
                 "environment": "cave", "isEnding": True, "endingType": "neutral"},
            ],
        })

        assert store.ids == ("a", "b")

    def test_missing_scenes_section(self):
        with pytest.raises(StoryConfigurationError, match="no 'scenes' section"):
            story_from_dict({"entry": "a"})

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoryConfigurationError, match="not valid JSON"):
            load_story(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(StoryConfigurationError, match="Cannot read story file"):
            load_story(tmp_path / "nope.json")

    def test_dangling_edge_in_file(self, tmp_path):
        path = tmp_path / "story.json"
        path.write_text(json.dumps({"scenes": {
            "start": {"dialogue": [{"speaker": "N", "text": "x"}], "environment": "forest",
                      "choices": [{"text": "go", "nextScene": "missing"}]},
        }}), encoding="utf-8")

        with pytest.raises(StoryConfigurationError) as exc_info:
            load_story(path)

        assert exc_info.value.result.filter_by_code("DANGLING_NEXT_SCENE")

    @pytest.mark.parametrize("scenes, message", [
        ({"start": "oops"}, r"scenes\[start\]: expected an object, got str"),
        (["oops"], r"scene: expected an object, got str"),
        ({"start": {"environment": "forest", "dialogue": ["hi"]}},
         r"scenes\[start\]\.dialogue\[0\]: expected an object"),
        ({"start": {"environment": "forest", "dialogue": "hi"}},
         r"scenes\[start\]\.dialogue: expected a list"),
        ({"start": {"environment": "forest", "dialogue": [{"speaker": "N", "text": "x"}],
                    "choices": [5]}},
         r"scenes\[start\]\.choices\[0\]: expected an object, got int"),
        ({"start": {"environment": "forest", "dialogue": [{"speaker": "N", "text": "x"}],
                    "choices": 5}},
         r"scenes\[start\]\.choices: expected a list, got int"),
    ])
    def test_malformed_entries(self, scenes, message):
        """Wrongly shaped entries are configuration errors, not crashes."""
        with pytest.raises(StoryConfigurationError, match=message):
            story_from_dict({"scenes": scenes})


class TestDefaultStory:
    """Tests for the bundled story."""

    def test_valid(self):
        store = default_story()

        assert store.validation.is_valid
        assert store.entry == ENTRY_SCENE
        assert len(store) == len(AWAKENING)

    def test_start_branches(self):
        store = default_story()

        assert store.successors("start") == ("lightPath", "darkPath")
        assert len(store["start"].dialogue) == 3

    def test_endings_cover_types(self):
        endings = default_story().endings()

        assert {s.ending_type for s in endings} == {EndingType.GOOD, EndingType.NEUTRAL}
        assert all(not s.choices for s in endings)
