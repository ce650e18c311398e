from __future__ import annotations

import pytest
from pydantic import ValidationError

from adventure_weaver.core.models import Phase, Scene, Session, StoryLogEntry
from adventure_weaver.core.utils import last_sentences, recent_scenes, to_data_url
from adventure_weaver.services.prompts import extract_json, next_messages


def test_scene_accepts_provider_and_python_names():
    camel = Scene.model_validate({
        "sceneDescription": "  A quiet dock.  ",
        "imagePrompt": None,
        "choices": ["Board", " ", "Swim"],
        "gameOver": False,
        "gameOverMessage": None,
    })
    snake = Scene(scene_description="A quiet dock.", choices=["Board", "Swim"])

    assert camel == snake
    assert camel.image_prompt == ""


def test_scene_rejects_blank_description():
    with pytest.raises(ValidationError):
        Scene(sceneDescription="   ", choices=[])


def test_scene_is_immutable():
    scene = Scene(sceneDescription="A quiet dock.", choices=["Board"])
    with pytest.raises(ValidationError):
        scene.choices = ["Leave"]


def test_unfinished_scene_needs_a_choice():
    with pytest.raises(ValidationError):
        Scene(sceneDescription="A blank wall.", choices=["", "  "], gameOver=False)
    ending = Scene(sceneDescription="The end.", choices=[], gameOver=True)
    assert ending.choices == []


def test_view_is_a_detached_snapshot():
    session = Session(scene=Scene(sceneDescription="A", choices=["x"]), phase=Phase.PLAYING)
    session.story_log.append("A")
    view = session.view()
    session.story_log.append("B")
    session.journal.append(StoryLogEntry("scene", "B"))

    assert view.story_log == ("A",)
    assert view.journal == ()
    assert view.accepts_choice


def test_view_offers_no_choices_once_over():
    session = Session(
        scene=Scene(sceneDescription="The end.", choices=["ignored"], gameOver=True),
        phase=Phase.GAME_OVER,
    )
    view = session.view()
    assert view.choices == ()
    assert not view.accepts_choice


# ——— Helpers ———————————————————————————————————————————

def test_extract_json_strips_fences_and_chatter():
    raw = 'Sure! ```JSON\n{"sceneDescription": "a {b} c", "choices": []}\n``` Enjoy.'
    assert extract_json(raw) == '{"sceneDescription": "a {b} c", "choices": []}'


def test_recent_scenes_keeps_the_tail():
    log = ["a", "b", "c", "d"]
    assert recent_scenes(log, 2) == ["c", "d"]
    assert recent_scenes(log, 10) == log
    assert recent_scenes(log, 0) == []


def test_next_messages_handles_empty_history():
    messages = next_messages("Here.", "Wait", [])
    assert "(nothing yet)" in messages[-1]["content"]


def test_last_sentences():
    assert last_sentences("One. Two! Three?", 1) == "Three?"


def test_to_data_url():
    assert to_data_url("aGk=") == "data:image/png;base64,aGk="
    assert to_data_url("data:image/png;base64,aGk=", "image/jpeg") == "data:image/jpeg;base64,aGk="
    with pytest.raises(ValueError):
        to_data_url("")
