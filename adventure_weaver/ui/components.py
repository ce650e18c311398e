"""
Presentational pieces of the game page.

Each function draws from its arguments only and hands back the player's
intent (or None). None of them touch the GameRunner.
"""
from __future__ import annotations
from enum import Enum
from typing import Iterable, Optional, Sequence

import streamlit as st

from adventure_weaver.core.events import ChooseOption, Intent, Restart, StartGame
from adventure_weaver.core.models import SessionView, StoryLogEntry
from adventure_weaver.core.utils import last_sentences


class Screen(str, Enum):
    CRITICAL = "critical"
    START = "start"
    PLAY = "play"
    GAME_OVER = "game_over"


def select_screen(view: SessionView) -> Screen:
    if not view.credentials_present:
        return Screen.CRITICAL
    if not view.game_started:
        return Screen.START
    if view.scene is not None and view.scene.game_over:
        return Screen.GAME_OVER
    return Screen.PLAY

# ——— Leaf components ———————————————————————————————————

def image_display(image: Optional[str], alt_text: str, is_loading: bool) -> None:
    if is_loading:
        with st.container(border=True):
            st.caption("🎨 Painting the scene...")
        return
    if image:
        st.image(image, caption=alt_text)
    else:
        with st.container(border=True):
            st.caption("No image for this scene.")

def scene_display(description: str) -> None:
    st.markdown(description)

def choices_list(choices: Sequence[str], disabled: bool = False) -> Optional[ChooseOption]:
    if not choices:
        return None
    st.subheader("What will you do?")
    picked: Optional[ChooseOption] = None
    for i, choice in enumerate(choices):
        if st.button(choice, key=f"choice_{i}", disabled=disabled):
            picked = ChooseOption(choice)
    return picked

def choices_preview(choices: Sequence[str]) -> None:
    if choices:
        st.markdown("\n".join(f"- {c}" for c in choices))

def loading_indicator(text: str = "The story unfolds...") -> None:
    st.info(f"⏳ {text}")

def error_message(message: Optional[str]) -> None:
    if message:
        st.error(message)

def notice(message: Optional[str]) -> None:
    if message:
        st.warning(message)

def adventure_log(journal: Iterable[StoryLogEntry]) -> None:
    entries = list(journal)
    if not entries:
        return
    with st.expander("📜 Adventure Log", expanded=False):
        for entry in entries:
            if entry.kind == "choice":
                st.markdown(f"**You chose:** {entry.text}")
            else:
                st.markdown(entry.text)

# ——— Screens ———————————————————————————————————————————

def game_start_screen(is_loading: bool, error: Optional[str], interactive: bool = True) -> Optional[StartGame]:
    st.subheader("Begin a new adventure")
    st.write("Describe the kind of story you want to play and the AI will weave it for you.")
    error_message(error)
    if not interactive or is_loading:
        loading_indicator("Weaving your opening scene...")
        return None
    with st.form("start_form"):
        theme = st.text_input("Theme", placeholder="a haunted library, a derelict starship, ...")
        submitted = st.form_submit_button("Start Adventure")
    if submitted:
        return StartGame(theme)
    return None

def game_over_screen(view: SessionView, interactive: bool = True) -> Optional[Restart]:
    scene = view.scene
    st.header("Game Over")
    if scene is not None:
        image_display(view.image, scene.image_prompt or last_sentences(scene.scene_description, 1), view.image_loading)
        scene_display(scene.scene_description)
        st.subheader(scene.game_over_message or "Your adventure has come to an end.")
    notice(view.image_notice)
    adventure_log(view.journal)
    if interactive and st.button("Restart", key="restart", type="primary"):
        return Restart()
    return None

def play_screen(view: SessionView, interactive: bool = True) -> Optional[ChooseOption]:
    error_message(view.error)
    scene = view.scene
    if scene is None:
        if view.text_loading:
            loading_indicator()
        return None

    alt = scene.image_prompt or last_sentences(scene.scene_description, 1)
    image_display(view.image, alt, view.image_loading)
    scene_display(scene.scene_description)
    notice(view.image_notice)

    picked: Optional[ChooseOption] = None
    if view.text_loading:
        loading_indicator()
    elif interactive:
        picked = choices_list(view.choices, disabled=not view.accepts_choice)
    else:
        choices_preview(view.choices)
    adventure_log(view.journal)
    return picked

def render_screen(view: SessionView, interactive: bool = True) -> Optional[Intent]:
    screen = select_screen(view)
    if screen is Screen.CRITICAL:
        error_message(view.error)
        return None
    if screen is Screen.START:
        return game_start_screen(view.text_loading, view.error, interactive)
    if screen is Screen.GAME_OVER:
        return game_over_screen(view, interactive)
    return play_screen(view, interactive)
