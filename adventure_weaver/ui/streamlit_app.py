import asyncio
import logging

import streamlit as st

from adventure_weaver.core.models import SessionView
from adventure_weaver.core.settings import settings
from adventure_weaver.core.utils import configure_logging
from adventure_weaver.services.game_runner import GameRunner
from adventure_weaver.services.story_client import story_client
from adventure_weaver.ui import components

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)
st.set_page_config(page_title="Adventure Weaver", page_icon="📜", layout="centered")

@st.cache_data(ttl=30, show_spinner=False)
def provider_online() -> bool:
    return asyncio.run(story_client.ping())

def sidebar() -> None:
    st.sidebar.title("Adventure Weaver")
    st.sidebar.write(f"- **Story host:** `{settings.ollama_host}`")
    st.sidebar.write(f"- **Model:** `{settings.ollama_model}`")
    st.sidebar.write(f"- **Image host:** `{settings.image_host}`")
    st.sidebar.write(f"- **Context scenes:** {settings.context_scenes}")
    if not settings.credentials_present:
        st.sidebar.error("API key missing")
    elif provider_online():
        st.sidebar.success("Story provider online")
    else:
        st.sidebar.warning("Story provider unreachable")

def get_runner() -> GameRunner:
    if "runner" not in st.session_state:
        st.session_state.runner = GameRunner(
            story_client,
            credentials_present=settings.credentials_present,
        )
    return st.session_state.runner

def main():
    sidebar()
    runner = get_runner()

    st.title("📜 Adventure Weaver")
    stage = st.empty()
    with stage.container():
        intent = components.render_screen(runner.view, interactive=True)
    st.caption("Story and images dynamically generated by AI.")

    if intent is None:
        return

    def redraw(view: SessionView) -> None:
        with stage.container():
            components.render_screen(view, interactive=False)

    logger.debug("Dispatching %s", intent)
    unsubscribe = runner.subscribe(redraw)
    try:
        asyncio.run(runner.dispatch(intent))
    finally:
        unsubscribe()
    st.rerun()

if __name__ == "__main__":
    main()
