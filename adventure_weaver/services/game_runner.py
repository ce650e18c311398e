import logging
from dataclasses import replace
from typing import Callable, List, Protocol, Sequence

from adventure_weaver.core.errors import GenerationError
from adventure_weaver.core.events import ChooseOption, Intent, Restart, StartGame
from adventure_weaver.core.models import Phase, Scene, Session, SessionView, StoryLogEntry

logger = logging.getLogger(__name__)

CREDENTIALS_MESSAGE = (
    "CRITICAL ERROR: API Key is not configured. The application cannot function. "
    "Please set the API_KEY environment variable."
)

Listener = Callable[[SessionView], None]


class StoryService(Protocol):
    async def get_initial_scene(self, theme: str) -> Scene: ...

    async def get_next_scene(self, current_scene: str, chosen_action: str, prior_scenes: Sequence[str]) -> Scene: ...

    async def generate_image(self, prompt: str) -> str: ...


class GameRunner:
    """
    Owns the play session and sequences requests to the story service:
    text first, then the illustration for it.

    Every accepted action and every restart takes a new ticket. A reply is
    applied only while its ticket is still the latest, so anything that
    resolves after a restart or a newer choice is dropped.
    """

    def __init__(self, client: StoryService, credentials_present: bool = True):
        self.client = client
        self._credentials_present = credentials_present
        self._listeners: List[Listener] = []
        self._ticket = 0
        self._session = self._fresh_session()
        if not credentials_present:
            logger.error("No API key configured; the game is disabled")

    # ——— Observation ————————————————————————————————————

    @property
    def view(self) -> SessionView:
        return self._session.view()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> SessionView:
        view = self.view
        for listener in list(self._listeners):
            listener(view)
        return view

    # ——— Bookkeeping ————————————————————————————————————

    def _fresh_session(self) -> Session:
        if not self._credentials_present:
            return Session(
                phase=Phase.NO_CREDENTIALS,
                error=CREDENTIALS_MESSAGE,
                credentials_present=False,
            )
        return Session()

    def _take_ticket(self) -> int:
        self._ticket += 1
        return self._ticket

    def _is_current(self, ticket: int) -> bool:
        return ticket == self._ticket

    def _snapshot(self) -> Session:
        s = self._session
        return replace(s, story_log=list(s.story_log), journal=list(s.journal))

    def _ignore(self, action: str, reason: str) -> SessionView:
        logger.warning("Ignoring %s: %s (phase=%s)", action, reason, self._session.phase.value)
        return self.view

    # ——— Actions ————————————————————————————————————————

    async def dispatch(self, intent: Intent) -> SessionView:
        if isinstance(intent, StartGame):
            return await self.start_game(intent.theme)
        if isinstance(intent, ChooseOption):
            return await self.choose_option(intent.choice)
        if isinstance(intent, Restart):
            return self.restart()
        return self._ignore(type(intent).__name__, "unknown intent")

    async def start_game(self, theme: str) -> SessionView:
        s = self._session
        if s.phase is not Phase.NOT_STARTED:
            return self._ignore("start_game", "a game is already running or cannot start")
        theme = (theme or "").strip()
        if not theme:
            s.error = "Please enter a theme for your adventure."
            return self._publish()

        ticket = self._take_ticket()
        before = self._snapshot()
        s.error = None
        s.image = None
        s.image_notice = None
        s.story_log = []
        s.journal = []
        s.phase = Phase.AWAITING_TEXT
        s.text_loading = True

        try:
            # a listener may raise too (Streamlit stops a script that way)
            self._publish()
            scene = await self.client.get_initial_scene(theme)
        except GenerationError as e:
            if self._is_current(ticket):
                self._session = before
                self._session.error = f"Failed to initialize game: {e}"
                self._publish()
            return self.view
        except BaseException:
            if self._is_current(ticket):
                self._session = before
            raise

        if not self._is_current(ticket):
            logger.info("Discarding stale opening scene (ticket %d)", ticket)
            return self.view

        s = self._session
        s.scene = scene
        s.text_loading = False
        s.game_started = True
        s.journal = [StoryLogEntry("scene", scene.scene_description)]
        s.story_log = [] if scene.game_over else [scene.scene_description]
        logger.info("Adventure started with %d choices", len(scene.choices))
        await self._illustrate(ticket)
        return self.view

    async def choose_option(self, choice: str) -> SessionView:
        s = self._session
        if not self.view.accepts_choice:
            return self._ignore("choose_option", "not waiting for a choice")
        if choice not in s.scene.choices:
            return self._ignore("choose_option", f"{choice!r} is not on offer")

        ticket = self._take_ticket()
        if s.phase is Phase.AWAITING_IMAGE:
            # the pending illustration now belongs to a stale ticket
            s.image_loading = False
            s.phase = Phase.PLAYING
        before = self._snapshot()
        current_scene = s.scene.scene_description
        context = list(s.story_log)

        s.error = None
        s.image = None
        s.image_notice = None
        s.phase = Phase.AWAITING_TEXT
        s.text_loading = True

        try:
            self._publish()
            scene = await self.client.get_next_scene(current_scene, choice, context)
        except GenerationError as e:
            if self._is_current(ticket):
                self._session = before
                self._session.error = f"Failed to get next scene: {e}"
                self._publish()
            return self.view
        except BaseException:
            if self._is_current(ticket):
                self._session = before
            raise

        if not self._is_current(ticket):
            logger.info("Discarding stale scene for choice %r (ticket %d)", choice, ticket)
            return self.view

        s = self._session
        s.scene = scene
        s.text_loading = False
        s.journal.append(StoryLogEntry("choice", choice))
        s.journal.append(StoryLogEntry("scene", scene.scene_description))
        if scene.game_over:
            logger.info("Game over: %s", scene.game_over_message)
        else:
            s.story_log.append(scene.scene_description)
        await self._illustrate(ticket)
        return self.view

    def restart(self) -> SessionView:
        self._take_ticket()
        self._session = self._fresh_session()
        logger.info("Session reset")
        return self._publish()

    # ——— Illustration ———————————————————————————————————

    async def _illustrate(self, ticket: int) -> None:
        s = self._session
        settled = Phase.GAME_OVER if s.scene.game_over else Phase.PLAYING
        prompt = s.scene.image_prompt
        if not prompt:
            s.phase = settled
            self._publish()
            return

        s.phase = Phase.AWAITING_IMAGE
        s.image_loading = True

        try:
            self._publish()
            image = await self.client.generate_image(prompt)
        except GenerationError as e:
            if not self._is_current(ticket):
                return
            logger.warning("Image generation failed, continuing without one: %s", e)
            image = None
            self._session.image_notice = f"The illustration could not be generated: {e}"
        except BaseException:
            if self._is_current(ticket):
                self._session.image_loading = False
                self._session.phase = settled
            raise

        if not self._is_current(ticket):
            logger.info("Discarding stale illustration (ticket %d)", ticket)
            return
        s = self._session
        s.image = image
        s.image_loading = False
        s.phase = settled
        self._publish()
