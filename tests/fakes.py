# Scripted stand-ins for the story service, shared by the test modules.

from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from adventure_weaver.core.models import Scene

HAUNTED_OPENING = Scene(
    sceneDescription="You stand before a library...",
    imagePrompt="a haunted library exterior",
    choices=["Enter", "Walk away"],
    gameOver=False,
)

STACKS_ENDING = Scene(
    sceneDescription="The doors slam shut behind you.",
    imagePrompt="endless shelves in darkness",
    choices=[],
    gameOver=True,
    gameOverMessage="You vanish into the stacks forever.",
)

FAKE_IMAGE = "data:image/png;base64,iVBORw0KGgo="


class FakeStoryClient:
    """
    Pops scripted replies in order. An exception in a queue is raised
    instead of returned; an empty image queue yields FAKE_IMAGE.
    """

    def __init__(self, initial: Sequence[Any] = (), next_scenes: Sequence[Any] = (), images: Sequence[Any] = ()):
        self.initial: List[Any] = list(initial)
        self.next_scenes: List[Any] = list(next_scenes)
        self.images: List[Any] = list(images)
        self.calls: List[Tuple] = []

    @staticmethod
    def _pop(queue: List[Any], default: Any = None) -> Any:
        item = queue.pop(0) if queue else default
        if isinstance(item, BaseException):
            raise item
        if item is None:
            raise AssertionError("no scripted reply left")
        return item

    async def get_initial_scene(self, theme: str) -> Scene:
        self.calls.append(("initial", theme))
        return self._pop(self.initial)

    async def get_next_scene(self, current_scene: str, chosen_action: str, prior_scenes: Sequence[str]) -> Scene:
        self.calls.append(("next", current_scene, chosen_action, list(prior_scenes)))
        return self._pop(self.next_scenes)

    async def generate_image(self, prompt: str) -> str:
        self.calls.append(("image", prompt))
        return self._pop(self.images, FAKE_IMAGE)

    def calls_of(self, kind: str) -> List[Tuple]:
        return [c for c in self.calls if c[0] == kind]
