from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

# ——— Provider payload ——————————————————————————————————

class Scene(BaseModel):
    """
    One narrative beat as produced by the story provider: what the player
    sees, what to draw, and what they may do next.
    """
    scene_description: str = Field(..., alias="sceneDescription", min_length=1)
    image_prompt: str = Field("", alias="imagePrompt")
    choices: List[str] = Field(default_factory=list)
    game_over: bool = Field(False, alias="gameOver")
    game_over_message: Optional[str] = Field(None, alias="gameOverMessage")

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("scene_description")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("scene description is blank")
        return v.strip()

    @field_validator("image_prompt", mode="before")
    @classmethod
    def _prompt_or_empty(cls, v):
        return (v or "").strip()

    @field_validator("choices")
    @classmethod
    def _drop_empty_choices(cls, v: List[str]) -> List[str]:
        return [c.strip() for c in v if c and c.strip()]

    @model_validator(mode="after")
    def _playable(self) -> "Scene":
        # an unfinished story must leave the player something to do
        if not self.game_over and not self.choices:
            raise ValueError("scene offers no choices but the game is not over")
        return self

# ——— Session state —————————————————————————————————————

class Phase(str, Enum):
    NO_CREDENTIALS = "no_credentials"
    NOT_STARTED = "not_started"
    AWAITING_TEXT = "awaiting_text"
    AWAITING_IMAGE = "awaiting_image"
    PLAYING = "playing"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class StoryLogEntry:
    kind: Literal["scene", "choice"]
    text: str


@dataclass
class Session:
    """
    Mutable session record. Only the GameRunner touches it; everybody else
    sees a SessionView.
    """
    phase: Phase = Phase.NOT_STARTED
    scene: Optional[Scene] = None
    image: Optional[str] = None
    story_log: List[str] = field(default_factory=list)      # scene descriptions, for context
    journal: List[StoryLogEntry] = field(default_factory=list)
    text_loading: bool = False
    image_loading: bool = False
    error: Optional[str] = None
    image_notice: Optional[str] = None
    game_started: bool = False
    credentials_present: bool = True

    def view(self) -> "SessionView":
        return SessionView(
            phase=self.phase,
            scene=self.scene,
            image=self.image,
            story_log=tuple(self.story_log),
            journal=tuple(self.journal),
            text_loading=self.text_loading,
            image_loading=self.image_loading,
            error=self.error,
            image_notice=self.image_notice,
            game_started=self.game_started,
            credentials_present=self.credentials_present,
        )


@dataclass(frozen=True)
class SessionView:
    phase: Phase
    scene: Optional[Scene]
    image: Optional[str]
    story_log: Tuple[str, ...]
    journal: Tuple[StoryLogEntry, ...]
    text_loading: bool
    image_loading: bool
    error: Optional[str]
    image_notice: Optional[str]
    game_started: bool
    credentials_present: bool

    @property
    def choices(self) -> Tuple[str, ...]:
        """Choices the player may pick right now; none once the story has ended."""
        if self.scene is None or self.scene.game_over:
            return ()
        return tuple(self.scene.choices)

    @property
    def accepts_choice(self) -> bool:
        return (
            self.phase in (Phase.PLAYING, Phase.AWAITING_IMAGE)
            and not self.text_loading
            and bool(self.choices)
        )
