"""
Player intents. Views return one of these; the GameRunner is the only
thing that acts on them.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class StartGame:
    theme: str


@dataclass(frozen=True)
class ChooseOption:
    choice: str


@dataclass(frozen=True)
class Restart:
    pass


Intent = Union[StartGame, ChooseOption, Restart]
