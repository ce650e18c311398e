# Shared fixtures: a scripted story service and a settings factory that
# never reads the developer's .env file.

from __future__ import annotations

from typing import Any

import pytest

from adventure_weaver.core.settings import Settings

from fakes import HAUNTED_OPENING, STACKS_ENDING, FakeStoryClient


@pytest.fixture
def make_settings():
    def _make(**overrides: Any) -> Settings:
        values = {"api_key": "test-key", "_env_file": None}
        values.update(overrides)
        return Settings(**values)
    return _make


@pytest.fixture
def haunted_client() -> FakeStoryClient:
    return FakeStoryClient(initial=[HAUNTED_OPENING], next_scenes=[STACKS_ENDING])
