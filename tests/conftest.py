"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

import random

import pytest

from src.core.config import EngineSettings
from src.services.game_session import GameSession
from src.services.scheduling import ManualScheduler


@pytest.fixture
def engine_settings() -> EngineSettings:
    """Computer plays black, without pacing delay, and with a fixed seed so random picks repeat."""
    return EngineSettings(ai_thinking_delay=0.0, random_seed=1234)


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Deferred computer moves only run when the test calls `run_pending()`"""
    return ManualScheduler()


@pytest.fixture
def session(engine_settings: EngineSettings, scheduler: ManualScheduler) -> GameSession:
    return GameSession(
        settings=engine_settings, scheduler=scheduler, rng=random.Random(1234)
    )
