import os
import random
import sys

import pytest

# Headless pygame for every test
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

# Allow direct imports from the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ai.persistence import PlayerProfile  # noqa: E402
from systems.scheduler import Scheduler  # noqa: E402


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def profile(tmp_path):
    return PlayerProfile(path=str(tmp_path / "profile.json"), autosave=False, load=False)


@pytest.fixture
def scheduler():
    return Scheduler()
