# conftest.py

import os

# Render into an off-screen buffer so the pygame tests run without a display.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
