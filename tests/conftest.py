import os

import pytest


@pytest.fixture(autouse=True)
def _clear_bridgegen_env(monkeypatch):
    # Generator options read BRIDGEGEN_* overrides from the process environment.
    for key in list(os.environ):
        if key.startswith("BRIDGEGEN_"):
            monkeypatch.delenv(key)
    yield
