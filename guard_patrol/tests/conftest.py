"""Shared fixtures for the guard patrol tests."""

from __future__ import annotations

import logging
from typing import Generator

import pytest


@pytest.fixture(autouse=True)
def restore_root_logger() -> Generator[None, None, None]:
    # The CLI reconfigures the root logger; keep tests isolated from that.
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
