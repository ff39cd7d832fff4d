"""Test configuration for pytest."""
from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from lintfix.output import logger


@pytest.fixture(autouse=True)
def change_to_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, Any, None]:
    """Change to temporary directory for each test."""
    original_dir = os.getcwd()
    monkeypatch.chdir(tmp_path)
    yield
    os.chdir(original_dir)


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, Any, None]:
    """Clear lint-fix environment variables and logger state."""
    monkeypatch.delenv('ACC_LINT_COMMAND', raising=False)
    monkeypatch.delenv('ACC_LOG_LEVEL', raising=False)
    logger.configure()
    yield
    logger.configure()
