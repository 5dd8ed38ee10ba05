from __future__ import annotations

import os
from pathlib import Path

import pytest

from threadforge._config import CONFIG_DIR_ENV
from threadforge.modeling import clear_thread_cache

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def pytest_configure():
    os.environ.setdefault("PYVISTA_OFF_SCREEN", "true")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    config_dir = tmp_path / "threadforge-config"
    monkeypatch.setenv(CONFIG_DIR_ENV, str(config_dir))
    return config_dir


@pytest.fixture(autouse=True)
def fresh_thread_cache():
    clear_thread_cache()
    yield
    clear_thread_cache()


@pytest.fixture
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture
def examples_dir(project_root: Path) -> Path:
    return project_root / "docs" / "examples" / "threading"
