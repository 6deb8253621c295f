"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def strata_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Any:
    """Config rooted in a temporary directory with fixture schemas."""
    from core.config import StrataConfig
    from tests.fixture_paths import schema_fixture_dir

    monkeypatch.delenv("STRATA_TABLE_ROOT", raising=False)
    monkeypatch.delenv("STRATA_BATCH_TIMEOUT_SECONDS", raising=False)
    config = StrataConfig.from_env()
    return replace(
        config,
        data_root=tmp_path,
        schema_dir=schema_fixture_dir(),
        table_root=None,
        batch_timeout_seconds=None,
    )
