from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.archive_builder import ArchiveBuilder
from tests._fixtures.hub_stub import FakeClock


@pytest.fixture
def archive_builder(tmp_path: Path) -> ArchiveBuilder:
    """Provide a reusable archive builder rooted at the pytest tmp_path."""
    return ArchiveBuilder(tmp_path)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
