from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture
def env_file(tmp_path: Path) -> Callable[[str], Path]:
    """Write `.env` content under tmp_path and return its path."""

    def _write(content: str, name: str = ".env") -> Path:
        path = tmp_path / name
        path.write_bytes(content.encode("utf-8"))
        return path

    return _write
