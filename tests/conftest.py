import io
from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image

from src.adapters.clock import FrozenClock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteLibraryRepo

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Temporary SQLite database with all migrations applied."""
    path = str(tmp_path / "library.db")
    SQLiteMigrator(path, PROJECT_ROOT / "migrations").run_migrations()
    return path


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def sqlite_repo(db_path: str, clock: FrozenClock) -> SQLiteLibraryRepo:
    return SQLiteLibraryRepo(db_path, clock=clock, public_base_url="/media")


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """Factory for encoded test images."""

    def _make(
        size: tuple[int, int] = (120, 80),
        color: tuple[int, int, int] = (90, 110, 130),
        fmt: str = "PNG",
    ) -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", size, color).save(buffer, format=fmt)
        return buffer.getvalue()

    return _make
