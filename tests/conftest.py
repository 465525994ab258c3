"""Shared fixtures.

The `app` directory is not installed in every checkout, so the repository root
is put on `sys.path` before tests import from it.
"""

import sys
from pathlib import Path
from typing import Iterator, List, Sequence

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from app.database import create_db_engine  # noqa: E402
from app.errors import PersistenceError  # noqa: E402
from app.persistence import SqlAlchemyPersistence  # noqa: E402
from app.schemas import StringRecord  # noqa: E402
from app.store import RecordStore  # noqa: E402


class FakePersistence:
    """In-memory persistence that records every save and can be told to fail."""

    def __init__(self, records: Sequence[StringRecord] = ()) -> None:
        self.records: List[StringRecord] = list(records)
        self.saves: List[List[StringRecord]] = []
        self.fail = False

    def load(self) -> List[StringRecord]:
        return list(self.records)

    def save(self, records: Sequence[StringRecord]) -> None:
        if self.fail:
            raise PersistenceError("disk full")
        self.records = list(records)
        self.saves.append(list(records))


@pytest.fixture
def fake_persistence() -> FakePersistence:
    return FakePersistence()


@pytest.fixture
def store(fake_persistence: FakePersistence) -> RecordStore:
    return RecordStore.open(fake_persistence)


@pytest.fixture
def sql_persistence(tmp_path: Path) -> Iterator[SqlAlchemyPersistence]:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'strings.db'}")
    persistence = SqlAlchemyPersistence(engine)
    persistence.create_schema()
    yield persistence
    engine.dispose()
