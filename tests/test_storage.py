import sqlite3
from pathlib import Path

import pytest

from courseplayer.storage import SCHEMA_VERSION, RecordStore


def test_put_get_delete(records: RecordStore) -> None:
    assert records.get("k") is None
    records.put("k", '{"a": 1}')
    assert records.get("k") == '{"a": 1}'
    records.put("k", '{"a": 2}')
    assert records.get("k") == '{"a": 2}'
    assert records.delete("k") is True
    assert records.get("k") is None
    assert records.delete("k") is False


def test_migration_sets_user_version(records: RecordStore) -> None:
    version = int(records._conn.execute("PRAGMA user_version").fetchone()[0])  # noqa: SLF001
    assert version == SCHEMA_VERSION


def test_path_database_creation(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "progress.db"
    store = RecordStore(db_path)
    store.put("k", "v")
    store.close()
    assert db_path.exists()


def test_two_stores_on_one_file_share_committed_writes(tmp_path: Path) -> None:
    db_path = tmp_path / "shared.db"
    first = RecordStore(db_path)
    second = RecordStore(db_path)
    try:
        first.put("k", "from-first")
        assert second.get("k") == "from-first"
        second.put("k", "from-second")
        assert first.get("k") == "from-second"
    finally:
        first.close()
        second.close()


def test_newer_schema_version_is_rejected(tmp_path: Path) -> None:
    db_path = tmp_path / "future.db"
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION + 1}")
        conn.commit()
    finally:
        conn.close()

    with pytest.raises(RuntimeError, match="newer than supported"):
        RecordStore(db_path)


def test_write_failure_propagates(records: RecordStore) -> None:
    records.close()
    with pytest.raises(sqlite3.ProgrammingError):
        records.put("k", "v")
