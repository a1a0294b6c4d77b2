from datetime import UTC, datetime

from courseplayer.progress import (
    LessonProgress,
    ModuleProgress,
    ProgressStore,
    TopicProgress,
    UserProgress,
)
from courseplayer.storage import RecordStore


def _sample_progress() -> UserProgress:
    stamp = datetime(2026, 2, 3, 4, 5, 6, tzinfo=UTC)
    return UserProgress(
        course_id="demo",
        total_points=26,
        last_accessed_at=stamp,
        topics={
            "t1": TopicProgress(
                topic_id="t1",
                completed=True,
                lessons={
                    "l1": LessonProgress(
                        lesson_id="l1",
                        completed=True,
                        modules={
                            "m-info": ModuleProgress(
                                module_id="m-info", completed=True, points_earned=10, completed_at=stamp
                            ),
                            "m-quiz": ModuleProgress(
                                module_id="m-quiz", completed=True, score=80, points_earned=16, completed_at=stamp
                            ),
                        },
                    )
                },
            )
        },
    )


def test_load_returns_empty_record_when_missing(records: RecordStore, clock) -> None:
    store = ProgressStore(records, "demo", clock=clock)
    progress = store.load()
    assert progress.course_id == "demo"
    assert progress.topics == {}
    assert progress.total_points == 0
    assert progress.last_accessed_at == clock.now


def test_save_then_load_round_trip(records: RecordStore) -> None:
    store = ProgressStore(records, "demo")
    saved = _sample_progress()
    store.save(saved)
    assert store.load() == saved


def test_round_trip_survives_reopen(tmp_path) -> None:
    db_path = tmp_path / "progress.db"
    first = RecordStore(db_path)
    ProgressStore(first, "demo").save(_sample_progress())
    first.close()

    second = RecordStore(db_path)
    try:
        assert ProgressStore(second, "demo").load() == _sample_progress()
    finally:
        second.close()


def test_malformed_json_loads_as_empty(records: RecordStore, caplog) -> None:
    store = ProgressStore(records, "demo")
    records.put(store.key, "{not json")
    with caplog.at_level("WARNING"):
        progress = store.load()
    assert progress.topics == {}
    assert "malformed" in caplog.text


def test_wrong_shape_loads_as_empty(records: RecordStore) -> None:
    store = ProgressStore(records, "demo")
    records.put(store.key, '{"course_id": "demo", "topics": [], "total_points": "lots"}')
    assert store.load().total_points == 0
    records.put(store.key, "[1, 2, 3]")
    assert store.load().topics == {}


def test_naive_timestamp_loads_as_empty(records: RecordStore) -> None:
    store = ProgressStore(records, "demo")
    records.put(store.key, '{"course_id": "demo", "topics": {}, "total_points": 5, "last_accessed_at": "2025-01-01T00:00:00"}')
    assert store.load().total_points == 0


def test_out_of_range_score_loads_as_empty(records: RecordStore) -> None:
    store = ProgressStore(records, "demo")
    data = _sample_progress()
    payload = data.model_dump_json().replace('"score":80', '"score":180')
    records.put(store.key, payload)
    assert store.load().total_points == 0


def test_record_for_other_course_is_ignored(records: RecordStore) -> None:
    other = ProgressStore(records, "demo")
    other.save(_sample_progress())
    records.put("user_progress:other", records.get(other.key))
    assert ProgressStore(records, "other").load().total_points == 0


def test_progress_is_keyed_by_course(records: RecordStore) -> None:
    ProgressStore(records, "demo").save(_sample_progress())
    assert ProgressStore(records, "another").load().topics == {}
    assert ProgressStore(records, "demo").load().total_points == 26


def test_reset_deletes_record(records: RecordStore) -> None:
    store = ProgressStore(records, "demo")
    store.save(_sample_progress())
    store.reset()
    assert store.load().total_points == 0
    assert records.get(store.key) is None
    store.reset()


def test_lookup_helpers(records: RecordStore) -> None:
    progress = _sample_progress()
    assert progress.get_topic_progress("t1").completed is True
    assert progress.get_topic_progress("t9") is None
    assert progress.get_lesson_progress("t1", "l9") is None
    assert progress.get_lesson_progress("t9", "l1") is None
    assert progress.get_module_progress("t1", "l1", "m-quiz").score == 80
    assert progress.get_module_progress("t1", "l1", "m9") is None
    assert progress.is_module_completed("t1", "l1", "m-info") is True
    assert progress.is_module_completed("t1", "l1", "m9") is False
    assert progress.is_lesson_completed("t1", "l2") is False


def test_ensure_lesson_creates_parents() -> None:
    progress = UserProgress(course_id="demo", last_accessed_at=datetime.now(UTC))
    lesson = progress.ensure_lesson("t1", "l1")
    assert lesson.lesson_id == "l1"
    assert progress.topics["t1"].lessons["l1"] is lesson
    assert progress.ensure_lesson("t1", "l1") is lesson
