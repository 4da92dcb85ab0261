import asyncio

from conftest import (
    FEEDBACK_PAYLOAD,
    READING_PAYLOAD,
    SCENARIO_PAYLOAD,
    FakeClient,
    MemoryKeyValueStore,
    as_json,
    make_trainer,
)
from techcomm.gemini_client import GeminiError
from techcomm.progress_store import decode_progress, encode_progress
from techcomm.schemas import ExerciseKind, ProgressRecord
from techcomm.sessions import SessionStatus
from techcomm.trainer import AppMode


def test_reading_completion_updates_progress_and_returns_to_dashboard() -> None:
    backend = MemoryKeyValueStore({"techcomm-user": encode_progress(ProgressRecord(level=5, experience=90))})
    trainer = make_trainer(FakeClient(as_json(READING_PAYLOAD)), backend)

    async def scenario() -> None:
        session = trainer.start_reading()
        assert trainer.mode is AppMode.READING
        assert session.level == 5
        await session.load()
        session.select(0, 0)
        session.select(1, 1)
        session.select(2, 3)
        session.submit()
        await asyncio.sleep(0.02)

    asyncio.run(scenario())

    progress = trainer.store.get_progress()
    assert trainer.mode is AppMode.DASHBOARD
    assert trainer.session is None
    # 67 -> 101 xp: one level, one point left over
    assert progress.level == 6
    assert progress.experience == 91
    assert progress.history[-1].kind is ExerciseKind.READING
    assert progress.history[-1].level_at_completion == 5
    assert decode_progress(backend.data["techcomm-user"]) == progress


def test_writing_completion_updates_progress() -> None:
    trainer = make_trainer(FakeClient(as_json(SCENARIO_PAYLOAD), as_json(FEEDBACK_PAYLOAD)))

    async def scenario() -> None:
        session = trainer.start_writing()
        await session.load()
        session.update_draft("The refactor needs two more days of review.")
        await session.submit()
        session.finalize()

    asyncio.run(scenario())

    progress = trainer.store.get_progress()
    assert trainer.mode is AppMode.DASHBOARD
    assert progress.level == 2
    assert progress.experience == 20
    assert [r.kind for r in progress.history] == [ExerciseKind.WRITING]


def test_load_failure_posts_notification_and_keeps_session() -> None:
    trainer = make_trainer(FakeClient(GeminiError("HTTP 500")))

    async def scenario() -> None:
        session = trainer.start_reading()
        await session.load()
        assert session.status is SessionStatus.FAILED

    asyncio.run(scenario())

    note = trainer.notifications.current()
    assert note is not None
    assert note.message == "Could not generate reading task: HTTP 500"
    assert trainer.mode is AppMode.READING

    trainer.return_to_dashboard()
    assert trainer.mode is AppMode.DASHBOARD
    assert trainer.session is None
    assert trainer.store.get_progress().history == []


def test_replaced_session_cannot_apply_late_result() -> None:
    trainer = make_trainer(FakeClient())

    async def scenario() -> None:
        gate = asyncio.Event()

        async def slow_reading() -> str:
            await gate.wait()
            return as_json(READING_PAYLOAD)

        trainer.generator.client.queue(slow_reading, as_json(SCENARIO_PAYLOAD))
        reading = trainer.start_reading()
        pending = asyncio.create_task(reading.load())
        await asyncio.sleep(0)

        writing = trainer.start_writing()
        await writing.load()
        gate.set()
        await pending

        assert reading.closed
        assert reading.exercise is None
        assert trainer.session is writing
        assert trainer.mode is AppMode.WRITING

    asyncio.run(scenario())
    assert trainer.store.get_progress().history == []


def test_dashboard_reports_mode_and_tier() -> None:
    trainer = make_trainer(FakeClient())
    data = trainer.dashboard()
    assert data["mode"] == "DASHBOARD"
    assert data["level"] == 1
    assert data["tier"] == "Beginner (Basic Communication)"
    assert data["progressPercent"] == 0
    assert data["recentActivity"] == []
