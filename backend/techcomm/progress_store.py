"""
Progress Store

Holds the learner's single ProgressRecord for the lifetime of the process.
The record is read once when the store is built and written back in full after
every successful mutation. ``apply_result`` is the only mutation path.
"""

from __future__ import annotations
import logging
from typing import Callable, List

from pydantic import ValidationError

from .errors import PersistenceReadFailure
from .progression import apply_result
from .schemas import ExerciseKind, ProgressRecord
from .settings import settings
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

ProgressListener = Callable[[ProgressRecord], None]


def encode_progress(progress: ProgressRecord) -> str:
    return progress.model_dump_json(by_alias=True)


def decode_progress(raw: str | None) -> ProgressRecord:
    if raw is None:
        raise PersistenceReadFailure("no stored progress")
    try:
        return ProgressRecord.model_validate_json(raw)
    except ValidationError as exc:
        raise PersistenceReadFailure(f"stored progress is unreadable: {exc.error_count()} error(s)") from exc


class ProgressStore:
    def __init__(self, backend: KeyValueStore, *, key: str | None = None) -> None:
        self._backend = backend
        self._key = key or settings.progress_key
        self._listeners: List[ProgressListener] = []
        self._progress = self._load()

    def _load(self) -> ProgressRecord:
        try:
            progress = decode_progress(self._backend.get(self._key))
        except PersistenceReadFailure as exc:
            logger.warning("Falling back to default progress: %s", exc)
            return ProgressRecord()
        logger.info("Loaded progress: level %d, %d exercise(s)", progress.level, len(progress.history))
        return progress

    def get_progress(self) -> ProgressRecord:
        return self._progress

    def apply_result(self, score: int, kind: ExerciseKind) -> ProgressRecord:
        before = self._progress
        self._progress = apply_result(before, score, kind)
        logger.info(
            "Recorded %s score %d: level %d -> %d, experience %d",
            kind.value, score, before.level, self._progress.level, self._progress.experience,
        )
        self._persist()
        for listener in list(self._listeners):
            listener(self._progress)
        return self._progress

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _persist(self) -> None:
        # Write failures are logged; the in-memory record stays authoritative
        try:
            self._backend.set(self._key, encode_progress(self._progress))
        except Exception:
            logger.exception("Failed to persist progress")
