from __future__ import annotations
import logging
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from .generation import ExerciseGenerator
from .notifications import NotificationCenter
from .progress_store import ProgressStore
from .progression import dashboard_summary
from .sessions import ExerciseSession, ReadingSession, SessionCallbacks, WritingSession

logger = logging.getLogger(__name__)


class AppMode(str, Enum):
    DASHBOARD = "DASHBOARD"
    READING = "READING"
    WRITING = "WRITING"


class Trainer:
    """Application root: owns the progress, the notification banner and the one active session."""

    def __init__(
        self,
        store: ProgressStore,
        generator: ExerciseGenerator,
        notifications: Optional[NotificationCenter] = None,
        *,
        review_delay: Optional[float] = None,
    ) -> None:
        self.store = store
        self.generator = generator
        self.notifications = notifications or NotificationCenter()
        self.review_delay = review_delay
        self.mode = AppMode.DASHBOARD
        self.session: Optional[ExerciseSession] = None

    def _callbacks_for(self, session_id: str) -> SessionCallbacks:
        return SessionCallbacks(
            on_complete=lambda score: self._on_complete(session_id, score),
            on_exit=lambda: self._on_exit(session_id),
            on_error=self.notifications.post,
        )

    def _is_active(self, session_id: str) -> bool:
        return self.session is not None and self.session.session_id == session_id

    def _replace_session(self, session: ExerciseSession, mode: AppMode) -> None:
        if self.session is not None:
            logger.info("Replacing active %s session", self.session.kind.value)
            self.session.teardown()
        self.session = session
        self.mode = mode

    def start_reading(self) -> ReadingSession:
        """Open a reading session for the current level; the caller awaits ``load()``."""
        session_id = uuid.uuid4().hex
        session = ReadingSession(
            self.generator,
            self.store.get_progress().level,
            self._callbacks_for(session_id),
            session_id=session_id,
            review_delay=self.review_delay,
        )
        self._replace_session(session, AppMode.READING)
        return session

    def start_writing(self) -> WritingSession:
        session_id = uuid.uuid4().hex
        session = WritingSession(
            self.generator,
            self.store.get_progress().level,
            self._callbacks_for(session_id),
            session_id=session_id,
        )
        self._replace_session(session, AppMode.WRITING)
        return session

    def return_to_dashboard(self) -> None:
        if self.session is not None:
            self.session.exit()
        else:
            self.mode = AppMode.DASHBOARD

    def _on_complete(self, session_id: str, score: int) -> None:
        if not self._is_active(session_id):
            logger.warning("Ignoring completion from inactive session %s", session_id)
            return
        session = self.session
        self.store.apply_result(score, session.kind)
        session.teardown()
        self.session = None
        self.mode = AppMode.DASHBOARD

    def _on_exit(self, session_id: str) -> None:
        if self._is_active(session_id):
            self.session = None
            self.mode = AppMode.DASHBOARD

    def dashboard(self) -> Dict[str, Any]:
        data = dashboard_summary(self.store.get_progress())
        data["mode"] = self.mode.value
        return data
