"""
Exercise Sessions

One reading or writing attempt, from content generation to the final score.

Lifecycle::

    LOADING -> READY -> SUBMITTED -> FINISHED            (reading)
    LOADING -> READY -> SUBMITTED -> GRADED -> FINISHED  (writing)
    LOADING -> FAILED -> (retry) LOADING

Each session keeps a generation counter. Every awaited LLM call remembers the
generation it was issued under and its result is dropped when the counter has
moved on, which happens on retry and on teardown. A session that was left
(or replaced by a newer one) therefore never applies a late response.
"""

from __future__ import annotations
import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .errors import EvaluationFailure, GenerationFailure, SessionStateError
from .generation import ExerciseGenerator
from .schemas import ExerciseKind, ReadingExercise, ReadingQuestion, WritingFeedback, WritingScenario
from .scoring import reading_score
from .settings import settings

logger = logging.getLogger(__name__)

MIN_DRAFT_LENGTH = 10


class SessionStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    SUBMITTED = "submitted"
    GRADED = "graded"
    FINISHED = "finished"
    FAILED = "failed"


@dataclass
class SessionCallbacks:
    on_complete: Callable[[int], None]
    on_exit: Callable[[], None]
    on_error: Callable[[str], None]


class ExerciseSession:
    kind: ExerciseKind
    load_error_prefix = "Could not load exercise"

    def __init__(
        self,
        generator: ExerciseGenerator,
        level: int,
        callbacks: SessionCallbacks,
        *,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self.level = level
        self.status = SessionStatus.LOADING
        self.error: Optional[str] = None
        self.closed = False
        self._generator = generator
        self._callbacks = callbacks
        self._generation = 0

    def _is_current(self, generation: int) -> bool:
        return not self.closed and generation == self._generation

    def _require(self, *allowed: SessionStatus) -> None:
        if self.closed:
            raise SessionStateError("session has ended")
        if self.status not in allowed:
            raise SessionStateError(f"not allowed while session is {self.status.value}")

    async def load(self) -> None:
        """Request content for this session's level.

        Valid for a fresh session and for a FAILED one (learner retry).
        """
        if self._generation > 0 or self.status is not SessionStatus.LOADING:
            self._require(SessionStatus.FAILED)
        self._generation += 1
        generation = self._generation
        self.status = SessionStatus.LOADING
        self.error = None
        try:
            content = await self._fetch()
        except GenerationFailure as exc:
            if not self._is_current(generation):
                logger.info("Discarding failed load for stale session %s", self.session_id)
                return
            self.status = SessionStatus.FAILED
            self.error = f"{self.load_error_prefix}: {exc}"
            self._callbacks.on_error(self.error)
            return
        except Exception:
            if self._is_current(generation):
                self.status = SessionStatus.FAILED
                self.error = f"{self.load_error_prefix}: unexpected error"
            logger.exception("Unexpected error loading session %s", self.session_id)
            raise
        if not self._is_current(generation):
            logger.info("Discarding late content for stale session %s", self.session_id)
            return
        self._accept(content)
        self.status = SessionStatus.READY

    def teardown(self) -> None:
        """Close the session without reporting anything upward."""
        if self.closed:
            return
        self.closed = True
        self._generation += 1
        self._cancel_timers()

    def exit(self) -> None:
        if self.closed:
            return
        self.teardown()
        self._callbacks.on_exit()

    def _finish(self, score: int) -> None:
        self.status = SessionStatus.FINISHED
        self._cancel_timers()
        self._callbacks.on_complete(score)

    async def _fetch(self) -> Any:
        raise NotImplementedError

    def _accept(self, content: Any) -> None:
        raise NotImplementedError

    def _cancel_timers(self) -> None:
        pass

    def snapshot(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "kind": self.kind.value,
            "status": self.status.value,
            "level": self.level,
            "error": self.error,
        }


# ============================================================================
# READING
# ============================================================================

class ReadingSession(ExerciseSession):
    kind = ExerciseKind.READING
    load_error_prefix = "Could not generate reading task"

    def __init__(
        self,
        generator: ExerciseGenerator,
        level: int,
        callbacks: SessionCallbacks,
        *,
        session_id: Optional[str] = None,
        review_delay: Optional[float] = None,
    ) -> None:
        super().__init__(generator, level, callbacks, session_id=session_id)
        self.review_delay = settings.reading_review_delay_seconds if review_delay is None else review_delay
        self.exercise: Optional[ReadingExercise] = None
        self.answers: List[Optional[int]] = []
        self.score: Optional[int] = None
        self._review_timer: Optional[asyncio.TimerHandle] = None

    async def _fetch(self) -> ReadingExercise:
        return await self._generator.reading_exercise(self.level)

    def _accept(self, content: ReadingExercise) -> None:
        self.exercise = content
        self.answers = [None] * len(content.questions)

    def _questions(self) -> List[ReadingQuestion]:
        if self.exercise is None:
            raise SessionStateError("no exercise has been loaded")
        return self.exercise.questions

    def select(self, question_index: int, option_index: int) -> None:
        self._require(SessionStatus.READY)
        questions = self._questions()
        if not 0 <= question_index < len(questions):
            raise SessionStateError(f"no question {question_index}")
        if not 0 <= option_index < len(questions[question_index].options):
            raise SessionStateError(f"question {question_index} has no option {option_index}")
        self.answers[question_index] = option_index

    @property
    def can_submit(self) -> bool:
        return self.status is SessionStatus.READY and bool(self.answers) and None not in self.answers

    def correct_count(self) -> int:
        return sum(
            1
            for question, answer in zip(self._questions(), self.answers)
            if answer == question.correct_option_index
        )

    def submit(self) -> int:
        """Freeze the answers, score them and start the review countdown.

        Must be called from a running event loop.
        """
        self._require(SessionStatus.READY)
        if not self.can_submit:
            raise SessionStateError("every question needs an answer before submitting")
        self.score = reading_score(self.correct_count(), len(self._questions()))
        self.status = SessionStatus.SUBMITTED
        generation = self._generation
        loop = asyncio.get_running_loop()
        self._review_timer = loop.call_later(self.review_delay, self._end_review, generation)
        return self.score

    def _end_review(self, generation: int) -> None:
        self._review_timer = None
        if not self._is_current(generation) or self.status is not SessionStatus.SUBMITTED or self.score is None:
            return
        self._finish(self.score)

    def _cancel_timers(self) -> None:
        if self._review_timer is not None:
            self._review_timer.cancel()
            self._review_timer = None

    def snapshot(self) -> Dict[str, Any]:
        data = super().snapshot()
        revealed = self.status in (SessionStatus.SUBMITTED, SessionStatus.FINISHED)
        exercise = None
        if self.exercise is not None:
            questions = []
            for index, question in enumerate(self.exercise.questions):
                item: Dict[str, Any] = {
                    "question": question.prompt,
                    "options": question.options,
                    "selected": self.answers[index],
                }
                if revealed:
                    item["correctIndex"] = question.correct_option_index
                    item["isCorrect"] = self.answers[index] == question.correct_option_index
                    item["explanation"] = question.explanation
                questions.append(item)
            exercise = {
                "subject": self.exercise.subject,
                "sender": self.exercise.sender,
                "body": self.exercise.body,
                "questions": questions,
            }
        data.update({"exercise": exercise, "canSubmit": self.can_submit, "score": self.score})
        return data


# ============================================================================
# WRITING
# ============================================================================

class WritingSession(ExerciseSession):
    kind = ExerciseKind.WRITING
    load_error_prefix = "Could not generate scenario"

    def __init__(
        self,
        generator: ExerciseGenerator,
        level: int,
        callbacks: SessionCallbacks,
        *,
        session_id: Optional[str] = None,
    ) -> None:
        super().__init__(generator, level, callbacks, session_id=session_id)
        self.scenario: Optional[WritingScenario] = None
        self.draft = ""
        self.feedback: Optional[WritingFeedback] = None

    async def _fetch(self) -> WritingScenario:
        return await self._generator.writing_scenario(self.level)

    def _accept(self, content: WritingScenario) -> None:
        self.scenario = content

    def update_draft(self, text: str) -> None:
        self._require(SessionStatus.READY)
        self.draft = text

    @property
    def can_submit(self) -> bool:
        return self.status is SessionStatus.READY and len(self.draft.strip()) >= MIN_DRAFT_LENGTH

    async def submit(self) -> Optional[WritingFeedback]:
        """Send the draft for grading.

        On failure the session goes back to READY with the draft untouched and
        the error is reported; the learner may edit and submit again.
        """
        self._require(SessionStatus.READY)
        if not self.can_submit or self.scenario is None:
            raise SessionStateError(f"the draft needs at least {MIN_DRAFT_LENGTH} characters")
        generation = self._generation
        self.status = SessionStatus.SUBMITTED
        self.error = None
        try:
            feedback = await self._generator.evaluate_writing(self.level, self.scenario, self.draft)
        except EvaluationFailure as exc:
            if not self._is_current(generation):
                return None
            self.status = SessionStatus.READY
            self.error = f"AI Analysis Error: {exc}"
            self._callbacks.on_error(self.error)
            return None
        except Exception:
            # draft stays editable
            if self._is_current(generation):
                self.status = SessionStatus.READY
            logger.exception("Unexpected error evaluating draft for session %s", self.session_id)
            raise
        if not self._is_current(generation):
            logger.info("Discarding late evaluation for stale session %s", self.session_id)
            return None
        self.feedback = feedback
        self.status = SessionStatus.GRADED
        return feedback

    def finalize(self) -> int:
        self._require(SessionStatus.GRADED)
        if self.feedback is None:
            raise SessionStateError("no feedback to finalize")
        score = self.feedback.score
        self._finish(score)
        return score

    def snapshot(self) -> Dict[str, Any]:
        data = super().snapshot()
        data.update(
            {
                "scenario": self.scenario.model_dump(by_alias=True) if self.scenario else None,
                "draft": self.draft,
                "canSubmit": self.can_submit,
                "feedback": self.feedback.model_dump(by_alias=True) if self.feedback else None,
            }
        )
        return data
