from __future__ import annotations
import math
from datetime import datetime
from enum import Enum
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .level_policy import MAX_LEVEL, MIN_LEVEL, XP_PER_LEVEL
from .scoring import round_half_up


class ExerciseKind(str, Enum):
    READING = "reading"
    WRITING = "writing"


# ============================================================================
# PERSISTED PROGRESS
# ============================================================================

class ExerciseRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    kind: ExerciseKind
    score: int = Field(ge=0, le=100)
    completed_at: datetime = Field(alias="completedAt")
    # Level before this exercise was scored
    level_at_completion: int = Field(alias="levelAtCompletion", ge=MIN_LEVEL, le=MAX_LEVEL)


class ProgressRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    level: int = Field(default=MIN_LEVEL, ge=MIN_LEVEL, le=MAX_LEVEL)
    experience: int = Field(default=0, ge=0)
    experience_to_next_level: int = Field(default=XP_PER_LEVEL, gt=0, alias="experienceToNextLevel")
    history: List[ExerciseRecord] = Field(default_factory=list)


# ============================================================================
# LLM OUTPUT CONTRACTS
# ============================================================================
# Field aliases are the JSON keys the model is asked to produce.

class _LLMModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class ReadingQuestion(_LLMModel):
    prompt: str = Field(alias="question")
    options: List[str] = Field(min_length=2)
    correct_option_index: int = Field(alias="correctIndex")
    explanation: str

    @model_validator(mode="after")
    def _index_in_range(self) -> "ReadingQuestion":
        if not 0 <= self.correct_option_index < len(self.options):
            raise ValueError(
                f"correctIndex {self.correct_option_index} is outside 0..{len(self.options) - 1}"
            )
        return self


class ReadingExercise(_LLMModel):
    subject: str
    sender: str
    body: str
    questions: List[ReadingQuestion] = Field(min_length=1)


class WritingScenario(_LLMModel):
    context: str
    recipient_role: str = Field(alias="recipientRole")
    goal: str
    key_points: List[str] = Field(alias="keyPoints")


class WritingFeedback(_LLMModel):
    score: int
    critique: str
    improved_version: str = Field(alias="improvedVersion")
    grammar_mistakes: List[str] = Field(alias="grammarMistakes")

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> Any:
        # Models occasionally answer 87.5 or 105; keep the score on the 0..100 scale
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return value
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("score must be a finite number")
        return round_half_up(min(max(value, 0), 100))
