"""Exception types shared by the trainer services.

LLM failures are split by the step that produced them: content generation
(reading exercise, writing scenario) abandons the session, while evaluation of
a writing draft is recoverable. ``MalformedResponse`` is raised by the parser
and always re-raised as one of those two, never surfaced on its own.
"""

from __future__ import annotations


class TrainerError(Exception):
	"""Base class for every error raised by the trainer core."""


class GenerationFailure(TrainerError):
	"""A reading exercise or writing scenario could not be produced."""


class EvaluationFailure(TrainerError):
	"""A submitted writing draft could not be graded."""


class MalformedResponse(TrainerError):
	"""LLM output was empty, not JSON, or missing required fields."""


class PersistenceReadFailure(TrainerError):
	"""Stored progress is absent or cannot be decoded."""


class SessionStateError(TrainerError):
	"""An action is not allowed in the session's current state."""
