from __future__ import annotations
import json
import logging
import random
import re
from typing import Any, Dict, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import EvaluationFailure, GenerationFailure, MalformedResponse
from .gemini_client import GeminiError
from .prompts import (
    LLMRequest,
    build_evaluation_request,
    build_reading_request,
    build_writing_scenario_request,
)
from .schemas import ReadingExercise, WritingFeedback, WritingScenario

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class LLMClient(Protocol):
    async def generate(
        self,
        prompt: str,
        *,
        system_instruction: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> str: ...


def _extract_json_object(text: Optional[str]) -> Dict[str, Any]:
    if not text or not text.strip():
        raise MalformedResponse("Empty response from AI model")
    candidates = [text]
    code_block = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
    if code_block:
        candidates.append(code_block.group(1))
    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last != -1 and last > first:
        candidates.append(text[first : last + 1])
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    raise MalformedResponse("AI model did not return a valid JSON object")


def parse_response(text: Optional[str], model: Type[ModelT]) -> ModelT:
    data = _extract_json_object(text)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise MalformedResponse(f"AI response is missing or has invalid fields: {', '.join(fields)}") from exc


class ExerciseGenerator:
    """Runs the trainer's LLM calls; each returns a validated entity or raises."""

    def __init__(self, client: LLMClient, rng: Optional[random.Random] = None) -> None:
        self.client = client
        self._rng = rng or random.Random()

    async def _call(self, request: LLMRequest) -> str:
        return await self.client.generate(
            request.prompt,
            system_instruction=request.system_instruction,
            response_schema=request.response_schema,
        )

    async def reading_exercise(self, level: int) -> ReadingExercise:
        request = build_reading_request(level, self._rng)
        logger.info("Generating reading exercise for level %d %s", level, request.variables)
        try:
            exercise = parse_response(await self._call(request), ReadingExercise)
        except (GeminiError, MalformedResponse) as exc:
            logger.error("Failed to generate reading exercise: %s", exc)
            raise GenerationFailure(str(exc)) from exc
        logger.info("Reading exercise generated: %s", exercise.subject)
        return exercise

    async def writing_scenario(self, level: int) -> WritingScenario:
        request = build_writing_scenario_request(level, self._rng)
        logger.info("Generating writing scenario for level %d %s", level, request.variables)
        try:
            scenario = parse_response(await self._call(request), WritingScenario)
        except (GeminiError, MalformedResponse) as exc:
            logger.error("Failed to generate writing scenario: %s", exc)
            raise GenerationFailure(str(exc)) from exc
        logger.info("Writing scenario generated for %s", scenario.recipient_role)
        return scenario

    async def evaluate_writing(self, level: int, scenario: WritingScenario, draft: str) -> WritingFeedback:
        request = build_evaluation_request(level, scenario, draft)
        logger.info("Evaluating writing draft (%d characters)", len(draft))
        try:
            feedback = parse_response(await self._call(request), WritingFeedback)
        except (GeminiError, MalformedResponse) as exc:
            logger.error("Failed to evaluate writing: %s", exc)
            raise EvaluationFailure(str(exc)) from exc
        logger.info("Evaluation complete: score %d", feedback.score)
        return feedback
