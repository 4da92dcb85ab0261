from __future__ import annotations

import json
import random
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import pytest

from techcomm.generation import ExerciseGenerator
from techcomm.notifications import NotificationCenter
from techcomm.progress_store import ProgressStore
from techcomm.sessions import SessionCallbacks
from techcomm.trainer import Trainer

READING_PAYLOAD: Dict[str, Any] = {
    "subject": "Checkout API latency above SLO",
    "sender": "Mike, Backend Lead",
    "body": "Hi all, p99 latency on /checkout jumped to 2.3s after the 14:00 deploy. "
    "Please pause merges until we roll back. I'll share a postmortem tomorrow.",
    "questions": [
        {
            "question": "What happened after the deploy?",
            "options": ["Latency increased", "Errors dropped", "Traffic doubled", "Nothing"],
            "correctIndex": 0,
            "explanation": "デプロイ後にレイテンシが上がったと書かれています。",
        },
        {
            "question": "What should the team do now?",
            "options": ["Merge quickly", "Pause merges", "Delete the service", "Add servers"],
            "correctIndex": 1,
            "explanation": "マージを止めるよう依頼しています。",
        },
        {
            "question": "When will the postmortem be shared?",
            "options": ["Today", "Next week", "Tomorrow", "Never"],
            "correctIndex": 2,
            "explanation": "明日共有すると書かれています。",
        },
    ],
}

SCENARIO_PAYLOAD: Dict[str, Any] = {
    "context": "Your lead asks: 'Can the payment refactor land before Friday?'",
    "recipientRole": "Tech Lead",
    "goal": "金曜日までは難しいと伝え、代わりの日程を提案する",
    "keyPoints": ["レビューがまだ終わっていない", "来週火曜日なら可能"],
}

FEEDBACK_PAYLOAD: Dict[str, Any] = {
    "score": 80,
    "critique": "丁寧に書けています。例文: 'Would Tuesday work for you?'",
    "improvedVersion": "Hi Alex, the refactor won't be ready by Friday. Would Tuesday work for you?",
    "grammarMistakes": ["'can not' は 'cannot' です。"],
}

Response = Union[str, Exception, Callable[[], Awaitable[str]]]


class FakeClient:
    """Stands in for GeminiClient; replays queued responses in order."""

    def __init__(self, *responses: Response) -> None:
        self.responses: List[Response] = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *responses: Response) -> None:
        self.responses.extend(responses)

    async def generate(
        self,
        prompt: str,
        *,
        system_instruction: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> str:
        self.calls.append(
            {"prompt": prompt, "system_instruction": system_instruction, "response_schema": response_schema}
        )
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return await item()
        return item


class MemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.writes += 1
        self.data[key] = value


class Recorder:
    def __init__(self) -> None:
        self.completed: List[int] = []
        self.exits = 0
        self.errors: List[str] = []

    def callbacks(self) -> SessionCallbacks:
        return SessionCallbacks(on_complete=self.completed.append, on_exit=self._exit, on_error=self.errors.append)

    def _exit(self) -> None:
        self.exits += 1


def as_json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False)


def make_generator(client: FakeClient) -> ExerciseGenerator:
    return ExerciseGenerator(client, random.Random(7))


def make_trainer(client: FakeClient, backend: Optional[MemoryKeyValueStore] = None) -> Trainer:
    store = ProgressStore(backend or MemoryKeyValueStore(), key="techcomm-user")
    return Trainer(store, make_generator(client), NotificationCenter(lifetime=10.0), review_delay=0.0)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
