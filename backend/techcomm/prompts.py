"""
Prompt Composer

Builds the three LLM requests the trainer makes: a reading exercise, a writing
scenario and the evaluation of a writing draft. Topic, tone and situation are
drawn from fixed lists through the caller's random source so that consecutive
exercises differ without keeping a content bank. Each prompt ends with a short
worked example of the expected JSON.

Response schemas use the Gemini ``responseSchema`` dialect (upper-case OpenAPI
types). They only steer the model; the parsed output is validated separately
against the models in ``schemas.py``.
"""

from __future__ import annotations
import json
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .level_policy import prompt_context_of
from .schemas import WritingScenario

# Language the learner is studying, and the language used for instructions,
# explanations and critique.
PRIMARY_LANGUAGE = "English"
SECONDARY_LANGUAGE = "Japanese"

READING_QUESTION_COUNT = 3

TUTOR_SYSTEM_INSTRUCTION = (
    "You are a senior technical English tutor designed to simulate real-world "
    "software engineering communication."
)


# ============================================================================
# RANDOMIZATION POOLS
# ============================================================================

TOPICS: List[str] = [
    "Database Migration Issue",
    "CI/CD Pipeline Failure",
    "Frontend UI Glitch on Mobile",
    "API Latency Spike",
    "Third-party Integration Error",
    "New Feature Specification Draft",
    "Code Review Disagreement",
    "Urgent Security Patch",
    "Cloud Infrastructure Cost Alert",
    "Legacy Code Refactoring Proposal",
    "Production Outage Postmortem",
    "Flaky Integration Tests",
    "Memory Leak in a Background Worker",
    "Release Freeze Before a Launch",
    "On-call Rotation Handover",
    "Deprecation of an Internal API",
    "Sprint Planning Scope Change",
    "Data Privacy Audit Findings",
    "Load Testing Results Review",
    "Dependency Upgrade Breaking the Build",
]

TONES: List[str] = [
    "Urgent and slightly panicked",
    "Formal and professional",
    "Casual and friendly",
    "Frustrated but polite",
    "Direct and concise",
    "Apologetic and reassuring",
    "Enthusiastic and motivating",
    "Skeptical and questioning",
    "Diplomatic and cautious",
    "Tired but cooperative",
]

WRITING_SITUATIONS: List[str] = [
    "Requesting an extension on a deadline",
    "Explaining a production bug to stakeholders",
    "Declining a meeting request due to workload",
    "Asking for clarification on vague requirements",
    "Proposing a new technology stack to the lead",
    "Onboarding a new team member",
    "Reporting a blocker in the daily standup",
    "Giving constructive feedback on a pull request",
    "Announcing a scheduled maintenance window",
    "Escalating an unresolved issue to a vendor",
    "Summarizing a design discussion for absent teammates",
    "Pushing back on an unrealistic estimate",
    "Thanking a colleague for help during an incident",
    "Requesting access to a production system",
]


def pick(options: Sequence[str], rng: random.Random) -> str:
    return options[rng.randrange(len(options))]


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

READING_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "subject": {"type": "STRING", "description": "Email subject line"},
        "sender": {"type": "STRING", "description": "Name and role of the sender (e.g., 'Mike, Backend Lead')"},
        "body": {"type": "STRING", "description": "The content of the technical email or chat message."},
        "questions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": {"type": "STRING"},
                    "options": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "correctIndex": {"type": "INTEGER", "description": "Zero-based index of the correct option"},
                    "explanation": {
                        "type": "STRING",
                        "description": f"Why the answer is correct (in {SECONDARY_LANGUAGE})",
                    },
                },
                "required": ["question", "options", "correctIndex", "explanation"],
            },
        },
    },
    "required": ["subject", "sender", "body", "questions"],
}

SCENARIO_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "context": {"type": "STRING", "description": "The situation (e.g., 'The production DB is spiking in CPU')"},
        "recipientRole": {"type": "STRING", "description": "Who the user is writing to"},
        "goal": {"type": "STRING", "description": f"What the user needs to achieve (in {SECONDARY_LANGUAGE})"},
        "keyPoints": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": f"Facts that must be included (in {SECONDARY_LANGUAGE})",
        },
    },
    "required": ["context", "recipientRole", "goal", "keyPoints"],
}

FEEDBACK_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "score": {"type": "INTEGER", "description": "Score from 0 to 100 based on clarity, tone, and grammar."},
        "critique": {
            "type": "STRING",
            "description": f"Constructive feedback on the user's writing in {SECONDARY_LANGUAGE}.",
        },
        "improvedVersion": {
            "type": "STRING",
            "description": f"A native-level rewrite of the user's message in {PRIMARY_LANGUAGE}.",
        },
        "grammarMistakes": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": f"List of specific grammar or vocabulary errors explained in {SECONDARY_LANGUAGE}.",
        },
    },
    "required": ["score", "critique", "improvedVersion", "grammarMistakes"],
}


# ============================================================================
# FEW-SHOT EXEMPLARS
# ============================================================================

_READING_EXAMPLE = {
    "subject": "Staging deploy blocked by failing migration",
    "sender": "Priya, Backend Lead",
    "body": (
        "Hi team,\n\nThe staging deploy is blocked because migration 0042 times out on the "
        "orders table. Please hold any merges to main until we split it into smaller batches. "
        "I will post an update after lunch.\n\nThanks,\nPriya"
    ),
    "questions": [
        {
            "question": "Why is the staging deploy blocked?",
            "options": [
                "A migration times out",
                "The orders service is down",
                "Main has a merge conflict",
                "Staging has no free capacity",
            ],
            "correctIndex": 0,
            "explanation": "本文に「migration 0042 times out」とあるため、マイグレーションのタイムアウトが原因です。",
        },
        {
            "question": "What does Priya ask the team to do?",
            "options": [
                "Roll back the last release",
                "Stop merging to main for now",
                "Rewrite the orders table",
                "Deploy directly to production",
            ],
            "correctIndex": 1,
            "explanation": "「Please hold any merges to main」は、mainへのマージを一時停止するよう求めています。",
        },
        {
            "question": "When will the next update be posted?",
            "options": [
                "Tomorrow morning",
                "At the end of the sprint",
                "After lunch",
                "Once migration 0043 ships",
            ],
            "correctIndex": 2,
            "explanation": "最後の文に「I will post an update after lunch」とあります。",
        },
    ],
}

_SCENARIO_EXAMPLE = {
    "context": "Your manager wrote: 'Can we ship the billing export on Friday as planned?'",
    "recipientRole": "Engineering Manager",
    "goal": "金曜日のリリースは難しいことを伝え、新しい日程を提案する",
    "keyPoints": ["テストがまだ40%しか終わっていない", "火曜日なら確実にリリースできる"],
}

_FEEDBACK_EXAMPLE = {
    "score": 72,
    "critique": (
        "要点は伝わっていますが、依頼の表現が直接的すぎます。"
        "例文: 'Would it be possible to move the release to Tuesday?'"
    ),
    "improvedVersion": (
        "Hi Sam, unfortunately we won't be ready to ship the billing export on Friday. "
        "Testing is only about 40% complete. Would it be possible to move the release to Tuesday?"
    ),
    "grammarMistakes": ["'we can not' は 'we cannot' と一語で書きます。"],
}


def _example_block(example: Dict[str, Any]) -> str:
    return "Example of the expected JSON shape (content is illustrative only):\n" + json.dumps(
        example, ensure_ascii=False, indent=2
    )


# ============================================================================
# REQUEST BUILDERS
# ============================================================================

@dataclass(frozen=True)
class LLMRequest:
    prompt: str
    response_schema: Dict[str, Any]
    system_instruction: Optional[str] = None
    # Randomly picked variables, kept for logging
    variables: Optional[Dict[str, str]] = None


def build_reading_request(level: int, rng: random.Random) -> LLMRequest:
    topic = pick(TOPICS, rng)
    tone = pick(TONES, rng)
    prompt = (
        f"Generate a reading comprehension exercise for a software engineer learning {PRIMARY_LANGUAGE}.\n"
        f"{prompt_context_of(level)}\n\n"
        "Scenario Variables:\n"
        f"- Topic: {topic}\n"
        f"- Tone: {tone}\n\n"
        "Create a realistic email or message from a colleague based on the above variables.\n"
        f"Include exactly {READING_QUESTION_COUNT} multiple choice comprehension questions.\n"
        f"IMPORTANT: The 'explanation' for each question must be in {SECONDARY_LANGUAGE}.\n\n"
        f"{_example_block(_READING_EXAMPLE)}"
    )
    return LLMRequest(
        prompt=prompt,
        response_schema=READING_SCHEMA,
        system_instruction=TUTOR_SYSTEM_INSTRUCTION,
        variables={"topic": topic, "tone": tone},
    )


def build_writing_scenario_request(level: int, rng: random.Random) -> LLMRequest:
    situation = pick(WRITING_SITUATIONS, rng)
    tone = pick(TONES, rng)
    prompt = (
        "Generate a writing scenario for a software engineer.\n"
        f"{prompt_context_of(level)}\n\n"
        "Scenario Variables:\n"
        f"- Situation: {situation}\n"
        f"- Desired Tone: {tone}\n\n"
        "Format constraints:\n"
        f"1. 'context' must be in {PRIMARY_LANGUAGE} (simulate a received message or observed situation).\n"
        f"2. 'goal' and 'keyPoints' MUST be in {SECONDARY_LANGUAGE} (instructions to the user).\n\n"
        f"{_example_block(_SCENARIO_EXAMPLE)}"
    )
    return LLMRequest(
        prompt=prompt,
        response_schema=SCENARIO_SCHEMA,
        variables={"situation": situation, "tone": tone},
    )


def build_evaluation_request(level: int, scenario: WritingScenario, draft: str) -> LLMRequest:
    prompt = (
        f"Evaluate this {PRIMARY_LANGUAGE} writing submission from a software engineer.\n"
        f"{prompt_context_of(level)}\n\n"
        f"Scenario Context: {scenario.context}\n"
        f"Goal ({SECONDARY_LANGUAGE}): {scenario.goal}\n"
        f"Recipient: {scenario.recipient_role}\n"
        f"Key Points ({SECONDARY_LANGUAGE}): {'; '.join(scenario.key_points)}\n\n"
        f'User\'s Draft: "{draft}"\n\n'
        "Output Requirements:\n"
        "1. 'score': 0-100.\n"
        f"2. 'improvedVersion': Natural {PRIMARY_LANGUAGE} rewrite.\n"
        f"3. 'critique': Provide constructive feedback in {SECONDARY_LANGUAGE}. "
        "ALWAYS include example sentences to illustrate your points.\n"
        f"4. 'grammarMistakes': Explain errors in {SECONDARY_LANGUAGE}.\n\n"
        f"{_example_block(_FEEDBACK_EXAMPLE)}"
    )
    return LLMRequest(prompt=prompt, response_schema=FEEDBACK_SCHEMA)
