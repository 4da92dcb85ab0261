from __future__ import annotations
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .level_policy import MAX_LEVEL, tier_of
from .schemas import ExerciseKind, ExerciseRecord, ProgressRecord
from .scoring import xp_for_score

RECENT_ACTIVITY_SIZE = 5


def _new_record_id() -> str:
    # Millisecond timestamp keeps ids sortable; the suffix keeps them unique
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


def apply_result(
    progress: ProgressRecord,
    score: int,
    kind: ExerciseKind,
    *,
    now: Optional[datetime] = None,
    id_factory: Callable[[], str] = _new_record_id,
) -> ProgressRecord:
    """Return the progress that results from finishing one exercise.

    At most one level is granted per exercise; any remainder is carried as
    experience even when it is past the threshold again. A learner at the
    maximum level keeps the bar full instead.
    """
    if not 0 <= score <= 100:
        raise ValueError(f"score must be within 0..100, got {score}")
    threshold = progress.experience_to_next_level
    level = progress.level
    experience = progress.experience + xp_for_score(score)

    if experience >= threshold and level < MAX_LEVEL:
        experience -= threshold
        level += 1
    elif level == MAX_LEVEL:
        experience = threshold

    record = ExerciseRecord(
        id=id_factory(),
        kind=kind,
        score=score,
        completed_at=now or datetime.now(timezone.utc),
        level_at_completion=progress.level,
    )
    return progress.model_copy(
        update={
            "level": level,
            "experience": experience,
            "history": [*progress.history, record],
        }
    )


def dashboard_summary(progress: ProgressRecord) -> Dict[str, Any]:
    recent: List[ExerciseRecord] = list(reversed(progress.history))[:RECENT_ACTIVITY_SIZE]
    return {
        "level": progress.level,
        "tier": tier_of(progress.level).value,
        "experience": progress.experience,
        "experienceToNextLevel": progress.experience_to_next_level,
        "progressPercent": progress.experience / progress.experience_to_next_level * 100,
        "completedCount": len(progress.history),
        "recentActivity": [r.model_dump(mode="json", by_alias=True) for r in recent],
    }
