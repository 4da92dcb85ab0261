from datetime import datetime, timezone

import pytest

from techcomm.progression import apply_result, dashboard_summary
from techcomm.schemas import ExerciseKind, ProgressRecord
from techcomm.scoring import reading_score, round_half_up, xp_for_score

NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


def test_end_to_end_levels_up_only_once() -> None:
    start = ProgressRecord(level=5, experience=90)
    result = apply_result(start, 80, ExerciseKind.READING, now=NOW)

    assert result.level == 6
    assert result.experience == 110
    assert result.experience_to_next_level == 100
    assert result.history[-1].level_at_completion == 5


@pytest.mark.parametrize("score", [0, 1, 33, 50, 66, 67, 99, 100])
@pytest.mark.parametrize("experience", [0, 40, 99, 150])
def test_single_step_leveling(score: int, experience: int) -> None:
    start = ProgressRecord(level=12, experience=experience)
    gained = xp_for_score(score)
    result = apply_result(start, score, ExerciseKind.WRITING, now=NOW)

    if experience + gained >= 100:
        assert result.level == 13
        assert result.experience == experience + gained - 100
    else:
        assert result.level == 12
        assert result.experience == experience + gained


def test_xp_is_one_and_a_half_times_score_rounded_half_up() -> None:
    assert xp_for_score(80) == 120
    assert xp_for_score(3) == 5
    assert xp_for_score(1) == 2
    assert xp_for_score(0) == 0


def test_max_level_never_levels_and_clamps_experience() -> None:
    start = ProgressRecord(level=50, experience=10)
    for score in (0, 45, 100):
        result = apply_result(start, score, ExerciseKind.READING, now=NOW)
        assert result.level == 50
        assert result.experience == 100


def test_reaching_max_level_keeps_remainder() -> None:
    result = apply_result(ProgressRecord(level=49, experience=95), 100, ExerciseKind.READING, now=NOW)
    assert result.level == 50
    assert result.experience == 145
    again = apply_result(result, 10, ExerciseKind.READING, now=NOW)
    assert again.level == 50
    assert again.experience == 100


def test_history_is_append_only_and_records_prior_level() -> None:
    progress = ProgressRecord()
    prior_levels = []
    scores = [100, 100, 20, 0, 70]
    for index, score in enumerate(scores):
        prior_levels.append(progress.level)
        kind = ExerciseKind.READING if index % 2 == 0 else ExerciseKind.WRITING
        progress = apply_result(progress, score, kind, now=NOW, id_factory=lambda i=index: f"id-{i}")

    assert len(progress.history) == len(scores)
    assert [r.id for r in progress.history] == [f"id-{i}" for i in range(len(scores))]
    assert [r.score for r in progress.history] == scores
    assert [r.level_at_completion for r in progress.history] == prior_levels


def test_apply_result_leaves_input_untouched() -> None:
    start = ProgressRecord(level=3, experience=20)
    apply_result(start, 90, ExerciseKind.READING, now=NOW)
    assert start.level == 3
    assert start.experience == 20
    assert start.history == []


def test_default_record_ids_are_unique() -> None:
    progress = ProgressRecord()
    for _ in range(20):
        progress = apply_result(progress, 10, ExerciseKind.READING)
    assert len({r.id for r in progress.history}) == 20


def test_rejects_out_of_range_score() -> None:
    with pytest.raises(ValueError):
        apply_result(ProgressRecord(), 101, ExerciseKind.READING)


def test_reading_score_rounding() -> None:
    assert reading_score(2, 3) == 67
    assert reading_score(1, 3) == 33
    assert reading_score(3, 3) == 100
    assert reading_score(0, 3) == 0
    assert reading_score(1, 8) == 13
    assert round_half_up(4.5) == 5


def test_dashboard_summary_lists_recent_activity_newest_first() -> None:
    progress = ProgressRecord(level=22, experience=45)
    for i in range(7):
        progress = apply_result(progress, 10 * i, ExerciseKind.READING, now=NOW, id_factory=lambda i=i: f"r{i}")

    summary = dashboard_summary(progress)
    assert summary["tier"] == "Intermediate (Technical Discussion)"
    assert summary["completedCount"] == 7
    assert [entry["id"] for entry in summary["recentActivity"]] == ["r6", "r5", "r4", "r3", "r2"]
    assert summary["recentActivity"][0]["levelAtCompletion"] == progress.history[-1].level_at_completion
    assert summary["progressPercent"] == pytest.approx(progress.experience)
