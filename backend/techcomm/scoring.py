from __future__ import annotations
import math

XP_MULTIPLIER = 1.5


def round_half_up(value: float) -> int:
    # round() would send 4.5 to 4; scores and XP round .5 upwards
    return int(math.floor(value + 0.5))


def reading_score(correct: int, total: int) -> int:
    if total <= 0:
        raise ValueError("a reading exercise needs at least one question")
    return round_half_up(100 * correct / total)


def xp_for_score(score: int) -> int:
    return round_half_up(score * XP_MULTIPLIER)
