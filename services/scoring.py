# services/scoring.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Tuple, Union

from schemas.problems import Difficulty

# Absorbs float noise from JSON round-trips (e.g. 100 vs 100.0000000001).
ANSWER_TOLERANCE = 1e-9

# (is_correct, hint_used) -> points, per difficulty. Must stay exhaustive.
POINTS: Dict[Difficulty, Dict[Tuple[bool, bool], int]] = {
    Difficulty.easy: {(True, False): 1, (True, True): 0, (False, False): 0, (False, True): -1},
    Difficulty.medium: {(True, False): 2, (True, True): 1, (False, False): 0, (False, True): -1},
    Difficulty.hard: {(True, False): 3, (True, True): 2, (False, False): 0, (False, True): -1},
}


@dataclass(frozen=True)
class ScoreOutcome:
    is_correct: bool
    delta: int


def answers_match(correct_answer: float, user_answer: float) -> bool:
    return math.isclose(
        float(user_answer), float(correct_answer), rel_tol=0, abs_tol=ANSWER_TOLERANCE
    )


def evaluate(
    correct_answer: float,
    user_answer: float,
    difficulty: Union[Difficulty, str],
    hint_used: bool = False,
) -> ScoreOutcome:
    """Grade one answer. Raises ValueError for a difficulty outside the enum."""
    level = Difficulty(difficulty)
    is_correct = answers_match(correct_answer, user_answer)
    return ScoreOutcome(is_correct=is_correct, delta=POINTS[level][(is_correct, bool(hint_used))])
