# schemas/problems.py
from __future__ import annotations

import math
from enum import Enum
from typing import Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

FEEDBACK_MAX_CHARS = 2000


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class Topic(str, Enum):
    addition = "addition"
    subtraction = "subtraction"
    multiplication = "multiplication"
    division = "division"
    mixed = "mixed"


# ---------- Provider contracts ----------


class ProblemPayload(BaseModel):
    """What the provider must send back for a generated problem."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    problem_text: StrictStr = Field(min_length=1)
    final_answer: Union[StrictInt, StrictFloat]
    hint: StrictStr = ""
    solution_steps: StrictStr = ""

    @field_validator("final_answer")
    @classmethod
    def _finite_answer(cls, v: Union[int, float]) -> float:
        try:
            val = float(v)
        except OverflowError:
            raise ValueError("final_answer is too large")
        if not math.isfinite(val):
            raise ValueError("final_answer must be a finite number")
        return val

    @field_validator("hint", "solution_steps", mode="before")
    @classmethod
    def _null_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class FeedbackPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    feedback: StrictStr = Field(min_length=1, max_length=FEEDBACK_MAX_CHARS)
