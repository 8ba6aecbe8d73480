# schemas/sessions.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr

from schemas.problems import Difficulty, Topic

ANONYMOUS_ACCOUNT = "anonymous"

# ---------- Engine records ----------


class SessionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    problem_text: str
    correct_answer: float
    difficulty: Difficulty
    topic: Topic
    hint: str = ""
    solution_steps: str = ""
    created_at: datetime
    hint_revealed_at: Optional[datetime] = None

    @property
    def hint_revealed(self) -> bool:
        return self.hint_revealed_at is not None


class SubmissionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    session_id: str
    account_id: str
    user_answer: float
    is_correct: bool
    score_delta: int
    hint_used: bool
    feedback_text: str
    feedback_fallback: bool
    created_at: datetime


class HistoryEntry(SessionRecord):
    submission: Optional[SubmissionRecord] = None


class ScoreRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    account_id: str
    total: int = 0
    submissions: int = 0
    correct: int = 0


class SubmitResult(BaseModel):
    is_correct: bool
    feedback: str
    feedback_fallback: bool
    correct_answer: float
    score_delta: int
    score_total: int
    hint_used: bool = False
    solution_steps: str = ""


# ---------- HTTP requests / responses ----------


class CreateSessionRequest(BaseModel):
    difficulty: Difficulty = Difficulty.medium
    topic: Topic = Topic.mixed


class ProblemOut(BaseModel):
    # no correct_answer or solution_steps until an answer is submitted; the hint
    # itself only comes from POST /sessions/{id}/hint
    problem_text: str
    difficulty: Difficulty
    topic: Topic
    hint_available: bool
    created_at: datetime


class CreateSessionResponse(BaseModel):
    ok: bool
    session_id: str
    problem: ProblemOut


class HintResponse(BaseModel):
    ok: bool
    session_id: str
    hint: str


class SubmitAnswerRequest(BaseModel):
    # number, or short numeric text such as "3/4"; hint usage is read from the session
    user_answer: Union[StrictInt, StrictFloat, StrictStr]
    account_id: str = Field(default=ANONYMOUS_ACCOUNT, min_length=1, max_length=64)


class SubmitAnswerResponse(SubmitResult):
    ok: bool


class HistoryItemOut(BaseModel):
    id: str
    created_at: datetime
    problem_text: str
    difficulty: Difficulty
    topic: Topic
    correct_answer: Optional[float] = None
    solution_steps: Optional[str] = None
    submission: Optional[SubmissionRecord] = None


class HistoryResponse(BaseModel):
    ok: bool
    items: List[HistoryItemOut]
    count: int


class ScoreOut(ScoreRecord):
    ok: bool
