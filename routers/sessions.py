from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from deps.engine import get_lifecycle
from schemas.sessions import (
    CreateSessionRequest,
    CreateSessionResponse,
    HistoryEntry,
    HistoryItemOut,
    HintResponse,
    HistoryResponse,
    ProblemOut,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
)
from services.answers import parse_answer
from services.lifecycle import SessionLifecycle

router = APIRouter(prefix="/sessions", tags=["sessions"])

Lifecycle = Annotated[SessionLifecycle, Depends(get_lifecycle)]


@router.post("", response_model=CreateSessionResponse)
def create_session(lifecycle: Lifecycle, req: CreateSessionRequest | None = None):
    req = req or CreateSessionRequest()
    s = lifecycle.create_session(req.difficulty, req.topic)
    problem = ProblemOut(
        problem_text=s.problem_text,
        difficulty=s.difficulty,
        topic=s.topic,
        hint_available=bool(s.hint),
        created_at=s.created_at,
    )
    return {"ok": True, "session_id": s.id, "problem": problem}


def _history_item(entry: HistoryEntry) -> HistoryItemOut:
    answered = entry.submission is not None
    return HistoryItemOut(
        id=entry.id,
        created_at=entry.created_at,
        problem_text=entry.problem_text,
        difficulty=entry.difficulty,
        topic=entry.topic,
        correct_answer=entry.correct_answer if answered else None,
        solution_steps=entry.solution_steps if answered else None,
        submission=entry.submission,
    )


# declared before /{session_id}/... so "recent" is never read as an id
@router.get("/recent", response_model=HistoryResponse)
def recent_sessions(lifecycle: Lifecycle, limit: int = 10):
    limit = max(1, min(limit, 100))
    rows = [_history_item(e) for e in lifecycle.list_recent_sessions(limit)]
    return {"ok": True, "items": rows, "count": len(rows)}


@router.post("/{session_id}/hint", response_model=HintResponse)
def reveal_hint(session_id: str, lifecycle: Lifecycle):
    s = lifecycle.reveal_hint(session_id)
    return {"ok": True, "session_id": s.id, "hint": s.hint}


@router.post("/{session_id}/submit", response_model=SubmitAnswerResponse)
def submit_answer(session_id: str, req: SubmitAnswerRequest, lifecycle: Lifecycle):
    answer = parse_answer(req.user_answer)
    result = lifecycle.submit_answer(session_id, answer, account_id=req.account_id)
    return {"ok": True, **result.model_dump()}
