from typing import Annotated

from fastapi import APIRouter, Depends, Path

from deps.engine import get_lifecycle
from schemas.sessions import ScoreOut
from services.lifecycle import SessionLifecycle

router = APIRouter(prefix="/score", tags=["score"])


@router.get("/{account_id}", response_model=ScoreOut)
def get_score(
    account_id: Annotated[str, Path(min_length=1, max_length=64)],
    lifecycle: Annotated[SessionLifecycle, Depends(get_lifecycle)],
):
    score = lifecycle.get_score(account_id)
    return {"ok": True, **score.model_dump()}
