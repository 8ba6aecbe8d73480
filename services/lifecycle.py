# services/lifecycle.py
from __future__ import annotations

import logging
import math
from typing import List, Tuple, Union

from schemas.problems import Difficulty, Topic
from schemas.sessions import (
    ANONYMOUS_ACCOUNT,
    HistoryEntry,
    ScoreRecord,
    SessionRecord,
    SubmitResult,
)
from services.answers import num_to_clean_str
from services.errors import (
    AlreadySubmitted,
    DuplicateSubmission,
    InvalidAnswer,
    InvalidFeedbackFormat,
    InvalidProblemFormat,
    InvalidRequest,
    ProblemGenerationFailed,
    ProviderError,
)
from services.provider import ProblemProvider
from services.scoring import evaluate
from services.store import SessionStore
from services.validator import parse_feedback, parse_problem

logger = logging.getLogger("wordmath.lifecycle")


def fallback_feedback(correct_answer: float, is_correct: bool) -> str:
    answer = num_to_clean_str(correct_answer)
    if is_correct:
        return f"Correct! {answer} is the right answer. Well done!"
    return (
        f"Not quite. The correct answer is {answer}. "
        "Read the problem again and try the next one."
    )


class SessionLifecycle:
    """Creates problem sessions, grades the single answer each one accepts, reports history."""

    def __init__(self, store: SessionStore, provider: ProblemProvider):
        self.store = store
        self.provider = provider

    def create_session(
        self, difficulty: Union[Difficulty, str], topic: Union[Topic, str]
    ) -> SessionRecord:
        level, kind = _choice(Difficulty, difficulty), _choice(Topic, topic)
        try:
            raw = self.provider.generate_problem(level, kind)
            problem = parse_problem(raw)
        except (ProviderError, InvalidProblemFormat) as e:
            logger.warning(
                "problem generation failed (%s/%s): %s: %s", level.value, kind.value, e.kind, e
            )
            raise ProblemGenerationFailed(e) from e

        session = self.store.insert_session(problem, level, kind)
        logger.info("created session %s (%s/%s)", session.id, level.value, kind.value)
        return session

    def reveal_hint(self, session_id: str) -> SessionRecord:
        """Hand out the hint; from now on the session scores at the hint rate."""
        session = self.store.reveal_hint(session_id)
        logger.info("hint revealed for session %s", session_id)
        return session

    def submit_answer(
        self,
        session_id: str,
        user_answer: float,
        *,
        account_id: str = ANONYMOUS_ACCOUNT,
    ) -> SubmitResult:
        if isinstance(user_answer, bool) or not isinstance(user_answer, (int, float)):
            raise InvalidAnswer("Answer must be a finite number.")
        try:
            answer = float(user_answer)
        except OverflowError as e:
            raise InvalidAnswer("Answer is too large.") from e
        if not math.isfinite(answer):
            raise InvalidAnswer("Answer must be a finite number.")

        session = self.store.get_session(session_id)
        # insert_submission still settles races through the unique constraint
        if self.store.has_submission(session_id):
            raise AlreadySubmitted(session_id)

        hint_used = session.hint_revealed
        outcome = evaluate(session.correct_answer, answer, session.difficulty, hint_used)
        feedback, is_fallback = self._feedback(session, answer, outcome.is_correct)

        try:
            self.store.insert_submission(
                session_id=session_id,
                user_answer=answer,
                outcome=outcome,
                hint_used=hint_used,
                feedback_text=feedback,
                feedback_fallback=is_fallback,
                account_id=account_id,
            )
        except DuplicateSubmission as e:
            logger.info("rejected second submission for session %s", session_id)
            raise AlreadySubmitted(session_id) from e

        score = self.store.get_score(account_id)
        logger.info(
            "session %s answered (correct=%s, delta=%+d, account=%s)",
            session_id,
            outcome.is_correct,
            outcome.delta,
            account_id,
        )
        return SubmitResult(
            is_correct=outcome.is_correct,
            feedback=feedback,
            feedback_fallback=is_fallback,
            correct_answer=session.correct_answer,
            score_delta=outcome.delta,
            score_total=score.total,
            hint_used=hint_used,
            solution_steps=session.solution_steps,
        )

    def _feedback(
        self, session: SessionRecord, answer: float, is_correct: bool
    ) -> Tuple[str, bool]:
        try:
            raw = self.provider.generate_feedback(
                session.problem_text, session.correct_answer, answer, is_correct
            )
            return parse_feedback(raw), False
        except (ProviderError, InvalidFeedbackFormat) as e:
            logger.warning("feedback for session %s fell back: %s: %s", session.id, e.kind, e)
            return fallback_feedback(session.correct_answer, is_correct), True
        except Exception:
            logger.exception(
                "feedback for session %s fell back on an unexpected error", session.id
            )
            return fallback_feedback(session.correct_answer, is_correct), True

    def list_recent_sessions(self, limit: int) -> List[HistoryEntry]:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidRequest("limit must be a positive integer")
        return self.store.list_recent(limit)

    def get_score(self, account_id: str = ANONYMOUS_ACCOUNT) -> ScoreRecord:
        return self.store.get_score(account_id)


def _choice(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(m.value for m in enum_cls)
        name = enum_cls.__name__.lower()
        raise InvalidRequest(f"unknown {name} {value!r} (expected one of: {allowed})") from e
