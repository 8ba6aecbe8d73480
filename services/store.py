# services/store.py
from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime, timedelta
from typing import List, Optional

from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from models import ProblemSession, ScoreAccount, Submission
from schemas.problems import Difficulty, ProblemPayload, Topic
from schemas.sessions import HistoryEntry, ScoreRecord, SessionRecord, SubmissionRecord
from services.errors import DuplicateSubmission, PersistenceFailure, SessionNotFound
from services.scoring import ScoreOutcome

logger = logging.getLogger("wordmath.store")

SUBMISSION_UNIQUE = "uq_problem_submissions_session_id"

_stamp_lock = threading.Lock()
_last_stamp: Optional[datetime] = None


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _creation_stamp() -> datetime:
    """Strictly increasing within the process so same-tick sessions keep insertion order."""
    global _last_stamp
    with _stamp_lock:
        now = _utcnow()
        if _last_stamp is not None and now <= _last_stamp:
            now = _last_stamp + timedelta(microseconds=1)
        _last_stamp = now
        return now


def _is_duplicate_submission(err: IntegrityError) -> bool:
    # psycopg names the violated constraint; sqlite only names the column
    name = getattr(getattr(err.orig, "diag", None), "constraint_name", None)
    if name:
        return name == SUBMISSION_UNIQUE
    return "problem_submissions.session_id" in str(err.orig)


class SessionStore:
    """
    Relational persistence for problem sessions, their single submission and the
    per-account score totals. The unique constraint on problem_submissions.session_id
    decides which of two racing submissions wins.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def insert_session(
        self, problem: ProblemPayload, difficulty: Difficulty, topic: Topic
    ) -> SessionRecord:
        row = ProblemSession(
            problem_text=problem.problem_text,
            correct_answer=problem.final_answer,
            difficulty=Difficulty(difficulty).value,
            topic=Topic(topic).value,
            hint=problem.hint,
            solution_steps=problem.solution_steps,
            created_at=_creation_stamp(),
        )
        try:
            with self._session_factory() as db:
                db.add(row)
                db.commit()
                db.refresh(row)
                return SessionRecord.model_validate(row)
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"could not store session: {type(e).__name__}") from e

    def get_session(self, session_id: str) -> SessionRecord:
        try:
            with self._session_factory() as db:
                row = db.get(ProblemSession, session_id)
                if row is None:
                    raise SessionNotFound(session_id)
                return SessionRecord.model_validate(row)
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"could not load session: {type(e).__name__}") from e

    def reveal_hint(self, session_id: str) -> SessionRecord:
        """Record the first time the hint was shown; later reveals keep that time."""
        stmt = (
            update(ProblemSession)
            .where(ProblemSession.id == session_id, ProblemSession.hint_revealed_at.is_(None))
            .values(hint_revealed_at=_utcnow())
        )
        try:
            with self._session_factory() as db:
                db.execute(stmt)
                db.commit()
                row = db.get(ProblemSession, session_id)
                if row is None:
                    raise SessionNotFound(session_id)
                return SessionRecord.model_validate(row)
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"could not reveal hint: {type(e).__name__}") from e

    def has_submission(self, session_id: str) -> bool:
        try:
            with self._session_factory() as db:
                return bool(
                    db.scalar(select(exists().where(Submission.session_id == session_id)))
                )
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"could not check submission: {type(e).__name__}") from e

    def insert_submission(
        self,
        *,
        session_id: str,
        user_answer: float,
        outcome: ScoreOutcome,
        hint_used: bool,
        feedback_text: str,
        feedback_fallback: bool,
        account_id: str,
    ) -> SubmissionRecord:
        """Insert the submission and apply its delta to the account in one transaction."""
        now = _utcnow()
        row = Submission(
            session_id=session_id,
            account_id=account_id,
            user_answer=user_answer,
            is_correct=outcome.is_correct,
            score_delta=outcome.delta,
            hint_used=hint_used,
            feedback_text=feedback_text,
            feedback_fallback=feedback_fallback,
            created_at=now,
        )
        try:
            with self._session_factory() as db:
                db.add(row)
                try:
                    db.flush()
                except IntegrityError as e:
                    db.rollback()
                    if not _is_duplicate_submission(e):
                        raise
                    raise DuplicateSubmission(session_id) from e
                self._apply_delta(db, account_id, outcome, now)
                db.commit()
                return SubmissionRecord.model_validate(row)
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"could not store submission: {type(e).__name__}") from e

    def _apply_delta(
        self, db: Session, account_id: str, outcome: ScoreOutcome, now: datetime
    ) -> None:
        stmt = (
            update(ScoreAccount)
            .where(ScoreAccount.id == account_id)
            .values(
                total=ScoreAccount.total + outcome.delta,
                submissions=ScoreAccount.submissions + 1,
                correct=ScoreAccount.correct + (1 if outcome.is_correct else 0),
                updated_at=now,
            )
        )
        if db.execute(stmt).rowcount:
            return
        try:
            with db.begin_nested():
                db.add(
                    ScoreAccount(
                        id=account_id,
                        total=outcome.delta,
                        submissions=1,
                        correct=1 if outcome.is_correct else 0,
                        updated_at=now,
                    )
                )
        except IntegrityError:
            # another first submission created the account meanwhile
            logger.info("score account %s created concurrently; incrementing", account_id)
            db.execute(stmt)

    def list_recent(self, limit: int) -> List[HistoryEntry]:
        stmt = (
            select(ProblemSession)
            .options(selectinload(ProblemSession.submission))
            .order_by(ProblemSession.created_at.desc(), ProblemSession.id.desc())
            .limit(limit)
        )
        try:
            with self._session_factory() as db:
                rows = db.scalars(stmt).all()
                return [HistoryEntry.model_validate(r) for r in rows]
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"could not list sessions: {type(e).__name__}") from e

    def get_score(self, account_id: str) -> ScoreRecord:
        try:
            with self._session_factory() as db:
                acc = db.get(ScoreAccount, account_id)
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"could not load score: {type(e).__name__}") from e
        if acc is None:
            return ScoreRecord(account_id=account_id)
        return ScoreRecord(
            account_id=acc.id, total=acc.total, submissions=acc.submissions, correct=acc.correct
        )
