from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return uuid.uuid4().hex


class ProblemSession(Base):
    __tablename__ = "problem_sessions"
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, index=True
    )
    problem_text: Mapped[str] = mapped_column(Text)
    correct_answer: Mapped[float] = mapped_column(Float)
    difficulty: Mapped[str] = mapped_column(String(16))
    topic: Mapped[str] = mapped_column(String(32))
    hint: Mapped[str] = mapped_column(Text, default="")
    solution_steps: Mapped[str] = mapped_column(Text, default="")
    # set on the first hint request; a revealed hint scores at the hint rate
    hint_revealed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    submission: Mapped[Optional["Submission"]] = relationship(
        back_populates="session", uselist=False
    )


class Submission(Base):
    __tablename__ = "problem_submissions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # unique: the first answer for a session is the only one ever recorded
    session_id: Mapped[str] = mapped_column(
        ForeignKey("problem_sessions.id"), unique=True, nullable=False
    )
    account_id: Mapped[str] = mapped_column(String(64), index=True)
    user_answer: Mapped[float] = mapped_column(Float)
    is_correct: Mapped[bool] = mapped_column(Boolean)
    score_delta: Mapped[int] = mapped_column(Integer)
    hint_used: Mapped[bool] = mapped_column(Boolean, default=False)
    feedback_text: Mapped[str] = mapped_column(Text)
    feedback_fallback: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    session: Mapped[ProblemSession] = relationship(back_populates="submission")


class ScoreAccount(Base):
    __tablename__ = "score_accounts"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    total: Mapped[int] = mapped_column(Integer, default=0)
    submissions: Mapped[int] = mapped_column(Integer, default=0)
    correct: Mapped[int] = mapped_column(Integer, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
