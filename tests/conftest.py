import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import models  # noqa: F401  (registers tables on Base.metadata)
from db import Base
from deps.engine import get_lifecycle
from main import app
from services.lifecycle import SessionLifecycle
from services.store import SessionStore

PROBLEM = {
    "problem_text": "Mia has 12 apples and buys 30 more. How many apples does she have now?",
    "final_answer": 42,
    "hint": "Add the two amounts.",
    "solution_steps": "Step 1: 12 + 30 = 42\nFinal answer: 42",
}


class FakeProvider:
    """Scripted provider: queued items are returned in order, exceptions are raised."""

    def __init__(self):
        self.problems = []
        self.feedback = []
        self.calls = []

    def generate_problem(self, difficulty, topic):
        self.calls.append(("problem", difficulty, topic))
        return self._next(self.problems, json.dumps(PROBLEM))

    def generate_feedback(self, problem_text, correct_answer, user_answer, is_correct):
        self.calls.append(("feedback", correct_answer, user_answer, is_correct))
        return self._next(self.feedback, json.dumps({"feedback": "Great work!"}))

    @staticmethod
    def _next(queue, default):
        item = queue.pop(0) if queue else default
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def session_factory(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(eng)
    yield sessionmaker(bind=eng, autoflush=False, expire_on_commit=False)
    eng.dispose()


@pytest.fixture
def store(session_factory):
    return SessionStore(session_factory)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def lifecycle(store, provider):
    return SessionLifecycle(store, provider)


@pytest.fixture
def client(lifecycle):
    app.dependency_overrides[get_lifecycle] = lambda: lifecycle
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
