import json
import math

import pytest

from services.errors import (
    AlreadySubmitted,
    InvalidAnswer,
    InvalidRequest,
    ProblemGenerationFailed,
    ProviderTimeout,
    ProviderUnavailable,
    SessionNotFound,
)
from services.lifecycle import SessionLifecycle, fallback_feedback


def _count_sessions(store):
    return len(store.list_recent(100))


@pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
@pytest.mark.parametrize(
    "topic", ["addition", "subtraction", "multiplication", "division", "mixed"]
)
def test_create_session_persists_valid_problem(lifecycle, provider, difficulty, topic):
    s = lifecycle.create_session(difficulty, topic)
    assert s.problem_text and math.isfinite(s.correct_answer)
    assert s.difficulty.value == difficulty and s.topic.value == topic
    assert provider.calls[-1][0] == "problem"


@pytest.mark.parametrize(
    "failure, reason",
    [
        (ProviderTimeout("slow"), "ProviderTimeout"),
        (ProviderUnavailable("down"), "ProviderUnavailable"),
        ('{"problem_text": "x", "final_answer": "5"}', "InvalidProblemFormat"),
        ('{"problem_text": "", "final_answer": 5}', "InvalidProblemFormat"),
        ("not json at all", "InvalidProblemFormat"),
    ],
)
def test_create_session_failure_persists_nothing(lifecycle, provider, store, failure, reason):
    provider.problems.append(failure)
    with pytest.raises(ProblemGenerationFailed) as exc:
        lifecycle.create_session("easy", "addition")
    assert exc.value.reason == reason
    assert _count_sessions(store) == 0


def test_create_session_rejects_unknown_choices(lifecycle, provider):
    with pytest.raises(InvalidRequest):
        lifecycle.create_session("extreme", "addition")
    with pytest.raises(InvalidRequest):
        lifecycle.create_session("easy", "algebra")
    assert provider.calls == []


def test_submit_correct_answer(lifecycle):
    s = lifecycle.create_session("medium", "addition")
    r = lifecycle.submit_answer(s.id, 42.0, account_id="kid")
    assert r.is_correct and r.score_delta == 2 and r.score_total == 2
    assert r.correct_answer == 42.0 and r.hint_used is False
    assert r.feedback == "Great work!" and r.feedback_fallback is False
    assert r.solution_steps.startswith("Step 1")


def test_submit_wrong_answer_with_hint(lifecycle, provider):
    s = lifecycle.create_session("hard", "mixed")
    assert lifecycle.reveal_hint(s.id).hint == "Add the two amounts."
    r = lifecycle.submit_answer(s.id, 41, account_id="kid")
    assert not r.is_correct and r.hint_used
    assert r.score_delta == -1 and r.score_total == -1
    assert provider.calls[-1] == ("feedback", 42.0, 41.0, False)


def test_second_submit_is_rejected_and_scored_once(lifecycle, store):
    s = lifecycle.create_session("easy", "addition")
    lifecycle.submit_answer(s.id, 42, account_id="kid")
    with pytest.raises(AlreadySubmitted):
        lifecycle.submit_answer(s.id, 7, account_id="kid")

    entry = store.list_recent(1)[0]
    assert entry.submission.user_answer == 42.0
    assert store.get_score("kid").submissions == 1


def test_racing_submit_is_settled_by_the_store(store, provider):
    class RacingStore(type(store)):
        # both callers passed the existence check before either inserted
        def has_submission(self, session_id):
            return False

    racing = SessionLifecycle(RacingStore(store._session_factory), provider)
    s = racing.create_session("easy", "addition")
    racing.submit_answer(s.id, 42, account_id="kid")
    with pytest.raises(AlreadySubmitted):
        racing.submit_answer(s.id, 42, account_id="kid")

    score = store.get_score("kid")
    assert score.total == 1 and score.submissions == 1


@pytest.mark.parametrize(
    "failure",
    [
        ProviderTimeout("slow"),
        ProviderUnavailable("down"),
        '{"feedback": ""}',
        "   ",
        RuntimeError("client bug"),
    ],
)
def test_feedback_failure_still_records_score(lifecycle, provider, store, failure):
    s = lifecycle.create_session("easy", "addition")
    provider.feedback.append(failure)

    r = lifecycle.submit_answer(s.id, 42, account_id="kid")

    assert r.is_correct and r.score_delta == 1 and r.feedback_fallback is True
    assert r.feedback == fallback_feedback(42.0, True)
    sub = store.list_recent(1)[0].submission
    assert sub.is_correct is True and sub.score_delta == 1
    assert sub.feedback_text and sub.feedback_fallback is True


def test_fallback_feedback_mentions_answer():
    assert "42" in fallback_feedback(42.0, False)
    assert fallback_feedback(2.5, True).startswith("Correct!")


def test_submit_unknown_session(lifecycle):
    with pytest.raises(SessionNotFound):
        lifecycle.submit_answer("missing", 1)


@pytest.mark.parametrize("answer", [float("nan"), float("inf"), 10**400, True, "42"])
def test_submit_rejects_non_numeric_answer(lifecycle, answer):
    s = lifecycle.create_session("easy", "addition")
    with pytest.raises(InvalidAnswer):
        lifecycle.submit_answer(s.id, answer)


def test_list_recent_sessions(lifecycle, provider):
    for i in range(4):
        provider.problems.append(json.dumps({"problem_text": f"p{i}", "final_answer": i}))
        lifecycle.create_session("easy", "mixed")

    recent = lifecycle.list_recent_sessions(3)
    assert [e.problem_text for e in recent] == ["p3", "p2", "p1"]
    assert len(lifecycle.list_recent_sessions(10)) == 4

    with pytest.raises(InvalidRequest):
        lifecycle.list_recent_sessions(0)


def test_hint_revealed_after_answering_does_not_rescore(lifecycle, store):
    s = lifecycle.create_session("medium", "addition")
    lifecycle.submit_answer(s.id, 42, account_id="kid")
    lifecycle.reveal_hint(s.id)

    sub = store.list_recent(1)[0].submission
    assert sub.hint_used is False and sub.score_delta == 2
    assert store.get_score("kid").total == 2


def test_reveal_hint_unknown_session(lifecycle):
    with pytest.raises(SessionNotFound):
        lifecycle.reveal_hint("missing")
