import json

import pytest

from services.errors import InvalidFeedbackFormat, InvalidProblemFormat
from services.validator import parse_feedback, parse_problem, strip_code_fences


def test_parse_problem_full_payload():
    p = parse_problem(
        json.dumps(
            {
                "problem_text": "  Sam has 3 bags of 4 marbles. How many marbles?  ",
                "final_answer": 12,
                "hint": "Multiply.",
                "solution_steps": "3 x 4 = 12",
            }
        )
    )
    assert p.problem_text == "Sam has 3 bags of 4 marbles. How many marbles?"
    assert p.final_answer == 12.0
    assert isinstance(p.final_answer, float)
    assert p.hint == "Multiply."


def test_parse_problem_optional_fields_default_to_empty():
    p = parse_problem('{"problem_text": "x", "final_answer": 2.5}')
    assert p.hint == "" and p.solution_steps == ""


def test_parse_problem_null_hint_is_empty():
    p = parse_problem('{"problem_text": "x", "final_answer": 1, "hint": null}')
    assert p.hint == ""


def test_parse_problem_strips_code_fence():
    raw = '```json\n{"problem_text": "x", "final_answer": 5}\n```'
    assert parse_problem(raw).final_answer == 5.0


def test_parse_problem_rejects_string_answer():
    with pytest.raises(InvalidProblemFormat):
        parse_problem('{"problem_text":"x","final_answer":"5"}')


@pytest.mark.parametrize(
    "raw",
    [
        '{"problem_text": "x"}',
        '{"problem_text": "x", "final_answer": NaN}',
        '{"problem_text": "x", "final_answer": Infinity}',
        '{"problem_text": "x", "final_answer": true}',
        '{"problem_text": "x", "final_answer": null}',
        '{"problem_text": "x", "final_answer": 1' + "0" * 400 + "}",
        '{"problem_text": "   ", "final_answer": 5}',
        '{"problem_text": 7, "final_answer": 5}',
        '{"final_answer": 5}',
        '{"problem_text": "x", "final_answer": 5, "hint": 3}',
        "[1, 2, 3]",
        "Here is your problem: Sam has 3 apples.",
        "",
    ],
)
def test_parse_problem_rejects_malformed(raw):
    with pytest.raises(InvalidProblemFormat):
        parse_problem(raw)


def test_parse_problem_rejects_non_text():
    with pytest.raises(InvalidProblemFormat):
        parse_problem(None)


def test_strip_code_fences_leaves_plain_text():
    assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'
    assert strip_code_fences("```\nhello\n```") == "hello"


def test_parse_feedback_json_and_plain():
    assert parse_feedback('{"feedback": "Well done!"}') == "Well done!"
    assert parse_feedback("```json\n{\"feedback\": \"Nice\"}\n```") == "Nice"
    assert parse_feedback("Good try, check your subtraction.") == (
        "Good try, check your subtraction."
    )


@pytest.mark.parametrize(
    "raw",
    ['{"feedback": ""}', '{"feedback": 3}', '{"text": "hi"}', "{not json", "   ", "x" * 2001],
)
def test_parse_feedback_rejects_malformed(raw):
    with pytest.raises(InvalidFeedbackFormat):
        parse_feedback(raw)
