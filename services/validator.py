# services/validator.py
"""
Parsing of provider output.

The text generator is asked for JSON but nothing it returns is trusted: every field is
checked before it can reach the database, and the first violation rejects the payload.
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from schemas.problems import FeedbackPayload, ProblemPayload
from services.errors import InvalidFeedbackFormat, InvalidProblemFormat

_FENCE_OPEN_RE = re.compile(r"^```[A-Za-z0-9_-]*\s*")
_FENCE_CLOSE_RE = re.compile(r"\s*```$")


def strip_code_fences(raw: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```) if present."""
    s = raw.strip()
    if s.startswith("```"):
        s = _FENCE_OPEN_RE.sub("", s, count=1)
        s = _FENCE_CLOSE_RE.sub("", s, count=1)
    return s.strip()


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ())) or "payload"
    return f"{loc}: {err.get('msg', 'invalid value')}"


def parse_problem(raw: Any) -> ProblemPayload:
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidProblemFormat("provider returned no text")

    text = strip_code_fences(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidProblemFormat(f"not valid JSON ({e.msg})") from e

    if not isinstance(data, dict):
        raise InvalidProblemFormat("expected a JSON object")

    try:
        return ProblemPayload.model_validate(data)
    except ValidationError as e:
        raise InvalidProblemFormat(_first_error(e)) from e


def parse_feedback(raw: Any) -> str:
    """
    Accept either {"feedback": "..."} or plain prose.
    Text that looks like a JSON object must actually be one.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidFeedbackFormat("provider returned no text")

    text = strip_code_fences(raw)
    if text.startswith("{"):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidFeedbackFormat(f"not valid JSON ({e.msg})") from e
        if not isinstance(data, dict):
            raise InvalidFeedbackFormat("expected a JSON object")
    else:
        data = {"feedback": text}

    try:
        return FeedbackPayload.model_validate(data).feedback
    except ValidationError as e:
        raise InvalidFeedbackFormat(_first_error(e)) from e
