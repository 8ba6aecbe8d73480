# services/answers.py
from __future__ import annotations

import math
import re
from typing import Any, Union

from sympy import Basic, nan, oo, preorder_traversal, zoo
from sympy.core.power import Pow
from sympy.parsing.sympy_parser import convert_xor, parse_expr, standard_transformations

from services.errors import InvalidAnswer

LEN_LIMIT = 100
_INVALID_CHARS_MSG = (
    "Only numeric answers using digits, spaces, + - * / ^ . and parentheses are allowed."
)
_NON_FINITE_MSG = "Answer is not a finite number (e.g., division by zero)."
_TOO_COMPLEX_MSG = "Answer is too complex."
_ALLOWED_RE = re.compile(r"^[0-9+\-*/^().\s]{1,100}$")

TRANSFORMS = standard_transformations + (convert_xor,)

# Hard stops that never trigger for a real answer
_MAX_OPS = 50
_MAX_INT_DIGITS = 30
_MAX_EXPONENT_ABS = 100


def _check_text(s: str) -> None:
    if not s.strip():
        raise InvalidAnswer("Answer required.")
    if len(s) > LEN_LIMIT:
        raise InvalidAnswer(f"Answer too long (> {LEN_LIMIT}).")
    if _ALLOWED_RE.fullmatch(s) is None:
        raise InvalidAnswer(_INVALID_CHARS_MSG)


def _check_complexity(sym: Any) -> None:
    if sym in (oo, -oo, zoo, nan) or getattr(sym, "is_finite", None) is False:
        raise InvalidAnswer(_NON_FINITE_MSG)
    if hasattr(sym, "count_ops") and sym.count_ops() > _MAX_OPS:
        raise InvalidAnswer(_TOO_COMPLEX_MSG)
    if not isinstance(sym, Basic):
        return
    for node in preorder_traversal(sym):
        if getattr(node, "is_Integer", False) and len(str(abs(int(node)))) > _MAX_INT_DIGITS:
            raise InvalidAnswer(_TOO_COMPLEX_MSG)
        if isinstance(node, Pow) and getattr(node.exp, "is_number", False):
            try:
                too_big = abs(float(node.exp)) > _MAX_EXPONENT_ABS
            except (TypeError, ValueError):
                too_big = True
            if too_big:
                raise InvalidAnswer(_TOO_COMPLEX_MSG)


def _eval_numeric(expr: str) -> float:
    try:
        # evaluate=False keeps 10^999 from being expanded before the guards run
        sym = parse_expr(expr, transformations=TRANSFORMS, evaluate=False)
    except Exception as e:
        raise InvalidAnswer(_INVALID_CHARS_MSG) from e
    _check_complexity(sym)
    try:
        val = float(sym.doit().evalf())
    except Exception as e:
        raise InvalidAnswer(_NON_FINITE_MSG) from e
    if not math.isfinite(val):
        raise InvalidAnswer(_NON_FINITE_MSG)
    return val


def parse_answer(value: Union[int, float, str]) -> float:
    """
    Normalise a submitted answer to a finite float.

    Numbers pass straight through; strings may be short numeric expressions
    such as "42", "12.5" or "3/4".
    """
    if isinstance(value, bool):
        raise InvalidAnswer("Answer must be a number.")
    if isinstance(value, (int, float)):
        try:
            val = float(value)
        except OverflowError as e:
            raise InvalidAnswer(_NON_FINITE_MSG) from e
        if not math.isfinite(val):
            raise InvalidAnswer(_NON_FINITE_MSG)
        return val
    if not isinstance(value, str):
        raise InvalidAnswer("Answer must be a number.")

    _check_text(value)
    raw = value.strip()
    # Fast path: plain number without going through sympy.
    try:
        val = float(raw)
    except ValueError:
        return _eval_numeric(raw)
    if not math.isfinite(val):
        raise InvalidAnswer(_NON_FINITE_MSG)
    return val


def num_to_clean_str(x: float) -> str:
    if math.isfinite(x) and abs(x - round(x)) < 1e-12:
        return str(int(round(x)))
    return str(x)
