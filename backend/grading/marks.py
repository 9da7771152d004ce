"""
marks.py — Mark rows, missing-data arithmetic and validation errors.

A student's marks for one subject are a mapping Term -> row of floats. A
missing mark is NaN inside a row. At the input boundary (forms, JSON) a
missing mark is None.

Two summing rules exist and must not be mixed:
- sum_marks: strict, any NaN makes the result NaN.
- sum_quizzes / best_of: tolerate at most one NaN, which then counts as 0.
"""

import math
from typing import Any, Dict, Iterable, List, Optional, Sequence

from grading.terms import Term, parse_term

StudentMarks = Dict[Term, List[float]]

NaN = float("nan")


# ── Errors ──────────────────────────────────────────────────────────

class MarksError(ValueError):
    """Recoverable problem with stored marks. Returned, not raised, by evaluate."""

    kind = "marks_error"


class InvalidNumberOfMarks(MarksError):
    kind = "invalid_number_of_marks"

    def __init__(self, message: str = "Invalid number of marks."):
        super().__init__(message)


class InvalidRangeOfMarks(MarksError):
    kind = "invalid_range_of_marks"

    def __init__(self, message: str = "Invalid range of marks."):
        super().__init__(message)


# ── Arithmetic ──────────────────────────────────────────────────────

def is_missing(value: Optional[float]) -> bool:
    return value is None or math.isnan(value)


def sum_marks(*marks: float) -> float:
    """Sum all values; NaN if any of them is NaN."""
    total = 0.0
    for v in marks:
        if math.isnan(v):
            return NaN
        total += v
    return total


def sum_quizzes(*marks: float) -> float:
    """Sum of all values except the smallest.

    A single missing quiz counts as 0 (and is the one dropped). More than
    one missing quiz gives NaN.
    """
    total = 0.0
    lowest = 0.0
    missing = 0
    for i, v in enumerate(marks):
        if math.isnan(v):
            missing += 1
            v = 0.0
        lowest = v if i == 0 else min(lowest, v)
        total += v
    if missing > 1:
        return NaN
    return total - lowest


def best_of(marks: Sequence[float], keep: int) -> float:
    """Sum of the best `keep` values, with the same one-missing tolerance as sum_quizzes."""
    if keep < 0 or keep > len(marks):
        raise ValueError(f"Cannot keep {keep} of {len(marks)} marks")
    if keep == len(marks) - 1:
        return sum_quizzes(*marks)
    if sum(1 for v in marks if math.isnan(v)) > 1:
        return NaN
    values = sorted((0.0 if math.isnan(v) else v for v in marks), reverse=True)
    return float(sum(values[:keep]))


def blank_row(n: int) -> List[float]:
    return [NaN] * n


# ── Input boundary ──────────────────────────────────────────────────

def parse_mark(text: Any, maximum: float) -> Optional[float]:
    """Turn a form or sheet cell into a mark.

    Blank, malformed, negative, non-finite or above-max input is "not
    entered" and comes back as None.
    """
    if text is None:
        return None
    if isinstance(text, str):
        text = text.strip()
        if not text:
            return None
    try:
        value = float(text)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    if value < 0 or value > maximum:
        return None
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_row(values: Iterable[Any]) -> List[Any]:
    """None -> NaN and ints -> float.

    Anything else (strings, booleans) is kept as sent so that
    GradingSystem.evaluate resets it and reports InvalidRangeOfMarks.
    """
    row = []
    for v in values:
        if v is None:
            row.append(NaN)
        elif _is_number(v):
            row.append(float(v))
        else:
            row.append(v)
    return row


def from_row(row: Iterable[Any]) -> List[Optional[float]]:
    """NaN -> None, for JSON. Entries that are not numbers come out as None."""
    return [v if _is_number(v) and not math.isnan(v) else None for v in row]


def marks_from_payload(payload: Dict[str, Any]) -> StudentMarks:
    """Build a mark store from {"<type>|<n>": [..]} as sent by clients."""
    marks: StudentMarks = {}
    for key, values in (payload or {}).items():
        term = parse_term(key)
        if values is None:
            continue
        if not isinstance(values, (list, tuple)):
            raise ValueError(f"Marks for {term} must be a list")
        marks[term] = to_row(values)
    return marks


def marks_to_payload(marks: StudentMarks) -> Dict[str, List[Optional[float]]]:
    return {term.value(): from_row(row) for term, row in marks.items()}


# ── Formatting ──────────────────────────────────────────────────────

def format_mark(mark: Optional[float]) -> str:
    if is_missing(mark):
        return ""
    return f"{mark:.2f}"


def format_mark_trim(mark: Optional[float]) -> str:
    """format_mark without trailing zeros: 87.50 -> 87.5, 90.00 -> 90."""
    s = format_mark(mark)
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s
