"""
letters.py — Letter grades and GPA grade points.

Two letter systems are in use, selected per class:
  ABCDF (grade 3 and up) and OVSLU (kindergarten, special needs, grades 1-2).

GPA transcripts use a separate 13-band table mapping a 0-100 mark to a
letter and a 4.0-scale grade point.
"""

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

NaN = float("nan")

# A subject's credits are earned only at or above this mark.
CREDIT_PASS_MARK = 60.0


class LetterSystem:
    """Ordered (letter, description, min_mark) thresholds, high to low."""

    def __init__(self, name: str, entries: Sequence[Tuple[str, str, float]]):
        entries = [(letter, desc, float(min_mark)) for letter, desc, min_mark in entries]
        if not entries:
            raise ValueError(f"Letter system {name} has no letters")
        for (_, _, higher), (letter, _, lower) in zip(entries, entries[1:]):
            if lower >= higher:
                raise ValueError(f"Letter system {name}: {letter} threshold is not decreasing")
        if entries[-1][2] != 0:
            raise ValueError(f"Letter system {name} must start at 0")
        self.name = name
        self.entries = entries

    def __repr__(self):
        return f"LetterSystem({self.name!r})"

    def get_letter(self, mark: Optional[float]) -> str:
        if mark is None or math.isnan(mark):
            return "N/A"
        for letter, _, min_mark in self.entries:
            if mark >= min_mark:
                return letter
        # Only negative marks fall through a table that starts at 0.
        return "Error"

    def describe(self) -> str:
        """e.g. "A: Excellent (90-100) - B: Good (80-89) - ..."."""
        parts = []
        previous_min = 101.0
        for letter, desc, min_mark in self.entries:
            parts.append(f"{letter}: {desc} ({min_mark:.0f}-{previous_min - 1:.0f})")
            previous_min = min_mark
        return " - ".join(parts)

    def thresholds(self) -> List[Dict[str, Any]]:
        """Full scale for legends."""
        out = []
        for idx, (letter, desc, min_mark) in enumerate(self.entries):
            max_mark = 100.0 if idx == 0 else self.entries[idx - 1][2] - 0.01
            out.append({
                "letter": letter,
                "description": desc,
                "min": min_mark,
                "max": round(max_mark, 2),
            })
        return out


ABCDF = LetterSystem("ABCDF", [
    ("A", "Excellent", 90.0),
    ("B", "Good", 80.0),
    ("C", "Satisfactory", 70.0),
    ("D", "Needs Improvement", 60.0),
    ("F", "Fail Insufficient", 0.0),
])

OVSLU = LetterSystem("OVSLU", [
    ("O", "Outstanding", 90.0),
    ("V", "Very Good", 80.0),
    ("S", "Satisfactory", 70.0),
    ("L", "Limited Progress", 60.0),
    ("U", "Unsatisfactory", 0.0),
])

LETTER_SYSTEMS = {ls.name: ls for ls in (ABCDF, OVSLU)}


# ── GPA ─────────────────────────────────────────────────────────────

# (min_mark, letter, grade_point), high to low.
GPA_BANDS = [
    (97.0, "A+", 4.0),
    (93.0, "A", 4.0),
    (90.0, "A-", 3.7),
    (87.0, "B+", 3.3),
    (83.0, "B", 3.0),
    (80.0, "B-", 2.7),
    (77.0, "C+", 2.3),
    (73.0, "C", 2.0),
    (70.0, "C-", 1.7),
    (67.0, "D+", 1.3),
    (63.0, "D", 1.0),
    (60.0, "D-", 1.0),
    (0.0, "F", 0.0),
]


def gpa_av_wgp(mark: Optional[float]) -> Tuple[str, float]:
    """Letter and weighted grade point for a mark; ("N/A", NaN) outside 0-100."""
    if mark is None or math.isnan(mark) or mark > 100:
        return "N/A", NaN
    for min_mark, letter, points in GPA_BANDS:
        if mark >= min_mark:
            return letter, points
    return "N/A", NaN


def credits_earned(mark: float, credits: float) -> float:
    """All of the credits at or above the pass mark, none below."""
    return credits if mark >= CREDIT_PASS_MARK else 0.0
