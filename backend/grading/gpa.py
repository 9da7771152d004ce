"""
gpa.py — GPA transcript over one or more school years.

Only subjects that carry credits appear. For each semester with a mark:
  credits attempted (CA) = the subject's credits
  credits earned (CE)    = CA if the mark is at least 60, else 0
  weighted grade point   = GPA band of the mark
The subject's final mark is (s1 * CE1 + s2 * CE2) / (CA1 + CA2), or the
only available semester mark. Cumulative GPA bands the credit-weighted
average over all years, and separately over years not excluded from the
total.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from grading.classes import grades_label, multi_grades_label, trim_stream
from grading.engine import GradingSystem
from grading.letters import credits_earned, gpa_av_wgp
from grading.marks import NaN, StudentMarks, format_mark_trim
from grading.terms import semester

logger = logging.getLogger(__name__)


def _clean(value: float) -> Optional[float]:
    if value is None or math.isnan(value):
        return None
    return round(float(value), 4)


@dataclass
class SemesterCredit:
    available: bool = False
    mark: float = NaN
    attempted: float = NaN
    earned: float = NaN
    grade_point: float = NaN
    letter: str = ""

    @property
    def counted(self) -> bool:
        return not math.isnan(self.earned)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available": self.available,
            "mark": format_mark_trim(self.mark),
            "credits_attempted": _clean(self.attempted),
            "credits_earned": _clean(self.earned),
            "grade_point": _clean(self.grade_point),
            "letter": self.letter,
        }


@dataclass
class GPARow:
    subject: str
    s1: SemesterCredit
    s2: SemesterCredit
    final_mark: float = NaN
    final_gpa: float = NaN

    @property
    def weighted_total(self) -> float:
        return sum(s.earned * s.mark for s in (self.s1, self.s2) if s.counted)

    @property
    def credits(self) -> float:
        return sum(s.attempted for s in (self.s1, self.s2) if s.counted)

    @property
    def credits_earned(self) -> float:
        return sum(s.earned for s in (self.s1, self.s2) if s.counted)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "s1": self.s1.to_dict(),
            "s2": self.s2.to_dict(),
            "final_mark": format_mark_trim(self.final_mark),
            "final_gpa": _clean(self.final_gpa),
        }


def _semester_credit(system: GradingSystem, n: int, marks: StudentMarks,
                     credits: float) -> SemesterCredit:
    result = SemesterCredit()
    if credits <= 0:
        return result
    result.available = True
    term = semester(n)
    system.evaluate(term, marks)
    mark = system.get100(term, marks)
    if math.isnan(mark):
        return result
    result.mark = mark
    result.attempted = credits
    result.earned = credits_earned(mark, credits)
    result.letter, result.grade_point = gpa_av_wgp(mark)
    return result


def gpa_row(subject_name: str, system: GradingSystem, marks: StudentMarks,
            s1_credits: float, s2_credits: float) -> GPARow:
    """Evaluate both semesters of one subject into a transcript row."""
    row = GPARow(
        subject=subject_name,
        s1=_semester_credit(system, 1, marks, s1_credits),
        s2=_semester_credit(system, 2, marks, s2_credits),
    )
    s1, s2 = row.s1, row.s2
    if s1.counted and s2.counted:
        row.final_mark = (s1.mark * s1.earned + s2.mark * s2.earned) / (s1.attempted + s2.attempted)
        row.final_gpa = (s1.grade_point + s2.grade_point) / 2
    elif s1.counted:
        row.final_mark, row.final_gpa = s1.mark, s1.grade_point
    elif s2.counted:
        row.final_mark, row.final_gpa = s2.mark, s2.grade_point
    return row


@dataclass
class GPAYear:
    class_name: str
    school_year: str
    rows: List[GPARow] = field(default_factory=list)
    ignore_in_total: bool = False

    @property
    def credits(self) -> float:
        return sum(r.credits for r in self.rows)

    @property
    def credits_earned(self) -> float:
        return sum(r.credits_earned for r in self.rows)

    @property
    def weighted_total(self) -> float:
        return sum(r.weighted_total for r in self.rows)

    @property
    def average(self) -> float:
        """Plain mean of the subjects' final marks (not credit weighted)."""
        if not self.rows:
            return NaN
        return sum(r.final_mark for r in self.rows) / len(self.rows)

    @property
    def gpa(self) -> float:
        if not self.rows:
            return NaN
        return sum(r.final_gpa for r in self.rows) / len(self.rows)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class": trim_stream(self.class_name),
            "school_year": self.school_year,
            "rows": [r.to_dict() for r in self.rows],
            "credits_earned": _clean(self.credits_earned),
            "average": format_mark_trim(self.average),
            "gpa": _clean(self.gpa),
            "ignore_in_total": self.ignore_in_total,
        }


def gpa_year(class_name: str, school_year: str, subjects: List[Dict[str, Any]],
             ignore_in_total: bool = False) -> GPAYear:
    """Build a year from subject entries.

    Each entry: {"subject": str, "system": GradingSystem, "marks": StudentMarks,
    "s1_credits": float, "s2_credits": float}. Subjects without credits are
    left out.
    """
    year = GPAYear(class_name, school_year, ignore_in_total=ignore_in_total)
    for entry in subjects:
        s1_credits = float(entry.get("s1_credits") or 0.0)
        s2_credits = float(entry.get("s2_credits") or 0.0)
        if s1_credits <= 0 and s2_credits <= 0:
            continue
        year.rows.append(gpa_row(
            entry["subject"], entry["system"], entry["marks"], s1_credits, s2_credits))
    logger.debug("GPA year %s %s: %d subjects with credits",
                 school_year, class_name, len(year.rows))
    return year


def _cumulative(years: List[GPAYear]) -> Dict[str, Any]:
    credits = sum(y.credits for y in years)
    weighted = sum(y.weighted_total for y in years)
    average = weighted / credits if credits else NaN
    _, gp = gpa_av_wgp(average)
    return {
        "total_credits": _clean(credits),
        "credits_earned": _clean(sum(y.credits_earned for y in years)),
        "cumulative_gpa": _clean(gp),
        "cumulative_average": format_mark_trim(average),
    }


def gpa_transcript(years: List[GPAYear]) -> Dict[str, Any]:
    """Per-year rows plus cumulative GPA over all years and over included years."""
    years = [y for y in years if y.rows]

    # Consecutive included years are grouped: "9 - 11, 12".
    groups: List[List[str]] = []
    previous_included = False
    for y in years:
        if y.ignore_in_total:
            previous_included = False
            continue
        if previous_included:
            groups[-1].append(trim_stream(y.class_name))
        else:
            groups.append([trim_stream(y.class_name)])
        previous_included = True

    included = [y for y in years if not y.ignore_in_total]
    return {
        "years": [y.to_dict() for y in years],
        "included": dict(_cumulative(included),
                         classes=multi_grades_label(groups)),
        "all": dict(_cumulative(years),
                    classes=grades_label([trim_stream(y.class_name) for y in years])),
    }
