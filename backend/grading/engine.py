"""
engine.py — The grading engine.

Every subject is graded by one GradingSystem built from a Layout:

- Quarter: the layout's components (direct columns and quiz blocks) are
  summed into a Quarter Mark out of 100, then scaled by the quarter weight
  into Quarter %.
- Semester: the semester exam (direct, written + practical, configured
  columns, or none) is scaled by the semester weight into Semester Exam %.
  Semester Mark = Semester Exam % + Quarter(2n-1) % + Quarter(2n) %.
  Without an exam, Semester Mark = Quarter(2n-1)/2 + Quarter(2n)/2.
- End of year: Final mark = Semester 1 / 2 + Semester 2 / 2.

Evaluating a term evaluates the terms it depends on against the same mark
store and writes their rows back into it. Evaluation is idempotent.

Positions inside a row are never hardcoded: each term's description is
built together with a Slots object naming where every value lives.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from grading.columns import ColumnDescriptor, derived, editable
from grading.marks import (
    InvalidNumberOfMarks,
    InvalidRangeOfMarks,
    MarksError,
    NaN,
    StudentMarks,
    best_of,
    blank_row,
    sum_marks,
)
from grading.terms import Term, TermType, quarter_pair, semester_pair

logger = logging.getLogger(__name__)


# ── Layout ──────────────────────────────────────────────────────────

class ExamComposition(Enum):
    DIRECT = "direct"
    WRITTEN_PLUS_PRACTICAL = "written_plus_practical"
    COLUMNS = "columns"
    NONE = "none"


@dataclass(frozen=True)
class Component:
    """A direct column, or a block of quizzes reduced to the best `keep`.

    final_weight is the component's share of the 100-point mark. When it is
    None the raw score is used as is.
    """

    name: str
    max: float
    final_weight: Optional[float] = None
    exam: bool = False
    quizzes: int = 0
    keep: int = 0
    label: Optional[str] = None

    def __post_init__(self):
        if not self.max > 0:
            raise ValueError(f"Column '{self.name}' needs a positive max, got {self.max}")
        if self.quizzes and not 1 <= self.keep <= self.quizzes:
            raise ValueError(
                f"Column '{self.name}' keeps {self.keep} of {self.quizzes} quizzes"
            )
        if self.final_weight is not None and not self.final_weight > 0:
            raise ValueError(f"Column '{self.name}' needs a positive final weight")

    @property
    def is_quiz(self) -> bool:
        return self.quizzes > 0

    @property
    def full(self) -> float:
        """Raw maximum of the value that contributes to the mark."""
        return self.max * self.keep if self.is_quiz else self.max

    @property
    def weight(self) -> float:
        return self.full if self.final_weight is None else self.final_weight

    @property
    def aggregate_name(self) -> str:
        return self.label or f"Best {self.keep} {self.name}"

    def contribution(self, value: float) -> float:
        if self.weight == self.full:
            return value
        return value * self.weight / self.full


def direct(name: str, maximum: float, exam: bool = False,
           final_weight: Optional[float] = None) -> Component:
    return Component(name, float(maximum), final_weight=final_weight, exam=exam)


def quiz_block(name: str, count: int, maximum: float, keep: int,
               label: Optional[str] = None, final_weight: Optional[float] = None,
               exam: bool = False) -> Component:
    return Component(
        name, float(maximum), final_weight=final_weight, exam=exam,
        quizzes=count, keep=keep, label=label,
    )


WRITTEN_EXAM = direct("Written Exam", 25)
PRACTICAL_EXAM = direct("Practical Exam", 25)


@dataclass(frozen=True)
class Layout:
    quarter: Tuple[Component, ...]
    composition: ExamComposition = ExamComposition.DIRECT
    semester: Tuple[Component, ...] = ()
    quarter_totals: bool = True
    checklist: bool = False

    def __post_init__(self):
        object.__setattr__(self, "quarter", tuple(self.quarter))
        object.__setattr__(self, "semester", tuple(self.semester))
        if not self.quarter:
            raise ValueError("A grading layout needs quarter columns")
        if self.checklist:
            if any(c.is_quiz for c in self.quarter):
                raise ValueError("Checklist layouts take direct columns only")
            return
        if not self.quarter_totals:
            only = self.quarter[0]
            if len(self.quarter) != 1 or only.is_quiz or only.max != 100:
                raise ValueError("A quarter without totals must be a single direct column out of 100")
            if self.composition != ExamComposition.NONE:
                raise ValueError("A quarter without totals cannot carry a semester exam")
        if self.composition == ExamComposition.COLUMNS:
            if not self.semester:
                raise ValueError("Semester columns are required for configured semester exams")
        elif self.semester:
            raise ValueError(f"Semester columns are not used with {self.composition.value} exams")


@dataclass(frozen=True)
class Weights:
    quarter: float
    semester: float

    @classmethod
    def from_quarter(cls, quarter: float) -> "Weights":
        """Quarter weight in [0, 50]; the semester exam takes the rest."""
        quarter = float(quarter)
        if not 0 <= quarter <= 50:
            raise ValueError(f"Quarter weight must be between 0 and 50, got {quarter}")
        return cls(quarter, 100.0 - 2 * quarter)

    @classmethod
    def fixed(cls, quarter: float, semester: float) -> "Weights":
        """Weights that do not follow the 100 - 2q rule (P.E., behavior)."""
        return cls(float(quarter), float(semester))


# ── Slots ───────────────────────────────────────────────────────────

@dataclass
class InputGroup:
    component: Component
    raw: List[int]
    aggregate: Optional[int] = None

    @property
    def value_index(self) -> int:
        return self.aggregate if self.aggregate is not None else self.raw[0]


@dataclass
class Slots:
    inputs: List[InputGroup] = field(default_factory=list)
    exam_inputs: List[int] = field(default_factory=list)
    quarter_mark: Optional[int] = None
    quarter_percent: Optional[int] = None
    semester_exam: Optional[int] = None
    semester_exam_percent: Optional[int] = None
    semester_mark: Optional[int] = None
    semester1: Optional[int] = None
    semester2: Optional[int] = None
    final_mark: Optional[int] = None


def _place(component: Component, cols: List[ColumnDescriptor]) -> InputGroup:
    if not component.is_quiz:
        cols.append(ColumnDescriptor(
            component.name, component.max, True, component.final_weight))
        return InputGroup(component, [len(cols) - 1])
    raw = []
    for i in range(1, component.quizzes + 1):
        cols.append(editable(f"{component.name} {i}", component.max))
        raw.append(len(cols) - 1)
    cols.append(ColumnDescriptor(
        component.aggregate_name, component.full, False, component.final_weight))
    return InputGroup(component, raw, len(cols) - 1)


def _first_error(*errors: Optional[MarksError]) -> Optional[MarksError]:
    for error in errors:
        if error is not None:
            return error
    return None


def _valid_mark(value, maximum: float) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if math.isnan(value):
        return True
    return 0 <= value <= maximum


# ── Grading system ──────────────────────────────────────────────────

class GradingSystem:
    """Columns and mark aggregation for one (class, subject)."""

    def __init__(self, name: str, layout: Layout, weights: Weights):
        self.name = name
        self.layout = layout
        self.weights = weights

    def __repr__(self):
        return f"GradingSystem({self.name!r}, q={self.weights.quarter}, s={self.weights.semester})"

    def display_name(self) -> str:
        return self.name

    def quarter_weight(self) -> float:
        return self.weights.quarter

    def semester_weight(self) -> float:
        return self.weights.semester

    # Description ------------------------------------------------------

    def description(self, term: Term) -> List[ColumnDescriptor]:
        return self._plan(term)[0]

    def slots(self, term: Term) -> Slots:
        return self._plan(term)[1]

    def has_editable(self, term: Term) -> bool:
        return any(d.editable for d in self.description(term))

    def _plan(self, term: Term) -> Tuple[List[ColumnDescriptor], Slots]:
        if term.typ == TermType.QUARTER:
            return self._quarter_plan()
        if term.typ == TermType.SEMESTER:
            return self._semester_plan()
        if term.typ == TermType.END_OF_YEAR:
            return self._end_of_year_plan()
        raise ValueError(f"Invalid term type: {term.typ}")

    def _quarter_plan(self):
        cols: List[ColumnDescriptor] = []
        slots = Slots()
        for component in self.layout.quarter:
            group = _place(component, cols)
            slots.inputs.append(group)
            if component.exam:
                slots.exam_inputs.append(group.value_index)
        if self.layout.quarter_totals and not self.layout.checklist:
            cols.append(derived("Quarter Mark", 100))
            slots.quarter_mark = len(cols) - 1
            cols.append(derived("Quarter %", self.weights.quarter))
            slots.quarter_percent = len(cols) - 1
        return cols, slots

    def _semester_plan(self):
        cols: List[ColumnDescriptor] = []
        slots = Slots()
        if self.layout.checklist:
            return cols, slots

        composition = self.layout.composition
        if composition == ExamComposition.DIRECT:
            cols.append(editable("Semester Exam", 100))
            slots.semester_exam = 0
        elif composition != ExamComposition.NONE:
            components = self.layout.semester
            if composition == ExamComposition.WRITTEN_PLUS_PRACTICAL:
                components = (WRITTEN_EXAM, PRACTICAL_EXAM)
            for component in components:
                slots.inputs.append(_place(component, cols))
            cols.append(derived("Semester Exam", 100))
            slots.semester_exam = len(cols) - 1

        if composition != ExamComposition.NONE:
            cols.append(derived("Semester Exam %", self.weights.semester))
            slots.semester_exam_percent = len(cols) - 1
        cols.append(derived("Semester Mark", 100))
        slots.semester_mark = len(cols) - 1
        return cols, slots

    def _end_of_year_plan(self):
        slots = Slots()
        if self.layout.checklist:
            return [], slots
        cols = [
            derived("Semester 1 %", 50),
            derived("Semester 2 %", 50),
            derived("Final mark", 100),
        ]
        slots.semester1, slots.semester2, slots.final_mark = 0, 1, 2
        return cols, slots

    # Evaluation -------------------------------------------------------

    def evaluate(self, term: Term, marks: StudentMarks) -> Optional[MarksError]:
        """Recompute the derived values of `term` (and the terms it is made of).

        Returns a recoverable MarksError when stored marks had to be reset,
        None otherwise. Rows are written back into `marks`.
        """
        desc, slots = self._plan(term)
        row, error = self._load(term, marks, desc)

        if self.layout.checklist:
            pass
        elif term.typ == TermType.QUARTER:
            self._evaluate_quarter(row, slots)
        elif term.typ == TermType.SEMESTER:
            error = _first_error(error, self._evaluate_semester(term, row, slots, marks))
        else:
            error = _first_error(error, self._evaluate_end_of_year(row, slots, marks))

        marks[term] = row
        return error

    def _load(self, term: Term, marks: StudentMarks, desc: List[ColumnDescriptor]):
        error: Optional[MarksError] = None
        row = marks.get(term)
        if row is None:
            return blank_row(len(desc)), None
        if len(row) != len(desc):
            logger.debug("%s: expected %d marks for %s, got %d; resetting",
                         self.name, len(desc), term, len(row))
            return blank_row(len(desc)), InvalidNumberOfMarks()

        row = list(row)
        for i, d in enumerate(desc):
            if not d.editable:
                if not _valid_mark(row[i], math.inf):
                    row[i] = NaN
                continue
            if not _valid_mark(row[i], d.max):
                logger.debug("%s: %s %r out of range [0, %s]", self.name, d.name, row[i], d.max)
                row[i] = NaN
                if error is None:
                    error = InvalidRangeOfMarks()
        return row, error

    @staticmethod
    def _sum_inputs(row: List[float], slots: Slots) -> float:
        parts = []
        for group in slots.inputs:
            component = group.component
            if component.is_quiz:
                value = best_of([row[i] for i in group.raw], component.keep)
                row[group.aggregate] = value
            else:
                value = row[group.raw[0]]
            parts.append(component.contribution(value))
        return sum_marks(*parts)

    def _evaluate_quarter(self, row: List[float], slots: Slots):
        total = self._sum_inputs(row, slots)
        if slots.quarter_mark is None:
            return
        row[slots.quarter_mark] = total
        row[slots.quarter_percent] = total * self.weights.quarter / 100.0

    def _evaluate_semester(self, term: Term, row: List[float], slots: Slots,
                           marks: StudentMarks) -> Optional[MarksError]:
        composition = self.layout.composition
        exam_percent = NaN
        if composition != ExamComposition.NONE:
            if composition == ExamComposition.WRITTEN_PLUS_PRACTICAL:
                written, practical = (row[g.raw[0]] for g in slots.inputs)
                row[slots.semester_exam] = sum_marks(written, practical) * 2
            elif composition == ExamComposition.COLUMNS:
                row[slots.semester_exam] = self._sum_inputs(row, slots)
            exam_percent = row[slots.semester_exam] * self.weights.semester / 100.0
            row[slots.semester_exam_percent] = exam_percent

        q1, q2 = quarter_pair(term)
        error = _first_error(self.evaluate(q1, marks), self.evaluate(q2, marks))

        if composition == ExamComposition.NONE:
            row[slots.semester_mark] = sum_marks(
                self.get100(q1, marks) / 2.0, self.get100(q2, marks) / 2.0)
        else:
            row[slots.semester_mark] = sum_marks(
                exam_percent, self._quarter_percent(q1, marks), self._quarter_percent(q2, marks))
        return error

    def _evaluate_end_of_year(self, row: List[float], slots: Slots,
                              marks: StudentMarks) -> Optional[MarksError]:
        s1, s2 = semester_pair()
        error = _first_error(self.evaluate(s1, marks), self.evaluate(s2, marks))
        row[slots.semester1] = self.get100(s1, marks) / 2.0
        row[slots.semester2] = self.get100(s2, marks) / 2.0
        row[slots.final_mark] = sum_marks(row[slots.semester1], row[slots.semester2])
        return error

    def _quarter_percent(self, term: Term, marks: StudentMarks) -> float:
        slots = self.slots(term)
        if slots.quarter_percent is None:
            return self.get100(term, marks) * self.weights.quarter / 100.0
        row = self._row(term, marks)
        return NaN if row is None else row[slots.quarter_percent]

    # Reading ----------------------------------------------------------

    def _row(self, term: Term, marks: StudentMarks) -> Optional[List[float]]:
        row = marks.get(term)
        if not row or len(row) != len(self.description(term)):
            return None
        return row

    def ready(self, term: Term, marks: StudentMarks) -> bool:
        """True once the last value of the row (the final aggregate) is known.

        Checklists are ready when every entry is present.
        """
        row = self._row(term, marks)
        if row is None:
            return False
        if self.layout.checklist:
            return not any(math.isnan(v) for v in row)
        return not math.isnan(row[-1])

    def get100(self, term: Term, marks: StudentMarks) -> float:
        """The term's mark out of 100 (NaN when not available)."""
        if self.layout.checklist:
            return 100.0 if self.ready(term, marks) else NaN
        row = self._row(term, marks)
        if row is None:
            return NaN
        slots = self.slots(term)
        if term.typ == TermType.QUARTER:
            return row[slots.quarter_mark] if slots.quarter_mark is not None else row[0]
        if term.typ == TermType.SEMESTER:
            return row[slots.semester_mark]
        return row[slots.final_mark]

    def get_exam(self, term: Term, marks: StudentMarks) -> float:
        """Exam part of the term: the quarter's exam columns, or Semester Exam %."""
        if self.layout.checklist:
            return NaN
        row = self._row(term, marks)
        if row is None:
            return NaN
        slots = self.slots(term)
        if term.typ == TermType.QUARTER:
            if not slots.exam_inputs:
                return NaN
            return sum_marks(*(row[i] for i in slots.exam_inputs))
        if term.typ == TermType.SEMESTER and slots.semester_exam_percent is not None:
            return row[slots.semester_exam_percent]
        return NaN

    def term_summary(self, term: Term, marks: StudentMarks) -> List[float]:
        """Report-card row for a term, after evaluate()."""
        if term.typ == TermType.QUARTER:
            return [100.0, self.get100(term, marks)]
        if term.typ == TermType.SEMESTER:
            q1, q2 = quarter_pair(term)
            return [
                self.get100(q1, marks) * self.weights.quarter / 100.0,
                self.get100(q2, marks) * self.weights.quarter / 100.0,
                self.get_exam(term, marks),
                self.get100(term, marks),
            ]
        s1, s2 = semester_pair()
        return [
            self.get100(s1, marks) * 50.0 / 100.0,
            self.get100(s2, marks) * 50.0 / 100.0,
            self.get100(term, marks),
        ]
