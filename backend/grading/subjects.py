"""
subjects.py — Subjects configured by the school instead of built in.

A configured subject lists its quarter columns and, optionally, semester
columns. Quarter columns must weigh 100 in total. Semester columns weigh
100 too, or are absent, in which case the semester mark is the mean of the
two quarters.
"""

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional

from grading.engine import (
    Component,
    ExamComposition,
    GradingSystem,
    Layout,
    Weights,
    direct,
    quiz_block,
)


class SubjectConfigError(ValueError):
    """A subject configuration that cannot be graded."""


class GradingColumnType(IntEnum):
    DIRECT = 1
    QUIZ = 2


@dataclass
class GradingColumn:
    type: GradingColumnType
    name: str
    max: float
    final_weight: float = 0.0
    num_quizzes: int = 0
    best_quizzes: int = 0

    def __post_init__(self):
        self.type = GradingColumnType(self.type)
        self.max = float(self.max)
        self.final_weight = float(self.final_weight or 0.0)
        if self.final_weight == 0:
            if self.type == GradingColumnType.QUIZ:
                self.final_weight = self.max * self.best_quizzes
            else:
                self.final_weight = self.max

    def validate(self):
        if not self.name:
            raise SubjectConfigError("Every column needs a name")
        if not self.max > 0:
            raise SubjectConfigError(f"Invalid max mark for {self.name}: {self.max:g}")
        if not self.final_weight > 0:
            raise SubjectConfigError(f"Invalid final weight for {self.name}: {self.final_weight:g}")
        if self.type == GradingColumnType.QUIZ:
            if self.num_quizzes < 1:
                raise SubjectConfigError(
                    f"Invalid Number of Quizzes for {self.name}: {self.num_quizzes}")
            if self.best_quizzes < 1 or self.best_quizzes > self.num_quizzes:
                raise SubjectConfigError(
                    f"Invalid Best Quizzes for {self.name}: {self.best_quizzes}")

    def component(self, exam: bool = False) -> Component:
        if self.type == GradingColumnType.QUIZ:
            return quiz_block(
                self.name, self.num_quizzes, self.max, self.best_quizzes,
                label=f"Best {self.best_quizzes} {self.name}",
                final_weight=self.final_weight, exam=exam,
            )
        return direct(self.name, self.max, exam=exam, final_weight=self.final_weight)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GradingColumn":
        try:
            return cls(
                type=GradingColumnType(int(data.get("type", GradingColumnType.DIRECT))),
                name=str(data.get("name", "")).strip(),
                max=float(data["max"]),
                final_weight=float(data.get("final_weight") or 0.0),
                num_quizzes=int(data.get("num_quizzes") or 0),
                best_quizzes=int(data.get("best_quizzes") or 0),
            )
        except KeyError as e:
            raise SubjectConfigError(f"Column is missing {e.args[0]}") from None
        except (TypeError, ValueError) as e:
            raise SubjectConfigError(f"Invalid column: {e}") from None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": int(self.type),
            "name": self.name,
            "max": self.max,
            "final_weight": self.final_weight,
            "num_quizzes": self.num_quizzes,
            "best_quizzes": self.best_quizzes,
        }


def _total(columns: List[GradingColumn]) -> float:
    return sum(c.final_weight for c in columns)


@dataclass
class Subject:
    short_name: str
    description: str = ""
    calculate_in_average: bool = True
    s1_credits: float = 0.0
    s2_credits: float = 0.0
    quarter_columns: List[GradingColumn] = field(default_factory=list)
    semester_columns: List[GradingColumn] = field(default_factory=list)
    # Name of the quarter column reported as the quarter exam, if any.
    exam_column: Optional[str] = None

    def display_name(self) -> str:
        return self.description or self.short_name

    def validate(self):
        if not self.short_name:
            raise SubjectConfigError("Subject does not have a short name")
        if not self.quarter_columns and not self.semester_columns:
            raise SubjectConfigError("Please add columns")
        if not self.quarter_columns:
            raise SubjectConfigError("Please add quarter columns")
        for column in self.quarter_columns + self.semester_columns:
            column.validate()

        q_total = _total(self.quarter_columns)
        if not math.isclose(q_total, 100.0):
            raise SubjectConfigError(f"Total marks for quarter must be 100. Got {q_total:f}")
        s_total = _total(self.semester_columns)
        if s_total != 0 and not math.isclose(s_total, 100.0):
            raise SubjectConfigError(f"Total marks for semester must be 100. Got {s_total:f}")

        if self.exam_column is not None:
            if self.exam_column not in {c.name for c in self.quarter_columns}:
                raise SubjectConfigError(f"Unknown exam column: {self.exam_column}")

    def layout(self) -> Layout:
        self.validate()
        quarter = tuple(c.component(exam=c.name == self.exam_column)
                        for c in self.quarter_columns)
        semester = tuple(c.component() for c in self.semester_columns)
        if semester:
            return Layout(quarter, composition=ExamComposition.COLUMNS, semester=semester)
        return Layout(quarter, composition=ExamComposition.NONE)

    def grading_system(self, weights: Weights) -> GradingSystem:
        return GradingSystem(self.display_name(), self.layout(), weights)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subject":
        if not isinstance(data, dict):
            raise SubjectConfigError("Subject must be an object")
        try:
            s1_credits = float(data.get("s1_credits") or 0.0)
            s2_credits = float(data.get("s2_credits") or 0.0)
        except (TypeError, ValueError):
            raise SubjectConfigError("Credits must be numbers") from None
        description = str(data.get("description") or "").strip()
        short_name = str(data.get("short_name") or "").strip()
        return cls(
            short_name=short_name,
            description=description or short_name,
            calculate_in_average=bool(data.get("calculate_in_average", True)),
            s1_credits=s1_credits,
            s2_credits=s2_credits,
            quarter_columns=[GradingColumn.from_dict(c) for c in data.get("quarter_columns") or []],
            semester_columns=[GradingColumn.from_dict(c) for c in data.get("semester_columns") or []],
            exam_column=data.get("exam_column") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "short_name": self.short_name,
            "description": self.description,
            "calculate_in_average": self.calculate_in_average,
            "s1_credits": self.s1_credits,
            "s2_credits": self.s2_credits,
            "quarter_columns": [c.to_dict() for c in self.quarter_columns],
            "semester_columns": [c.to_dict() for c in self.semester_columns],
            "exam_column": self.exam_column,
        }
