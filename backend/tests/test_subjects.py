"""
Tests for grading/subjects.py — configured subjects and their grading.
"""

import math
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from grading.engine import ExamComposition, Weights
from grading.marks import NaN, InvalidRangeOfMarks
from grading.subjects import GradingColumn, GradingColumnType, Subject, SubjectConfigError
from grading.terms import END_OF_YEAR, quarter, semester

DIRECT = GradingColumnType.DIRECT
QUIZ = GradingColumnType.QUIZ


@pytest.fixture
def physics():
    return Subject(
        short_name="Physics",
        description="Physics (Advanced)",
        s1_credits=2,
        s2_credits=2,
        quarter_columns=[
            GradingColumn(DIRECT, "Homework", 10, final_weight=20),
            GradingColumn(QUIZ, "Quizzes", 10, num_quizzes=4, best_quizzes=3),
            GradingColumn(DIRECT, "Exam", 50),
        ],
        semester_columns=[
            GradingColumn(DIRECT, "Written", 100, final_weight=60),
            GradingColumn(DIRECT, "Oral", 20, final_weight=40),
        ],
        exam_column="Exam",
    )


def q_row():
    return [5, 10, 8, 6, NaN, NaN, 40, NaN, NaN]


class TestGradingColumn:

    def test_direct_default_weight(self):
        assert GradingColumn(DIRECT, "Work", 15).final_weight == 15

    def test_quiz_default_weight(self):
        assert GradingColumn(QUIZ, "Quiz", 10, num_quizzes=6, best_quizzes=5).final_weight == 50

    def test_from_dict(self):
        column = GradingColumn.from_dict({"type": 2, "name": " Quiz ", "max": "10",
                                          "num_quizzes": 3, "best_quizzes": 2})
        assert column.type is QUIZ
        assert column.name == "Quiz"
        assert column.final_weight == 20

    @pytest.mark.parametrize("data", [
        {"type": 1, "name": "Work"},
        {"type": 3, "name": "Work", "max": 10},
        {"type": 1, "name": "Work", "max": "ten"},
    ])
    def test_from_dict_invalid(self, data):
        with pytest.raises(SubjectConfigError):
            GradingColumn.from_dict(data)


class TestValidate:

    def test_valid(self, physics):
        physics.validate()

    def test_display_name(self, physics):
        assert physics.display_name() == "Physics (Advanced)"
        assert Subject("Art").display_name() == "Art"

    def test_short_name_required(self, physics):
        physics.short_name = ""
        with pytest.raises(SubjectConfigError, match="short name"):
            physics.validate()

    def test_columns_required(self):
        with pytest.raises(SubjectConfigError, match="Please add columns"):
            Subject("Art").validate()

    def test_quarter_total(self, physics):
        physics.quarter_columns[2] = GradingColumn(DIRECT, "Exam", 40)
        with pytest.raises(SubjectConfigError, match="quarter must be 100"):
            physics.validate()

    def test_semester_total(self, physics):
        physics.semester_columns.pop()
        with pytest.raises(SubjectConfigError, match="semester must be 100"):
            physics.validate()

    def test_best_quizzes_bound(self, physics):
        physics.quarter_columns[1] = GradingColumn(QUIZ, "Quizzes", 6, final_weight=30,
                                                   num_quizzes=4, best_quizzes=5)
        with pytest.raises(SubjectConfigError, match="Best Quizzes"):
            physics.validate()

    def test_zero_max(self, physics):
        physics.quarter_columns[0] = GradingColumn(DIRECT, "Homework", 0, final_weight=20)
        with pytest.raises(SubjectConfigError, match="max mark"):
            physics.validate()

    def test_unknown_exam_column(self, physics):
        physics.exam_column = "Final"
        with pytest.raises(SubjectConfigError, match="exam column"):
            physics.validate()


class TestGrading:

    def test_layout(self, physics):
        layout = physics.layout()
        assert layout.composition == ExamComposition.COLUMNS
        physics.semester_columns = []
        assert physics.layout().composition == ExamComposition.NONE

    def test_description(self, physics):
        system = physics.grading_system(Weights.from_quarter(25))
        assert [d.name for d in system.description(quarter(1))] == [
            "Homework", "Quizzes 1", "Quizzes 2", "Quizzes 3", "Quizzes 4",
            "Best 3 Quizzes", "Exam", "Quarter Mark", "Quarter %",
        ]
        semester_desc = system.description(semester(1))
        assert [d.name for d in semester_desc] == [
            "Written", "Oral", "Semester Exam", "Semester Exam %", "Semester Mark",
        ]
        assert semester_desc[0].final_weight == 60

    def test_quarter(self, physics):
        system = physics.grading_system(Weights.from_quarter(25))
        marks = {quarter(1): q_row()}
        assert system.evaluate(quarter(1), marks) is None
        row = marks[quarter(1)]
        assert row[5] == 24
        assert row[7] == 74
        assert row[8] == 18.5
        assert system.get_exam(quarter(1), marks) == 40

    def test_semester(self, physics):
        system = physics.grading_system(Weights.from_quarter(25))
        marks = {quarter(1): q_row(), quarter(2): q_row(), semester(1): [80, 15, NaN, NaN, NaN]}
        assert system.evaluate(semester(1), marks) is None
        assert marks[semester(1)] == [80, 15, 78, 39, 76]

    def test_semester_out_of_range(self, physics):
        system = physics.grading_system(Weights.from_quarter(25))
        marks = {semester(1): [80, 25, NaN, NaN, NaN]}
        assert isinstance(system.evaluate(semester(1), marks), InvalidRangeOfMarks)
        assert math.isnan(marks[semester(1)][1])

    def test_without_semester_columns(self, physics):
        physics.semester_columns = []
        system = physics.grading_system(Weights.from_quarter(25))
        marks = {quarter(1): q_row(), quarter(2): q_row()}
        system.evaluate(END_OF_YEAR, marks)
        assert [d.name for d in system.description(semester(1))] == ["Semester Mark"]
        assert marks[semester(1)] == [74]
        assert math.isnan(system.get100(END_OF_YEAR, marks))

    def test_invalid_subject_cannot_grade(self, physics):
        physics.quarter_columns.pop()
        with pytest.raises(SubjectConfigError):
            physics.grading_system(Weights.from_quarter(25))


class TestSerialization:

    def test_round_trip(self, physics):
        again = Subject.from_dict(physics.to_dict())
        assert again == physics

    def test_description_defaults_to_short_name(self):
        subject = Subject.from_dict({"short_name": "Art", "quarter_columns": [
            {"type": 1, "name": "Work", "max": 100}]})
        assert subject.description == "Art"
        assert subject.calculate_in_average

    def test_not_an_object(self):
        with pytest.raises(SubjectConfigError):
            Subject.from_dict(["Art"])
