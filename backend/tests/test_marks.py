"""
Tests for grading/marks.py — missing-mark arithmetic and the input boundary.
"""

import math
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from grading.marks import (
    NaN,
    InvalidNumberOfMarks,
    InvalidRangeOfMarks,
    MarksError,
    best_of,
    blank_row,
    format_mark,
    format_mark_trim,
    from_row,
    marks_from_payload,
    marks_to_payload,
    parse_mark,
    sum_marks,
    sum_quizzes,
    to_row,
)
from grading.terms import quarter, semester


class TestSumMarks:

    def test_plain_sum(self):
        assert sum_marks(1.0, 2.5, 3.0) == 6.5

    def test_empty_is_zero(self):
        assert sum_marks() == 0.0

    def test_any_nan_propagates(self):
        assert math.isnan(sum_marks(1.0, NaN, 3.0))


class TestSumQuizzes:

    def test_drops_lowest(self):
        assert sum_quizzes(10, 9, 8, 7, 6, 5) == 40

    def test_one_missing_counts_as_zero_and_is_dropped(self):
        assert sum_quizzes(10, 9, NaN, 7, 6, 5) == 37

    def test_two_missing_is_nan(self):
        assert math.isnan(sum_quizzes(10, NaN, NaN, 7, 6, 5))


class TestBestOf:

    def test_matches_sum_quizzes_for_n_minus_one(self):
        m = [7.5, 9.25, 3.0, 10.0, 8.0, 6.5]
        assert best_of(m, 5) == sum_quizzes(*m)

    def test_best_three(self):
        assert best_of([4, 9, 7, 10, 2], 3) == 26

    def test_one_missing_tolerated(self):
        assert best_of([4, NaN, 7, 10, 2], 2) == 17

    def test_two_missing_is_nan(self):
        assert math.isnan(best_of([NaN, NaN, 7, 10, 2], 2))

    def test_keep_out_of_range(self):
        with pytest.raises(ValueError):
            best_of([1, 2], 3)


class TestErrors:

    def test_messages(self):
        assert str(InvalidNumberOfMarks()) == "Invalid number of marks."
        assert str(InvalidRangeOfMarks()) == "Invalid range of marks."

    def test_hierarchy(self):
        assert issubclass(InvalidRangeOfMarks, MarksError)
        assert issubclass(MarksError, ValueError)
        assert InvalidNumberOfMarks.kind != InvalidRangeOfMarks.kind


class TestParseMark:

    @pytest.mark.parametrize("text,expected", [
        ("7", 7.0),
        (" 4.5 ", 4.5),
        ("0", 0.0),
        ("10", 10.0),
        (8, 8.0),
    ])
    def test_valid(self, text, expected):
        assert parse_mark(text, 10) == expected

    @pytest.mark.parametrize("text", [None, "", "   ", "abc", "-1", "10.5", "nan", "inf"])
    def test_not_entered(self, text):
        assert parse_mark(text, 10) is None


class TestRows:

    def test_blank_row(self):
        row = blank_row(3)
        assert len(row) == 3
        assert all(math.isnan(v) for v in row)

    def test_to_row_and_back(self):
        row = to_row([1, None, "x", 2.5, True])
        assert row[0] == 1.0 and row[3] == 2.5
        assert math.isnan(row[1])
        # left for evaluate() to flag
        assert row[2] == "x" and row[4] is True
        assert from_row(row) == [1.0, None, None, 2.5, None]

    def test_payload(self):
        marks = marks_from_payload({"1|1": [5, None], "2|1": [80]})
        assert marks[quarter(1)][0] == 5.0
        assert math.isnan(marks[quarter(1)][1])
        assert marks[semester(1)] == [80.0]
        assert marks_to_payload(marks) == {"1|1": [5.0, None], "2|1": [80.0]}

    def test_payload_bad_term(self):
        with pytest.raises(ValueError, match="Invalid term"):
            marks_from_payload({"7|1": [1]})

    def test_payload_not_a_list(self):
        with pytest.raises(ValueError):
            marks_from_payload({"1|1": 5})


class TestFormatting:

    def test_format_mark(self):
        assert format_mark(87.5) == "87.50"
        assert format_mark(NaN) == ""
        assert format_mark(None) == ""

    def test_format_mark_trim(self):
        assert format_mark_trim(87.5) == "87.5"
        assert format_mark_trim(90.0) == "90"
        assert format_mark_trim(NaN) == ""
