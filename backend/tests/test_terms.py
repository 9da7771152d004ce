"""
Tests for grading/terms.py — term construction, parsing and pairing.
"""

import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from grading.terms import (
    END_OF_YEAR,
    TERMS,
    Term,
    TermType,
    parse_term,
    quarter,
    quarter_pair,
    semester,
    semester_number,
    semester_pair,
)


class TestTerm:

    def test_names(self):
        assert str(quarter(3)) == "Quarter 3"
        assert str(semester(1)) == "Semester 1"
        assert str(END_OF_YEAR) == "End of Year"

    def test_structural_equality_and_hashing(self):
        assert Term(TermType.QUARTER, 2) == quarter(2)
        assert {quarter(2): "x"}[Term(1, 2)] == "x"

    def test_integer_type_is_coerced(self):
        assert Term(2, 1).typ is TermType.SEMESTER

    @pytest.mark.parametrize("typ,n", [(1, 0), (1, 5), (2, 3), (3, 1), (4, 1)])
    def test_invalid_terms_rejected(self, typ, n):
        with pytest.raises(ValueError):
            Term(typ, n)

    def test_flags(self):
        assert quarter(1).is_quarter
        assert semester(2).is_semester
        assert END_OF_YEAR.is_end_of_year

    def test_display_order(self):
        assert [t.value() for t in TERMS] == ["1|1", "1|2", "2|1", "1|3", "1|4", "2|2", "3|0"]


class TestParseTerm:

    def test_parses_form_encoding(self):
        assert parse_term("1|3") == quarter(3)
        assert parse_term("2|2") == semester(2)
        assert parse_term("3|0") == END_OF_YEAR

    def test_value_is_inverse(self):
        for term in TERMS:
            assert parse_term(term.value()) == term

    @pytest.mark.parametrize("text", ["", "1", "1|", "x|1", "1|x", "1|2|3", "9|1", "1|7", "3|1"])
    def test_malformed(self, text):
        with pytest.raises(ValueError, match="Invalid term"):
            parse_term(text)


class TestPairs:

    def test_quarter_pair(self):
        assert quarter_pair(semester(1)) == (quarter(1), quarter(2))
        assert quarter_pair(semester(2)) == (quarter(3), quarter(4))

    def test_quarter_pair_needs_semester(self):
        with pytest.raises(ValueError):
            quarter_pair(quarter(1))

    def test_semester_pair(self):
        assert semester_pair() == (semester(1), semester(2))

    def test_semester_number(self):
        assert [semester_number(quarter(n)) for n in range(1, 5)] == [1, 1, 2, 2]
        assert semester_number(semester(2)) == 2
        with pytest.raises(ValueError):
            semester_number(END_OF_YEAR)
