"""
Tests for grading/letters.py — letter systems and GPA bands.
"""

import math
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from grading.letters import ABCDF, OVSLU, LetterSystem, credits_earned, gpa_av_wgp


class TestLetterSystem:

    @pytest.mark.parametrize("mark,letter", [
        (100, "A"), (90, "A"), (89.99, "B"), (80, "B"), (75, "C"), (60, "D"), (59.99, "F"), (0, "F"),
    ])
    def test_abcdf(self, mark, letter):
        assert ABCDF.get_letter(mark) == letter

    def test_ovslu(self):
        assert [OVSLU.get_letter(m) for m in (95, 85, 75, 65, 10)] == ["O", "V", "S", "L", "U"]

    def test_missing_mark(self):
        assert ABCDF.get_letter(float("nan")) == "N/A"
        assert ABCDF.get_letter(None) == "N/A"

    def test_negative_mark(self):
        assert ABCDF.get_letter(-1) == "Error"

    def test_describe(self):
        assert ABCDF.describe() == (
            "A: Excellent (90-100) - B: Good (80-89) - C: Satisfactory (70-79) - "
            "D: Needs Improvement (60-69) - F: Fail Insufficient (0-59)"
        )

    def test_thresholds(self):
        scale = OVSLU.thresholds()
        assert scale[0] == {"letter": "O", "description": "Outstanding", "min": 90.0, "max": 100.0}
        assert scale[-1]["max"] == 59.99

    def test_thresholds_must_decrease(self):
        with pytest.raises(ValueError):
            LetterSystem("bad", [("A", "a", 50), ("B", "b", 70), ("C", "c", 0)])

    def test_must_end_at_zero(self):
        with pytest.raises(ValueError):
            LetterSystem("bad", [("A", "a", 50), ("B", "b", 10)])


class TestGPA:

    @pytest.mark.parametrize("mark,letter,gp", [
        (100, "A+", 4.0),
        (97, "A+", 4.0),
        (95, "A", 4.0),
        (91, "A-", 3.7),
        (88, "B+", 3.3),
        (84, "B", 3.0),
        (81, "B-", 2.7),
        (78, "C+", 2.3),
        (74, "C", 2.0),
        (71, "C-", 1.7),
        (68, "D+", 1.3),
        (64, "D", 1.0),
        (61, "D-", 1.0),
        (60, "D-", 1.0),
        (59.9, "F", 0.0),
        (0, "F", 0.0),
    ])
    def test_bands(self, mark, letter, gp):
        assert gpa_av_wgp(mark) == (letter, gp)

    @pytest.mark.parametrize("mark", [float("nan"), None, 100.5, -0.5])
    def test_not_available(self, mark):
        letter, gp = gpa_av_wgp(mark)
        assert letter == "N/A"
        assert math.isnan(gp)

    def test_credits(self):
        assert credits_earned(60, 3) == 3
        assert credits_earned(59.99, 3) == 0
