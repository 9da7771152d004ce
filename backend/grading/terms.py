"""
terms.py — Grading periods.

A school year is split into four quarters, two semesters and the end of
year. Semester s is made of quarters 2s-1 and 2s; the end of year is made of
the two semesters.

Terms travel through forms and JSON as "<type>|<n>" (e.g. "1|3" is Quarter 3).
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Tuple


class TermType(IntEnum):
    QUARTER = 1
    SEMESTER = 2
    END_OF_YEAR = 3


TERM_NAMES = {
    TermType.QUARTER: "Quarter",
    TermType.SEMESTER: "Semester",
    TermType.END_OF_YEAR: "End of Year",
}

# Valid n for each term type.
TERM_RANGES = {
    TermType.QUARTER: range(1, 5),
    TermType.SEMESTER: range(1, 3),
    TermType.END_OF_YEAR: range(0, 1),
}


@dataclass(frozen=True)
class Term:
    typ: TermType
    n: int

    def __post_init__(self):
        try:
            typ = TermType(self.typ)
        except ValueError:
            raise ValueError(f"Invalid term type: {self.typ}") from None
        if self.n not in TERM_RANGES[typ]:
            raise ValueError(f"Invalid term number for {TERM_NAMES[typ]}: {self.n}")
        object.__setattr__(self, "typ", typ)

    def __str__(self) -> str:
        name = TERM_NAMES[self.typ]
        if self.n == 0:
            return name
        return f"{name} {self.n}"

    def value(self) -> str:
        """Form encoding, the inverse of parse_term."""
        return f"{int(self.typ)}|{self.n}"

    @property
    def is_quarter(self) -> bool:
        return self.typ == TermType.QUARTER

    @property
    def is_semester(self) -> bool:
        return self.typ == TermType.SEMESTER

    @property
    def is_end_of_year(self) -> bool:
        return self.typ == TermType.END_OF_YEAR


def quarter(n: int) -> Term:
    return Term(TermType.QUARTER, n)


def semester(n: int) -> Term:
    return Term(TermType.SEMESTER, n)


END_OF_YEAR = Term(TermType.END_OF_YEAR, 0)

# Display order used by term pickers and exports.
TERMS: List[Term] = [
    quarter(1),
    quarter(2),
    semester(1),
    quarter(3),
    quarter(4),
    semester(2),
    END_OF_YEAR,
]


def parse_term(s: str) -> Term:
    """Parse "<type>|<n>". Raises ValueError for anything else."""
    parts = str(s).split("|")
    if len(parts) != 2:
        raise ValueError(f"Invalid term: {s}")
    try:
        typ = TermType(int(parts[0]))
        n = int(parts[1])
    except ValueError:
        raise ValueError(f"Invalid term: {s}") from None
    try:
        return Term(typ, n)
    except ValueError:
        raise ValueError(f"Invalid term: {s}") from None


def quarter_pair(term: Term) -> Tuple[Term, Term]:
    """The two quarters that make up a semester."""
    if not term.is_semester:
        raise ValueError(f"Not a semester: {term}")
    q2 = term.n * 2
    return quarter(q2 - 1), quarter(q2)


def semester_pair() -> Tuple[Term, Term]:
    """The two semesters that make up the end of year."""
    return semester(1), semester(2)


def semester_number(term: Term) -> int:
    """Ordinal of the semester a quarter belongs to (a semester's own n)."""
    if term.is_quarter:
        return (term.n + 1) // 2
    if term.is_semester:
        return term.n
    raise ValueError(f"{term} does not belong to a semester")
