"""
classes.py — Class names and what they imply.

Class names are "PreKG", "KG1", "KG2", "SN" (special needs) or a grade
"1" .. "12", optionally followed by a stream suffix ("11sci"). A name is
classified once into a ClassInfo; weights, letter system, subject table and
averaging rules are all derived from it.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

from grading.engine import GradingSystem, Weights
from grading.letters import ABCDF, OVSLU, LetterSystem
from grading.subjects import Subject
from grading.variants import (
    behavior_system,
    citizenship_system,
    computer_2_to_5_system,
    computer_6_to_12_system,
    english_system,
    evaluation_system,
    generic_system,
    math_system,
    pe_system,
    religion_upper_system,
    science_system,
)

KINDERGARTEN = "kindergarten"
SPECIAL_NEEDS = "special_needs"
SCHOOL = "school"

KG_CLASSES = ("PreKG", "KG1", "KG2")
SN_CLASS = "SN"

_GRADE_RE = re.compile(r"^(\d+)(\D*)$")
_STREAM_RE = re.compile(r"\D+$")

# Subjects that count toward a student's overall average.
AVERAGE_SUBJECTS = frozenset({
    "Arabic",
    "English",
    "Math",
    "Science",
    "Biology",
    "Chemistry",
    "Physics",
    "Social Studies",
    "Religion",
})


@dataclass(frozen=True)
class ClassInfo:
    name: str
    stage: str
    grade: Optional[int] = None
    stream: str = ""

    @property
    def is_kindergarten(self) -> bool:
        return self.stage == KINDERGARTEN

    @property
    def is_special_needs(self) -> bool:
        return self.stage == SPECIAL_NEEDS

    @property
    def base_name(self) -> str:
        """The class without its stream: "11sci" -> "11"."""
        return str(self.grade) if self.grade is not None else self.name


def classify_class(name: str) -> ClassInfo:
    name = (name or "").strip()
    if name in KG_CLASSES:
        return ClassInfo(name, KINDERGARTEN)
    if name == SN_CLASS:
        return ClassInfo(name, SPECIAL_NEEDS)
    match = _GRADE_RE.match(name)
    if match:
        grade = int(match.group(1))
        if 1 <= grade <= 12:
            return ClassInfo(name, SCHOOL, grade, match.group(2))
    raise ValueError(f"Invalid class: {name}")


def _info(cls) -> ClassInfo:
    return cls if isinstance(cls, ClassInfo) else classify_class(cls)


def class_weights(cls) -> Weights:
    """Quarter/semester weights: 40/20 up to grade 2, 30/40 for 3-5, 25/50 for 6-12."""
    info = _info(cls)
    if info.grade is None or info.grade <= 2:
        return Weights.from_quarter(40)
    if info.grade <= 5:
        return Weights.from_quarter(30)
    return Weights.from_quarter(25)


def letter_system_for(cls) -> LetterSystem:
    info = _info(cls)
    if info.grade is None or info.grade <= 2:
        return OVSLU
    return ABCDF


def subject_in_average(subject: str, cls) -> bool:
    info = _info(cls)
    if info.is_kindergarten and subject == "Religion":
        return False
    if subject == "Computer" and info.grade is not None and info.grade >= 9:
        return True
    return subject in AVERAGE_SUBJECTS


def class_grading_systems(cls) -> Dict[str, GradingSystem]:
    """Built-in subject -> grading system table for a class."""
    info = _info(cls)
    w = class_weights(info)

    if info.is_kindergarten:
        systems = {
            "Arabic": generic_system(w),
            "English": english_system(w),
            "Math": math_system(w),
            "Science": science_system(w),
            "Religion": evaluation_system(w),
        }
    elif info.is_special_needs:
        systems = {
            "Arabic": generic_system(w),
            "English": english_system(w),
            "Math": math_system(w),
            "Science": science_system(w),
            "Religion": generic_system(w),
            "Citizenship": citizenship_system(w),
            "Computer": evaluation_system(w),
        }
    else:
        grade = info.grade
        systems = {
            "Arabic": generic_system(w),
            "English": english_system(w),
            "Math": math_system(w),
            "Citizenship": citizenship_system(w),
        }
        if grade <= 8:
            systems["Social Studies"] = generic_system(w)
            systems["Science"] = science_system(w)
        else:
            systems["Biology"] = science_system(w)
            systems["Chemistry"] = science_system(w)
            systems["Physics"] = science_system(w)
        if grade <= 5:
            systems["Religion"] = generic_system(w)
            systems["Islamic Studies"] = evaluation_system(w)
            if grade >= 2:
                systems["Computer"] = computer_2_to_5_system(w)
        else:
            systems["Religion"] = religion_upper_system(w)
            systems["Computer"] = computer_6_to_12_system(w)

    systems["P.E."] = pe_system()
    systems["Behavior"] = behavior_system()
    return systems


def get_grading_system(class_name: str, subject: str,
                       configured: Optional[Mapping[str, Subject]] = None) -> Optional[GradingSystem]:
    """Grading system for (class, subject), or None when the class does not take it.

    A subject configured for the class takes precedence over the built-in table.
    """
    info = classify_class(class_name)
    if configured and subject in configured:
        return configured[subject].grading_system(class_weights(info))
    return class_grading_systems(info).get(subject)


# ── Labels ──────────────────────────────────────────────────────────

def trim_stream(name: str) -> str:
    """Drop any trailing non-digits: "11sci" -> "11". Non-grade names are kept."""
    trimmed = _STREAM_RE.sub("", name)
    return trimmed or name


def grades_label(grades: List[str]) -> str:
    """Grades label: "9", "9, 10", or "9 - 12" for three or more."""
    if not grades:
        return ""
    if len(grades) == 1:
        return grades[0]
    if len(grades) == 2:
        return f"{grades[0]}, {grades[1]}"
    return f"{grades[0]} - {grades[-1]}"


def multi_grades_label(groups: Iterable[List[str]]) -> str:
    return ", ".join(grades_label(g) for g in groups if g)
