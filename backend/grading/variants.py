"""
variants.py — Built-in grading layouts.

Most subjects use the generic layout:
  [5:Homework] [5:Participation] [20:Daily Work]
  [50:best 5 quizzes out of 6] [20:Quarter Exam]
Other subjects swap the first columns, drop the quizzes, or grade the
semester exam as written + practical. P.E. has no semester exam and behavior
is a per-quarter checklist without marks.
"""

from typing import Callable, Dict, List, Optional

from grading.engine import (
    Component,
    ExamComposition,
    GradingSystem,
    Layout,
    Weights,
    direct,
    quiz_block,
)

NaN = float("nan")

SIX_QUIZZES = quiz_block("Quiz", 6, 10, 5, label="Best 5 Quizzes")
QUARTER_EXAM = direct("Quarter Exam", 20, exam=True)


def _quizzed(*columns: Component) -> tuple:
    return tuple(columns) + (SIX_QUIZZES, QUARTER_EXAM)


GENERIC = Layout(_quizzed(
    direct("Homework", 5),
    direct("Participation", 5),
    direct("Daily Work", 20),
))

MATH = Layout(_quizzed(
    direct("Homework", 5),
    direct("Daily Work", 5),
    direct("Mental Math", 20),
))

ENGLISH = Layout(_quizzed(
    direct("Homework", 5),
    direct("Daily Work", 5),
    direct("Reading", 10),
    direct("Writing", 10),
))

SCIENCE = Layout(_quizzed(
    direct("Homework", 5),
    direct("Daily Work", 5),
    direct("Definitions", 10),
    direct("Experiment / practical", 10),
))

# 25% each quarter, no semester exam.
PE = Layout(
    (direct("Evaluation", 100, exam=True),),
    composition=ExamComposition.NONE,
    quarter_totals=False,
)

CITIZENSHIP = Layout((
    direct("Daily Work", 20),
    direct("Oral", 50),
    direct("Project", 10),
    direct("Exam", 20, exam=True),
))

RELIGION_UPPER = Layout((
    direct("Daily Work", 15),
    direct("Homework", 5),
    direct("Quran", 30),
    direct("Exam", 50, exam=True),
))

COMPUTER_2_TO_5 = Layout(
    (
        direct("Homework", 5),
        direct("Participation", 5),
        direct("Behavior", 10),
        direct("Project1", 10),
        direct("Project2", 10),
        direct("Quarter Exam", 30),
        direct("Practical Exam", 30, exam=True),
    ),
    composition=ExamComposition.WRITTEN_PLUS_PRACTICAL,
)

COMPUTER_6_TO_12 = Layout(
    (
        direct("Homework", 5),
        direct("Participation", 5),
        direct("Behavior", 5),
        SIX_QUIZZES,
        QUARTER_EXAM,
        direct("Practical Exam", 15, exam=True),
    ),
    composition=ExamComposition.WRITTEN_PLUS_PRACTICAL,
)

UCMAS = Layout((
    direct("Homework", 10),
    direct("Abacus Work", 30),
    direct("Mental Arithmetic", 30),
    direct("Exam", 30, exam=True),
))

BEHAVIOR_ITEMS: List[str] = [
    "Follows school guidelines for safe and appropriate behaviour",
    "Demonstrates courtesy and respect",
    "Listens and responds",
    "Strives for quality work",
    "Shows initiative / is a self - starter",
    "Participates enthusiastically in activities",
    "Uses time efficiently and appropriately",
    "Completes class work on time",
    "Contributes to discussion and group tasks",
    "Works cooperatively with others",
    "Works well independently",
    "Returns complete homework",
    "Organizes shelf, materials and belongings",
    "Asks questions to clarify content",
    "Clearly communicates to teachers",
]

BEHAVIOR = Layout(
    tuple(direct(item, 4) for item in BEHAVIOR_ITEMS),
    composition=ExamComposition.NONE,
    checklist=True,
)


def single_column(column: str) -> Layout:
    """One column out of 100 (e.g. "Evaluation") with a semester exam."""
    return Layout((direct(column, 100, exam=True),))


# ── Factories ───────────────────────────────────────────────────────

def generic_system(weights: Weights) -> GradingSystem:
    return GradingSystem("generic", GENERIC, weights)


def math_system(weights: Weights) -> GradingSystem:
    return GradingSystem("math", MATH, weights)


def english_system(weights: Weights) -> GradingSystem:
    return GradingSystem("english", ENGLISH, weights)


def science_system(weights: Weights) -> GradingSystem:
    return GradingSystem("science", SCIENCE, weights)


def citizenship_system(weights: Weights) -> GradingSystem:
    return GradingSystem("citizenship", CITIZENSHIP, weights)


def religion_upper_system(weights: Weights) -> GradingSystem:
    return GradingSystem("religion", RELIGION_UPPER, weights)


def computer_2_to_5_system(weights: Weights) -> GradingSystem:
    return GradingSystem("computer 2-5", COMPUTER_2_TO_5, weights)


def computer_6_to_12_system(weights: Weights) -> GradingSystem:
    return GradingSystem("computer 6-12", COMPUTER_6_TO_12, weights)


def ucmas_system(weights: Weights) -> GradingSystem:
    return GradingSystem("ucmas", UCMAS, weights)


def evaluation_system(weights: Weights, column: str = "Evaluation") -> GradingSystem:
    return GradingSystem("evaluation", single_column(column), weights)


def pe_system(weights: Optional[Weights] = None) -> GradingSystem:
    # P.E. ignores class weights: each quarter is half of its semester.
    return GradingSystem("pe", PE, Weights.fixed(50, NaN))


def behavior_system(weights: Optional[Weights] = None) -> GradingSystem:
    return GradingSystem("behavior", BEHAVIOR, Weights.fixed(NaN, NaN))


VARIANTS: Dict[str, Callable[[Weights], GradingSystem]] = {
    "generic": generic_system,
    "math": math_system,
    "english": english_system,
    "science": science_system,
    "citizenship": citizenship_system,
    "religion": religion_upper_system,
    "computer_2_5": computer_2_to_5_system,
    "computer_6_12": computer_6_to_12_system,
    "ucmas": ucmas_system,
    "evaluation": evaluation_system,
    "pe": pe_system,
    "behavior": behavior_system,
}


def new_grading_system(kind: str, weights: Weights) -> GradingSystem:
    """Build a built-in variant by name. Unknown names are a configuration bug."""
    try:
        factory = VARIANTS[kind]
    except KeyError:
        raise ValueError(f"Unknown grading system: {kind}") from None
    return factory(weights)
