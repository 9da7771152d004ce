"""
Grading routes — columns, evaluation and letter lookups for one subject.
"""

import logging
import math
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException

from grading.classes import (
    class_grading_systems,
    class_weights,
    classify_class,
    get_grading_system,
    letter_system_for,
    subject_in_average,
)
from grading.columns import describe_columns
from grading.engine import GradingSystem
from grading.letters import LETTER_SYSTEMS, gpa_av_wgp
from grading.marks import StudentMarks, marks_from_payload, marks_to_payload
from grading.subjects import Subject, SubjectConfigError
from grading.terms import END_OF_YEAR, Term, parse_term, quarter, semester

logger = logging.getLogger(__name__)

router = APIRouter()


def clean(value) -> Optional[float]:
    """NaN -> None for JSON."""
    if value is None or math.isnan(value):
        return None
    return value


# ── Payload helpers (shared with the report routes) ─────────────────

def configured_from_payload(payload: dict) -> Dict[str, Subject]:
    configured = {}
    for data in payload.get("configured_subjects") or []:
        try:
            subject = Subject.from_dict(data)
            subject.validate()
        except SubjectConfigError as e:
            raise HTTPException(400, str(e))
        configured[subject.short_name] = subject
    return configured


def system_for(class_name: str, subject: str,
               configured: Optional[Dict[str, Subject]] = None) -> GradingSystem:
    if not class_name or not subject:
        raise HTTPException(400, "Class and subject are required.")
    try:
        system = get_grading_system(class_name, subject, configured)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if system is None:
        raise HTTPException(404, f"Class {class_name} does not take {subject}.")
    return system


def system_from_payload(payload: dict) -> GradingSystem:
    return system_for(payload.get("class"), payload.get("subject"),
                      configured_from_payload(payload))


def term_from_payload(payload: dict, key: str = "term") -> Term:
    try:
        return parse_term(str(payload.get(key, "")))
    except ValueError as e:
        raise HTTPException(400, str(e))


def store_from_payload(data) -> StudentMarks:
    if data is not None and not isinstance(data, dict):
        raise HTTPException(400, "Marks must be an object keyed by term.")
    try:
        return marks_from_payload(data or {})
    except ValueError as e:
        raise HTTPException(400, str(e))


def stores_from_payload(items) -> List[StudentMarks]:
    if not isinstance(items, list):
        raise HTTPException(400, "Expected a list of student marks.")
    return [store_from_payload(item) for item in items]


# ── Endpoints ───────────────────────────────────────────────────────

@router.get("/classes/{class_name}")
async def class_overview(class_name: str):
    """Weights, letter system and built-in subjects of a class."""
    try:
        info = classify_class(class_name)
    except ValueError as e:
        raise HTTPException(404, str(e))
    weights = class_weights(info)
    letters = letter_system_for(info)
    return {
        "class": info.name,
        "stage": info.stage,
        "grade": info.grade,
        "stream": info.stream,
        "quarter_weight": weights.quarter,
        "semester_weight": weights.semester,
        "letter_system": letters.name,
        "letter_scale": letters.describe(),
        "subjects": [
            {
                "subject": name,
                "grading_system": system.display_name(),
                "in_average": subject_in_average(name, info),
            }
            for name, system in class_grading_systems(info).items()
        ],
    }


@router.post("/description")
async def description(payload: dict):
    """Mark-entry columns for (class, subject, term)."""
    system = system_from_payload(payload)
    term = term_from_payload(payload)
    return {
        "grading_system": system.display_name(),
        "term": str(term),
        "columns": describe_columns(system.description(term)),
        "editable": system.has_editable(term),
        "quarter_weight": clean(system.quarter_weight()),
        "semester_weight": clean(system.semester_weight()),
    }


@router.post("/evaluate")
async def evaluate(payload: dict):
    """Recompute a student's marks for a term and everything it depends on."""
    system = system_from_payload(payload)
    term = term_from_payload(payload)
    marks = store_from_payload(payload.get("marks"))

    error = system.evaluate(term, marks)
    if error is not None:
        logger.info("Marks for %s %s %s were reset: %s",
                    payload.get("class"), payload.get("subject"), term, error)

    mark = system.get100(term, marks)
    letters = letter_system_for(payload.get("class"))
    return {
        "term": str(term),
        "marks": marks_to_payload(marks),
        "mark": clean(mark),
        "exam": clean(system.get_exam(term, marks)),
        "ready": system.ready(term, marks),
        "letter": letters.get_letter(mark),
        "summary": [clean(v) for v in system.term_summary(term, marks)],
        "error": None if error is None else {"kind": error.kind, "message": str(error)},
    }


@router.post("/letter")
async def letter(payload: dict):
    """Letter for a mark, by class or by letter system name."""
    if payload.get("letter_system"):
        letters = LETTER_SYSTEMS.get(payload["letter_system"])
        if letters is None:
            raise HTTPException(400, f"Unknown letter system: {payload['letter_system']}")
    elif payload.get("class"):
        try:
            letters = letter_system_for(payload["class"])
        except ValueError as e:
            raise HTTPException(400, str(e))
    else:
        raise HTTPException(400, "Provide a class or a letter system.")

    mark = payload.get("mark")
    if mark is not None and not isinstance(mark, (int, float)):
        raise HTTPException(400, "Mark must be a number.")
    return {
        "letter_system": letters.name,
        "letter": letters.get_letter(None if mark is None else float(mark)),
        "scale": letters.thresholds(),
        "description": letters.describe(),
    }


@router.post("/gpa-points")
async def gpa_points(payload: dict):
    mark = payload.get("mark")
    if mark is not None and not isinstance(mark, (int, float)):
        raise HTTPException(400, "Mark must be a number.")
    av, gp = gpa_av_wgp(None if mark is None else float(mark))
    return {"letter": av, "grade_point": clean(gp)}


@router.post("/subjects/validate")
async def validate_subject(payload: dict):
    """Check a configured subject and preview its columns."""
    try:
        subject = Subject.from_dict(payload.get("subject"))
        system = subject.grading_system(class_weights(payload.get("class") or "12"))
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {
        "valid": True,
        "subject": subject.to_dict(),
        "columns": {
            str(term): describe_columns(system.description(term))
            for term in (quarter(1), semester(1), END_OF_YEAR)
        },
    }
