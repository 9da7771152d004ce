"""
Report routes — class-wide summaries, GPA transcripts and Excel marks sheets.
"""

import logging
import os
import re
import uuid
from pathlib import Path

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from grading.classes import class_weights, classify_class
from grading.export import MarksSheet, StudentRow, save_marks_workbook
from grading.gpa import gpa_transcript, gpa_year
from grading.reports import (
    completion_count,
    end_of_year_marks,
    final_marks_summary,
    marks_table,
    semester_exam_comparison,
    semester_exam_marks,
)
from grading.subjects import Subject
from grading.terms import semester
from routes.grading import (
    configured_from_payload,
    store_from_payload,
    stores_from_payload,
    system_for,
    term_from_payload,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SCHOOL_NAME = os.getenv("SCHOOL_NAME", "My School")
EXPORT_DIR = Path(__file__).resolve().parent.parent / "exports"
EXPORT_DIR.mkdir(parents=True, exist_ok=True)


def _safe_token(value: str, fallback: str = "item") -> str:
    """Create filesystem-safe token for filenames."""
    token = re.sub(r"[^A-Za-z0-9._-]+", "_", str(value)).strip("._-")
    return token or fallback


def _safe_unlink(path: str):
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not delete %s: %s", path, e)


def _classes_from_payload(payload: dict) -> dict:
    """{"classes": {class_name: [marks, ...]}} with a required subject."""
    if not payload.get("subject"):
        raise HTTPException(400, "No subject provided.")
    classes = payload.get("classes")
    if not classes or not isinstance(classes, dict):
        raise HTTPException(400, "No classes provided.")
    return {name: stores_from_payload(items) for name, items in classes.items()}


def _class_systems(payload: dict, classes: dict) -> dict:
    """Grading system per class; classes that do not take the subject map to None."""
    configured = configured_from_payload(payload)
    systems = {}
    for class_name in classes:
        try:
            systems[class_name] = system_for(class_name, payload["subject"], configured)
        except HTTPException as e:
            if e.status_code != 404:
                raise
            systems[class_name] = None
    return systems


@router.post("/final-marks")
async def final_marks(payload: dict):
    """End-of-year band counts, proficiency and excellence per class."""
    classes = _classes_from_payload(payload)
    systems = _class_systems(payload, classes)
    marks_by_class = {
        name: end_of_year_marks(systems[name], stores) if systems[name] else []
        for name, stores in classes.items()
    }
    result = final_marks_summary(marks_by_class)
    result["subject"] = payload["subject"]
    return result


@router.post("/semester-comparison")
async def semester_comparison(payload: dict):
    """Semester 1 vs semester 2 exam proficiency per class."""
    classes = _classes_from_payload(payload)
    systems = _class_systems(payload, classes)
    out = {}
    for name, stores in classes.items():
        system = systems[name]
        if system is None:
            out[name] = None
            continue
        s1 = semester_exam_marks(system, semester(1), stores)
        s2 = semester_exam_marks(system, semester(2), stores)
        comparison = semester_exam_comparison(s1, s2)
        comparison["students"] = len(stores)
        out[name] = comparison
    return {"subject": payload["subject"], "classes": out}


@router.post("/completion")
async def completion(payload: dict):
    """Students with a complete mark for the term, per class."""
    classes = _classes_from_payload(payload)
    term = term_from_payload(payload)
    systems = _class_systems(payload, classes)
    return {
        "subject": payload["subject"],
        "term": str(term),
        "classes": {
            name: completion_count(systems[name], term, stores) if systems[name] else None
            for name, stores in classes.items()
        },
    }


@router.post("/marks-table")
async def all_marks(payload: dict):
    """All subjects for a list of students, with averages and ranks."""
    students = payload.get("students")
    if not students or not isinstance(students, list):
        raise HTTPException(400, "No students provided.")
    term = term_from_payload(payload)
    configured = configured_from_payload(payload)
    in_average = {name: s.calculate_in_average for name, s in configured.items()}

    subjects = []
    rows = []
    for student in students:
        if not isinstance(student, dict):
            raise HTTPException(400, "Every student must be an object.")
        class_name = str(student.get("class") or "")
        try:
            classify_class(class_name)
        except ValueError as e:
            raise HTTPException(400, str(e))
        student_subjects = student.get("subjects") or {}
        if not isinstance(student_subjects, dict):
            raise HTTPException(400, "Subjects must be an object keyed by subject.")
        marks = {}
        for subject, data in student_subjects.items():
            system = system_for(class_name, subject, configured)
            store = store_from_payload(data)
            system.evaluate(term, store)
            marks[subject] = system.get100(term, store)
            if subject not in subjects:
                subjects.append(subject)
        rows.append({
            "name": student.get("name", ""),
            "class": class_name,
            "marks": marks,
            "in_average": in_average,
            "calculate_all": bool(payload.get("calculate_all", False)),
        })
    result = marks_table(rows, subjects, sort_by_average=payload.get("sort", True))
    result["term"] = str(term)
    return result


@router.post("/gpa-transcript")
async def transcript(payload: dict):
    """Cumulative GPA over the school years supplied."""
    years_data = payload.get("years")
    if not years_data or not isinstance(years_data, list):
        raise HTTPException(400, "No years provided.")

    years = []
    for y in years_data:
        class_name = y.get("class")
        if not class_name:
            raise HTTPException(400, "Every year needs a class.")
        entries = []
        for item in y.get("subjects") or []:
            config = item.get("config")
            if config:
                try:
                    subject = Subject.from_dict(config)
                    system = subject.grading_system(class_weights(class_name))
                except ValueError as e:
                    raise HTTPException(400, str(e))
                name = subject.display_name()
                s1_credits, s2_credits = subject.s1_credits, subject.s2_credits
            else:
                name = item.get("subject")
                system = system_for(class_name, name)
                s1_credits = item.get("s1_credits") or 0
                s2_credits = item.get("s2_credits") or 0
            entries.append({
                "subject": name,
                "system": system,
                "marks": store_from_payload(item.get("marks")),
                "s1_credits": s1_credits,
                "s2_credits": s2_credits,
            })
        try:
            years.append(gpa_year(class_name, str(y.get("school_year", "")), entries,
                                  ignore_in_total=bool(y.get("ignore_in_total", False))))
        except (TypeError, ValueError) as e:
            raise HTTPException(400, str(e))
    return gpa_transcript(years)


@router.post("/marks-sheet")
async def marks_sheet(payload: dict):
    """Excel workbook with one sheet per class-section and term."""
    sheets_data = payload.get("sheets")
    if not sheets_data or not isinstance(sheets_data, list):
        raise HTTPException(400, "No sheets provided.")
    configured = configured_from_payload(payload)

    sheets = []
    for s in sheets_data:
        class_name = s.get("class")
        system = system_for(class_name, s.get("subject"), configured)
        term = term_from_payload(s)
        title = f"{class_name}{s.get('section', '')} {s.get('subject')}"
        students = [
            StudentRow(str(st.get("name", "")), store_from_payload(st.get("marks")))
            for st in s.get("students") or []
        ]
        sheets.append(MarksSheet(title, system, term, students))

    school_name = payload.get("school_name") or SCHOOL_NAME
    export_id = str(uuid.uuid4())[:8]
    filename = f"marks_{_safe_token(school_name, 'school')}_{export_id}.xlsx"
    output_path = EXPORT_DIR / filename
    save_marks_workbook(str(output_path), sheets, school_name)
    logger.info("Wrote marks sheet %s (%d sheets)", filename, len(sheets))

    return FileResponse(
        str(output_path),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        filename=filename,
        background=BackgroundTask(_safe_unlink, str(output_path)),
    )
