"""
reports.py — Aggregates over many students, with pandas/numpy/scipy.

Computes:
- Report-card averages over the subjects that count
- The all-subjects marks table with averages and ranks
- Final-mark band counts, proficiency (>= 80) and excellence (>= 90) rates
- Semester exam comparison with a paired t-test (scipy.stats.ttest_rel)
- Completion counts for a term
"""

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

from grading.classes import classify_class, subject_in_average
from grading.engine import GradingSystem
from grading.marks import NaN, StudentMarks
from grading.terms import END_OF_YEAR, Term

PROFICIENT = 80.0
EXCELLENT = 90.0
BAND_EDGES = [0, 60, 70, 80, 90, 100]
BAND_LABELS = ["59.99 and below", "60 - 70", "70 - 80", "80 - 90", "90 - 100"]


# ── Helpers ─────────────────────────────────────────────────────────

def _safe_float(val) -> Optional[float]:
    try:
        v = float(val)
        return None if np.isnan(v) or np.isinf(v) else round(v, 2)
    except (TypeError, ValueError):
        return None


def _sanitize(obj):
    """Recursively coerce numpy/pandas scalars to JSON-safe Python types."""
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(v) for v in obj]
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, (np.floating, float)):
        v = float(obj)
        return None if (np.isnan(v) or np.isinf(v)) else v
    return obj


def _rate(count: int, total: int) -> Optional[float]:
    return _safe_float(count / total * 100) if total else None


def _valid(marks: Iterable[float]) -> np.ndarray:
    """Marks on the 0-100 scale; NaN and out-of-scale values dropped."""
    arr = np.asarray([np.nan if m is None else m for m in marks], dtype=float)
    return arr[~np.isnan(arr) & (arr >= 0) & (arr <= 100)]


# ── Per-student ─────────────────────────────────────────────────────

def student_average(marks_by_subject: Mapping[str, float], class_name: str,
                    calculate_all: bool = False,
                    in_average: Optional[Mapping[str, bool]] = None) -> float:
    """Mean over the subjects that count toward the average.

    `in_average` overrides the built-in rule per subject (configured
    subjects carry their own flag). With calculate_all every subject counts.
    Missing marks are skipped; NaN when nothing counts.
    """
    info = classify_class(class_name)
    counted = []
    for subject, mark in marks_by_subject.items():
        if mark is None or math.isnan(mark):
            continue
        if not calculate_all:
            if in_average is not None and subject in in_average:
                if not in_average[subject]:
                    continue
            elif not subject_in_average(subject, info):
                continue
        counted.append(mark)
    if not counted:
        return NaN
    return float(np.mean(counted))


def marks_table(rows: Sequence[Dict[str, Any]], subjects: Sequence[str],
                sort_by_average: bool = True) -> Dict[str, Any]:
    """All-subjects marks grid.

    rows: [{"name": str, "class": str, "marks": {subject: mark}}, ...]
    Adds each student's average and a competition rank (ties share the
    better rank). Sorted by average, best first, then name.
    """
    columns = ["class", "name"] + list(subjects) + ["average", "rank"]
    if not rows:
        return {"columns": columns, "rows": []}

    records = []
    for r in rows:
        marks = r.get("marks") or {}
        record = {"class": r["class"], "name": r.get("name", "")}
        for subject in subjects:
            v = marks.get(subject)
            record[subject] = np.nan if v is None else float(v)
        record["average"] = student_average(
            {s: record[s] for s in subjects}, r["class"],
            calculate_all=r.get("calculate_all", False),
            in_average=r.get("in_average"))
        records.append(record)

    df = pd.DataFrame.from_records(records)
    df["rank"] = df["average"].rank(method="min", ascending=False)
    if sort_by_average:
        df = df.sort_values(["average", "name"], ascending=[False, True], na_position="last")

    out_rows = []
    for _, r in df.iterrows():
        out_rows.append({c: (r[c] if c in ("class", "name") else _safe_float(r[c])) for c in columns})
    for r in out_rows:
        if r["rank"] is not None:
            r["rank"] = int(r["rank"])
    return _sanitize({"columns": columns, "rows": out_rows})


# ── Final marks ─────────────────────────────────────────────────────

def excellence_proficiency_counts(marks: Iterable[float]):
    """(excellent, proficient, total) where total counts every entered mark."""
    arr = np.asarray([np.nan if m is None else m for m in marks], dtype=float)
    in_scale = (arr <= 100)
    excellent = int(((arr >= EXCELLENT) & in_scale).sum())
    proficient = int(((arr >= PROFICIENT) & in_scale).sum())
    total = int((~np.isnan(arr)).sum())
    return excellent, proficient, total


def _band_summary(marks: Iterable[float]) -> Dict[str, Any]:
    valid = _valid(marks)
    counts, _ = np.histogram(valid, bins=BAND_EDGES)
    counts = [int(c) for c in counts]
    total = int(sum(counts))
    excellent = counts[4]
    proficient = counts[3] + counts[4]
    non_proficient = total - proficient
    return {
        "bands": dict(zip(BAND_LABELS, counts)),
        "total": total,
        "proficient": proficient,
        "non_proficient": non_proficient,
        "proficiency_rate": _rate(proficient, total),
        "non_proficiency_rate": _rate(non_proficient, total),
        "excellent": excellent,
        "excellence_rate": _rate(excellent, total),
    }


def final_marks_summary(marks_by_class: Mapping[str, Iterable[float]]) -> Dict[str, Any]:
    """Band counts and rates of end-of-year marks, per class."""
    return _sanitize({
        "bands": BAND_LABELS,
        "classes": {cls: _band_summary(marks) for cls, marks in marks_by_class.items()},
    })


def end_of_year_marks(system: GradingSystem, stores: Iterable[StudentMarks]) -> List[float]:
    """Final marks of each student's store, evaluated on a copy."""
    out = []
    for store in stores:
        m = dict(store)
        system.evaluate(END_OF_YEAR, m)
        out.append(system.get100(END_OF_YEAR, m))
    return out


# ── Semester exams ──────────────────────────────────────────────────

def semester_exam_marks(system: GradingSystem, term: Term,
                        stores: Iterable[StudentMarks]) -> List[float]:
    """Each student's semester exam on the 0-100 scale."""
    weight = system.semester_weight()
    out = []
    for store in stores:
        m = dict(store)
        system.evaluate(term, m)
        exam = system.get_exam(term, m)
        if math.isnan(weight) or weight == 0:
            out.append(NaN)
        else:
            out.append(exam * 100.0 / weight)
    return out


def semester_exam_comparison(s1_exams: Sequence[float],
                             s2_exams: Sequence[float]) -> Dict[str, Any]:
    """Proficiency in the two semester exams, plus a paired t-test.

    The lists are aligned by student; missing exams are NaN or None.
    """
    result: Dict[str, Any] = {}
    for key, exams in (("s1", s1_exams), ("s2", s2_exams)):
        _, proficient, total = excellence_proficiency_counts(exams)
        result[key] = {
            "proficient": proficient,
            "total": total,
            "proficiency_rate": _rate(proficient, total),
        }

    s1 = pd.to_numeric(pd.Series(list(s1_exams), dtype=object), errors="coerce")
    s2 = pd.to_numeric(pd.Series(list(s2_exams), dtype=object), errors="coerce")
    paired = pd.DataFrame({"s1": s1, "s2": s2}).dropna()
    result["paired_count"] = len(paired)
    if len(paired) >= 3:
        t_stat, p_value = sp_stats.ttest_rel(paired["s2"], paired["s1"])
        result["mean_change"] = _safe_float((paired["s2"] - paired["s1"]).mean())
        result["t_statistic"] = _safe_float(t_stat)
        result["p_value"] = float(p_value)
        result["significant"] = bool(p_value < 0.05) if not np.isnan(p_value) else False
    return _sanitize(result)


# ── Completion ──────────────────────────────────────────────────────

def completion_count(system: GradingSystem, term: Term,
                     stores: Iterable[StudentMarks]) -> Dict[str, int]:
    """How many students have a complete mark for `term`."""
    ready = 0
    total = 0
    for store in stores:
        total += 1
        m = dict(store)
        system.evaluate(term, m)
        if system.ready(term, m):
            ready += 1
    return {"ready": ready, "total": total}
