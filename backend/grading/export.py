"""
export.py — Marks sheets as an Excel workbook (openpyxl).

One worksheet per class-section and term. The header row is the term's
column description; each student row holds the evaluated marks, blank
where a mark is missing. Rows whose term mark is complete are shaded
green, incomplete rows yellow.
"""

import re
from dataclasses import dataclass, field
from typing import List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from grading.engine import GradingSystem
from grading.marks import StudentMarks, is_missing
from grading.terms import Term


@dataclass
class StudentRow:
    name: str
    marks: StudentMarks


@dataclass
class MarksSheet:
    title: str
    system: GradingSystem
    term: Term
    students: List[StudentRow] = field(default_factory=list)


_BAD_TITLE_CHARS = re.compile(r"[\[\]:*?/\\]")

HEADER_FONT = Font(bold=True, color="FFFFFF", size=11)
HEADER_FILL = PatternFill(start_color="1a1a2e", end_color="1a1a2e", fill_type="solid")
READY_FILL = PatternFill(start_color="d5f5e3", end_color="d5f5e3", fill_type="solid")
PENDING_FILL = PatternFill(start_color="fef9e7", end_color="fef9e7", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"), right=Side(style="thin"),
    top=Side(style="thin"), bottom=Side(style="thin"),
)
TAB_COLORS = ["0f3460", "e94560", "2ecc71", "f39c12", "9b59b6", "1abc9c"]


def sheet_title(title: str) -> str:
    """Excel limits: 31 characters, no []:*?/\\."""
    cleaned = _BAD_TITLE_CHARS.sub("-", title).strip() or "Sheet"
    return cleaned[:31]


def _style_sheet(ws, ready_rows: Sequence[bool]):
    for cell in ws[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", wrap_text=True)
        cell.border = THIN_BORDER

    for row, ready in zip(ws.iter_rows(min_row=3, max_row=ws.max_row), ready_rows):
        fill = READY_FILL if ready else PENDING_FILL
        for cell in row:
            cell.border = THIN_BORDER
            cell.alignment = Alignment(horizontal="center")
            cell.fill = fill

    ws.freeze_panes = "B3"

    for col_cells in ws.columns:
        max_len = max(len(str(cell.value or "")) for cell in col_cells)
        ws.column_dimensions[col_cells[0].column_letter].width = min(max_len + 4, 30)


def _fill_sheet(ws, sheet: MarksSheet):
    desc = sheet.system.description(sheet.term)
    ws.append(["Student"] + [d.name for d in desc])
    # Second row carries each column's maximum.
    ws.append(["Max"] + [None if is_missing(d.max) else d.max for d in desc])

    ready_rows = []
    for student in sheet.students:
        marks = dict(student.marks)
        sheet.system.evaluate(sheet.term, marks)
        row = marks[sheet.term]
        ws.append([student.name] + [None if is_missing(v) else round(v, 2) for v in row])
        ready_rows.append(sheet.system.ready(sheet.term, marks))
    _style_sheet(ws, ready_rows)


def build_marks_workbook(sheets: Sequence[MarksSheet], school_name: str = "") -> Workbook:
    wb = Workbook()
    wb.remove(wb.active)
    used = set()
    for i, sheet in enumerate(sheets):
        title = sheet_title(f"{sheet.title} {sheet.term}")
        base, n = title, 2
        while title.lower() in used:
            suffix = f" ({n})"
            title = base[:31 - len(suffix)] + suffix
            n += 1
        used.add(title.lower())

        ws = wb.create_sheet(title)
        ws.sheet_properties.tabColor = TAB_COLORS[i % len(TAB_COLORS)]
        _fill_sheet(ws, sheet)

    if not sheets:
        wb.create_sheet("Marks")
    if school_name:
        wb.properties.creator = school_name
        wb.properties.title = f"{school_name} marks"
    return wb


def save_marks_workbook(output_path: str, sheets: Sequence[MarksSheet],
                        school_name: str = "") -> str:
    wb = build_marks_workbook(sheets, school_name)
    wb.save(output_path)
    return output_path
