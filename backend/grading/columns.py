"""
columns.py — Column descriptors for mark-entry grids.

The order of a term's descriptors defines the positions of the marks row.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    max: float
    editable: bool
    final_weight: Optional[float] = None

    def __post_init__(self):
        if self.editable and not self.max > 0:
            raise ValueError(f"Editable column '{self.name}' needs a positive max, got {self.max}")


def editable(name: str, maximum: float) -> ColumnDescriptor:
    return ColumnDescriptor(name, float(maximum), True)


def derived(name: str, maximum: float) -> ColumnDescriptor:
    return ColumnDescriptor(name, float(maximum), False)


def describe_columns(descriptors: List[ColumnDescriptor]) -> List[Dict[str, Any]]:
    """JSON-safe rendering of a descriptor list (grid headers, exports)."""
    out = []
    for d in descriptors:
        item: Dict[str, Any] = {
            "name": d.name,
            "max": None if math.isnan(d.max) else d.max,
            "editable": d.editable,
        }
        if d.final_weight is not None:
            item["final_weight"] = d.final_weight
        out.append(item)
    return out
