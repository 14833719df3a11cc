from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

ALL = "All"

Row = Dict[str, Any]


@dataclass(frozen=True)
class DashboardFilters:
    filters: Dict[str, str] = field(default_factory=dict)
    selected_field: Optional[str] = None
    page: int = 0
    page_size: int = 5


def as_text(value: object) -> str:
    """Stringify a cell the way the browser did before comparing (``true``, ``5`` not ``5.0``)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
    return str(value)


def to_number(value: object) -> Optional[float]:
    """Coerce a cell to a finite float, or None when it is blank, boolean or unparseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        out = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            out = float(text)
        except ValueError:
            return None
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def is_unconstrained(value: object) -> bool:
    return value is None or value == "" or value == ALL


def active_constraints(filter_set: Optional[Mapping[str, object]]) -> Dict[str, str]:
    if not filter_set:
        return {}
    return {str(k): as_text(v) for k, v in filter_set.items() if not is_unconstrained(v)}


def filter_rows(rows: Sequence[Row], filter_set: Optional[Mapping[str, object]]) -> List[Row]:
    constraints = active_constraints(filter_set)
    if not constraints:
        return list(rows)
    return [
        row
        for row in rows
        if all(as_text(row.get(key)) == wanted for key, wanted in constraints.items())
    ]


def _as_int(value: object, default: int) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except Exception:
        return default


def normalize_filters(
    raw: dict,
    *,
    filter_fields: Optional[Iterable[str]] = None,
    numeric_fields: Optional[List[str]] = None,
) -> DashboardFilters:
    allowed = set(filter_fields) if filter_fields is not None else None
    filters: Dict[str, str] = {}
    for key, value in (raw.get("filters") or {}).items():
        if allowed is not None and key not in allowed:
            continue
        filters[str(key)] = ALL if is_unconstrained(value) else as_text(value)

    numeric_fields = numeric_fields or []
    selected_field = raw.get("selected_field") or None
    if numeric_fields and selected_field not in numeric_fields:
        selected_field = numeric_fields[0]
    if not numeric_fields:
        selected_field = None

    page = max(0, _as_int(raw.get("page", 0), 0))
    page_size = max(1, min(100, _as_int(raw.get("page_size", 5), 5)))

    return DashboardFilters(
        filters=filters,
        selected_field=selected_field,
        page=page,
        page_size=page_size,
    )
