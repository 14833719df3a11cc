from __future__ import annotations

import re
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from core.aggregate import compute_frequency, compute_statistics, mean_of, paginate_rows, unique_values
from core.charts import bar_chart
from core.data import MEMBERSHIP_FIELDS, LoadedDataset, Row, first_present_field, round_half_up
from core.filters import DashboardFilters, as_text, filter_rows


def _membership_split(rows: List[Row]) -> Dict[str, int]:
    field = first_present_field(rows, ("abonement_type", "abonoment_type"))
    if not field or not rows:
        return {"premium": 0, "standard": 0}
    premium = standard = 0
    for row in rows:
        v = as_text(row.get(field)).lower()
        if "premium" in v:
            premium += 1
        elif "standard" in v:
            standard += 1
    total = len(rows)
    return {
        "premium": int(round_half_up(premium / total * 100) or 0),
        "standard": int(round_half_up(standard / total * 100) or 0),
    }


def compute_kpis(rows: List[Row], numeric_fields: List[str]) -> Dict[str, Any]:
    visit_field = next((f for f in numeric_fields if "visit" in f), numeric_fields[0] if numeric_fields else None)
    time_field = next((f for f in numeric_fields if re.search(r"time|min", f)), "avg_time_in_gym")

    avg_visits = mean_of(rows, visit_field) if visit_field else None
    avg_time = mean_of(rows, time_field)
    return {
        "total_members": len(rows),
        "avg_visits_per_week": round_half_up(avg_visits, 1) if avg_visits is not None else None,
        "avg_time_in_gym": int(round_half_up(avg_time) or 0) if avg_time is not None else None,
        "membership_split": _membership_split(rows),
        "membership_field": first_present_field(rows, MEMBERSHIP_FIELDS),
    }


def compute_dashboard(filters: DashboardFilters, dataset: LoadedDataset) -> Dict[str, Any]:
    rows = dataset.rows
    filtered = filter_rows(rows, filters.filters)
    field: Optional[str] = filters.selected_field
    stats = compute_statistics(filtered, field)
    frequency = compute_frequency(filtered, field)

    return {
        "dataset": {"key": dataset.spec.key, "name": dataset.spec.name},
        "filters": asdict(filters),
        "row_count": len(rows),
        "filtered_count": len(filtered),
        "numeric_fields": dataset.numeric_fields,
        "filter_fields": dataset.filter_fields,
        "filter_options": {f: unique_values(rows, f) for f in dataset.filter_fields},
        "statistics": stats.to_dict() if stats else None,
        "statistics_display": stats.rounded(2) if stats else None,
        "frequency": frequency,
        "kpis": compute_kpis(rows, dataset.numeric_fields),
        "table": paginate_rows(filtered, filters.page, filters.page_size),
        "charts": {"frequency": bar_chart(frequency, title=field or "", x_title=field or "")} if frequency else {},
    }
