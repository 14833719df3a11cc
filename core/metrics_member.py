from __future__ import annotations

from typing import Any, Dict, List, Optional

from core.aggregate import is_flag_set, join_by_id
from core.data import Row, member_label
from core.filters import as_text, to_number
from core.metrics_preferences import CLASS_FIELDS, DRINK_FIELDS


def bmi_category(bmi: object) -> str:
    value = to_number(bmi)
    if value is None:
        return "unknown"
    if value < 18.5:
        return "underweight"
    if value < 25:
        return "healthy"
    if value < 30:
        return "overweight"
    return "obese"


def bmi_gauge_percent(bmi: object, low: float = 15.0, high: float = 40.0) -> float:
    value = to_number(bmi)
    if value is None:
        return 0.0
    clamped = min(high, max(low, value))
    return (clamped - low) / (high - low) * 100


def compute_member_profile(member_id: object, gym_rows: List[Row], health_rows: List[Row]) -> Optional[Dict[str, Any]]:
    wanted = as_text(member_id)
    member = next((r for r in gym_rows if as_text(r.get("id")) == wanted), None)
    if member is None:
        return None

    merged = join_by_id([member], health_rows, "id")[0]
    bmi = merged.get("health_bmi", merged.get("bmi"))
    return {
        "member_id": wanted,
        "name": member_label(merged),
        "member": merged,
        "bmi": to_number(bmi),
        "bmi_category": bmi_category(bmi),
        "bmi_gauge_pct": bmi_gauge_percent(bmi),
        "favorite_classes": [label for col, label in CLASS_FIELDS.items() if is_flag_set(merged.get(col))],
        "favorite_drinks": [label for col, label in DRINK_FIELDS.items() if is_flag_set(merged.get(col))],
    }
