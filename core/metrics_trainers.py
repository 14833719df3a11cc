from __future__ import annotations

from typing import Any, Dict, List, Optional

from core.aggregate import compute_frequency
from core.charts import bar_chart
from core.data import MEMBERSHIP_FIELDS, Row, first_present_field
from core.filters import as_text

NO_TRAINER = "No PT"

TIME_SLOTS = ("Morning (8-12)", "Afternoon (12-16)", "Evening (16-20)", "Night (20-24)")


def time_slot(check_in: object) -> Optional[str]:
    """Map an ``HH:MM[:SS]`` check-in time onto one of the trainer workload slots."""
    text = as_text(check_in).strip()
    if not text:
        return None
    try:
        hour = int(text.split(":")[0])
    except ValueError:
        return None
    if 8 <= hour < 12:
        return TIME_SLOTS[0]
    if 12 <= hour < 16:
        return TIME_SLOTS[1]
    if 16 <= hour < 20:
        return TIME_SLOTS[2]
    if hour >= 20:
        return TIME_SLOTS[3]
    return None


def compute_trainers(rows: List[Row]) -> Dict[str, Any]:
    coached = [r for r in rows if as_text(r.get("name_personal_trainer")).strip() not in ("", NO_TRAINER)]
    members_by_trainer = compute_frequency(coached, "name_personal_trainer")

    membership_by_trainer: Dict[str, Dict[str, int]] = {}
    workload: Dict[str, Dict[str, int]] = {slot: {} for slot in TIME_SLOTS}
    membership_field = first_present_field(rows, MEMBERSHIP_FIELDS)
    for row in coached:
        trainer = as_text(row.get("name_personal_trainer")).strip()
        membership = as_text(row.get(membership_field)).strip() if membership_field else ""
        per_type = membership_by_trainer.setdefault(trainer, {})
        per_type[membership] = per_type.get(membership, 0) + 1

        slot = time_slot(row.get("avg_time_check_in"))
        if slot:
            workload[slot][trainer] = workload[slot].get(trainer, 0) + 1

    return {
        "members_by_trainer": members_by_trainer,
        "membership_type_by_trainer": membership_by_trainer,
        "workload_by_slot": workload,
        "charts": {
            "members_by_trainer": bar_chart(members_by_trainer, title="Members per Trainer", x_title="Trainer", y_title="Number of Members"),
        },
    }
