from __future__ import annotations

from typing import Any, Dict, List

from core.aggregate import Bucket, bucket_by, crosstab_percent, join_by_id, share_of
from core.charts import bar_chart, donut_chart, stacked_percent_chart
from core.data import Row, first_present_field
from core.filters import as_text

AGE_BUCKETS = [
    Bucket("18–25", 18, 25),
    Bucket("26–35", 26, 35),
    Bucket("36–45", 36, 45),
    Bucket("46+", 46, None),
]

STRESS_BINS = [
    Bucket("4.5–4.9", 4.5, 4.9),
    Bucket("5.0–5.2", 5.0, 5.2),
    Bucket("5.3–5.5", 5.3, 5.5),
    Bucket("5.6–5.8", 5.6, 5.8),
]

INTENSITY_LEVELS = ("low", "medium", "high")


def attends_group_lesson(row: Row) -> bool:
    value = row.get("attend_group_lesson")
    if value is True or value == 1:
        return True
    return isinstance(value, str) and value.lower() in ("1", "yes", "true")


def age_sleep_buckets(health_rows: List[Row]) -> List[Dict[str, Any]]:
    age_field = first_present_field(health_rows, ("Age", "age")) or "age"
    sleep_field = first_present_field(health_rows, ("hours_sleep", "hoursSleep", "Hours_Sleep")) or "hours_sleep"
    return bucket_by(health_rows, age_field, AGE_BUCKETS, avg_of=sleep_field)


def stress_histogram(health_rows: List[Row]) -> List[Dict[str, Any]]:
    return bucket_by(health_rows, "stress_level", STRESS_BINS)


def intensity_vs_visits(gym_rows: List[Row], health_rows: List[Row]) -> List[Dict[str, Any]]:
    health_ids = {as_text(r.get("id")) for r in health_rows if r.get("id") is not None}
    joined = join_by_id(gym_rows, health_rows, "id")
    # Only members that have a fitness record contribute.
    joined = [r for r in joined if as_text(r.get("id")) in health_ids]
    return crosstab_percent(joined, "visit_per_week", "intensity", INTENSITY_LEVELS)


def compute_members_visualization(gym_rows: List[Row], health_rows: List[Row]) -> Dict[str, Any]:
    age_sleep = age_sleep_buckets(health_rows)
    stress = stress_histogram(health_rows)
    enrollment = share_of(gym_rows, attends_group_lesson)
    enrollment_records = [
        {"label": "Yes", "value": enrollment["yes"]},
        {"label": "No", "value": enrollment["no"]},
    ]
    intensity = intensity_vs_visits(gym_rows, health_rows)

    return {
        "age_sleep": age_sleep,
        "stress_histogram": stress,
        "group_lesson_enrollment": enrollment_records,
        "intensity_vs_visits": intensity,
        "charts": {
            "age_sleep": donut_chart(age_sleep, title="Age vs Hours Sleep", tooltip_extra=["avg"]),
            "stress_histogram": bar_chart(stress, title="Stress Level", x_title="Stress level", sort=[b.label for b in STRESS_BINS]),
            "group_lesson_enrollment": donut_chart(enrollment_records, theta="value", title="Group Lesson Enrollment"),
            "intensity_vs_visits": stacked_percent_chart(
                intensity, index="visit_per_week", columns=INTENSITY_LEVELS, title="Intensity vs Visits per Week"
            ),
        },
    }
