from __future__ import annotations

from typing import Any, Dict, List

from core.aggregate import compute_flag_counts, unique_values
from core.charts import counts_bar_chart
from core.data import MEMBERSHIP_FIELDS, Row, first_present_field, round_half_up
from core.filters import ALL, as_text, filter_rows

CLASS_FIELDS = {
    "Group_Lesson_Kickboxen": "Kickboxen",
    "Group_Lesson_BodyPump": "BodyPump",
    "Group_Lesson_Zumba": "Zumba",
    "Group_Lesson_XCore": "XCore",
    "Group_Lesson_Running": "Running",
    "Group_Lesson_Yoga": "Yoga",
    "Group_Lesson_LesMiles": "LesMiles",
    "Group_Lesson_Pilates": "Pilates",
    "Group_Lesson_HIT": "HIT",
    "Group_Lesson_Spinning": "Spinning",
    "Group_Lesson_BodyBalance": "BodyBalance",
}

DRINK_FIELDS = {
    "fav_drink_berryboost": "Berry Boost",
    "fav_drink_lemon": "Lemon",
    "fav_drink_passion_fruit": "Passion Fruit",
    "fav_drink_coconut_pineapple": "Coconut Pineapple",
    "fav_drink_orange": "Orange",
    "fav_drink_black_currant": "Black Currant",
}

FAV_LESSON_TOKENS = ("1", "True", "Yes", "true")


def has_fav_group_lesson(row: Row) -> bool:
    value = row.get("has_fav_group_lesson")
    if value is True or value == 1:
        return True
    return isinstance(value, str) and value in FAV_LESSON_TOKENS


def compute_preferences(rows: List[Row], membership: str = ALL) -> Dict[str, Any]:
    field = first_present_field(rows, MEMBERSHIP_FIELDS)
    options = unique_values(rows, field) if field else [ALL]
    filtered = filter_rows(rows, {field: membership}) if field else list(rows)

    classes = compute_flag_counts(filtered, CLASS_FIELDS)
    drinks = compute_flag_counts(filtered, DRINK_FIELDS)
    subscribers = sum(1 for r in filtered if as_text(r.get("drink_abo")) == "1")
    total = len(filtered) or 1

    return {
        "membership": membership or ALL,
        "membership_options": options,
        "member_count": len(filtered),
        "group_lesson_attendees": sum(1 for r in filtered if has_fav_group_lesson(r)),
        "classes": classes,
        "drinks": drinks,
        "drink_subscribers": subscribers,
        "drink_subscription_pct": round_half_up(subscribers / total * 100, 1),
        "charts": {
            "classes": counts_bar_chart(classes, title="Favorite Class Choices"),
            "drinks": counts_bar_chart(drinks, title="Drink Preferences Distribution"),
        },
    }
