import copy

import pytest

from core.aggregate import (
    Bucket,
    bucket_by,
    compute_flag_counts,
    compute_frequency,
    compute_statistics,
    crosstab_percent,
    join_by_id,
    paginate_rows,
    share_of,
    unique_values,
)


def test_statistics_known_fixture():
    rows = [{"v": x} for x in (2, 4, 4, 4, 5, 5, 7, 9)]
    stats = compute_statistics(rows, "v")
    assert stats is not None
    assert stats.count == 8
    assert stats.mean == pytest.approx(5.0)
    assert stats.min == 2
    assert stats.max == 9
    # population standard deviation, not sample
    assert stats.std == pytest.approx(2.0)


def test_statistics_none_when_no_numeric_data():
    assert compute_statistics([], "v") is None
    assert compute_statistics([{"v": "abc"}, {"v": ""}, {"v": None}, {}], "v") is None
    assert compute_statistics([{"v": 1}], None) is None


def test_statistics_excludes_unparseable_instead_of_zeroing():
    rows = [{"v": "10"}, {"v": ""}, {"v": "n/a"}, {"v": 20}]
    stats = compute_statistics(rows, "v")
    assert stats.count == 2
    assert stats.mean == pytest.approx(15.0)
    assert stats.min == 10


def test_statistics_rounded_keeps_raw_precision():
    stats = compute_statistics([{"v": 1}, {"v": 2}, {"v": 2}], "v")
    assert stats.mean == pytest.approx(5 / 3)
    assert stats.rounded(2)["mean"] == 1.67
    assert stats.rounded(2)["count"] == 3


def test_frequency_sorted_desc_with_first_seen_ties():
    rows = [{"t": "b"}, {"t": "a"}, {"t": "c"}, {"t": "a"}, {"t": "c"}, {"t": "d"}]
    assert compute_frequency(rows, "t") == [
        {"label": "a", "count": 2},
        {"label": "c", "count": 2},
        {"label": "b", "count": 1},
        {"label": "d", "count": 1},
    ]


def test_frequency_stringifies_values():
    rows = [{"v": 3}, {"v": 3.0}, {"v": "3"}, {"v": None}, {}]
    assert compute_frequency(rows, "v") == [{"label": "3", "count": 3}]
    assert compute_frequency([], "v") == []


def test_flag_counts_token_rules():
    assert compute_flag_counts([{"f": 1}, {"f": "0"}, {"f": True}], ["f"]) == {"f": 2}
    rows = [{"f": "true"}, {"f": "True"}, {"f": 0}, {"f": ""}, {}, {"f": False}, {"f": "1"}]
    assert compute_flag_counts(rows, ["f"]) == {"f": 2}


def test_flag_counts_with_labels_preserves_order():
    rows = [{"a": 1, "b": "1"}, {"a": 0, "b": "1"}]
    out = compute_flag_counts(rows, {"b": "Bee", "a": "Ay"})
    assert list(out.items()) == [("Bee", 2), ("Ay", 1)]


def test_bucket_by_assigns_each_value_once_and_drops_out_of_range():
    buckets = [Bucket("0-9", 0, 9), Bucket("10-19", 10, 19), Bucket("20+", 20, None)]
    rows = [{"v": 5}, {"v": 10}, {"v": 19}, {"v": 45}, {"v": -1}, {"v": "x"}, {"v": 9.5}]
    out = bucket_by(rows, "v", buckets)
    assert out == [
        {"label": "0-9", "count": 1},
        {"label": "10-19", "count": 2},
        {"label": "20+", "count": 1},
    ]


def test_bucket_by_first_match_wins_and_half_open():
    buckets = [Bucket("low", 0, 10, inclusive="left"), Bucket("high", 10, 20)]
    out = bucket_by([{"v": 10}, {"v": 0}, {"v": 9.99}], "v", buckets)
    assert out == [{"label": "low", "count": 2}, {"label": "high", "count": 1}]


def test_bucket_by_secondary_mean():
    buckets = [Bucket("18-25", 18, 25), Bucket("26-35", 26, 35)]
    rows = [
        {"age": 20, "sleep": 6},
        {"age": 22, "sleep": 8},
        {"age": 24, "sleep": "n/a"},
    ]
    out = bucket_by(rows, "age", buckets, avg_of="sleep")
    assert out[0] == {"label": "18-25", "count": 2, "avg": pytest.approx(7.0)}
    assert out[1] == {"label": "26-35", "count": 0, "avg": None}


def test_bucket_by_empty_rows():
    assert bucket_by([], "v", [Bucket("a", 0, 1)]) == [{"label": "a", "count": 0}]


def test_join_by_id_primary_wins_and_collision_is_renamed():
    out = join_by_id([{"id": 1, "a": "x"}], [{"id": 1, "a": "y", "b": "z"}], "id")
    assert out == [{"id": 1, "a": "x", "health_a": "y", "b": "z"}]


def test_join_by_id_unmatched_and_equal_values():
    primary = [{"id": 1, "a": "x"}, {"id": 2, "a": 5}]
    secondary = [{"id": "2", "a": "5"}, {"id": 2, "a": "other"}]
    before = copy.deepcopy(primary)
    out = join_by_id(primary, secondary, "id")
    assert out[0] == {"id": 1, "a": "x"}
    # first match only; equal text is not a collision
    assert out[1] == {"id": 2, "a": 5}
    assert primary == before


def test_unique_values_skips_blanks():
    rows = [{"g": "M"}, {"g": ""}, {"g": None}, {"g": "F"}, {"g": "M"}]
    assert unique_values(rows, "g") == ["All", "M", "F"]


def test_share_of():
    assert share_of([{"x": 1}, {"x": 0}, {"x": 1}, {"x": 1}], lambda r: r["x"] == 1) == {"yes": 75.0, "no": 25.0}
    assert share_of([], lambda r: True) == {"yes": 0.0, "no": 0.0}


def test_crosstab_percent():
    rows = [
        {"visits": 2, "level": "Low"},
        {"visits": 2, "level": "high"},
        {"visits": 3, "level": "medium"},
        {"visits": 3, "level": "unknown"},
    ]
    out = crosstab_percent(rows, "visits", "level", ("low", "medium", "high"))
    assert out == [
        {"visits": 2, "low": 50.0, "medium": 0.0, "high": 50.0},
        {"visits": 3, "low": 0.0, "medium": 100.0, "high": 0.0},
    ]
    assert crosstab_percent([], "visits", "level", ("low",)) == []


def test_paginate_rows_clamps_page():
    rows = [{"i": i} for i in range(12)]
    page = paginate_rows(rows, page=2, page_size=5)
    assert page["rows"] == [{"i": 10}, {"i": 11}]
    assert page["pages"] == 3
    assert paginate_rows(rows, page=9, page_size=5)["page"] == 2
    assert paginate_rows([], page=0)["rows"] == []


def test_statistics_rounded_halves_go_up():
    stats = compute_statistics([{"v": 0.125}, {"v": 0.125}], "v")
    assert stats.rounded(2) == {"count": 2, "mean": 0.13, "min": 0.13, "max": 0.13, "std": 0.0}


def test_join_by_id_never_overwrites_existing_prefixed_key():
    out = join_by_id([{"id": 1, "a": "x", "health_a": "p"}], [{"id": 1, "a": "y"}], "id")
    assert out[0]["a"] == "x"
    assert out[0]["health_a"] == "p"
    assert out[0]["health_health_a"] == "y"


def test_join_by_id_secondary_prefixed_key_survives_its_own_collision():
    out = join_by_id([{"id": 1, "a": "x"}], [{"id": 1, "health_a": "q", "a": "y"}], "id")
    assert out[0] == {"id": 1, "a": "x", "health_a": "q", "health_health_a": "y"}
