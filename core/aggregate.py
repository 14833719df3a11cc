"""Row-level aggregation used by every dashboard page.

Every function here is pure: input rows are never mutated, and empty input
produces ``None`` / empty results instead of raising.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from core.data import round_half_up
from core.filters import ALL, Row, as_text, to_number

FLAG_TRUE_VALUES = ("1", "true")


@dataclass(frozen=True)
class Statistics:
    count: int
    mean: float
    min: float
    max: float
    std: float

    def rounded(self, ndigits: int = 2) -> Dict[str, Any]:
        out: Dict[str, Any] = {"count": self.count}
        for key in ("mean", "min", "max", "std"):
            out[key] = round_half_up(getattr(self, key), ndigits)
        return out

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Bucket:
    label: str
    lower: float
    upper: Optional[float] = None
    # "both" -> [lower, upper], "left" -> [lower, upper)
    inclusive: str = "both"

    def contains(self, value: float) -> bool:
        if value < self.lower:
            return False
        if self.upper is None:
            return True
        if self.inclusive == "left":
            return value < self.upper
        return value <= self.upper


def numeric_values(rows: Sequence[Row], field: str) -> List[float]:
    out: List[float] = []
    for row in rows:
        v = to_number(row.get(field))
        if v is not None:
            out.append(v)
    return out


def compute_statistics(rows: Sequence[Row], field: Optional[str]) -> Optional[Statistics]:
    if not field or not rows:
        return None
    values = pd.Series(numeric_values(rows, field), dtype=float)
    if values.empty:
        return None
    return Statistics(
        count=int(values.size),
        mean=float(values.mean()),
        min=float(values.min()),
        max=float(values.max()),
        std=float(values.std(ddof=0)),
    )


def mean_of(rows: Sequence[Row], field: str) -> Optional[float]:
    values = numeric_values(rows, field)
    if not values:
        return None
    return float(np.mean(values))


def compute_frequency(rows: Sequence[Row], field: Optional[str]) -> List[Dict[str, Any]]:
    if not field:
        return []
    counts: Dict[str, int] = {}
    for row in rows:
        value = row.get(field)
        if value is None:
            continue
        label = as_text(value)
        counts[label] = counts.get(label, 0) + 1
    # sorted() is stable, so equal counts stay in first-seen order
    ordered = sorted(counts.items(), key=lambda item: -item[1])
    return [{"label": label, "count": count} for label, count in ordered]


def is_flag_set(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value in FLAG_TRUE_VALUES
    if isinstance(value, (int, float)):
        return value == 1
    return False


def compute_flag_counts(
    rows: Sequence[Row],
    flag_fields: Union[Sequence[str], Mapping[str, str]],
) -> Dict[str, int]:
    labels = dict(flag_fields) if isinstance(flag_fields, Mapping) else {f: f for f in flag_fields}
    counts = {label: 0 for label in labels.values()}
    for row in rows:
        for column, label in labels.items():
            if is_flag_set(row.get(column)):
                counts[label] += 1
    return counts


def bucket_by(
    rows: Sequence[Row],
    numeric_field: str,
    buckets: Sequence[Bucket],
    *,
    avg_of: Optional[str] = None,
) -> List[Dict[str, Any]]:
    counts = [0] * len(buckets)
    totals = [0.0] * len(buckets)
    for row in rows:
        value = to_number(row.get(numeric_field))
        if value is None:
            continue
        secondary = None
        if avg_of is not None:
            secondary = to_number(row.get(avg_of))
            if secondary is None:
                continue
        for idx, bucket in enumerate(buckets):
            if bucket.contains(value):
                counts[idx] += 1
                if secondary is not None:
                    totals[idx] += secondary
                break

    out: List[Dict[str, Any]] = []
    for idx, bucket in enumerate(buckets):
        entry: Dict[str, Any] = {"label": bucket.label, "count": counts[idx]}
        if avg_of is not None:
            entry["avg"] = totals[idx] / counts[idx] if counts[idx] else None
        out.append(entry)
    return out


def join_by_id(
    primary_rows: Sequence[Row],
    secondary_rows: Sequence[Row],
    id_field: str = "id",
    *,
    prefix: str = "health_",
) -> List[Row]:
    """Merge secondary rows into primary rows by id; the primary value wins on collision."""
    index: Dict[str, Row] = {}
    for row in secondary_rows:
        key = row.get(id_field)
        if key is None:
            continue
        index.setdefault(as_text(key), row)

    merged_rows: List[Row] = []
    for row in primary_rows:
        merged = dict(row)
        key = row.get(id_field)
        match = index.get(as_text(key)) if key is not None else None
        if match is not None:
            for k, v in match.items():
                if k not in merged:
                    merged[k] = v
                elif as_text(merged[k]) != as_text(v):
                    # never overwrite: keep prefixing until the name is free
                    name = f"{prefix}{k}"
                    while name in merged:
                        name = f"{prefix}{name}"
                    merged[name] = v
        merged_rows.append(merged)
    return merged_rows


def unique_values(rows: Sequence[Row], field: str) -> List[str]:
    """Dropdown options for a filter: ``All`` followed by distinct non-blank values."""
    seen: Dict[str, None] = {}
    for row in rows:
        v = row.get(field)
        if v is None or v == "":
            continue
        seen.setdefault(as_text(v), None)
    return [ALL, *seen.keys()]


def share_of(rows: Sequence[Row], predicate: Callable[[Row], bool]) -> Dict[str, float]:
    """Percentage of rows matching ``predicate`` (``yes``) and not (``no``)."""
    yes = sum(1 for row in rows if predicate(row))
    total = len(rows)
    if not total:
        return {"yes": 0.0, "no": 0.0}
    return {"yes": yes / total * 100, "no": (total - yes) / total * 100}


def crosstab_percent(
    rows: Sequence[Row],
    index_field: str,
    column_field: str,
    columns: Sequence[str],
) -> List[Dict[str, Any]]:
    """Per numeric ``index_field`` value, the percentage split over ``columns`` of ``column_field``."""
    records = []
    for row in rows:
        idx = to_number(row.get(index_field))
        col = as_text(row.get(column_field)).strip().lower()
        if idx is None or col not in columns:
            continue
        records.append({index_field: idx, column_field: col})
    if not records:
        return []

    df = pd.DataFrame.from_records(records)
    table = pd.crosstab(df[index_field], df[column_field], normalize="index") * 100
    table = table.reindex(columns=list(columns), fill_value=0.0).sort_index()
    out: List[Dict[str, Any]] = []
    for idx, values in table.iterrows():
        entry: Dict[str, Any] = {index_field: int(idx) if float(idx).is_integer() else float(idx)}
        entry.update({c: float(values[c]) for c in columns})
        out.append(entry)
    return out


def paginate_rows(rows: Sequence[Row], page: int = 0, page_size: int = 5) -> Dict[str, Any]:
    total = len(rows)
    pages = max(1, -(-total // page_size))
    page = min(max(0, page), pages - 1)
    start = page * page_size
    return {
        "page": page,
        "page_size": page_size,
        "pages": pages,
        "total": total,
        "rows": list(rows[start:start + page_size]),
    }
