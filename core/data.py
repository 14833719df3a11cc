from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pandas as pd
import requests

from core.config import MAX_ROWS_PER_DATASET, DatasetSpec, Settings
from core.errors import FetchError, ParseError
from core.filters import Row

logger = logging.getLogger(__name__)

FLOAT_RE = re.compile(r"^\s*-?(\d+\.?|\.\d+|\d+\.\d+)([eE][-+]?\d+)?\s*$")
INT_RE = re.compile(r"^\s*-?\d+\s*$")

MEMBERSHIP_FIELDS = ("abonoment_type", "abonnement_type", "abonement_type")


@dataclass
class LoadedDataset:
    spec: DatasetSpec
    rows: List[Row] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    numeric_fields: List[str] = field(default_factory=list)
    filter_fields: List[str] = field(default_factory=list)


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def coerce_cell(value: object) -> object:
    """Type a raw CSV cell: blank -> None, true/false -> bool, numerals -> int/float."""
    # short rows come back from read_csv as NaN even with keep_default_na=False
    if value is None or pd.isna(value):
        return None
    s = str(value).strip()
    if s == "":
        return None
    if s in ("true", "TRUE"):
        return True
    if s in ("false", "FALSE"):
        return False
    if INT_RE.match(s):
        return int(s)
    if FLOAT_RE.match(s):
        return float(s)
    return s


def fetch_text(source: str, *, timeout: float = 15.0) -> str:
    """Read a CSV resource from an HTTP(S) URL or a local path."""
    if is_url(source):
        try:
            response = requests.get(source, timeout=timeout, headers={"Cache-Control": "no-store"})
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch {source}: {exc}") from exc
        if not response.ok:
            raise FetchError(f"HTTP {response.status_code} for {source}")
        return response.text

    path = Path(source)
    try:
        return path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise FetchError(f"Failed to read {source}: {exc}") from exc


def cap_rows(rows: Sequence[Row], limit: int = MAX_ROWS_PER_DATASET) -> List[Row]:
    return list(rows[:limit])


def parse_csv(text: str, *, max_rows: int = MAX_ROWS_PER_DATASET, source: str = "<csv>") -> List[Row]:
    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skip_blank_lines=True)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        raise ParseError(f"Could not parse CSV from {source}: {exc}") from exc

    df.columns = [str(c).strip() for c in df.columns]
    if df.empty:
        raise ParseError(f"CSV parsed but 0 rows from {source}")
    records = df.to_dict(orient="records")
    if len(records) > max_rows:
        logger.info("Truncating %s from %d to %d rows", source, len(records), max_rows)
    return [{k: coerce_cell(v) for k, v in rec.items()} for rec in cap_rows(records, max_rows)]


def load_rows(source: str, *, timeout: float = 15.0, max_rows: int = MAX_ROWS_PER_DATASET) -> List[Row]:
    """Fetch and parse a CSV resource; nothing is returned unless both steps succeed."""
    text = fetch_text(source, timeout=timeout)
    return parse_csv(text, max_rows=max_rows, source=source)


def load_dataset(spec: DatasetSpec, settings: Settings) -> LoadedDataset:
    rows = load_rows(spec.source, timeout=settings.fetch_timeout, max_rows=settings.max_rows)
    headers = list(rows[0].keys()) if rows else []
    header_set = set(headers)
    return LoadedDataset(
        spec=spec,
        rows=rows,
        headers=headers,
        numeric_fields=[f for f in spec.numeric_fields if f in header_set],
        filter_fields=[f for f in spec.filter_fields if f in header_set],
    )


def load_membership_rows(settings: Settings) -> List[Row]:
    return load_rows(settings.membership_source, timeout=settings.fetch_timeout, max_rows=settings.max_rows)


def load_health_rows(settings: Settings) -> List[Row]:
    return load_rows(settings.health_source, timeout=settings.fetch_timeout, max_rows=settings.max_rows)


def read_roster(source: str, *, timeout: float = 15.0) -> List[Row]:
    """Roster rows for seeding; the full file is used, not capped."""
    text = fetch_text(source, timeout=timeout)
    return parse_csv(text, max_rows=10**9, source=source)


def first_present_field(rows: List[Row], candidates: Iterable[str]) -> Optional[str]:
    """First candidate column that appears in the header (exports disagree on spelling)."""
    if not rows:
        return None
    header = rows[0].keys()
    for col in candidates:
        if col in header:
            return col
    return None


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def member_label(row: Optional[Row]) -> Optional[str]:
    if not row:
        return None
    for key in ("name", "member_name", "full_name"):
        if row.get(key):
            return str(row[key])
    first, last = row.get("first_name"), row.get("last_name")
    if first or last:
        return " ".join(str(p) for p in (first, last) if p)
    return None
