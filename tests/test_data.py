import pytest
import requests

from core import data
from core.data import cap_rows, coerce_cell, first_present_field, load_dataset, load_rows, parse_csv, round_half_up
from core.errors import FetchError, ParseError


def test_coerce_cell_types_like_dynamic_typing():
    assert coerce_cell("") is None
    assert coerce_cell("  ") is None
    assert coerce_cell("42") == 42
    assert coerce_cell("-3.5") == -3.5
    assert coerce_cell("1e3") == 1000.0
    assert coerce_cell("true") is True
    assert coerce_cell("FALSE") is False
    assert coerce_cell("True") == "True"
    assert coerce_cell(" Female ") == "Female"
    assert coerce_cell("08:30:00") == "08:30:00"


def test_parse_csv_strips_headers_and_types_cells():
    rows = parse_csv(" id , name ,score\n1, Ann ,3.5\n2,Bob,\n\n")
    assert rows == [
        {"id": 1, "name": "Ann", "score": 3.5},
        {"id": 2, "name": "Bob", "score": None},
    ]


def test_parse_csv_caps_rows():
    text = "v\n" + "\n".join(str(i) for i in range(20))
    rows = parse_csv(text, max_rows=5)
    assert [r["v"] for r in rows] == [0, 1, 2, 3, 4]


def test_parse_csv_without_rows_is_a_parse_error():
    with pytest.raises(ParseError):
        parse_csv("")
    with pytest.raises(ParseError):
        parse_csv("a,b\n")


def test_load_rows_missing_file_is_fetch_error(tmp_path):
    with pytest.raises(FetchError):
        load_rows(str(tmp_path / "missing.csv"))


class _Response:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400


def test_load_rows_over_http(monkeypatch):
    calls = {}

    def fake_get(url, timeout, headers):
        calls["timeout"] = timeout
        return _Response(200, "id,v\n1,2\n")

    monkeypatch.setattr(data.requests, "get", fake_get)
    assert load_rows("http://example.test/gym.csv", timeout=3) == [{"id": 1, "v": 2}]
    assert calls["timeout"] == 3


def test_load_rows_http_status_and_timeout(monkeypatch):
    monkeypatch.setattr(data.requests, "get", lambda url, timeout, headers: _Response(404))
    with pytest.raises(FetchError, match="HTTP 404"):
        load_rows("https://example.test/gym.csv")

    def boom(url, timeout, headers):
        raise requests.Timeout("timed out")

    monkeypatch.setattr(data.requests, "get", boom)
    with pytest.raises(FetchError):
        load_rows("https://example.test/gym.csv")


def test_load_dataset_keeps_only_present_fields(settings):
    ds = load_dataset(settings.datasets()["gym"], settings)
    assert len(ds.rows) == 4
    assert ds.numeric_fields == ["visit_per_week", "days_per_week", "avg_time_in_gym"]
    assert ds.filter_fields == ["gender", "abonoment_type"]
    assert ds.headers[0] == "id"


def test_first_present_field():
    rows = [{"age": 1, "Age": 2}]
    assert first_present_field(rows, ("Age", "age")) == "Age"
    assert first_present_field(rows, ("x",)) is None
    assert first_present_field([], ("Age",)) is None


def test_round_half_up():
    assert round_half_up(2.5) == 3.0
    assert round_half_up(1.25, 1) == 1.3
    assert round_half_up(None) is None


def test_cap_rows():
    rows = [{"i": i} for i in range(6000)]
    assert len(cap_rows(rows)) == 5000
    assert cap_rows(rows, 3) == [{"i": 0}, {"i": 1}, {"i": 2}]
