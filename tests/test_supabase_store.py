"""
Tests for SupabaseStore.

A lightweight FakeClient simulates the Supabase query builder:

    • .table(name).select(...).eq(...).order(...).limit(...).execute()
    • .table(name).upsert(rows, on_conflict=...).execute()

Rows live in memory; responses are dict-shaped ({"data", "status"}) like
the other test doubles, which keeps the adapter's response normalization
under test as well.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from postgrest.exceptions import APIError, generate_default_error_message

from oti.errors import ConfigError, QueryRejectedError, StoreUnreachableError
from oti.stores.supabase_store import SupabaseStore, _extract_data, point_to_row
from oti.sync import run_sync
from oti.types import Point


class FakeTable:
    def __init__(self, client: "FakeClient", name: str) -> None:
        self.client = client
        self.name = name
        self._filters: Dict[str, Any] = {}
        self._order: Optional[str] = None
        self._desc = False
        self._limit: Optional[int] = None
        self._upsert: Optional[List[Dict[str, Any]]] = None

    def select(self, fields: str) -> "FakeTable":
        return self

    def eq(self, field: str, value: Any) -> "FakeTable":
        self._filters[field] = value
        return self

    def order(self, field: str, desc: bool = False) -> "FakeTable":
        self._order, self._desc = field, desc
        return self

    def limit(self, n: int) -> "FakeTable":
        self._limit = n
        return self

    def upsert(self, rows: List[Dict[str, Any]], on_conflict: str = "") -> "FakeTable":
        self.client.conflict_targets.append(on_conflict)
        self._upsert = rows
        return self

    def execute(self) -> Dict[str, Any]:
        if self.client.offline:
            raise httpx.ConnectError("connection refused")

        rows = self.client.rows.setdefault(self.name, [])

        if self._upsert is not None:
            self.client.upsert_calls += 1
            if self.client.upsert_api_errors:
                raise APIError(self.client.upsert_api_errors.pop(0))
            bad = [r for r in self._upsert if self.client.reject and self.client.reject(r)]
            if bad:
                return {"status": 400, "error": "value violates check constraint", "data": []}
            for row in self._upsert:
                rows[:] = [
                    r
                    for r in rows
                    if (r["measurement"], r["time"]) != (row["measurement"], row["time"])
                ]
                rows.append(row)
            return {"status": 201, "data": list(self._upsert)}

        if self.client.query_api_error:
            raise APIError(self.client.query_api_error)
        if self.client.query_error:
            return {"status": 400, "error": self.client.query_error}

        found = [r for r in rows if all(r.get(k) == v for k, v in self._filters.items())]
        if self._order:
            found.sort(key=lambda r: r[self._order], reverse=self._desc)
        if self._limit is not None:
            found = found[: self._limit]
        return {"status": 200, "data": [{"time": r["time"]} for r in found]}


class FakeClient:
    def __init__(self, reject: Optional[Callable[[Dict[str, Any]], bool]] = None) -> None:
        self.rows: Dict[str, List[Dict[str, Any]]] = {}
        self.reject = reject
        self.offline = False
        # Error payloads raised the way postgrest raises them: one per upsert
        # call in order, or on every select.
        self.upsert_api_errors: List[Dict[str, Any]] = []
        self.query_api_error: Optional[Dict[str, Any]] = None
        self.query_error: Optional[str] = None
        self.upsert_calls = 0
        self.conflict_targets: List[str] = []

    def table(self, name: str) -> FakeTable:
        return FakeTable(self, name)


def point(second: int, tag: Optional[str] = "a", measurement: str = "journal") -> Point:
    tags = {"weekday": "Mon"}
    if tag is not None:
        tags["frontmatter_tag"] = tag
    return Point(
        measurement=measurement,
        time=datetime(2024, 1, 1, 0, 0, second, tzinfo=timezone.utc),
        tags=tags,
        fields={"value": 1 if tag else 0},
    )


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------
def test_point_to_row():
    assert point_to_row(point(1, "a")) == {
        "measurement": "journal",
        "time": "2024-01-01T00:00:01+00:00",
        "weekday": "Mon",
        "tag": "a",
        "value": 1,
    }
    assert point_to_row(point(0, None))["tag"] is None


# ---------------------------------------------------------------------------
# latest_timestamp
# ---------------------------------------------------------------------------
def test_latest_timestamp_is_scoped_to_measurement():
    client = FakeClient()
    store = SupabaseStore(client, measurement="journal")
    other = SupabaseStore(client, measurement="someone-else")

    store.write_points([point(0), point(3)])
    other.write_points([point(9, measurement="someone-else")])

    assert store.latest_timestamp() == datetime(2024, 1, 1, 0, 0, 3, tzinfo=timezone.utc)


def test_latest_timestamp_none_when_empty():
    assert SupabaseStore(FakeClient(), measurement="journal").latest_timestamp() is None


def test_query_error_is_rejected():
    client = FakeClient()
    client.query_error = "relation tag_points does not exist"

    with pytest.raises(QueryRejectedError, match="does not exist"):
        SupabaseStore(client, measurement="journal").latest_timestamp()


def test_offline_client_is_unreachable():
    client = FakeClient()
    client.offline = True
    store = SupabaseStore(client, measurement="journal")

    with pytest.raises(StoreUnreachableError):
        store.latest_timestamp()
    with pytest.raises(StoreUnreachableError):
        store.write_points([point(0)])


# ---------------------------------------------------------------------------
# write_points
# ---------------------------------------------------------------------------
def test_batch_upsert_is_idempotent():
    client = FakeClient()
    store = SupabaseStore(client, measurement="journal")

    store.write_points([point(0), point(1, "b")])
    store.write_points([point(0), point(1, "b")])

    assert len(client.rows["tag_points"]) == 2
    assert client.conflict_targets == ["measurement,time", "measurement,time"]


def test_rejected_batch_is_isolated_row_by_row():
    client = FakeClient(reject=lambda row: row["tag"] == "bad")
    store = SupabaseStore(client, measurement="journal")

    statuses = store.write_points([point(0, "a"), point(1, "bad"), point(2, "c")])

    assert [s.accepted for s in statuses] == [True, False, True]
    assert "check constraint" in (statuses[1].reason or "")
    assert client.upsert_calls == 4
    assert sorted(r["tag"] for r in client.rows["tag_points"]) == ["a", "c"]


def test_missing_client_is_rejected():
    with pytest.raises(RuntimeError, match="not configured"):
        SupabaseStore(None, measurement="journal")


# ---------------------------------------------------------------------------
# Service outages vs. rejected rows
# ---------------------------------------------------------------------------
SERVICE_UNAVAILABLE = generate_default_error_message(httpx.Response(503, text="upstream down"))


def test_outage_during_write_is_unreachable_not_a_rejection():
    client = FakeClient()
    client.upsert_api_errors = [SERVICE_UNAVAILABLE] * 3
    store = SupabaseStore(client, measurement="journal")

    with pytest.raises(StoreUnreachableError):
        store.write_points([point(0), point(1, "b")])

    # No row-by-row retry against a service that is down.
    assert client.upsert_calls == 1


def test_outage_during_cursor_query_is_unreachable():
    client = FakeClient()
    client.query_api_error = SERVICE_UNAVAILABLE

    with pytest.raises(StoreUnreachableError):
        SupabaseStore(client, measurement="journal").latest_timestamp()


def test_dict_response_with_5xx_status_is_unreachable():
    with pytest.raises(StoreUnreachableError, match="504"):
        _extract_data({"status": 504, "error": "gateway timeout"})
    with pytest.raises(RuntimeError, match="bad request"):
        _extract_data({"status": 400, "error": "bad request"})


@pytest.mark.parametrize(
    "code, unreachable",
    [
        ("23505", False),  # unique_violation
        ("23514", False),  # check_violation
        ("PGRST204", False),
        ("08006", True),  # connection_failure
        ("57P01", True),  # admin_shutdown
    ],
)
def test_postgres_error_codes_are_classified(code, unreachable):
    client = FakeClient()
    client.upsert_api_errors = [{"message": "boom", "code": code}]
    store = SupabaseStore(client, measurement="journal")

    if unreachable:
        with pytest.raises(StoreUnreachableError):
            store.write_points([point(0)])
    else:
        statuses = store.write_points([point(0)])
        assert statuses[0].accepted is False


def test_outage_mid_run_never_skips_a_day(reference_sources):
    client = FakeClient()
    store = SupabaseStore(client, measurement="journal")
    today = datetime(2024, 1, 10).date()

    # The service is down for the first batch only.
    client.upsert_api_errors = [SERVICE_UNAVAILABLE]
    with pytest.raises(StoreUnreachableError):
        run_sync(reference_sources, store, today=today, measurement="journal", batch_size=2)

    report = run_sync(reference_sources, store, today=today, measurement="journal", batch_size=2)

    assert report.failed == 0
    assert sorted({row["time"][:10] for row in client.rows["tag_points"]}) == [
        "2024-01-01",
        "2024-01-02",
        "2024-01-03",
    ]


# ---------------------------------------------------------------------------
# from_credentials
# ---------------------------------------------------------------------------
def test_from_credentials_applies_timeout(monkeypatch):
    seen = {}

    def fake_create_client(url, key, options=None):
        seen["timeout"] = options.postgrest_client_timeout
        return FakeClient()

    monkeypatch.setattr("supabase.create_client", fake_create_client)

    SupabaseStore.from_credentials(
        "https://example.supabase.co", "secret", measurement="journal", timeout=2.5
    )

    assert seen["timeout"] == 2.5


def test_from_credentials_with_invalid_url_is_a_config_error():
    with pytest.raises(ConfigError, match="invalid Supabase settings"):
        SupabaseStore.from_credentials("example.supabase.co", "secret", measurement="journal")
