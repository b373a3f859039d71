"""
Supabase store adapter.

Stores points as rows of a plain Postgres table, for deployments that chart
tags from Supabase instead of InfluxDB:

    create table tag_points (
        measurement text        not null,
        time        timestamptz not null,
        weekday     text        not null,
        tag         text,
        value       integer     not null,
        primary key (measurement, time)
    );

The primary key makes writes idempotent: re-running a date upserts the same
rows. The `measurement` column scopes the cursor query to this tool's rows.

The wrapped client is duck-typed (`client.table(name)` query builders) so
the real SDK and the in-memory test doubles are interchangeable.

Error mapping:

    • transport errors, HTTP 5xx and Postgres connection / shutdown
      SQLSTATEs (classes 08 and 57P) → StoreUnreachableError; the run
      stops so no later date can move the cursor past an unwritten one
    • any other error → a rejection of the query, or of the rows written
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, cast

import httpx
from postgrest.exceptions import APIError

from oti.errors import ConfigError, QueryRejectedError, StoreUnreachableError
from oti.points import FRONTMATTER_TAG, VALUE_FIELD, WEEKDAY_TAG
from oti.types import Point, PointStatus

UNAVAILABLE_SQLSTATE_PREFIXES = ("08", "57P")

# ---------------------------------------------------------------------------
# Helper: normalize Supabase responses
# ---------------------------------------------------------------------------


def is_unavailable(code: Any) -> bool:
    """True for error codes that mean the service, not the request, failed."""
    text = str(code or "")
    if len(text) == 3 and text.isdigit():
        return int(text) >= 500
    return text.startswith(UNAVAILABLE_SQLSTATE_PREFIXES)


def _extract_data(resp: Any) -> List[Dict[str, Any]]:
    """
    Normalize responses from the real SDK and from dict-style test doubles.

    Always returns a list of row dictionaries. Raises StoreUnreachableError
    for a 5xx status and RuntimeError on any other error the response
    reports.
    """
    if isinstance(resp, dict):
        status = resp.get("status", 200)
        if is_unavailable(status):
            raise StoreUnreachableError(
                f"Supabase unavailable (HTTP {status}): {resp.get('error') or resp}"
            )
        if status >= 400:
            raise RuntimeError(f"Supabase error: {resp.get('error') or resp}")
        return cast(List[Dict[str, Any]], resp.get("data") or [])

    error = getattr(resp, "error", None)
    if error:
        raise RuntimeError(f"Supabase error: {error}")

    data = getattr(resp, "data", None)
    if data is None:
        return []
    if isinstance(data, list):
        return cast(List[Dict[str, Any]], data)
    return [cast(Dict[str, Any], data)]


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        moment = value
    else:
        moment = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def point_to_row(point: Point) -> Dict[str, Any]:
    return {
        "measurement": point.measurement,
        "time": point.time.astimezone(timezone.utc).isoformat(),
        "weekday": point.tags.get(WEEKDAY_TAG),
        "tag": point.tags.get(FRONTMATTER_TAG),
        "value": point.fields.get(VALUE_FIELD, 0),
    }


class SupabaseStore:
    """Both store capabilities on top of a Supabase table."""

    def __init__(self, client: Any, measurement: str, table: str = "tag_points") -> None:
        if client is None:
            raise RuntimeError("Supabase client is not configured")
        self.client = client
        self.measurement = measurement
        self.table = table

    @classmethod
    def from_credentials(
        cls,
        url: str,
        key: str,
        measurement: str,
        table: str = "tag_points",
        timeout: float = 10.0,
    ) -> "SupabaseStore":
        """
        Build a store on a real Supabase client.

        Raises ConfigError when the SDK refuses the URL or key.
        """
        from supabase import ClientOptions, SupabaseException, create_client

        try:
            client = create_client(
                url, key, options=ClientOptions(postgrest_client_timeout=timeout)
            )
        except SupabaseException as e:
            raise ConfigError(f"invalid Supabase settings: {e}") from e

        return cls(client, measurement=measurement, table=table)

    @staticmethod
    def _unreachable(e: Exception) -> StoreUnreachableError:
        return StoreUnreachableError(f"could not reach Supabase: {e}")

    # -----------------------------------------------------------------------
    # LatestTimestampQuery
    # -----------------------------------------------------------------------

    def latest_timestamp(self) -> Optional[datetime]:
        try:
            resp = (
                self.client.table(self.table)
                .select("time")
                .eq("measurement", self.measurement)
                .order("time", desc=True)
                .limit(1)
                .execute()
            )
            rows = _extract_data(resp)
        except httpx.HTTPError as e:
            raise self._unreachable(e) from e
        except APIError as e:
            if is_unavailable(e.code):
                raise self._unreachable(e) from e
            raise QueryRejectedError(f"Supabase rejected query: {e}") from e
        except RuntimeError as e:
            raise QueryRejectedError(f"Supabase rejected query: {e}") from e

        if not rows:
            return None
        return _parse_timestamp(rows[0]["time"])

    # -----------------------------------------------------------------------
    # BatchPointWriter
    # -----------------------------------------------------------------------

    def _upsert(self, rows: List[Dict[str, Any]]) -> None:
        try:
            resp = (
                self.client.table(self.table)
                .upsert(rows, on_conflict="measurement,time")
                .execute()
            )
        except httpx.HTTPError as e:
            raise self._unreachable(e) from e
        except APIError as e:
            if is_unavailable(e.code):
                raise self._unreachable(e) from e
            raise
        _extract_data(resp)

    def write_points(self, points: Sequence[Point]) -> List[PointStatus]:
        if not points:
            return []

        rows = [point_to_row(point) for point in points]

        try:
            self._upsert(rows)
            return [PointStatus(accepted=True) for _ in rows]
        except (APIError, RuntimeError) as e:
            if len(rows) == 1:
                return [PointStatus(accepted=False, reason=str(e))]

        # Postgres rejects the whole statement; retry row by row to find the
        # offending points.
        statuses: List[PointStatus] = []
        for row in rows:
            try:
                self._upsert([row])
                statuses.append(PointStatus(accepted=True))
            except (APIError, RuntimeError) as e:
                statuses.append(PointStatus(accepted=False, reason=str(e)))

        return statuses
