"""
InfluxDB 1.x store adapter.

Talks to the InfluxDB HTTP API with httpx:

    • GET  /query  — newest point of our measurement (the sync cursor)
    • POST /write  — line protocol, second precision

Status handling:

    • transport errors and 5xx responses → StoreUnreachableError
    • a query answered with an `error` (or any 4xx) → QueryRejectedError
    • a write answered with 400 → the batch is re-sent one point at a time
      to find out which points the server refuses (re-sent valid points
      overwrite themselves)
    • any other non-2xx write response → StoreUnreachableError
"""

from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

import httpx

from oti.errors import QueryRejectedError, StoreUnreachableError, WriteRejectedError
from oti.points import to_line_protocol
from oti.types import Point, PointStatus


def _quote_identifier(name: str) -> str:
    return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or f"HTTP {response.status_code}"

    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return f"HTTP {response.status_code}"


class InfluxStore:
    """
    Both store capabilities (latest timestamp + batch writer) for one
    database/measurement pair.

    An httpx.Client may be injected (tests pass one built on
    httpx.MockTransport); otherwise one is created and owned by the store.
    """

    def __init__(
        self,
        base_url: str,
        database: str,
        measurement: str,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self.database = database
        self.measurement = measurement
        self._owns_client = client is None
        self.client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "InfluxStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -----------------------------------------------------------------------
    # LatestTimestampQuery
    # -----------------------------------------------------------------------

    def latest_timestamp(self) -> Optional[datetime]:
        query = f"SELECT * FROM {_quote_identifier(self.measurement)} ORDER BY time DESC LIMIT 1"

        try:
            response = self.client.get(
                "/query", params={"db": self.database, "q": query, "epoch": "s"}
            )
        except httpx.HTTPError as e:
            raise StoreUnreachableError(f"could not reach InfluxDB: {e}") from e

        if response.status_code >= 500:
            raise StoreUnreachableError(
                f"InfluxDB query failed with HTTP {response.status_code}: {_error_message(response)}"
            )
        if response.status_code >= 400:
            raise QueryRejectedError(f"InfluxDB rejected query: {_error_message(response)}")

        try:
            payload = response.json()
        except ValueError as e:
            raise QueryRejectedError("InfluxDB returned a non-JSON query response") from e

        if payload.get("error"):
            raise QueryRejectedError(f"InfluxDB rejected query: {payload['error']}")

        results = payload.get("results") or [{}]
        first = results[0]
        if first.get("error"):
            raise QueryRejectedError(f"InfluxDB rejected query: {first['error']}")

        series = first.get("series") or []
        if not series or not series[0].get("values"):
            return None

        columns = series[0]["columns"]
        row = series[0]["values"][0]
        return datetime.fromtimestamp(int(row[columns.index("time")]), tz=timezone.utc)

    # -----------------------------------------------------------------------
    # BatchPointWriter
    # -----------------------------------------------------------------------

    def _post_lines(self, lines: Sequence[str]) -> None:
        try:
            response = self.client.post(
                "/write",
                params={"db": self.database, "precision": "s"},
                content="\n".join(lines).encode("utf-8"),
            )
        except httpx.HTTPError as e:
            raise StoreUnreachableError(f"could not reach InfluxDB: {e}") from e

        if response.is_success:
            return
        if response.status_code == 400:
            raise WriteRejectedError(_error_message(response))
        raise StoreUnreachableError(
            f"InfluxDB write failed with HTTP {response.status_code}: {_error_message(response)}"
        )

    def write_points(self, points: Sequence[Point]) -> List[PointStatus]:
        if not points:
            return []

        lines = [to_line_protocol(point) for point in points]

        try:
            self._post_lines(lines)
            return [PointStatus(accepted=True) for _ in lines]
        except WriteRejectedError as e:
            if len(lines) == 1:
                return [PointStatus(accepted=False, reason=str(e))]

        statuses: List[PointStatus] = []
        for line in lines:
            try:
                self._post_lines([line])
                statuses.append(PointStatus(accepted=True))
            except WriteRejectedError as e:
                statuses.append(PointStatus(accepted=False, reason=str(e)))

        return statuses
