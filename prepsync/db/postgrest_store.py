"""
PostgREST (Supabase REST) record store.

Speaks the REST dialect directly with httpx:

- insert: POST /rest/v1/<table> with `Prefer: return=representation`
- select: GET  /rest/v1/<table>?col=eq.value&other=in.("a","b")
- delete: DELETE with the same filters, returning the removed rows

Calls are not retried; a failed call raises StoreError carrying the
server's message.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import httpx
from loguru import logger

from prepsync.db.store import StoreError, normalize_in, require_filter


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _quote(value: Any) -> str:
    text = _format_value(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def build_filters(
    eq: Mapping[str, Any] | None,
    in_: Mapping[str, Iterable[Any]] | None,
) -> list[tuple[str, str]]:
    """Translate equality/membership maps into PostgREST query params."""
    params: list[tuple[str, str]] = []
    for column, value in (eq or {}).items():
        op = "is" if value is None else "eq"
        params.append((column, f"{op}.{_format_value(value)}"))
    for column, values in normalize_in(in_).items():
        params.append((column, f"in.({','.join(_quote(v) for v in values)})"))
    return params


class PostgrestStore:
    """Record store backed by a PostgREST endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        schema: str = "public",
        timeout_seconds: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(
            base_url=f"{self.base_url}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept-Profile": schema,
                "Content-Profile": schema,
            },
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self) -> PostgrestStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _send(
        self,
        method: str,
        table: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        headers = {"Prefer": prefer} if prefer else None
        try:
            response = self.client.request(
                method, f"/{table}", params=params, json=json, headers=headers
            )
        except httpx.RequestError as e:
            raise StoreError(f"{method} {table} failed: {e}", table=table) from e

        if response.is_error:
            raise StoreError(self._error_message(response), table=table)
        if not response.content:
            return []
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}: {response.text}"
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"HTTP {response.status_code}: {body}"

    def insert(self, table: str, row: Mapping[str, Any]) -> dict[str, Any]:
        data = self._send("POST", table, json=dict(row), prefer="return=representation")
        if isinstance(data, list):
            if not data:
                raise StoreError("No data returned", table=table)
            data = data[0]
        logger.debug(f"postgrest insert {table}: {data.get('id')}")
        return data

    def select(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Iterable[Any]] | None = None,
    ) -> list[dict[str, Any]]:
        params = [("select", "*"), *build_filters(eq, in_)]
        return list(self._send("GET", table, params=params))

    def delete(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Iterable[Any]] | None = None,
    ) -> int:
        require_filter(table, eq, in_)
        removed = self._send(
            "DELETE", table, params=build_filters(eq, in_), prefer="return=representation"
        )
        return len(removed)
