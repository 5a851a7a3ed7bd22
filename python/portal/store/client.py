"""Supabase database (PostgREST) client.

Every call is scoped: select/update/delete take a non-empty `filters`
mapping of column -> value, encoded as PostgREST `col=eq.value` query
parameters. An unscoped write is a programming error and raises ValueError
before any request is sent.

Requests carry the signed-in user's JWT so row-level security applies on
top of the explicit ownership filters.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import httpx

from portal.http import AccessTokenProvider, PlatformClient

Row = dict[str, Any]

RETURN_REPRESENTATION = {"Prefer": "return=representation"}


class StoreClientBase(ABC):
    """Abstract base class for store client implementations."""

    @abstractmethod
    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any],
        order: str | None = None,
        descending: bool = True,
    ) -> list[Row]:
        """Fetch rows matching all filters.

        Args:
            table: Table name.
            filters: Column equality filters (must not be empty).
            order: Column to order by.
            descending: Sort direction for `order`.

        Raises:
            ProviderError: If the store rejects the query.
        """
        ...

    @abstractmethod
    async def select_one(self, table: str, *, filters: Mapping[str, Any]) -> Row | None:
        """Fetch at most one row matching all filters."""
        ...

    @abstractmethod
    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        """Insert one row and return it as stored."""
        ...

    @abstractmethod
    async def update(
        self, table: str, values: Mapping[str, Any], *, filters: Mapping[str, Any]
    ) -> list[Row]:
        """Update rows matching all filters and return them."""
        ...

    @abstractmethod
    async def upsert(self, table: str, row: Mapping[str, Any], *, on_conflict: str = "id") -> Row:
        """Insert or merge one row on the conflict column."""
        ...

    @abstractmethod
    async def delete(self, table: str, *, filters: Mapping[str, Any]) -> list[Row]:
        """Delete rows matching all filters and return them."""
        ...


def _require_scope(filters: Mapping[str, Any]) -> None:
    if not filters:
        raise ValueError("Store queries must be scoped by at least one filter")


def _filter_params(filters: Mapping[str, Any]) -> dict[str, str]:
    params = {}
    for column, value in filters.items():
        if value is None:
            params[column] = "is.null"
        else:
            params[column] = f"eq.{value}"
    return params


class StoreClient(PlatformClient, StoreClientBase):
    """Production PostgREST client over httpx."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        supabase_url: str,
        api_key: str,
        *,
        access_token: AccessTokenProvider | None = None,
    ):
        super().__init__(
            http,
            f"{supabase_url.rstrip('/')}/rest/v1",
            api_key,
            access_token=access_token,
        )

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any],
        order: str | None = None,
        descending: bool = True,
    ) -> list[Row]:
        _require_scope(filters)
        params = {"select": "*", **_filter_params(filters)}
        if order:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"

        response = await self._request(
            "GET", f"/{table}", error_code="E_STORE_SELECT_FAILED", params=params
        )
        return self._decode(response)

    async def select_one(self, table: str, *, filters: Mapping[str, Any]) -> Row | None:
        _require_scope(filters)
        params = {"select": "*", "limit": "1", **_filter_params(filters)}
        response = await self._request(
            "GET", f"/{table}", error_code="E_STORE_SELECT_FAILED", params=params
        )
        rows = self._decode(response)
        return rows[0] if rows else None

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        response = await self._request(
            "POST",
            f"/{table}",
            error_code="E_STORE_INSERT_FAILED",
            headers=RETURN_REPRESENTATION,
            json=dict(row),
        )
        rows = self._decode(response)
        return rows[0] if isinstance(rows, list) and rows else dict(row)

    async def update(
        self, table: str, values: Mapping[str, Any], *, filters: Mapping[str, Any]
    ) -> list[Row]:
        _require_scope(filters)
        response = await self._request(
            "PATCH",
            f"/{table}",
            error_code="E_STORE_UPDATE_FAILED",
            headers=RETURN_REPRESENTATION,
            params=_filter_params(filters),
            json=dict(values),
        )
        return self._decode(response)

    async def upsert(self, table: str, row: Mapping[str, Any], *, on_conflict: str = "id") -> Row:
        response = await self._request(
            "POST",
            f"/{table}",
            error_code="E_STORE_UPSERT_FAILED",
            headers={"Prefer": "return=representation,resolution=merge-duplicates"},
            params={"on_conflict": on_conflict},
            json=dict(row),
        )
        rows = self._decode(response)
        return rows[0] if isinstance(rows, list) and rows else dict(row)

    async def delete(self, table: str, *, filters: Mapping[str, Any]) -> list[Row]:
        _require_scope(filters)
        response = await self._request(
            "DELETE",
            f"/{table}",
            error_code="E_STORE_DELETE_FAILED",
            headers=RETURN_REPRESENTATION,
            params=_filter_params(filters),
        )
        return self._decode(response)
