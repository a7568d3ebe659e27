"""Async client for the hosted database's REST (PostgREST) endpoint."""

from __future__ import annotations

import logging
import statistics
from typing import Any, Mapping, Optional, Sequence

import httpx

from skillswap.config import config

logger = logging.getLogger(__name__)

USER_AGENT = "SkillSwap/1.0"

PROFILES = "profiles"
SKILLS = "skills"
TRADES = "trades"
MESSAGES = "messages"
RATINGS = "ratings"
NOTIFICATIONS = "notifications"
SCHEDULED_NOTIFICATIONS = "scheduled_notifications"


class SupabaseError(Exception):
    """Base error for failed REST calls."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class NotFoundError(SupabaseError):
    """Raised when a single-row lookup matches nothing."""


Filters = Mapping[str, Any]


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def build_params(
    filters: Optional[Filters] = None,
    *,
    columns: str = "*",
    order: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> dict[str, str]:
    """Translate filters into PostgREST query parameters.

    Plain values become ``eq`` filters, ``(op, value)`` tuples use the given
    operator, and lists become ``in`` filters. The ``or`` key is passed
    through verbatim.

    >>> build_params({"user_id": "u1", "rating": ("gte", 4)}, limit=5)
    {'select': '*', 'user_id': 'eq.u1', 'rating': 'gte.4', 'limit': '5'}
    """
    params: dict[str, str] = {"select": columns}
    for column, value in (filters or {}).items():
        if column == "or":
            params["or"] = str(value)
        elif isinstance(value, tuple):
            op, operand = value
            if op == "is":
                params[column] = f"is.{_format_value(operand)}"
            else:
                params[column] = f"{op}.{_format_value(operand)}"
        elif isinstance(value, (list, set)):
            joined = ",".join(_format_value(v) for v in value)
            params[column] = f"in.({joined})"
        elif value is None:
            params[column] = "is.null"
        else:
            params[column] = f"eq.{_format_value(value)}"
    if order:
        params["order"] = order
    if limit is not None:
        params["limit"] = str(limit)
    if offset:
        params["offset"] = str(offset)
    return params


class SupabaseClient:
    """Thin async wrapper over the REST query surface.

    Reads return raw rows (dicts). Any non-2xx answer raises
    ``SupabaseError``.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Initialize client with optional shared HTTP client.

        Args:
            url: Project URL. Uses config if None.
            key: API key sent as ``apikey`` and bearer token. Uses config if None.
            client: Shared ``httpx.AsyncClient``; not closed by ``aclose``.
            timeout: Request timeout in seconds. Uses config if None.
        """
        self.url = (url or config.supabase_url).rstrip("/")
        self._key = key or config.supabase_key
        self._timeout = timeout or config.request_timeout_seconds
        self._client = client
        self._owns_client = client is None

    @property
    def rest_url(self) -> str:
        return f"{self.url}/rest/v1"

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._key,
            "Authorization": f"Bearer {self._key}",
            "User-Agent": USER_AGENT,
        }

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        json: Any = None,
        returning: bool = False,
    ) -> list[dict[str, Any]]:
        headers = self._headers()
        if returning:
            headers["Prefer"] = "return=representation"

        url = f"{self.rest_url}/{table}"
        try:
            response = await self._get_client().request(
                method, url, params=params, json=json, headers=headers
            )
        except httpx.TimeoutException as e:
            logger.error(f"{method} {table} timed out")
            raise SupabaseError(f"Request to {table} timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"{method} {table} failed: {e}")
            raise SupabaseError(f"Request to {table} failed: {e}") from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.error(f"{method} {table} returned {response.status_code}: {message}")
            raise SupabaseError(message, status=response.status_code)

        if response.status_code == 204 or not response.content:
            return []
        payload = response.json()
        if isinstance(payload, dict):
            return [payload]
        return payload

    # Generic table helpers

    async def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        *,
        columns: str = "*",
        order: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        params = build_params(filters, columns=columns, order=order, limit=limit, offset=offset)
        return await self._request("GET", table, params=params)

    async def select_one(self, table: str, filters: Filters) -> dict[str, Any]:
        """Fetch exactly one row.

        Raises:
            NotFoundError: If no row matches.
        """
        rows = await self.select(table, filters, limit=1)
        if not rows:
            raise NotFoundError(f"No row in {table} matching {dict(filters)}", status=406)
        return rows[0]

    async def insert(
        self, table: str, data: Mapping[str, Any] | Sequence[Mapping[str, Any]]
    ) -> list[dict[str, Any]]:
        payload = dict(data) if isinstance(data, Mapping) else [dict(d) for d in data]
        return await self._request("POST", table, json=payload, returning=True)

    async def update(
        self, table: str, data: Mapping[str, Any], filters: Filters
    ) -> list[dict[str, Any]]:
        params = build_params(filters)
        return await self._request("PATCH", table, params=params, json=dict(data), returning=True)

    async def delete(self, table: str, filters: Filters) -> list[dict[str, Any]]:
        params = build_params(filters)
        return await self._request("DELETE", table, params=params, returning=True)

    async def _insert_one(self, table: str, data: Mapping[str, Any]) -> dict[str, Any]:
        rows = await self.insert(table, data)
        if not rows:
            raise SupabaseError(f"Insert into {table} returned no row")
        return rows[0]

    async def _update_one(
        self, table: str, data: Mapping[str, Any], filters: Filters
    ) -> dict[str, Any]:
        rows = await self.update(table, data, filters)
        if not rows:
            raise NotFoundError(f"No row in {table} matching {dict(filters)}", status=406)
        return rows[0]

    # Profiles

    async def get_profile(self, user_id: str) -> dict[str, Any]:
        return await self.select_one(PROFILES, {"id": user_id})

    async def update_user_profile(self, user_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
        return await self._update_one(PROFILES, data, {"id": user_id})

    # Skills

    async def get_user_skills(
        self, user_id: str, is_offering: Optional[bool] = None
    ) -> list[dict[str, Any]]:
        filters: dict[str, Any] = {"user_id": user_id}
        if is_offering is not None:
            filters["type"] = "offering" if is_offering else "seeking"
        return await self.select(SKILLS, filters, order="created_at.desc")

    async def get_skill(self, skill_id: str) -> dict[str, Any]:
        return await self.select_one(SKILLS, {"id": skill_id})

    async def search_skills(
        self,
        category: Optional[str] = None,
        query: Optional[str] = None,
        is_offering: Optional[bool] = None,
        is_remote_friendly: Optional[bool] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Search active skills by category, text and listing type."""
        filters: dict[str, Any] = {"is_active": True}
        if category:
            filters["category"] = category
        if is_offering is not None:
            filters["type"] = "offering" if is_offering else "seeking"
        if is_remote_friendly:
            filters["location_type"] = ["remote", "both"]
        if query:
            term = query.replace(",", " ").strip()
            filters["or"] = f"(title.ilike.*{term}*,description.ilike.*{term}*)"
        return await self.select(
            SKILLS, filters, order="created_at.desc", limit=limit, offset=offset
        )

    async def get_offered_skills(
        self, exclude_user_id: Optional[str] = None, limit: int = 200
    ) -> list[dict[str, Any]]:
        """Active offered skills, optionally excluding one user's."""
        filters: dict[str, Any] = {"is_active": True, "type": "offering"}
        if exclude_user_id:
            filters["user_id"] = ("neq", exclude_user_id)
        return await self.select(SKILLS, filters, order="created_at.desc", limit=limit)

    async def create_skill(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return await self._insert_one(SKILLS, data)

    async def update_skill(self, skill_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
        return await self._update_one(SKILLS, data, {"id": skill_id})

    async def delete_skill(self, skill_id: str) -> dict[str, Any]:
        rows = await self.delete(SKILLS, {"id": skill_id})
        if not rows:
            raise NotFoundError(f"Skill {skill_id} not found", status=406)
        return rows[0]

    # Trades

    async def get_user_trades(
        self, user_id: str, status: Optional[str] = None
    ) -> list[dict[str, Any]]:
        filters: dict[str, Any] = {"or": f"(proposer_id.eq.{user_id},receiver_id.eq.{user_id})"}
        if status:
            filters["status"] = status
        return await self.select(TRADES, filters, order="created_at.desc")

    async def get_trade_details(self, trade_id: str) -> dict[str, Any]:
        return await self.select_one(TRADES, {"id": trade_id})

    async def create_trade(self, data: Mapping[str, Any]) -> dict[str, Any]:
        row = {"status": "pending", **data}
        return await self._insert_one(TRADES, row)

    async def update_trade_status(
        self,
        trade_id: str,
        status: str,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        data = {**(extra or {}), "status": status}
        return await self._update_one(TRADES, data, {"id": trade_id})

    # Messages

    async def get_trade_messages(self, trade_id: str) -> list[dict[str, Any]]:
        return await self.select(MESSAGES, {"trade_id": trade_id}, order="created_at.asc")

    async def send_message(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return await self._insert_one(MESSAGES, data)

    # Ratings

    async def get_user_ratings(self, user_id: str) -> list[dict[str, Any]]:
        return await self.select(RATINGS, {"ratee_id": user_id}, order="created_at.desc")

    async def get_average_rating(self, user_id: str) -> Optional[float]:
        """Mean rating received by a user, None when unrated."""
        rows = await self.select(RATINGS, {"ratee_id": user_id}, columns="rating")
        ratings = [row["rating"] for row in rows if row.get("rating") is not None]
        if not ratings:
            return None
        return statistics.mean(ratings)

    async def submit_rating(self, data: Mapping[str, Any]) -> dict[str, Any]:
        rating = data.get("rating")
        if rating is None or not 1 <= rating <= 5:
            raise ValueError("rating must be between 1 and 5")
        return await self._insert_one(RATINGS, data)

    async def __aenter__(self) -> SupabaseClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or payload)
    return str(payload)
