"""Cached wrapper around the REST client.

Reads go through the shared query cache under ``prefix:part`` keys. Writes
are forwarded to the client and, once they succeed, drop every cached
query the change could have made stale.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping, Optional

from skillswap.cache.query_cache import QueryCache, cached_fetch, query_cache
from skillswap.data.models import TradeStatus
from skillswap.data.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class CacheTTL:
    """Cache lifetimes in seconds."""

    SHORT = 60
    MEDIUM = 5 * 60
    LONG = 30 * 60
    VERY_LONG = 60 * 60


class KeyPrefix:
    """Cache key families."""

    PROFILE = "profile"
    USER_SKILLS = "userSkills"
    SKILLS_SEARCH = "skillsSearch"
    USER_TRADES = "userTrades"
    TRADE = "trade"
    TRADE_MESSAGES = "tradeMessages"
    USER_RATINGS = "userRatings"
    AVERAGE_RATING = "averageRating"
    SKILL = "skill"


CLOSED_TRADE_STATUSES = tuple(s.value for s in TradeStatus if s.is_closed)


def make_key(prefix: str, *parts: Any) -> str:
    """Join a prefix and parts into a cache key.

    >>> make_key("userSkills", "u1", "offering")
    'userSkills:u1:offering'
    """
    return ":".join([prefix, *(str(p) for p in parts)])


def skills_search_key(
    category: Optional[str] = None,
    is_offering: Optional[bool] = None,
    is_remote_friendly: Optional[bool] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> str:
    """Key for a search without a text query. Unset flags are omitted."""
    params = {
        "category": category or "all",
        "is_offering": is_offering,
        "is_remote_friendly": is_remote_friendly,
        "limit": limit or 10,
        "offset": offset or 0,
    }
    params = {k: v for k, v in params.items() if v is not None}
    return make_key(KeyPrefix.SKILLS_SEARCH, json.dumps(params, separators=(",", ":")))


class CachedSupabaseClient:
    """Read-through cache and write-through invalidation over ``SupabaseClient``."""

    def __init__(self, client: SupabaseClient, cache: Optional[QueryCache] = None) -> None:
        self.client = client
        self.cache = cache if cache is not None else query_cache

    # Invalidation

    def invalidate_user_caches(self, user_id: str) -> None:
        """Drop everything cached about one user."""
        for prefix in (
            KeyPrefix.PROFILE,
            KeyPrefix.USER_SKILLS,
            KeyPrefix.USER_TRADES,
            KeyPrefix.USER_RATINGS,
            KeyPrefix.AVERAGE_RATING,
        ):
            self.cache.remove_by_prefix(make_key(prefix, user_id))

    def invalidate_skill_caches(self, skill_id: Optional[str] = None) -> None:
        """Drop one skill, or every cached search when no id is given."""
        if skill_id:
            self.cache.remove_by_prefix(make_key(KeyPrefix.SKILL, skill_id))
        else:
            self.cache.remove_by_prefix(f"{KeyPrefix.SKILLS_SEARCH}:")

    def invalidate_trade_caches(self, trade_id: str, user_ids: Iterable[Optional[str]]) -> None:
        self.cache.remove_by_prefix(make_key(KeyPrefix.TRADE, trade_id))
        self.cache.remove_by_prefix(make_key(KeyPrefix.TRADE_MESSAGES, trade_id))
        for user_id in user_ids:
            if user_id:
                self.cache.remove_by_prefix(make_key(KeyPrefix.USER_TRADES, user_id))

    def invalidate_message_caches(self, trade_id: str) -> None:
        self.cache.remove_by_prefix(make_key(KeyPrefix.TRADE_MESSAGES, trade_id))

    # Reads

    async def _fetch(self, key: str, fetch, ttl: float, force_refresh: bool = False):
        return await cached_fetch(
            key, fetch, ttl=ttl, force_refresh=force_refresh, cache=self.cache
        )

    async def get_profile(self, user_id: str, force_refresh: bool = False) -> dict[str, Any]:
        return await self._fetch(
            make_key(KeyPrefix.PROFILE, user_id),
            lambda: self.client.get_profile(user_id),
            CacheTTL.MEDIUM,
            force_refresh,
        )

    async def get_user_skills(
        self, user_id: str, is_offering: Optional[bool] = None
    ) -> list[dict[str, Any]]:
        if is_offering is None:
            kind = "all"
        else:
            kind = "offering" if is_offering else "seeking"
        return await self._fetch(
            make_key(KeyPrefix.USER_SKILLS, user_id, kind),
            lambda: self.client.get_user_skills(user_id, is_offering),
            CacheTTL.MEDIUM,
        )

    async def get_skill(self, skill_id: str) -> dict[str, Any]:
        return await self._fetch(
            make_key(KeyPrefix.SKILL, skill_id),
            lambda: self.client.get_skill(skill_id),
            CacheTTL.MEDIUM,
        )

    async def search_skills(
        self,
        category: Optional[str] = None,
        query: Optional[str] = None,
        is_offering: Optional[bool] = None,
        is_remote_friendly: Optional[bool] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Search skills. Free-text searches are never cached."""
        if query:
            return await self.client.search_skills(
                category=category,
                query=query,
                is_offering=is_offering,
                is_remote_friendly=is_remote_friendly,
                limit=limit,
                offset=offset,
            )

        key = skills_search_key(category, is_offering, is_remote_friendly, limit, offset)
        return await self._fetch(
            key,
            lambda: self.client.search_skills(
                category=category,
                is_offering=is_offering,
                is_remote_friendly=is_remote_friendly,
                limit=limit,
                offset=offset,
            ),
            CacheTTL.SHORT,
        )

    async def get_offered_skills(
        self, exclude_user_id: Optional[str] = None, limit: int = 200
    ) -> list[dict[str, Any]]:
        """Offered skills pool, cached alongside searches."""
        key = make_key(
            KeyPrefix.SKILLS_SEARCH,
            json.dumps({"pool": "offering", "exclude": exclude_user_id, "limit": limit},
                       separators=(",", ":")),
        )
        return await self._fetch(
            key,
            lambda: self.client.get_offered_skills(exclude_user_id, limit),
            CacheTTL.SHORT,
        )

    async def get_user_trades(
        self, user_id: str, status: Optional[str] = None
    ) -> list[dict[str, Any]]:
        # Closed trades no longer change
        ttl = CacheTTL.LONG if status in CLOSED_TRADE_STATUSES else CacheTTL.SHORT
        return await self._fetch(
            make_key(KeyPrefix.USER_TRADES, user_id, status or "all"),
            lambda: self.client.get_user_trades(user_id, status),
            ttl,
        )

    async def get_trade_details(self, trade_id: str) -> dict[str, Any]:
        return await self._fetch(
            make_key(KeyPrefix.TRADE, trade_id),
            lambda: self.client.get_trade_details(trade_id),
            CacheTTL.SHORT,
        )

    async def get_trade_messages(self, trade_id: str) -> list[dict[str, Any]]:
        return await self._fetch(
            make_key(KeyPrefix.TRADE_MESSAGES, trade_id),
            lambda: self.client.get_trade_messages(trade_id),
            CacheTTL.SHORT,
        )

    async def get_user_ratings(self, user_id: str) -> list[dict[str, Any]]:
        return await self._fetch(
            make_key(KeyPrefix.USER_RATINGS, user_id),
            lambda: self.client.get_user_ratings(user_id),
            CacheTTL.LONG,
        )

    async def get_average_rating(self, user_id: str) -> Optional[float]:
        # None means unrated and is not cached
        return await self._fetch(
            make_key(KeyPrefix.AVERAGE_RATING, user_id),
            lambda: self.client.get_average_rating(user_id),
            CacheTTL.LONG,
        )

    # Writes

    async def create_skill(self, data: Mapping[str, Any]) -> dict[str, Any]:
        row = await self.client.create_skill(data)
        self.invalidate_skill_caches()
        owner = row.get("user_id") or data.get("user_id")
        if owner:
            self.invalidate_user_caches(owner)
        return row

    async def update_skill(self, skill_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
        row = await self.client.update_skill(skill_id, data)
        self.invalidate_skill_caches(skill_id)
        self.invalidate_skill_caches()
        if row.get("user_id"):
            self.invalidate_user_caches(row["user_id"])
        return row

    async def delete_skill(self, skill_id: str, user_id: Optional[str] = None) -> dict[str, Any]:
        row = await self.client.delete_skill(skill_id)
        self.invalidate_skill_caches(skill_id)
        self.invalidate_skill_caches()
        owner = row.get("user_id") or user_id
        if owner:
            self.invalidate_user_caches(owner)
        return row

    async def create_trade(self, data: Mapping[str, Any]) -> dict[str, Any]:
        row = await self.client.create_trade(data)
        self.invalidate_trade_caches(
            str(row["id"]), [data.get("proposer_id"), data.get("receiver_id")]
        )
        return row

    async def update_trade_status(
        self,
        trade_id: str,
        status: str,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        row = await self.client.update_trade_status(trade_id, status, extra)
        parties = [row.get("proposer_id"), row.get("receiver_id")]
        self.invalidate_trade_caches(trade_id, parties)

        # Completion opens the trade for ratings
        if status == TradeStatus.COMPLETED.value:
            for user_id in parties:
                if user_id:
                    self.invalidate_user_caches(user_id)
        return row

    async def send_message(self, data: Mapping[str, Any]) -> dict[str, Any]:
        row = await self.client.send_message(data)
        self.invalidate_message_caches(data["trade_id"])
        return row

    async def submit_rating(self, data: Mapping[str, Any]) -> dict[str, Any]:
        row = await self.client.submit_rating(data)
        self.invalidate_user_caches(data["ratee_id"])
        self.invalidate_trade_caches(data["trade_id"], [data.get("rater_id"), data["ratee_id"]])
        return row

    async def update_user_profile(self, user_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
        row = await self.client.update_user_profile(user_id, data)
        self.invalidate_user_caches(user_id)
        return row
