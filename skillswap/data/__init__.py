"""Data layer - REST client, cached client and models."""

from skillswap.data.cached_client import CachedSupabaseClient, CacheTTL
from skillswap.data.models import (
    Location,
    NotificationPriority,
    Skill,
    SkillLevel,
    SkillType,
    TradeStatus,
    UserPreferences,
    UserProfile,
)
from skillswap.data.supabase_client import NotFoundError, SupabaseClient, SupabaseError

__all__ = [
    "CacheTTL",
    "CachedSupabaseClient",
    "Location",
    "NotFoundError",
    "NotificationPriority",
    "Skill",
    "SkillLevel",
    "SkillType",
    "SupabaseClient",
    "SupabaseError",
    "TradeStatus",
    "UserPreferences",
    "UserProfile",
]
