"""Data models for SkillSwap records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Mapping, Optional


class SkillLevel(IntEnum):
    """Proficiency levels, ordered."""

    BEGINNER = 1
    INTERMEDIATE = 2
    ADVANCED = 3
    EXPERT = 4

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.name.capitalize()

    @property
    def emoji(self) -> str:
        """Emoji representation."""
        emojis = {
            1: "🌱",
            2: "🌿",
            3: "🌳",
            4: "🏆",
        }
        return emojis.get(self.value, "❓")

    @classmethod
    def from_value(cls, value: Any) -> SkillLevel:
        """Parse a level from its database string or number."""
        if isinstance(value, SkillLevel):
            return value
        if isinstance(value, int):
            return cls(value)
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown skill level: {value!r}") from None


class SkillType(Enum):
    """Whether a listing offers a skill or asks for one."""

    OFFERING = "offering"
    SEEKING = "seeking"


class TradeStatus(Enum):
    """Lifecycle states of a trade proposal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def is_closed(self) -> bool:
        """Closed trades no longer change."""
        return self in (TradeStatus.COMPLETED, TradeStatus.CANCELLED)


class NotificationPriority(Enum):
    """Notification priority levels."""

    URGENT = "urgent"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


@dataclass
class Skill:
    """A skill listing, offered or sought by a user."""

    id: str
    user_id: str
    title: str
    category: str
    level: SkillLevel = SkillLevel.BEGINNER
    type: SkillType = SkillType.OFFERING
    description: str = ""
    subcategory: Optional[str] = None
    location_type: str = "remote"
    is_active: bool = True
    created_at: Optional[str] = None

    @property
    def is_offering(self) -> bool:
        return self.type == SkillType.OFFERING

    @property
    def is_remote_friendly(self) -> bool:
        return self.location_type in ("remote", "both")

    @property
    def display_level(self) -> str:
        """Formatted level string."""
        return f"{self.level.emoji} {self.level.display_name}"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Skill:
        """Build a skill from a REST row."""
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            title=row.get("title") or row.get("name") or "",
            category=row.get("category") or "",
            level=SkillLevel.from_value(row.get("level") or row.get("proficiency_level") or 1),
            type=SkillType(row.get("type") or "offering"),
            description=row.get("description") or "",
            subcategory=row.get("subcategory") or None,
            location_type=row.get("location_type") or "remote",
            is_active=bool(row.get("is_active", True)),
            created_at=row.get("created_at"),
        )


@dataclass
class Location:
    """Geographic position of a user."""

    latitude: float
    longitude: float
    description: str = ""


@dataclass
class UserPreferences:
    """Matching preferences of a user."""

    max_distance_km: Optional[float] = None
    remote_only: bool = False
    experience_level_preference: str = "any"  # any | similar | higher | lower
    matching_threshold: Optional[int] = None  # 0-100


@dataclass
class UserProfile:
    """A user with the skills they offer and want."""

    id: str
    username: str = ""
    display_name: str = ""
    location: Optional[Location] = None
    preferences: UserPreferences = field(default_factory=UserPreferences)
    rating: Optional[float] = None
    offered_skills: list[Skill] = field(default_factory=list)
    wanted_skills: list[Skill] = field(default_factory=list)

    @property
    def name(self) -> str:
        """Best available name for display."""
        return self.display_name or self.username or f"User {self.id[:6]}"

    @classmethod
    def from_row(
        cls, row: Mapping[str, Any], skills: Optional[list[Skill]] = None
    ) -> UserProfile:
        """Build a profile from a REST row and the user's skills."""
        location = None
        if row.get("latitude") is not None and row.get("longitude") is not None:
            location = Location(
                latitude=float(row["latitude"]),
                longitude=float(row["longitude"]),
                description=row.get("location") or "",
            )
        prefs = row.get("preferences") or {}
        preferences = UserPreferences(
            max_distance_km=prefs.get("max_distance"),
            remote_only=bool(prefs.get("remote_only", False)),
            experience_level_preference=prefs.get("experience_level_preference") or "any",
            matching_threshold=prefs.get("matching_threshold"),
        )
        skills = skills or []
        return cls(
            id=str(row["id"]),
            username=row.get("username") or "",
            display_name=row.get("full_name") or row.get("display_name") or "",
            location=location,
            preferences=preferences,
            rating=row.get("rating"),
            offered_skills=[s for s in skills if s.is_offering],
            wanted_skills=[s for s in skills if not s.is_offering],
        )
