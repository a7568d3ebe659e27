"""Discord embed builders for SkillSwap."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence

import discord

from skillswap.cache.query_cache import CacheStats
from skillswap.data.models import Skill
from skillswap.matching.scorer import MatchTier, SimilarSkill, SkillMatch, match_percentage
from skillswap.matching.user_matcher import UserMatch
from skillswap.notifications.expiration import parse_timestamp

# Color scheme
COLORS = {
    MatchTier.STRONG: discord.Color.green(),
    MatchTier.GOOD: discord.Color.gold(),
    MatchTier.FAIR: discord.Color.orange(),
    "success": discord.Color.green(),
    "error": discord.Color.red(),
    "info": discord.Color.blue(),
    "warning": discord.Color.orange(),
}

# Discord limits on embed size
MAX_FIELDS = 25
MAX_FIELD_NAME = 256
MAX_FIELD_VALUE = 1024
MAX_EMBED_CHARS = 6000
MAX_FOOTER = 2048
# Room kept for the "more not shown" note
OVERFLOW_RESERVE = 64


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _add_fields(embed: discord.Embed, fields: Iterable[tuple[str, str]]) -> int:
    """Add fields until Discord's field count or total size limit is reached.

    Returns:
        Number of fields that did not fit.
    """
    fields = list(fields)
    budget = MAX_EMBED_CHARS - OVERFLOW_RESERVE
    for i, (name, value) in enumerate(fields):
        name = _truncate(name, MAX_FIELD_NAME)
        value = _truncate(value, MAX_FIELD_VALUE)
        if len(embed.fields) >= MAX_FIELDS or len(embed) + len(name) + len(value) > budget:
            return len(fields) - i
        embed.add_field(name=name, value=value, inline=False)
    return 0


def _note_overflow(embed: discord.Embed, hidden: int) -> None:
    if not hidden:
        return
    note = f"{hidden} more not shown"
    footer = embed.footer.text
    embed.set_footer(text=f"{footer} | {note}" if footer else note)


def build_matches_embed(
    matches: Sequence[SkillMatch],
    category: str = "all",
    categories: Sequence[str] = (),
) -> discord.Embed:
    """Build an embed listing skill matches."""
    top_tier = matches[0].match_score.tier if matches else None
    embed = discord.Embed(
        title="Skill Matches",
        description=(
            f"Showing **{len(matches)}** matches"
            + (f" in **{category}**" if category and category != "all" else "")
        ),
        color=COLORS.get(top_tier, COLORS["info"]),
        timestamp=_now(),
    )

    if not matches:
        embed.description = "No matches found. Try adding more skills you're seeking."

    if categories:
        embed.set_footer(
            text=_truncate(f"Categories: {', '.join(categories)}", MAX_FOOTER - OVERFLOW_RESERVE)
        )

    fields = []
    for match in matches:
        offered = match.offered_skill
        owner = match.username or f"User {match.user_id[:8]}"
        reasons = "\n".join(f"- {r}" for r in match.match_score.reasons)
        fields.append((
            f"{match.match_score.tier.emoji} {offered.title} ({match_percentage(match)}%)",
            f"For your request **{match.requested_skill.title}**\n"
            f"Offered by {owner} | {offered.display_level}\n{reasons}",
        ))
    _note_overflow(embed, _add_fields(embed, fields))
    return embed


def build_similar_embed(skill: Skill, similar: Sequence[SimilarSkill]) -> discord.Embed:
    embed = discord.Embed(
        title=f"Skills similar to {skill.title}",
        description=f"Category: **{skill.category}**",
        color=COLORS["info"],
        timestamp=_now(),
    )
    if not similar:
        embed.add_field(name="No results", value="Nothing similar found yet.", inline=False)
        return embed

    fields = [
        (
            f"{entry.skill.title} ({entry.similarity_score * 100:.0f}%)",
            f"{entry.skill.category} | {entry.skill.display_level}",
        )
        for entry in similar
    ]
    _note_overflow(embed, _add_fields(embed, fields))
    return embed


def build_partners_embed(matches: Sequence[UserMatch]) -> discord.Embed:
    """Build an embed listing user-level matches."""
    embed = discord.Embed(
        title="Trade Partners",
        color=COLORS["info"],
        timestamp=_now(),
    )
    if not matches:
        embed.description = "No partners above your matching threshold."
        return embed

    fields = []
    for match in matches:
        breakdown = match.breakdown
        fields.append((
            f"{match.user.name} ({match.score}/100)",
            f"Skills {breakdown.skill_complement} | Location {breakdown.location} | "
            f"Experience {breakdown.experience_level:.0f} | Rating {breakdown.rating}\n"
            + "\n".join(f"- {r}" for r in match.reasons),
        ))
    _note_overflow(embed, _add_fields(embed, fields))
    return embed


def build_notifications_embed(
    notifications: Sequence[dict[str, Any]], unread_only: bool = False
) -> discord.Embed:
    embed = discord.Embed(
        title="Unread Notifications" if unread_only else "Notifications",
        color=COLORS["info"],
        timestamp=_now(),
    )
    if not notifications:
        embed.description = "You're all caught up."
        return embed

    fields = []
    for row in notifications:
        marker = "" if row.get("is_read") else "🔵 "
        created = row.get("created_at")
        when = parse_timestamp(created).strftime("%Y-%m-%d %H:%M") if created else ""
        fields.append((
            f"{marker}{row.get('title') or row.get('type', 'Notification')}",
            f"{row.get('content') or '-'}\n{when}".strip(),
        ))
    _note_overflow(embed, _add_fields(embed, fields))
    return embed


def build_cache_stats_embed(stats: CacheStats, default_ttl: Optional[float] = None) -> discord.Embed:
    embed = discord.Embed(
        title="Query Cache",
        color=COLORS["info"],
        timestamp=_now(),
    )
    embed.add_field(name="Entries", value=f"{stats.total:,}", inline=True)
    embed.add_field(name="Valid", value=f"{stats.valid:,}", inline=True)
    embed.add_field(name="Expired", value=f"{stats.expired:,}", inline=True)
    if default_ttl is not None:
        embed.set_footer(text=f"Default TTL: {default_ttl:.0f}s")
    return embed


def build_error_embed(title: str, message: str) -> discord.Embed:
    """Build an error embed."""
    return discord.Embed(
        title=f"Error: {title}",
        description=message,
        color=COLORS["error"],
        timestamp=_now(),
    )


def build_success_embed(title: str, message: str) -> discord.Embed:
    """Build a success embed."""
    return discord.Embed(
        title=title,
        description=message,
        color=COLORS["success"],
        timestamp=_now(),
    )
