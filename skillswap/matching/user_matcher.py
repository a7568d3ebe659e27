"""User-level matching.

Ranks other users for a user by how well their skills complement each
other, how close they are, how their experience levels fit the user's
preference, and how well they are rated. Every component is scored 0-100
and the weighted total is rounded to a whole number.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from skillswap.data.models import Skill, UserPreferences, UserProfile
from skillswap.utils.geo import calculate_geo_distance
from skillswap.utils.rounding import round_half_up

logger = logging.getLogger(__name__)

SKILL_COMPLEMENT_WEIGHT = 0.5
LOCATION_WEIGHT = 0.2
EXPERIENCE_WEIGHT = 0.2
RATING_WEIGHT = 0.1

DEFAULT_MAX_DISTANCE_KM = 50
DEFAULT_MATCH_THRESHOLD = 50


@dataclass
class ComplementarySkills:
    """Skills each side offers that the other side wants."""

    user1_offers: list[Skill] = field(default_factory=list)
    user2_offers: list[Skill] = field(default_factory=list)
    wanted: list[Skill] = field(default_factory=list)

    @property
    def offered(self) -> list[Skill]:
        return self.user1_offers + self.user2_offers

    @property
    def is_bidirectional(self) -> bool:
        return bool(self.user1_offers) and bool(self.user2_offers)


@dataclass
class MatchBreakdown:
    """Component scores, each 0-100."""

    skill_complement: int = 0
    location: int = 0
    experience_level: float = 0
    rating: int = 0


@dataclass
class UserMatch:
    """Another user scored against the current one."""

    user: UserProfile
    score: int
    breakdown: MatchBreakdown
    reasons: list[str]
    matched_skills: ComplementarySkills


def is_similar_skill(skill1: Skill, skill2: Skill) -> bool:
    """Same title ignoring case, or same category and subcategory."""
    if skill1.title.lower() == skill2.title.lower():
        return True
    return (
        skill1.category == skill2.category
        and bool(skill1.subcategory)
        and skill1.subcategory == skill2.subcategory
    )


def find_complementary_skills(user1: UserProfile, user2: UserProfile) -> ComplementarySkills:
    user1_offers = [
        offered
        for offered in user1.offered_skills
        if any(is_similar_skill(offered, wanted) for wanted in user2.wanted_skills)
    ]
    user2_offers = [
        offered
        for offered in user2.offered_skills
        if any(is_similar_skill(offered, wanted) for wanted in user1.wanted_skills)
    ]
    wanted = [
        w for w in user2.wanted_skills if any(is_similar_skill(o, w) for o in user1_offers)
    ] + [w for w in user1.wanted_skills if any(is_similar_skill(o, w) for o in user2_offers)]

    return ComplementarySkills(user1_offers=user1_offers, user2_offers=user2_offers, wanted=wanted)


def skill_complement_score(matched: ComplementarySkills) -> int:
    offered = matched.offered
    if not offered:
        return 0

    # 15 points per matched skill, counting at most five
    base = min(len(offered), 5) * 15
    bonus = 25 if matched.is_bidirectional else 0
    return min(base + bonus, 100)


def location_score(user1: UserProfile, user2: UserProfile) -> int:
    if user1.preferences.remote_only or user2.preferences.remote_only:
        return 100
    if user1.location is None or user2.location is None:
        return 50

    distance = calculate_geo_distance(
        user1.location.latitude,
        user1.location.longitude,
        user2.location.latitude,
        user2.location.longitude,
    )
    max_distance = user1.preferences.max_distance_km or DEFAULT_MAX_DISTANCE_KM
    return max(0, round_half_up(100 - distance / max_distance * 100))


def _average_level(skills: Sequence[Skill]) -> float:
    if not skills:
        return 0.0
    return sum(int(s.level) for s in skills) / len(skills)


def experience_level_score(
    user1: UserProfile, user2: UserProfile, matched: ComplementarySkills
) -> float:
    """Fit of the matched skills' levels to user1's experience preference."""
    if not matched.offered:
        return 50

    preference = user1.preferences.experience_level_preference or "any"
    if preference == "any":
        return 90

    if not matched.is_bidirectional:
        return 60

    level1 = _average_level(matched.user1_offers)
    level2 = _average_level(matched.user2_offers)

    if preference == "similar":
        return 100 - abs(level1 - level2) * 25
    elif preference == "higher":
        return 100 - max(0, 4 - (level2 - level1)) * 20 if level2 > level1 else 50
    elif preference == "lower":
        return 100 - max(0, 4 - (level1 - level2)) * 20 if level2 < level1 else 50
    else:
        return 70


def rating_score(user: UserProfile) -> int:
    if not user.rating:
        return 70
    return round_half_up(user.rating / 5 * 100)


def _format_rating(rating: float) -> str:
    return f"{rating:g}"


def generate_match_reasons(
    user1: UserProfile,
    user2: UserProfile,
    matched: ComplementarySkills,
    breakdown: MatchBreakdown,
) -> list[str]:
    """Human-readable explanations for a match."""
    reasons: list[str] = []

    if matched.offered:
        theirs = len(matched.user2_offers)
        mine = len(matched.user1_offers)
        if theirs and mine:
            reasons.append(
                f"You have {mine} skills they want and they have {theirs} skills you want"
            )
        elif theirs:
            reasons.append(f"They have {theirs} skills you're looking for")
        else:
            reasons.append(f"You have {mine} skills they're looking for")

        if len(matched.offered) <= 3:
            names = ", ".join(s.title for s in matched.offered)
            reasons.append(f"Matching skills include: {names}")

    if breakdown.location >= 80:
        if user1.preferences.remote_only or user2.preferences.remote_only:
            reasons.append("Both users are open to remote skill exchanges")
        elif user1.location and user2.location:
            distance = calculate_geo_distance(
                user1.location.latitude,
                user1.location.longitude,
                user2.location.latitude,
                user2.location.longitude,
            )
            reasons.append(f"Located only {round_half_up(distance)}km away from you")

    if breakdown.experience_level >= 80:
        preference = user1.preferences.experience_level_preference
        if preference == "similar":
            reasons.append("Has a similar experience level to you")
        elif preference == "higher":
            reasons.append("Has more experience in the skills you want to learn")
        elif preference == "lower":
            reasons.append("Is looking to learn at your expertise level")
        elif breakdown.experience_level > 85:
            reasons.append("Experience levels are highly compatible")

    if user2.rating and user2.rating >= 4.5:
        reasons.append(f"Highly rated user ({_format_rating(user2.rating)}/5 stars)")
    elif user2.rating and user2.rating >= 4.0:
        reasons.append(f"Well-rated user ({_format_rating(user2.rating)}/5 stars)")

    return reasons


def calculate_match_score(user1: UserProfile, user2: UserProfile) -> UserMatch:
    """Score user2 as a match for user1."""
    matched = find_complementary_skills(user1, user2)
    breakdown = MatchBreakdown(
        skill_complement=skill_complement_score(matched),
        location=location_score(user1, user2),
        experience_level=experience_level_score(user1, user2, matched),
        rating=rating_score(user2),
    )

    total = round_half_up(
        breakdown.skill_complement * SKILL_COMPLEMENT_WEIGHT
        + breakdown.location * LOCATION_WEIGHT
        + breakdown.experience_level * EXPERIENCE_WEIGHT
        + breakdown.rating * RATING_WEIGHT
    )

    return UserMatch(
        user=user2,
        score=total,
        breakdown=breakdown,
        reasons=generate_match_reasons(user1, user2, matched, breakdown),
        matched_skills=matched,
    )


def find_matches(
    user: UserProfile, candidates: Sequence[UserProfile], limit: int = 20
) -> list[UserMatch]:
    """Best matches for user among candidates, at or above the user's threshold."""
    threshold = user.preferences.matching_threshold or DEFAULT_MATCH_THRESHOLD

    matches = [
        calculate_match_score(user, other) for other in candidates if other.id != user.id
    ]
    matches = [m for m in matches if m.score >= threshold]
    matches.sort(key=lambda m: m.score, reverse=True)

    logger.debug(f"User {user.id}: {len(matches)} matches above {threshold}")
    return matches[:limit]


def filter_matches_by_preferences(
    matches: Sequence[UserMatch], preferences: UserPreferences
) -> list[UserMatch]:
    """Drop matches below the threshold or too far away."""
    kept = []
    for match in matches:
        if preferences.matching_threshold and match.score < preferences.matching_threshold:
            continue
        if (
            not preferences.remote_only
            and preferences.max_distance_km
            and match.breakdown.location < 50
        ):
            continue
        kept.append(match)
    return kept


SORT_KEYS = {
    "score": lambda m: m.score,
    "skill_complement": lambda m: m.breakdown.skill_complement,
    "location": lambda m: m.breakdown.location,
    "rating": lambda m: m.user.rating or 0,
}


def sort_matches(matches: Sequence[UserMatch], by: str = "score") -> list[UserMatch]:
    """Sort matches descending by score or one component. Unknown keys sort by score."""
    key = SORT_KEYS.get(by, SORT_KEYS["score"])
    return sorted(matches, key=key, reverse=True)
