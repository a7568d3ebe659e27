"""Skill-pair match scoring.

Scores how well a skill one user is seeking is covered by a skill another
user offers. The score is a weighted blend of three factors in [0, 1]:

- COMPLEMENTARY (40%) - seeking matched against offering
- CATEGORY (40%) - same category, or a related one for half credit
- LEVEL (20%) - closeness of proficiency levels

Each factor that fires adds a human-readable reason to the result.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Optional, Sequence

from skillswap.config import config
from skillswap.data.models import Skill, SkillType

logger = logging.getLogger(__name__)


RELATED_CATEGORIES: dict[str, tuple[str, ...]] = {
    "programming": ("web-development", "mobile-development", "data-science"),
    "design": ("graphic-design", "ui-design", "ux-design"),
    "language": ("translation", "writing", "editing"),
    "music": ("production", "instruments", "vocals"),
}

_WORD_SPLIT = re.compile(r"\W+")


class MatchTier(Enum):
    """Display tiers for match scores."""

    STRONG = "strong"  # 0.8+
    GOOD = "good"  # 0.6-0.79
    FAIR = "fair"  # below 0.6

    @property
    def emoji(self) -> str:
        emojis = {
            "strong": "🟢",
            "good": "🟡",
            "fair": "🟠",
        }
        return emojis.get(self.value, "❓")

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_score(cls, score: float) -> MatchTier:
        """Get tier from a 0-1 score."""
        if score >= 0.8:
            return cls.STRONG
        elif score >= 0.6:
            return cls.GOOD
        else:
            return cls.FAIR


@dataclass
class MatchScore:
    """Breakdown of a skill-pair score."""

    score: float = 0.0
    complementary_score: float = 0.0
    skill_level_compatibility: float = 0.0
    category_overlap: float = 0.0
    reasons: list[str] = field(default_factory=list)

    @property
    def tier(self) -> MatchTier:
        return MatchTier.from_score(self.score)


@dataclass
class SkillMatch:
    """A requested skill paired with another user's offered skill."""

    requested_skill: Skill
    offered_skill: Skill
    user_id: str
    match_score: MatchScore
    username: Optional[str] = None

    @property
    def score(self) -> float:
        return self.match_score.score


@dataclass
class SimilarSkill:
    """A skill and its similarity to a reference skill."""

    skill: Skill
    similarity_score: float


def keyword_similarity(text1: str, text2: str) -> float:
    """Jaccard overlap of the words longer than three characters.

    >>> keyword_similarity("Python programming basics", "Advanced Python programming")
    0.5
    """
    words1 = {w for w in _WORD_SPLIT.split(text1.lower()) if len(w) > 3}
    words2 = {w for w in _WORD_SPLIT.split(text2.lower()) if len(w) > 3}

    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


class SkillMatchScorer:
    """Scores and ranks skill pairs."""

    COMPLEMENTARY_WEIGHT = 0.4
    CATEGORY_WEIGHT = 0.4
    LEVEL_WEIGHT = 0.2

    # Largest possible gap between BEGINNER and EXPERT
    MAX_LEVEL_DIFFERENCE = 3

    RELATED_CATEGORY_CREDIT = 0.5

    SIMILAR_CATEGORY_WEIGHT = 0.4
    SIMILAR_SUBCATEGORY_WEIGHT = 0.3
    SIMILAR_KEYWORD_WEIGHT = 0.3
    SIMILARITY_THRESHOLD = 0.3

    def __init__(
        self,
        threshold: Optional[float] = None,
        related_categories: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> None:
        """Initialize scorer.

        Args:
            threshold: Minimum score for a pair to count as a match. Uses config if None.
            related_categories: Category -> related categories. Uses the built-in map if None.
        """
        self.threshold = config.match_threshold if threshold is None else threshold
        source = RELATED_CATEGORIES if related_categories is None else related_categories
        self.related_categories = {k: tuple(v) for k, v in source.items()}

    def is_related_category(self, category1: str, category2: str) -> bool:
        """Whether either category lists the other as related."""
        return category2 in self.related_categories.get(
            category1, ()
        ) or category1 in self.related_categories.get(category2, ())

    def score(self, requested: Skill, offered: Skill) -> MatchScore:
        """Score a requested skill against an offered one.

        Args:
            requested: The skill a user is looking for.
            offered: The skill another user is offering.

        Returns:
            MatchScore with the components and reasons.
        """
        result = MatchScore()

        # === COMPLEMENTARY ===
        if requested.type == SkillType.SEEKING and offered.type == SkillType.OFFERING:
            result.complementary_score = 1.0
            result.reasons.append("Direct match between requested and offered skills")

        # === CATEGORY ===
        if requested.category == offered.category:
            result.category_overlap = 1.0
            result.reasons.append("Skills are in the same category")
        elif self.is_related_category(requested.category, offered.category):
            result.category_overlap = self.RELATED_CATEGORY_CREDIT
            result.reasons.append("Skills are in related categories")

        # === LEVEL ===
        difference = abs(int(requested.level) - int(offered.level))
        result.skill_level_compatibility = 1.0 - difference / self.MAX_LEVEL_DIFFERENCE
        if difference == 0:
            result.reasons.append("Perfect skill level match")
        elif difference <= 1:
            result.reasons.append("Closely matched skill levels")
        else:
            result.reasons.append("Significant skill level difference")

        result.score = (
            result.complementary_score * self.COMPLEMENTARY_WEIGHT
            + result.category_overlap * self.CATEGORY_WEIGHT
            + result.skill_level_compatibility * self.LEVEL_WEIGHT
        )
        return result

    def find_best_matches(
        self,
        requested_skills: Sequence[Skill],
        offered_skills: Sequence[Skill],
        limit: int = 10,
        usernames: Optional[Mapping[str, str]] = None,
    ) -> list[SkillMatch]:
        """Rank every requested/offered pair across different users.

        Args:
            requested_skills: Skills the user is seeking.
            offered_skills: Skills other users are offering.
            limit: Maximum number of matches to return.
            usernames: Optional user id -> display name for the offering users.

        Returns:
            Matches at or above the threshold, best first.
        """
        usernames = usernames or {}
        matches: list[SkillMatch] = []

        for requested in requested_skills:
            for offered in offered_skills:
                if requested.user_id == offered.user_id:
                    continue

                match_score = self.score(requested, offered)
                if match_score.score >= self.threshold:
                    matches.append(
                        SkillMatch(
                            requested_skill=requested,
                            offered_skill=offered,
                            user_id=offered.user_id,
                            match_score=match_score,
                            username=usernames.get(offered.user_id),
                        )
                    )

        # sort is stable, so equal scores keep input order
        matches.sort(key=lambda m: m.score, reverse=True)
        logger.debug(
            f"Found {len(matches)} matches for {len(requested_skills)} requested skills"
        )
        return matches[:limit]

    def find_similar_skills(
        self, skill: Skill, pool: Sequence[Skill], limit: int = 5
    ) -> list[SimilarSkill]:
        """Find skills resembling one skill by category and wording."""
        similar: list[SimilarSkill] = []
        reference_text = f"{skill.title} {skill.description}"

        for candidate in pool:
            if candidate.id == skill.id:
                continue

            similarity = 0.0
            if candidate.category == skill.category:
                similarity += self.SIMILAR_CATEGORY_WEIGHT
            if skill.subcategory and candidate.subcategory == skill.subcategory:
                similarity += self.SIMILAR_SUBCATEGORY_WEIGHT
            similarity += self.SIMILAR_KEYWORD_WEIGHT * keyword_similarity(
                reference_text, f"{candidate.title} {candidate.description}"
            )

            if similarity >= self.SIMILARITY_THRESHOLD:
                similar.append(SimilarSkill(skill=candidate, similarity_score=similarity))

        similar.sort(key=lambda s: s.similarity_score, reverse=True)
        return similar[:limit]


def match_percentage(match: SkillMatch) -> int:
    """Score as a whole percentage, rounding halves up."""
    return int(match.score * 100 + 0.5)


def filter_by_category(matches: Iterable[SkillMatch], category: str = "all") -> list[SkillMatch]:
    """Keep matches whose offered skill is in category. ``all`` keeps everything."""
    if not category or category == "all":
        return list(matches)
    return [m for m in matches if m.offered_skill.category == category]


def match_categories(matches: Iterable[SkillMatch]) -> list[str]:
    """Distinct offered-skill categories in order of first appearance."""
    seen: dict[str, None] = {}
    for match in matches:
        seen.setdefault(match.offered_skill.category, None)
    return list(seen)
