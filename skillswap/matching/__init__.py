"""Skill and user matching."""

from skillswap.matching.scorer import (
    MatchScore,
    MatchTier,
    SimilarSkill,
    SkillMatch,
    SkillMatchScorer,
    filter_by_category,
    match_categories,
    match_percentage,
)
from skillswap.matching.user_matcher import (
    UserMatch,
    calculate_match_score,
    filter_matches_by_preferences,
    find_matches,
    sort_matches,
)

__all__ = [
    "MatchScore",
    "MatchTier",
    "SimilarSkill",
    "SkillMatch",
    "SkillMatchScorer",
    "UserMatch",
    "calculate_match_score",
    "filter_by_category",
    "filter_matches_by_preferences",
    "find_matches",
    "match_categories",
    "match_percentage",
    "sort_matches",
]
