"""Tests for the skill-pair scoring algorithm."""

import pytest

from conftest import make_skill
from skillswap.data.models import SkillLevel, SkillType
from skillswap.matching.scorer import (
    MatchTier,
    SkillMatchScorer,
    filter_by_category,
    keyword_similarity,
    match_categories,
    match_percentage,
)


@pytest.fixture
def scorer():
    """Create a scorer with the standard threshold."""
    return SkillMatchScorer(threshold=0.4)


class TestScore:
    """Test SkillMatchScorer.score."""

    def test_perfect_match(self, scorer, seeking_python, offered_pool):
        result = scorer.score(seeking_python, offered_pool[0])

        assert result.score == pytest.approx(1.0)
        assert result.complementary_score == 1.0
        assert result.category_overlap == 1.0
        assert result.skill_level_compatibility == 1.0
        assert result.reasons == [
            "Direct match between requested and offered skills",
            "Skills are in the same category",
            "Perfect skill level match",
        ]
        assert result.tier == MatchTier.STRONG

    def test_related_category_half_credit(self, scorer, seeking_python, offered_pool):
        result = scorer.score(seeking_python, offered_pool[1])

        assert result.category_overlap == 0.5
        assert result.score == pytest.approx(0.4 + 0.2 + 0.2 * (2 / 3))
        assert "Skills are in related categories" in result.reasons
        assert "Closely matched skill levels" in result.reasons

    def test_related_category_is_symmetric(self, scorer):
        assert scorer.is_related_category("web-development", "programming")
        assert scorer.is_related_category("design", "ux-design")
        assert not scorer.is_related_category("web-development", "mobile-development")

    def test_unrelated_category_large_gap(self, scorer, seeking_python, offered_pool):
        result = scorer.score(seeking_python, offered_pool[2])

        assert result.category_overlap == 0.0
        assert result.skill_level_compatibility == pytest.approx(1 / 3)
        assert result.score == pytest.approx(0.4 + 0.2 / 3)
        assert "Significant skill level difference" in result.reasons

    def test_two_offerings_not_complementary(self, scorer):
        a = make_skill("a", "u1", "Drawing", "design", SkillLevel.ADVANCED)
        b = make_skill("b", "u2", "Painting", "design", SkillLevel.ADVANCED)

        result = scorer.score(a, b)

        assert result.complementary_score == 0.0
        assert result.score == pytest.approx(0.6)
        assert "Direct match between requested and offered skills" not in result.reasons

    def test_worst_case_scores_zero(self, scorer):
        a = make_skill("a", "u1", "Cooking", "cooking", SkillLevel.BEGINNER, SkillType.OFFERING)
        b = make_skill("b", "u2", "Chess", "games", SkillLevel.EXPERT, SkillType.SEEKING)

        result = scorer.score(a, b)

        assert result.score == pytest.approx(0.0)

    def test_custom_related_categories(self):
        scorer = SkillMatchScorer(threshold=0.4, related_categories={"cooking": ["baking"]})
        assert scorer.is_related_category("baking", "cooking")
        assert not scorer.is_related_category("programming", "data-science")


class TestFindBestMatches:
    """Test ranking of skill pairs."""

    def test_ranked_and_same_user_skipped(self, scorer, seeking_python, offered_pool):
        matches = scorer.find_best_matches([seeking_python], offered_pool)

        assert [m.offered_skill.id for m in matches] == ["o1", "o2", "o3"]
        assert all(m.user_id != "alice" for m in matches)
        scores = [m.score for m in matches]
        assert scores == sorted(scores, reverse=True)

    def test_threshold_filters(self, seeking_python, offered_pool):
        strict = SkillMatchScorer(threshold=0.7)
        matches = strict.find_best_matches([seeking_python], offered_pool)
        assert [m.offered_skill.id for m in matches] == ["o1", "o2"]

    def test_limit(self, scorer, seeking_python, offered_pool):
        matches = scorer.find_best_matches([seeking_python], offered_pool, limit=1)
        assert len(matches) == 1
        assert matches[0].offered_skill.id == "o1"

    def test_equal_scores_keep_input_order(self, scorer, seeking_python):
        pool = [
            make_skill("x", "bob", "Python", "programming"),
            make_skill("y", "carol", "Python", "programming"),
            make_skill("z", "dave", "Python", "programming"),
        ]
        matches = scorer.find_best_matches([seeking_python], pool)
        assert [m.offered_skill.id for m in matches] == ["x", "y", "z"]

    def test_usernames_attached(self, scorer, seeking_python, offered_pool):
        matches = scorer.find_best_matches(
            [seeking_python], offered_pool, usernames={"bob": "Bob B."}
        )
        assert matches[0].username == "Bob B."
        assert matches[1].username is None

    def test_empty_inputs(self, scorer, seeking_python):
        assert scorer.find_best_matches([], []) == []
        assert scorer.find_best_matches([seeking_python], []) == []


class TestSimilarSkills:
    """Test find_similar_skills and keyword similarity."""

    def test_keyword_similarity(self):
        assert keyword_similarity(
            "Python programming basics", "Advanced Python programming"
        ) == pytest.approx(0.5)

    def test_keyword_similarity_ignores_short_words(self):
        assert keyword_similarity("a an the of", "a an the of") == 0.0
        assert keyword_similarity("", "") == 0.0

    def test_similar_skills_ranked(self, scorer, seeking_python, offered_pool):
        similar = scorer.find_similar_skills(seeking_python, offered_pool)

        assert [s.skill.id for s in similar] == ["o4", "o1"]
        assert similar[0].similarity_score == pytest.approx(0.4 + 0.3 / 3)
        assert similar[1].similarity_score == pytest.approx(0.4 + 0.3 / 4)

    def test_subcategory_bonus(self, scorer):
        skill = make_skill("a", "u1", "Oil", "art", subcategory="painting")
        pool = [
            make_skill("b", "u2", "Watercolor", "crafts", subcategory="painting"),
            make_skill("c", "u3", "Sculpture", "art", subcategory="3d"),
        ]

        similar = scorer.find_similar_skills(skill, pool)

        assert [s.skill.id for s in similar] == ["c", "b"]
        assert similar[1].similarity_score == pytest.approx(0.3)

    def test_excludes_self(self, scorer, seeking_python):
        assert scorer.find_similar_skills(seeking_python, [seeking_python]) == []


class TestHelpers:
    """Test display helpers used by the matches view."""

    def test_tiers(self):
        assert MatchTier.from_score(0.8) == MatchTier.STRONG
        assert MatchTier.from_score(0.79) == MatchTier.GOOD
        assert MatchTier.from_score(0.6) == MatchTier.GOOD
        assert MatchTier.from_score(0.59) == MatchTier.FAIR

    def test_category_filter(self, scorer, seeking_python, offered_pool):
        matches = scorer.find_best_matches([seeking_python], offered_pool)

        assert match_categories(matches) == ["programming", "web-development", "music"]
        assert [m.offered_skill.id for m in filter_by_category(matches, "music")] == ["o3"]
        assert len(filter_by_category(matches, "all")) == 3
        assert filter_by_category(matches, "cooking") == []

    def test_match_percentage(self, scorer, seeking_python, offered_pool):
        matches = scorer.find_best_matches([seeking_python], offered_pool)
        assert [match_percentage(m) for m in matches] == [100, 73, 47]
