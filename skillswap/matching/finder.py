"""Loads records through the cached client and runs the matchers on them."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from skillswap.config import config
from skillswap.data.cached_client import CachedSupabaseClient
from skillswap.data.models import Skill, UserProfile
from skillswap.data.supabase_client import NotFoundError
from skillswap.matching.scorer import (
    SimilarSkill,
    SkillMatch,
    SkillMatchScorer,
    filter_by_category,
    match_categories,
)
from skillswap.matching.user_matcher import UserMatch, find_matches

logger = logging.getLogger(__name__)

# Candidate users considered per user-level match run
MAX_CANDIDATE_USERS = 25


class MatchFinder:
    """Skill and user matching over live data."""

    def __init__(
        self,
        data: CachedSupabaseClient,
        scorer: Optional[SkillMatchScorer] = None,
    ) -> None:
        self.data = data
        self.scorer = scorer or SkillMatchScorer()

    async def load_profile(self, user_id: str) -> UserProfile:
        """Profile with skills and average rating.

        Raises:
            NotFoundError: If the profile does not exist.
        """
        row, skill_rows, rating = await asyncio.gather(
            self.data.get_profile(user_id),
            self.data.get_user_skills(user_id),
            self.data.get_average_rating(user_id),
        )
        skills = [Skill.from_row(r) for r in skill_rows if r.get("is_active", True)]
        profile = UserProfile.from_row(row, skills)
        if rating is not None:
            profile.rating = rating
        return profile

    async def _usernames(self, user_ids: list[str]) -> dict[str, str]:
        names = {}
        for user_id in dict.fromkeys(user_ids):
            try:
                row = await self.data.get_profile(user_id)
            except NotFoundError:
                continue
            names[user_id] = UserProfile.from_row(row).name
        return names

    async def skill_matches(
        self,
        user_id: str,
        category: str = "all",
        limit: Optional[int] = None,
    ) -> tuple[list[SkillMatch], list[str]]:
        """Best offered skills for what a user is seeking.

        Returns:
            The matches in ``category`` (best first, at most ``limit``) and
            every category present among all matches.
        """
        limit = limit or config.match_limit
        seeking = [Skill.from_row(r) for r in await self.data.get_user_skills(user_id, False)]
        if not seeking:
            return [], []

        pool = [Skill.from_row(r) for r in await self.data.get_offered_skills(user_id)]
        # Rank everything so the category list covers all matches
        matches = self.scorer.find_best_matches(seeking, pool, limit=len(seeking) * len(pool))
        categories = match_categories(matches)
        shown = filter_by_category(matches, category)[:limit]

        names = await self._usernames([m.user_id for m in shown])
        for match in shown:
            match.username = names.get(match.user_id)

        logger.info(f"{len(shown)} skill matches for {user_id} in {category}")
        return shown, categories

    async def similar_skills(self, skill_id: str, limit: int = 5) -> tuple[Skill, list[SimilarSkill]]:
        skill = Skill.from_row(await self.data.get_skill(skill_id))
        # Cached lists are shared and must not be extended
        rows = [
            *await self.data.search_skills(category=skill.category, limit=50),
            *await self.data.get_offered_skills(),
        ]
        pool = list({r["id"]: Skill.from_row(r) for r in rows}.values())
        return skill, self.scorer.find_similar_skills(skill, pool, limit=limit)

    async def user_matches(self, user_id: str, limit: int = 10) -> list[UserMatch]:
        """Other users ranked by overall fit."""
        user = await self.load_profile(user_id)
        pool = await self.data.get_offered_skills(user_id)
        candidate_ids = list(dict.fromkeys(str(r["user_id"]) for r in pool))[:MAX_CANDIDATE_USERS]

        candidates = []
        for candidate_id in candidate_ids:
            try:
                candidates.append(await self.load_profile(candidate_id))
            except NotFoundError:
                logger.debug(f"Skipping candidate {candidate_id} without profile")
        return find_matches(user, candidates, limit=limit)
