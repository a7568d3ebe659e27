"""Matching commands: /link, /unlink, /matches, /similar, /partners."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands

from skillswap.data.supabase_client import NotFoundError, SupabaseError
from skillswap.utils.embeds import (
    build_error_embed,
    build_matches_embed,
    build_partners_embed,
    build_similar_embed,
    build_success_embed,
)

if TYPE_CHECKING:
    from skillswap.bot.client import SkillSwapBot

logger = logging.getLogger(__name__)


def setup_match_commands(bot: "SkillSwapBot") -> None:
    """Set up matching commands on the bot."""

    @bot.tree.command(name="link", description="Link your Discord account to a SkillSwap profile")
    @app_commands.describe(user_id="Your SkillSwap profile id")
    async def link(interaction: discord.Interaction, user_id: str) -> None:
        await interaction.response.defer(ephemeral=True)
        try:
            profile = await bot.data.get_profile(user_id)
        except NotFoundError:
            await interaction.followup.send(
                embed=build_error_embed("Not Found", f"No profile with id `{user_id}`."),
                ephemeral=True,
            )
            return
        except SupabaseError as e:
            await interaction.followup.send(
                embed=build_error_embed("Lookup Failed", str(e)), ephemeral=True
            )
            return

        bot.links.link(interaction.user.id, user_id)
        name = profile.get("full_name") or profile.get("username") or user_id
        await interaction.followup.send(
            embed=build_success_embed("Profile Linked", f"Linked to **{name}**."),
            ephemeral=True,
        )

    @bot.tree.command(name="unlink", description="Forget your linked SkillSwap profile")
    async def unlink(interaction: discord.Interaction) -> None:
        if bot.links.unlink(interaction.user.id):
            embed = build_success_embed("Profile Unlinked", "Your SkillSwap profile was unlinked.")
        else:
            embed = build_error_embed("Not Linked", "You have no linked profile.")
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @bot.tree.command(name="matches", description="Find offered skills matching what you're seeking")
    @app_commands.describe(
        category="Only show matches in this category",
        limit="Maximum number of matches (1-25)",
    )
    async def matches(
        interaction: discord.Interaction,
        category: Optional[str] = None,
        limit: Optional[app_commands.Range[int, 1, 25]] = None,
    ) -> None:
        profile_id = await bot.linked_profile(interaction)
        if profile_id is None:
            return

        await interaction.response.defer()
        try:
            found, categories = await bot.finder.skill_matches(
                profile_id, category=category or "all", limit=limit
            )
        except SupabaseError as e:
            logger.error(f"Match lookup failed for {profile_id}: {e}")
            await interaction.followup.send(embed=build_error_embed("Match Failed", str(e)))
            return

        await interaction.followup.send(
            embed=build_matches_embed(found, category or "all", categories)
        )

    @bot.tree.command(name="similar", description="Find skills similar to a skill")
    @app_commands.describe(skill_id="Skill id", limit="Maximum number of results (1-10)")
    async def similar(
        interaction: discord.Interaction,
        skill_id: str,
        limit: app_commands.Range[int, 1, 10] = 5,
    ) -> None:
        if not await bot.check_rate_limit(interaction):
            return

        await interaction.response.defer()
        try:
            skill, results = await bot.finder.similar_skills(skill_id, limit=limit)
        except NotFoundError:
            await interaction.followup.send(
                embed=build_error_embed("Not Found", f"No skill with id `{skill_id}`.")
            )
            return
        except SupabaseError as e:
            await interaction.followup.send(embed=build_error_embed("Search Failed", str(e)))
            return

        await interaction.followup.send(embed=build_similar_embed(skill, results))

    @bot.tree.command(name="partners", description="Find users whose skills complement yours")
    @app_commands.describe(limit="Maximum number of partners (1-10)")
    async def partners(
        interaction: discord.Interaction,
        limit: app_commands.Range[int, 1, 10] = 5,
    ) -> None:
        profile_id = await bot.linked_profile(interaction)
        if profile_id is None:
            return

        await interaction.response.defer()
        try:
            found = await bot.finder.user_matches(profile_id, limit=limit)
        except SupabaseError as e:
            logger.error(f"Partner lookup failed for {profile_id}: {e}")
            await interaction.followup.send(embed=build_error_embed("Match Failed", str(e)))
            return

        await interaction.followup.send(embed=build_partners_embed(found))
