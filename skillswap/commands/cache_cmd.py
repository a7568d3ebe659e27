"""Cache commands: /cache stats|clear."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands

from skillswap.utils.embeds import build_cache_stats_embed, build_success_embed

if TYPE_CHECKING:
    from skillswap.bot.client import SkillSwapBot

logger = logging.getLogger(__name__)


def setup_cache_commands(bot: "SkillSwapBot") -> None:
    """Set up /cache commands on the bot."""

    cache_group = app_commands.Group(
        name="cache",
        description="Inspect the query cache",
        default_permissions=discord.Permissions(manage_guild=True),
    )

    @cache_group.command(name="stats", description="Show cache occupancy")
    async def cache_stats(interaction: discord.Interaction) -> None:
        cache = bot.data.cache
        await interaction.response.send_message(
            embed=build_cache_stats_embed(cache.stats(), cache.default_ttl),
            ephemeral=True,
        )

    @cache_group.command(name="clear", description="Drop every cached query")
    async def cache_clear(interaction: discord.Interaction) -> None:
        if not bot.is_staff(interaction):
            await interaction.response.send_message(
                "You need Manage Server permissions to clear the cache.", ephemeral=True
            )
            return

        count = len(bot.data.cache)
        bot.data.cache.clear()
        logger.info(f"Cache cleared by {interaction.user} ({count} entries)")
        await interaction.response.send_message(
            embed=build_success_embed("Cache Cleared", f"Removed {count} entries."),
            ephemeral=True,
        )

    bot.tree.add_command(cache_group)
