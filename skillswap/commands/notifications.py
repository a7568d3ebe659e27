"""Notification commands: /notifications."""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands

from skillswap.data.supabase_client import SupabaseError
from skillswap.utils.embeds import build_error_embed, build_notifications_embed

if TYPE_CHECKING:
    from skillswap.bot.client import SkillSwapBot


def setup_notification_commands(bot: "SkillSwapBot") -> None:
    """Set up /notifications on the bot."""

    @bot.tree.command(name="notifications", description="Show your recent notifications")
    @app_commands.describe(
        unread_only="Only unread notifications",
        mark_read="Mark them all as read afterwards",
    )
    async def notifications(
        interaction: discord.Interaction,
        unread_only: bool = False,
        mark_read: bool = False,
    ) -> None:
        profile_id = await bot.linked_profile(interaction)
        if profile_id is None:
            return

        await interaction.response.defer(ephemeral=True)
        try:
            rows = await bot.notifications.get_notifications(
                profile_id, unread_only=unread_only, limit=10
            )
            if mark_read and rows:
                await bot.notifications.mark_all_as_read(profile_id)
        except SupabaseError as e:
            await interaction.followup.send(
                embed=build_error_embed("Notifications Unavailable", str(e)), ephemeral=True
            )
            return

        await interaction.followup.send(
            embed=build_notifications_embed(rows, unread_only), ephemeral=True
        )
