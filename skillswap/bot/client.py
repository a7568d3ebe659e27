"""Discord bot exposing SkillSwap matching and notifications."""

from __future__ import annotations

import logging
from typing import Optional

import discord
from discord import app_commands

from skillswap.bot.rate_limiter import SlidingWindowRateLimiter
from skillswap.bot.storage import ProfileLinkStore
from skillswap.cache.query_cache import query_cache
from skillswap.config import config
from skillswap.data.cached_client import CachedSupabaseClient
from skillswap.data.supabase_client import SupabaseClient
from skillswap.matching.finder import MatchFinder
from skillswap.notifications.scheduler import NotificationScheduler
from skillswap.notifications.service import NotificationService

logger = logging.getLogger(__name__)


class SkillSwapBot(discord.Client):
    """Discord client wiring the data layer, matchers and scheduler together."""

    def __init__(self, supabase: Optional[SupabaseClient] = None) -> None:
        intents = discord.Intents.default()
        super().__init__(intents=intents)

        self.tree = app_commands.CommandTree(self)
        self.supabase = supabase or SupabaseClient()
        self.data = CachedSupabaseClient(self.supabase, query_cache)
        self.finder = MatchFinder(self.data)
        self.notifications = NotificationService(self.supabase)
        self.scheduler = NotificationScheduler(self.notifications)
        self.links = ProfileLinkStore()
        self.rate_limiter = SlidingWindowRateLimiter(
            max_calls=config.command_rate_limit,
            window_seconds=config.command_rate_window_seconds,
        )

    async def setup_hook(self) -> None:
        """Register commands, start the scheduler and sync the tree."""
        from skillswap.commands.cache_cmd import setup_cache_commands
        from skillswap.commands.matches import setup_match_commands
        from skillswap.commands.notifications import setup_notification_commands

        setup_match_commands(self)
        setup_notification_commands(self)
        setup_cache_commands(self)

        await self.scheduler.start()

        if config.discord_guild_id:
            guild = discord.Object(id=config.discord_guild_id)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logger.info(f"Synced commands to guild {config.discord_guild_id}")
        else:
            await self.tree.sync()
            logger.info("Synced commands globally")

    async def on_ready(self) -> None:
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        await self.change_presence(
            activity=discord.Activity(type=discord.ActivityType.watching, name="for skill swaps")
        )

    async def close(self) -> None:
        await self.scheduler.stop()
        await self.supabase.aclose()
        await super().close()

    def is_staff(self, interaction: discord.Interaction) -> bool:
        perms = getattr(interaction.user, "guild_permissions", None)
        return bool(perms and (perms.manage_guild or perms.administrator))

    async def check_rate_limit(self, interaction: discord.Interaction) -> bool:
        """Answer and return False when the user is over the command rate limit."""
        if self.rate_limiter.allow(interaction.user.id):
            return True
        wait = self.rate_limiter.retry_after(interaction.user.id)
        await interaction.response.send_message(
            f"Slow down a bit. Please retry in {wait:.0f} seconds.", ephemeral=True
        )
        return False

    async def linked_profile(self, interaction: discord.Interaction) -> Optional[str]:
        """Rate-limit check plus the caller's linked profile id, answering when missing."""
        if not await self.check_rate_limit(interaction):
            return None
        profile_id = self.links.get_profile_id(interaction.user.id)
        if profile_id is None:
            await interaction.response.send_message(
                "Link your SkillSwap profile first with `/link`.", ephemeral=True
            )
        return profile_id


def run_bot() -> None:
    """Run the bot."""
    bot = SkillSwapBot()
    bot.run(config.discord_token, log_handler=None)
