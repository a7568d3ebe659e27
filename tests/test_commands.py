"""Tests for the slash commands and the bot's per-command checks."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from conftest import make_skill
from skillswap.bot.client import SkillSwapBot
from skillswap.bot.rate_limiter import SlidingWindowRateLimiter
from skillswap.cache.query_cache import QueryCache
from skillswap.commands.cache_cmd import setup_cache_commands
from skillswap.commands.matches import setup_match_commands
from skillswap.commands.notifications import setup_notification_commands
from skillswap.config import config
from skillswap.data.cached_client import CachedSupabaseClient
from skillswap.data.supabase_client import SupabaseClient, SupabaseError

BASE_URL = "https://project.supabase.test"
PROFILE = {"id": "alice", "username": "alice", "full_name": "Alice Smith"}


class Backend:
    """Answers REST calls with a fixed status and body."""

    def __init__(self) -> None:
        self.status = 200
        self.rows: list = [PROFILE]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.status >= 400:
            return httpx.Response(self.status, json={"message": "backend down"})
        return httpx.Response(200, json=self.rows)


@pytest.fixture
def backend():
    return Backend()


@pytest.fixture
def bot(backend, clock, tmp_path, monkeypatch):
    monkeypatch.setattr(config, "data_dir", str(tmp_path))
    http = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    bot = SkillSwapBot(supabase=SupabaseClient(BASE_URL, "key", client=http))
    bot.data = CachedSupabaseClient(bot.supabase, QueryCache(clock=clock))
    bot.rate_limiter = SlidingWindowRateLimiter(max_calls=1, window_seconds=60, clock=clock)
    bot.finder = MagicMock()
    bot.notifications = MagicMock()

    setup_match_commands(bot)
    setup_notification_commands(bot)
    setup_cache_commands(bot)
    return bot


def make_interaction(user_id: int = 42) -> MagicMock:
    interaction = MagicMock()
    interaction.user.id = user_id
    interaction.response.send_message = AsyncMock()
    interaction.response.defer = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction


def command(bot, name):
    return bot.tree.get_command(name).callback


def sent_embed(mock: AsyncMock):
    return mock.await_args.kwargs["embed"]


class TestLink:
    @pytest.mark.asyncio
    async def test_link_existing_profile(self, bot):
        interaction = make_interaction()

        await command(bot, "link")(interaction, "alice")

        assert bot.links.get_profile_id(42) == "alice"
        embed = sent_embed(interaction.followup.send)
        assert embed.title == "Profile Linked"
        assert "Alice Smith" in embed.description

    @pytest.mark.asyncio
    async def test_link_unknown_profile(self, bot, backend):
        backend.rows = []
        interaction = make_interaction()

        await command(bot, "link")(interaction, "ghost")

        assert bot.links.get_profile_id(42) is None
        assert sent_embed(interaction.followup.send).title == "Error: Not Found"

    @pytest.mark.asyncio
    async def test_link_backend_error(self, bot, backend):
        backend.status = 503
        interaction = make_interaction()

        await command(bot, "link")(interaction, "alice")

        embed = sent_embed(interaction.followup.send)
        assert embed.title == "Error: Lookup Failed"
        assert "backend down" in embed.description

    @pytest.mark.asyncio
    async def test_unlink(self, bot):
        bot.links.link(42, "alice")
        interaction = make_interaction()

        await command(bot, "unlink")(interaction)
        assert sent_embed(interaction.response.send_message).title == "Profile Unlinked"
        assert bot.links.get_profile_id(42) is None

        await command(bot, "unlink")(interaction)
        assert sent_embed(interaction.response.send_message).title == "Error: Not Linked"


class TestChecks:
    @pytest.mark.asyncio
    async def test_unlinked_user_asked_to_link(self, bot):
        bot.finder.skill_matches = AsyncMock()
        interaction = make_interaction()

        await command(bot, "matches")(interaction)

        message = interaction.response.send_message.await_args.args[0]
        assert "/link" in message
        assert interaction.response.send_message.await_args.kwargs["ephemeral"] is True
        bot.finder.skill_matches.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rate_limit_refusal(self, bot, clock):
        skill = make_skill("s1", "bob", "Guitar", "music")
        bot.finder.similar_skills = AsyncMock(return_value=(skill, []))
        interaction = make_interaction()

        await command(bot, "similar")(interaction, "s1")
        await command(bot, "similar")(interaction, "s1")

        bot.finder.similar_skills.assert_awaited_once()
        message = interaction.response.send_message.await_args.args[0]
        assert "retry in 60 seconds" in message

        clock.advance(61)
        await command(bot, "similar")(interaction, "s1")
        assert bot.finder.similar_skills.await_count == 2

    @pytest.mark.asyncio
    async def test_rate_limit_is_per_user(self, bot):
        skill = make_skill("s1", "bob", "Guitar", "music")
        bot.finder.similar_skills = AsyncMock(return_value=(skill, []))

        await command(bot, "similar")(make_interaction(1), "s1")
        await command(bot, "similar")(make_interaction(2), "s1")

        assert bot.finder.similar_skills.await_count == 2


class TestErrors:
    @pytest.mark.asyncio
    async def test_matches_backend_error(self, bot):
        bot.links.link(42, "alice")
        bot.finder.skill_matches = AsyncMock(side_effect=SupabaseError("backend down", status=503))
        interaction = make_interaction()

        await command(bot, "matches")(interaction, "music", 5)

        bot.finder.skill_matches.assert_awaited_once_with("alice", category="music", limit=5)
        embed = sent_embed(interaction.followup.send)
        assert embed.title == "Error: Match Failed"
        assert embed.description == "backend down"

    @pytest.mark.asyncio
    async def test_partners_backend_error(self, bot):
        bot.links.link(42, "alice")
        bot.finder.user_matches = AsyncMock(side_effect=SupabaseError("timeout"))
        interaction = make_interaction()

        await command(bot, "partners")(interaction)

        assert sent_embed(interaction.followup.send).title == "Error: Match Failed"

    @pytest.mark.asyncio
    async def test_notifications_backend_error(self, bot):
        bot.links.link(42, "alice")
        bot.notifications.get_notifications = AsyncMock(side_effect=SupabaseError("down"))
        interaction = make_interaction()

        await command(bot, "notifications")(interaction)

        assert sent_embed(interaction.followup.send).title == "Error: Notifications Unavailable"

    @pytest.mark.asyncio
    async def test_notifications_mark_read(self, bot):
        bot.links.link(42, "alice")
        bot.notifications.get_notifications = AsyncMock(
            return_value=[{"title": "New match", "content": "Bob", "is_read": False}]
        )
        bot.notifications.mark_all_as_read = AsyncMock(return_value=1)
        interaction = make_interaction()

        await command(bot, "notifications")(interaction, False, True)

        bot.notifications.mark_all_as_read.assert_awaited_once_with("alice")
        assert sent_embed(interaction.followup.send).fields[0].name == "🔵 New match"


class TestCacheCommands:
    @pytest.mark.asyncio
    async def test_clear_requires_staff(self, bot):
        bot.data.cache.set("profile:alice", PROFILE)
        interaction = make_interaction()
        interaction.user.guild_permissions.manage_guild = False
        interaction.user.guild_permissions.administrator = False

        await bot.tree.get_command("cache").get_command("clear").callback(interaction)

        assert len(bot.data.cache) == 1
        assert "Manage Server" in interaction.response.send_message.await_args.args[0]

    @pytest.mark.asyncio
    async def test_clear_by_staff(self, bot):
        bot.data.cache.set("profile:alice", PROFILE)
        interaction = make_interaction()
        interaction.user.guild_permissions.manage_guild = True

        await bot.tree.get_command("cache").get_command("clear").callback(interaction)

        assert len(bot.data.cache) == 0
        assert sent_embed(interaction.response.send_message).description == "Removed 1 entries."
