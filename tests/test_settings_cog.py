"""Tests for the /settings command group."""

from __future__ import annotations

from unittest.mock import MagicMock

import discord
import pytest

from pack_music.config.settings import DiscordSettings, Settings
from pack_music.domain.shared.messages import DiscordUIMessages
from pack_music.infrastructure.discord.cogs.settings_cog import SettingsCog
from pack_music.infrastructure.persistence.repositories.guild_profile_repository import (
    CachedGuildProfileRepository,
)

from conftest import GUILD_ID, sent_messages

OWNER_ID = 777


@pytest.fixture
def container(profile_repository):
    container = MagicMock()
    container.settings = Settings(discord=DiscordSettings(owner_ids=(OWNER_ID,)))
    container.guild_profile_repository = CachedGuildProfileRepository(profile_repository)
    return container


@pytest.fixture
def cog(container):
    return SettingsCog(MagicMock(), container)


class TestInteractionCheck:
    async def test_admin_allowed(self, cog, interaction):
        interaction.user.guild_permissions = discord.Permissions(administrator=True)
        assert await cog.interaction_check(interaction) is True

    async def test_owner_allowed(self, cog, interaction):
        interaction.user = MagicMock(spec=discord.User)
        interaction.user.id = OWNER_ID
        assert await cog.interaction_check(interaction) is True

    async def test_regular_member_rejected(self, cog, interaction):
        interaction.user.guild_permissions = discord.Permissions.none()

        assert await cog.interaction_check(interaction) is False
        assert sent_messages(interaction) == [DiscordUIMessages.ERROR_MISSING_PERMISSIONS]


class TestCommands:
    async def test_volume_saved(self, cog, interaction, profile_repository):
        await cog.volume.callback(cog, interaction, 45)

        assert (await profile_repository.get(GUILD_ID)).default_volume == 45
        assert sent_messages(interaction) == [
            DiscordUIMessages.SETTINGS_VOLUME_SAVED.format(volume=45)
        ]

    async def test_autoplay_saved(self, cog, interaction, profile_repository):
        await cog.autoplay.callback(cog, interaction, True)

        assert (await profile_repository.get(GUILD_ID)).autoplay_default is True

    async def test_info(self, cog, interaction, container):
        await cog.volume.callback(cog, interaction, 30)

        await cog.info.callback(cog, interaction)

        assert sent_messages(interaction)[-1] == DiscordUIMessages.SETTINGS_INFO.format(
            volume=30, autoplay="off"
        )
        assert len(container.guild_profile_repository) == 1
