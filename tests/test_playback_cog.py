"""Tests for PlaybackCog."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from discord import app_commands

from pack_music.domain.music.value_objects import AudioFilter, RepeatMode, StartSeconds
from pack_music.domain.shared.messages import DiscordUIMessages, EmojiConstants
from pack_music.infrastructure.discord.cogs.playback_cog import (
    PlaybackCog,
    build_now_playing_embed,
)

from conftest import make_track, sent_messages


@pytest.fixture
def cog(mock_container):
    return PlaybackCog(MagicMock(), mock_container)


@pytest.fixture
async def playing(subscription):
    await subscription.enqueue([make_track("a"), make_track("b")])
    return subscription


class TestTransport:
    async def test_skip(self, cog, interaction, playing):
        await cog.skip.callback(cog, interaction)

        assert playing.current_track.id.value == "b"
        assert sent_messages(interaction) == [DiscordUIMessages.ACTION_SKIPPED.format(title="Track a")]

    async def test_skip_when_idle(self, cog, interaction):
        await cog.skip.callback(cog, interaction)

        assert sent_messages(interaction) == [DiscordUIMessages.ERROR_NO_ACTIVE_TRACK]

    async def test_stop(self, cog, interaction, playing):
        await cog.stop.callback(cog, interaction)

        assert playing.current_track is None
        assert sent_messages(interaction) == [DiscordUIMessages.ACTION_STOPPED]

    async def test_pause_resume(self, cog, interaction, playing):
        await cog.pause.callback(cog, interaction)
        await cog.resume.callback(cog, interaction)

        assert sent_messages(interaction) == [
            DiscordUIMessages.ACTION_PAUSED,
            DiscordUIMessages.ACTION_RESUMED,
        ]

    async def test_pause_twice_reports_noop(self, cog, interaction, playing):
        await playing.pause()

        await cog.pause.callback(cog, interaction)

        assert sent_messages(interaction) == ["Playback is already paused"]

    async def test_resume_when_idle(self, cog, interaction):
        await cog.resume.callback(cog, interaction)

        assert sent_messages(interaction) == [DiscordUIMessages.ERROR_NOT_PLAYING]


class TestSeek:
    async def test_seek(self, cog, interaction, playing, voice):
        await cog.seek.callback(cog, interaction, "1:30")

        assert voice.plays[-1]["start_seconds"] == StartSeconds(90)
        assert sent_messages(interaction) == [DiscordUIMessages.ACTION_SEEKED.format(timestamp="1:30")]

    async def test_seek_bad_timestamp(self, cog, interaction, playing, voice):
        await cog.seek.callback(cog, interaction, "soon")

        assert len(voice.plays) == 1
        assert sent_messages(interaction) == [
            DiscordUIMessages.ERROR_INVALID_TIMESTAMP.format(value="soon")
        ]

    async def test_seek_past_end(self, cog, interaction, playing):
        await cog.seek.callback(cog, interaction, "10:00")

        assert sent_messages(interaction) == [DiscordUIMessages.ERROR_OUT_OF_RANGE.format(value=600)]


class TestSettingsCommands:
    async def test_volume(self, cog, interaction, playing, voice):
        await cog.volume.callback(cog, interaction, 40)

        assert voice.volumes == [0.4]
        assert sent_messages(interaction) == [DiscordUIMessages.ACTION_VOLUME.format(volume=40)]

    async def test_repeat_explicit(self, cog, interaction, subscription):
        await cog.repeat.callback(cog, interaction, app_commands.Choice(name="queue", value="queue"))

        assert subscription.session.repeat_mode is RepeatMode.QUEUE

    async def test_repeat_cycles(self, cog, interaction, subscription):
        await cog.repeat.callback(cog, interaction)

        assert sent_messages(interaction) == [DiscordUIMessages.ACTION_REPEAT.format(mode="song")]

    async def test_autoplay(self, cog, interaction, subscription):
        await cog.autoplay.callback(cog, interaction, True)

        assert subscription.snapshot().autoplay is True
        assert sent_messages(interaction) == [DiscordUIMessages.ACTION_AUTOPLAY.format(state="on")]

    async def test_commands_defer_before_waiting_for_the_lock(self, cog, interaction, playing):
        async with playing._lock:
            await cog.stop.callback(cog, interaction)

        interaction.response.defer.assert_awaited_once()
        interaction.response.send_message.assert_not_awaited()
        interaction.followup.send.assert_awaited_once_with(
            DiscordUIMessages.ERROR_BUSY, ephemeral=True
        )
        assert playing.current_track.id.value == "a"


class TestFilters:
    async def test_toggle_on_restarts_with_filter(self, cog, interaction, playing, voice):
        await cog.filters.callback(
            cog, interaction, app_commands.Choice(name="nightcore", value="nightcore")
        )

        assert voice.plays[-1]["filters"] == (AudioFilter.NIGHTCORE,)
        assert sent_messages(interaction) == [
            DiscordUIMessages.ACTION_FILTERS.format(filters="nightcore")
        ]

    async def test_toggle_twice_switches_off(self, cog, interaction, playing):
        await playing.set_filters([AudioFilter.BASSBOOST, AudioFilter.ECHO])

        await cog.filters.callback(
            cog, interaction, app_commands.Choice(name="bassboost", value="bassboost")
        )

        assert playing.snapshot().filters == [AudioFilter.ECHO]
        assert sent_messages(interaction) == [DiscordUIMessages.ACTION_FILTERS.format(filters="echo")]

    async def test_off_clears_all(self, cog, interaction, playing):
        await playing.set_filters([AudioFilter.SLOW])

        await cog.filters.callback(cog, interaction, app_commands.Choice(name="off", value="off"))

        assert playing.snapshot().filters == []
        assert sent_messages(interaction) == [DiscordUIMessages.ACTION_FILTERS.format(filters="off")]

    async def test_off_without_filters_reports_noop(self, cog, interaction, playing):
        await cog.filters.callback(cog, interaction, app_commands.Choice(name="off", value="off"))

        assert sent_messages(interaction) == ["No filters are active"]

    def test_every_filter_is_offered(self):
        from pack_music.infrastructure.discord.cogs.playback_cog import FILTER_CHOICES

        values = [choice.value for choice in FILTER_CHOICES]
        assert values[0] == "off"
        assert set(values[1:]) == {f.value for f in AudioFilter}
        assert len(values) <= 25


class TestNowPlaying:
    async def test_nothing_playing(self, cog, interaction):
        await cog.nowplaying.callback(cog, interaction)

        assert sent_messages(interaction) == [DiscordUIMessages.ERROR_NO_ACTIVE_TRACK]

    async def test_embed(self, cog, interaction, playing):
        await playing.set_autoplay(True)

        await cog.nowplaying.callback(cog, interaction)

        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert embed.title == DiscordUIMessages.EMBED_NOW_PLAYING
        assert "[Track a](https://www.youtube.com/watch?v=a)" == embed.description
        field_names = [f.name for f in embed.fields]
        assert EmojiConstants.PLAY in field_names
        assert EmojiConstants.AUTOPLAY in field_names
        assert embed.footer.text.endswith("1 up next")

    async def test_embed_marks_repeat_one(self, playing):
        playing.session.set_repeat_mode(RepeatMode.SONG)

        embed = build_now_playing_embed(playing.snapshot())

        assert EmojiConstants.REPEAT_ONE in [f.name for f in embed.fields]

    async def test_embed_lists_active_filters(self, playing):
        await playing.set_filters([AudioFilter.EIGHT_D, AudioFilter.TREBLE])

        embed = build_now_playing_embed(playing.snapshot())

        field = next(f for f in embed.fields if f.name == EmojiConstants.FILTERS)
        assert field.value == "8d, treble"
