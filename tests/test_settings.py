"""
Unit Tests for Application Settings Configuration

Tests for:
- Default values for every settings group
- Nested environment variables with the ``__`` delimiter
- Custom validators (database URL, log level, snowflake IDs)
- Settings caching and clearing
"""

import pytest
from pydantic import SecretStr, ValidationError

from pack_music.config.settings import (
    AudioSettings,
    DatabaseSettings,
    DiscordSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run from an empty directory so a developer's .env never leaks in."""
    monkeypatch.chdir(tmp_path)
    for key in ("ENVIRONMENT", "DEBUG", "LOG_LEVEL", "DISCORD__BOT_TOKEN", "DISCORD__GUILD_IDS"):
        monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


class TestDatabaseSettings:
    def test_defaults(self):
        db = DatabaseSettings()

        assert db.url == "sqlite:///data/bot.db"
        assert db.busy_timeout_ms == 5000
        assert db.profile_cache_ttl_s == 300.0

    def test_alias(self):
        assert DatabaseSettings(database_url="sqlite:///:memory:").url == "sqlite:///:memory:"

    def test_rejects_non_sqlite_url(self):
        with pytest.raises(ValidationError):
            DatabaseSettings(url="postgres://localhost/db")


class TestDiscordSettings:
    def test_snowflakes_from_string(self):
        settings = DiscordSettings(guild_ids="111, 222,")
        assert settings.guild_ids == (111, 222)

    def test_snowflakes_from_list(self):
        assert DiscordSettings(owner_ids=[5, 6]).owner_ids == (5, 6)

    @pytest.mark.parametrize("value", ["abc", "0", "-1", 12])
    def test_invalid_snowflakes(self, value):
        with pytest.raises(ValidationError):
            DiscordSettings(guild_ids=value)

    def test_token_is_secret(self):
        settings = DiscordSettings(bot_token="abc123")
        assert isinstance(settings.token, SecretStr)
        assert "abc123" not in repr(settings)


class TestAudioSettings:
    def test_defaults(self):
        audio = AudioSettings()

        assert audio.default_volume == 100
        assert audio.history_limit == 50
        assert audio.max_resolve_failures == 3
        assert audio.ffmpeg_options == "-vn"

    @pytest.mark.parametrize(
        "field,value",
        [("default_volume", 101), ("history_limit", 0), ("max_resolve_failures", 0), ("lock_timeout_s", 0)],
    )
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            AudioSettings(**{field: value})


class TestSettings:
    def test_nested_env(self, monkeypatch):
        monkeypatch.setenv("DISCORD__BOT_TOKEN", "tok")
        monkeypatch.setenv("DISCORD__GUILD_IDS", "1,2")
        monkeypatch.setenv("AUDIO__DEFAULT_VOLUME", "40")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings()

        assert settings.discord.token.get_secret_value() == "tok"
        assert settings.discord.guild_ids == (1, 2)
        assert settings.audio.default_volume == 40
        assert settings.log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="LOUD")

    def test_frozen(self):
        settings = Settings()
        with pytest.raises(ValidationError):
            settings.debug = True

    def test_get_settings_is_cached(self):
        first = get_settings()
        assert get_settings() is first

        clear_settings_cache()
        assert get_settings() is not first
