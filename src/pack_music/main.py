#!/usr/bin/env python3
"""Main entry point for The Pack music bot."""

from __future__ import annotations

import logging
import logging.config
import sys
from typing import Any

from pack_music.domain.shared.messages import ErrorMessages, LogTemplates

_NOISY_LOGGERS = ("discord", "yt_dlp")


def build_logging_config(log_level: str = "INFO") -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "()": "pack_music.utils.logging.ColoredFormatter",
                "fmt": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {name: {"level": "WARNING"} for name in _NOISY_LOGGERS},
        "root": {"level": log_level.upper(), "handlers": ["console"]},
    }


def setup_logging(log_level: str = "INFO") -> None:
    logging.config.dictConfig(build_logging_config(log_level))


def main() -> int:
    from pack_music.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)

    logger = logging.getLogger(__name__)

    token_value = settings.discord.token.get_secret_value()
    if not token_value:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    logger.info(LogTemplates.BOT_STARTING, settings.environment)

    from pack_music.config.container import create_container
    from pack_music.infrastructure.discord.bot import create_bot

    container = create_container(settings)
    bot = create_bot(container, settings)

    try:
        bot.run_with_graceful_shutdown(token_value)
        return 0
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
        return 0
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
