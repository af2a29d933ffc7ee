"""Logging configuration for the masking engine.

One package logger (`LOGGER`) with a single console handler; components log
through children of it obtained from `get_logger`.
"""

import logging
import typing
from enum import StrEnum

from src import settings


class ConsoleFormat(StrEnum):
    """ANSI sequences used by the colour console formatter.

    <https://en.wikipedia.org/wiki/ANSI_escape_code#Select_Graphic_Rendition_parameters>
    """

    RESET = "\033[0m"

    BLACK = "\033[30m"
    RED = "\033[31m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    LIGHT_GREY = "\033[37m"

    HIGHLIGHT_RED = "\033[41m"
    BOLD = "\033[1m"


class DefaultConsoleFormatter(logging.Formatter):
    """Plain console formatter: `{asctime} - {name} - {levelname} - {message}`."""

    fmt = "{asctime} - {name} - {levelname} - {message}"
    style = "{"

    def _line_format(self, *_: typing.Any, **__: typing.Any) -> str:
        return self.fmt

    def format(self, record: logging.LogRecord) -> str:
        formatter = logging.Formatter(self._line_format(record), style=self.style)  # type: ignore[arg-type]
        return formatter.format(record)


class ColourConsoleFormatter(DefaultConsoleFormatter):
    """Console formatter that colours each line by severity."""

    COLOURS: typing.ClassVar[dict[int, str]] = {
        logging.DEBUG: ConsoleFormat.LIGHT_GREY,
        logging.INFO: ConsoleFormat.BLUE,
        logging.WARNING: ConsoleFormat.YELLOW,
        logging.ERROR: ConsoleFormat.RED,
        logging.CRITICAL: ConsoleFormat.BOLD + ConsoleFormat.HIGHLIGHT_RED + ConsoleFormat.BLACK,
    }

    def _line_format(self, record: logging.LogRecord) -> str:
        colour = self.COLOURS.get(record.levelno, ConsoleFormat.RESET)
        return f"{colour}{self.fmt}{ConsoleFormat.RESET}"


def _console_handler(level: str, colour: bool) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(ColourConsoleFormatter() if colour else DefaultConsoleFormatter())
    return handler


LOGGER = logging.getLogger(settings.LOGGER_NAME)
LOGGER.setLevel(settings.LOG_LEVEL)
if not LOGGER.handlers:  # pragma: nocover
    LOGGER.addHandler(_console_handler(settings.LOG_LEVEL, settings.LOG_COLOUR_ENABLED))


def get_logger(component: str) -> logging.Logger:
    """Return a child of the package logger, e.g. ``redshift-masking.drift``."""
    return LOGGER.getChild(component)
