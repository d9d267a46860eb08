"""
Settings that define the visual appearance of text outputs.
"""

## Settings

CONSOLE_WRAP_WIDTH = 80
"""Wrap width for console output."""


## Colors

COLOR_HEADING = "bold bright_green"

COLOR_KEY = "bright_blue"

COLOR_VALUE = "cyan"

COLOR_HINT = "bright_black"

COLOR_STATUS = "yellow"

COLOR_SUCCESS = "green"

COLOR_FAILURE = "bright_red"

COLOR_WARN = "bright_red"

COLOR_ERROR = "bright_red"


RICH_STYLES = {
    "markdown.h1": COLOR_HEADING,
    "markdown.h2": COLOR_HEADING,
    "logging.level.warning": COLOR_WARN,
    "logging.level.error": COLOR_ERROR,
}


## Formatting

HRULE_CHAR = "─"

HRULE = HRULE_CHAR * CONSOLE_WRAP_WIDTH

HRULE_SHORT = HRULE_CHAR * (CONSOLE_WRAP_WIDTH // 2)


## Symbols and emojis

EMOJI_WARN = "△"

EMOJI_ERROR = EMOJI_WARN + EMOJI_WARN

EMOJI_SUCCESS = "[✓]"

EMOJI_FAILURE = "[✗]"


def emoji_bool(value: bool) -> str:
    return EMOJI_SUCCESS if value else EMOJI_FAILURE
