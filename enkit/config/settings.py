import os
import threading
from contextlib import contextmanager
from enum import Enum
from logging import DEBUG, ERROR, INFO, WARNING
from pathlib import Path

from pydantic.dataclasses import dataclass


APP_NAME = "enkit"

DOT_DIR = "~/.enkit"

LOG_DIR_NAME = "logs"
LOG_FILE_NAME = "enkit.log"

TOKEN_ENV_VAR = "EVERNOTE_TOKEN"
SANDBOX_ENV_VAR = "EVERNOTE_SANDBOX"

DEFAULT_SEARCH_LIMIT = 20
DEFAULT_PREVIEW_LENGTH = 300


class LogLevel(Enum):
    debug = DEBUG
    info = INFO
    warning = WARNING
    message = WARNING  # Same as warning, just for important console messages.
    error = ERROR

    @classmethod
    def parse(cls, level_str: str):
        canon_name = level_str.strip().lower()
        if canon_name == "warn":
            canon_name = "warning"
        try:
            return cls[canon_name]
        except KeyError:
            raise ValueError(
                f"Invalid log level: `{level_str}`. Valid options are: {', '.join(f'`{name}`' for name in cls.__members__)}"
            )

    def __str__(self):
        return self.name


@dataclass
class Settings:
    log_dir: Path
    """Directory for the verbose log file."""

    console_log_level: LogLevel
    """The log level for console-based logging."""

    file_log_level: LogLevel
    """The log level for file-based logging."""

    sandbox: bool
    """If true, talk to the Evernote sandbox service instead of production."""

    default_format: str
    """Content format used when creating notes and none is given."""

    default_update_format: str
    """Content format used for text added to existing notes."""

    default_search_limit: int
    """Maximum number of notes returned by a search."""

    preview_length: int
    """Characters of plain text shown in content previews."""

    section_heading_level: int
    """Heading rank (h1 to h6) that divides a note into sections."""


def env_flag(name: str) -> bool:
    """
    True if the environment variable is set to `1`, `true`, or `yes`.
    """
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes")


# Initial default settings.
_settings = Settings(
    log_dir=Path(DOT_DIR).expanduser() / LOG_DIR_NAME,
    console_log_level=LogLevel.warning,
    file_log_level=LogLevel.info,
    sandbox=env_flag(SANDBOX_ENV_VAR),
    default_format="markdown",
    default_update_format="plain",
    default_search_limit=DEFAULT_SEARCH_LIMIT,
    preview_length=DEFAULT_PREVIEW_LENGTH,
    section_heading_level=1,
)


def global_settings() -> Settings:
    """
    Read access to global settings.
    """
    return _settings


_settings_lock = threading.RLock()


@contextmanager
def update_global_settings():
    """
    Context manager for thread-safe updates to global settings.
    """
    with _settings_lock:
        yield _settings


## Tests


def test_log_level_parse():
    assert LogLevel.parse("WARN") == LogLevel.warning
    assert LogLevel.parse(" debug ") == LogLevel.debug
    try:
        LogLevel.parse("loud")
        assert False
    except ValueError as e:
        assert "`info`" in str(e)
