import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from functools import cache
from logging import Formatter
from pathlib import Path
from typing import IO, Optional

import rich
from rich import reconfigure
from rich._null_file import NULL_FILE
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from enkit.config.settings import global_settings, LOG_FILE_NAME, LogLevel
from enkit.config.text_styles import EMOJI_ERROR, EMOJI_WARN, RICH_STYLES

_log_lock = threading.RLock()


def log_dir() -> Path:
    return global_settings().log_dir


def log_file_path() -> Path:
    return log_dir() / LOG_FILE_NAME


@dataclass
class TlContext(threading.local):
    console: Optional[Console] = None


_tl_context = TlContext()
"""
Thread-local context override for Rich console.
"""


@cache
def get_theme():
    return Theme(RICH_STYLES)


reconfigure(theme=get_theme())


def get_console() -> Console:
    """
    Return the Rich global console, unless it is overridden by a
    thread-local console.
    """
    return _tl_context.console or rich.get_console()


def new_console(file: Optional[IO[str]], record: bool) -> Console:
    """
    Create a new console with our theme.
    Use `get_console()` for the global console.
    """
    return Console(theme=get_theme(), file=file, record=record, width=120)


@contextmanager
def record_console() -> Generator[Console, None, None]:
    """
    Context manager to temporarily override the global console with a thread-local
    console that records output.
    """
    old_console = _tl_context.console
    console = new_console(file=NULL_FILE, record=True)
    _tl_context.console = console

    try:
        yield console
    finally:
        _tl_context.console = old_console


_file_handler: Optional[logging.FileHandler] = None
_console_handler: Optional[RichHandler] = None


def logging_setup():
    """
    Set up or reset logging setup. Call at initial run and again if the log directory
    changes. Replaces previous handlers.
    """
    global _file_handler, _console_handler

    with _log_lock:
        log_dir().mkdir(parents=True, exist_ok=True)

        # Verbose logging to file, important logging to console.
        _file_handler = logging.FileHandler(log_file_path())
        _file_handler.setLevel(global_settings().file_log_level.value)
        _file_handler.setFormatter(
            Formatter("%(asctime)s %(levelname).1s %(name)s - %(message)s")
        )

        _console_handler = RichHandler(
            console=rich.get_console(),
            level=global_settings().console_log_level.value,
            show_time=False,
            show_path=False,
            show_level=False,
            markup=False,
        )
        _console_handler.setLevel(global_settings().console_log_level.value)
        _console_handler.setFormatter(Formatter("%(message)s"))

        # Quiet the Thrift transport, which is chatty at INFO.
        log_levels = {
            None: logging.DEBUG,
            "thrift": logging.WARNING,
        }

        for logger_name, level in log_levels.items():
            logger = logging.getLogger(logger_name)
            logger.setLevel(level)
            logger.propagate = True
            for handler in logger.handlers[:]:
                logger.removeHandler(handler)
            if logger_name is None:
                logger.addHandler(_console_handler)
                logger.addHandler(_file_handler)


def prefix(line, emoji: str = "", warn_emoji: str = ""):
    emojis = f"{warn_emoji}{emoji}".strip()
    return " ".join(filter(None, [emojis, line]))


def prefix_args(args, emoji: str = "", warn_emoji: str = ""):
    if len(args) > 0:
        args = (prefix(args[0], emoji, warn_emoji),) + args[1:]
    return args


class CustomLogger:
    """
    Custom logger to be clearer about user messages.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def debug(self, *args, **kwargs):
        self.logger.debug(*prefix_args(args), **kwargs)

    def info(self, *args, **kwargs):
        self.logger.info(*prefix_args(args), **kwargs)

    def message(self, *args, **kwargs):
        self.logger.warning(*prefix_args(args), **kwargs)

    def warning(self, *args, **kwargs):
        self.logger.warning(*prefix_args(args, warn_emoji=EMOJI_WARN), **kwargs)

    def error(self, *args, **kwargs):
        self.logger.error(*prefix_args(args, warn_emoji=EMOJI_ERROR), **kwargs)

    def log(self, level: LogLevel, *args, **kwargs):
        getattr(self, level.name)(*args, **kwargs)

    # Fallback for other attributes/methods.
    def __getattr__(self, attr):
        return getattr(self.logger, attr)


def get_logger(name: str):
    return CustomLogger(name)


## Tests


def test_prefix_args():
    assert prefix_args(("Saved %s", "x"), warn_emoji=EMOJI_WARN) == (f"{EMOJI_WARN} Saved %s", "x")
    assert prefix("plain") == "plain"
    assert prefix_args(()) == ()
