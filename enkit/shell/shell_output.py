"""
Output to the terminal. These are for user interaction, not logging.
"""

import textwrap
from enum import Enum
from typing import Callable, Optional

import rich.style
from rich.console import Group
from rich.markdown import Markdown
from rich.text import Text

from enkit.config.logger import get_console
from enkit.config.text_styles import (
    COLOR_FAILURE,
    COLOR_HEADING,
    COLOR_HINT,
    COLOR_KEY,
    COLOR_STATUS,
    COLOR_SUCCESS,
    COLOR_VALUE,
    CONSOLE_WRAP_WIDTH,
    emoji_bool,
    HRULE,
)

DEFAULT_INDENT = "    "


class Wrap(Enum):
    NONE = "none"
    """No wrapping."""

    WRAP = "wrap"
    """Basic wrapping but preserves whitespace within paragraphs."""

    WRAP_FULL = "wrap_full"
    """Wraps and also normalizes whitespace."""

    WRAP_INDENT = "wrap_indent"
    """Wrap and also indent."""

    INDENT_ONLY = "indent_only"
    """Just indent."""

    @property
    def indent(self) -> str:
        return DEFAULT_INDENT if self in [Wrap.INDENT_ONLY, Wrap.WRAP_INDENT] else ""

    @property
    def should_wrap(self) -> bool:
        return self in [Wrap.WRAP, Wrap.WRAP_FULL, Wrap.WRAP_INDENT]


def fill_text(text: str, text_wrap=Wrap.WRAP, width=CONSOLE_WRAP_WIDTH) -> str:
    indent = text_wrap.indent
    if not text_wrap.should_wrap:
        return "\n".join(indent + line for line in text.splitlines())

    wrapped_paragraphs = [
        textwrap.fill(
            paragraph,
            width=width,
            initial_indent=indent,
            subsequent_indent=indent,
            replace_whitespace=text_wrap != Wrap.WRAP,
        )
        for paragraph in text.split("\n\n")
    ]
    return "\n\n".join(wrapped_paragraphs)


null_style = rich.style.Style.null()


def rich_print(*args: str | Text | Markdown, width: Optional[int] = None, **kwargs):
    """
    Print to the Rich console, either the global console or a thread-local
    override, if one is active.
    """
    console = get_console()
    if len(args) == 0:
        renderable = ""
    elif len(args) == 1:
        renderable = args[0]
    else:
        renderable = Group(*args)

    console.print(renderable, width=width, **kwargs)


def cprint(
    message: str | Text | Markdown = "",
    *args,
    text_wrap: Wrap = Wrap.WRAP,
    color=None,
    transform: Callable[[str], str] = lambda x: x,
    end="\n",
    width: Optional[int] = None,
):
    """
    Main way to print to the terminal. Wraps `rich_print` with text fill.
    """
    if text_wrap.should_wrap and not width:
        width = CONSOLE_WRAP_WIDTH

    if isinstance(message, str):
        text = message % args if args else message
        if text:
            # Markup is off so note text with brackets prints as is.
            rich_print(
                Text(fill_text(transform(text), text_wrap), color or null_style),
                end=end,
                width=width,
            )
        else:
            rich_print(end=end)
    else:
        rich_print(message, end=end, width=width)


def print_raw(text: str):
    """
    Print text exactly, with no wrapping or styling (for ENML output).
    """
    rich_print(Text(text), soft_wrap=True)


def print_hrule(color: Optional[str] = None):
    rich_print(Text(HRULE, style=color or COLOR_HINT))


def print_status(message: str, *args, text_wrap: Wrap = Wrap.NONE):
    cprint(message, *args, text_wrap=text_wrap, color=COLOR_STATUS)


def print_result(message: str, *args, text_wrap: Wrap = Wrap.NONE):
    cprint(message, *args, text_wrap=text_wrap)


def print_hint(message: str, *args, text_wrap: Wrap = Wrap.WRAP):
    cprint(message, *args, text_wrap=text_wrap, color=COLOR_HINT)


def print_heading(message: str, color: str = COLOR_HEADING):
    cprint()
    cprint(message, text_wrap=Wrap.NONE, color=color)


def format_key_value(key: str, value: str) -> Text:
    return Text.assemble((key, COLOR_KEY), (": ", COLOR_HINT), (value, COLOR_VALUE))


def print_key_value(key: str, value: Optional[str]):
    if value:
        rich_print(format_key_value(key, value))


def format_success_or_failure(
    value: bool, true_str: str | Text = "", false_str: str | Text = ""
) -> Text:
    emoji = Text(emoji_bool(value), style=COLOR_SUCCESS if value else COLOR_FAILURE)
    if true_str or false_str:
        return Text.assemble(emoji, " ", true_str if value else false_str)
    else:
        return emoji


def print_success_or_failure(value: bool, true_str: str = "", false_str: str = ""):
    rich_print(format_success_or_failure(value, true_str, false_str))


## Tests


def test_fill_text():
    text = "one two three four five six seven"
    assert fill_text(text, Wrap.NONE) == text
    assert fill_text(text, Wrap.WRAP, width=10).splitlines()[0] == "one two"
    assert fill_text("a\nb", Wrap.INDENT_ONLY) == "    a\n    b"


def test_cprint_records():
    from enkit.config.logger import record_console

    with record_console() as console:
        cprint("Hello [bold]%s[/bold]", "world", text_wrap=Wrap.NONE)
        print_key_value("Title", "Sprint")
        print_key_value("Tags", None)
        print_success_or_failure(True, "ok", "failed")
    output = console.export_text()
    assert "Hello [bold]world[/bold]" in output
    assert "Title: Sprint" in output
    assert "Tags" not in output
    assert "[✓] ok" in output
