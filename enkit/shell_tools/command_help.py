import textwrap
from typing import Any, Callable

from rich.text import Text

from enkit.config.text_styles import COLOR_HINT, COLOR_KEY
from enkit.shell.shell_output import cprint, DEFAULT_INDENT, print_hint, Wrap
from enkit.shell_tools.function_inspect import inspect_function_params


def command_name(func: Callable[..., Any]) -> str:
    """
    Commands are invoked with dashes: `create_note` is `create-note`.
    """
    return func.__name__.replace("_", "-")


def command_summary(func: Callable[..., Any]) -> str:
    doc = textwrap.dedent(func.__doc__ or "").strip()
    return doc.split("\n\n")[0].replace("\n", " ") if doc else ""


def print_command_function_help(func: Callable[..., Any]):
    name = command_name(func)
    doc = textwrap.dedent(func.__doc__ or "").strip()

    cprint()
    cprint(Text.assemble((name, COLOR_KEY), (":", COLOR_HINT)))
    if doc:
        cprint(doc, text_wrap=Wrap.WRAP_INDENT)
    else:
        print_hint(f"Sorry, no help available for the `{name}` command.")

    _pos_params, kw_params = inspect_function_params(func)
    options = [param for param in kw_params if not param.is_varargs]
    if options:
        cprint()
        cprint(DEFAULT_INDENT + "Options:", text_wrap=Wrap.NONE)
        for param in options:
            option = f"--{param.name.replace('_', '-')}"
            if not param.is_flag:
                option += "=<value>"
            default = ""
            if param.default not in (None, False):
                default = f" (default: {param.default})"
            cprint(
                Text.assemble(
                    DEFAULT_INDENT * 2, (option, COLOR_KEY), (default, COLOR_HINT)
                )
            )
    cprint()
