"""
Tiny parsing library for command-line arguments and options, using simple
`--key=value` and `--flag` conventions, with Python-style quoting of values.
"""

import ast
import re
from dataclasses import dataclass
from typing import Collection, Dict, List, Tuple

from enkit.errors import InvalidInput

# Same unsafe chars as shlex.quote(), but also allowing `~`.
_shell_unsafe_re = re.compile(r"[^\w@%+=:,./~-]", re.ASCII)


def shell_quote(arg: str) -> str:
    """
    Quote a string for shell usage, if needed. Simple text words without spaces
    are left unquoted. Prefers single quotes in cases where either could work.
    """
    has_unsafe = _shell_unsafe_re.search(arg)
    if arg and not has_unsafe:
        return arg
    elif "'" not in arg:
        return f"'{arg}'"
    else:
        return repr(arg)


def shell_unquote(arg: str) -> str:
    """
    Unquote a string using Python conventions, but allow unquoted strings to
    pass through.
    """
    if len(arg) >= 2 and arg.startswith(("'", '"')) and arg.endswith(arg[0]):
        try:
            return ast.literal_eval(arg)
        except (SyntaxError, ValueError):
            pass
    return arg


StrBoolOptions = Dict[str, str | bool]
"""
A dict of options, where keys are option names and values are either strings or
boolean flags.
"""


def parse_option(key_value_str: str) -> Tuple[str, str | bool]:
    """
    Parse a key-value string like `--foo=123` or `--bar="some value"` into a `(key, value)`
    tuple. Dashes in keys become underscores, so `--add-tags` is `add_tags`.
    """
    # Allow -foo or --foo.
    key_value_str = key_value_str.lstrip("-")
    key, sep, value_str = key_value_str.partition("=")
    key = key.strip().replace("-", "_")
    value_str = value_str.strip()
    value = shell_unquote(value_str) if sep else True

    return key, value


@dataclass(frozen=True)
class ShellArgs:
    """
    Immutable record of parsed command line arguments and options.
    """

    args: List[str]
    options: StrBoolOptions
    show_help: bool = False


def parse_shell_args(
    args_and_opts: List[str], value_options: Collection[str] = ()
) -> ShellArgs:
    """
    Parse pre-split raw shell input arguments into plain args and options
    (shell arguments starting with `-`).

    All plain args are strings. All options are string values (if they have
    a value) or boolean flags with a True value. Options named in `value_options`
    also accept their value as the following argument (`--tag work`).

    ["foo", "--opt1", "--opt2='bar baz'"]
      -> ShellArgs(args=["foo"], options={"opt1": True, "opt2": "bar baz"}, show_help=False)

    ["foo", "--help"]
      -> ShellArgs(args=["foo"], options={}, show_help=True)
    """
    args: List[str] = []
    options: StrBoolOptions = {}
    show_help: bool = False

    i = 0
    while i < len(args_and_opts):
        token = args_and_opts[i]
        if token == "--":
            args.extend(args_and_opts[i + 1 :])
            break
        if token.startswith("-") and len(token) > 1:
            key, value = parse_option(token)
            if key in ("help", "h"):
                show_help = True
            elif value is True and key in value_options:
                if i + 1 >= len(args_and_opts):
                    raise InvalidInput(f"Option `--{key.replace('_', '-')}` requires a value")
                options[key] = args_and_opts[i + 1]
                i += 1
            else:
                options[key] = value
        else:
            args.append(token)
        i += 1

    return ShellArgs(args=args, options=options, show_help=show_help)


## Tests


def test_shell_quote():
    assert shell_quote("simple") == "simple"
    assert shell_quote("two words") == "'two words'"
    assert shell_quote("it's") == '"it\'s"'
    assert shell_unquote("'two words'") == "two words"
    assert shell_unquote("plain") == "plain"
    assert shell_unquote("'") == "'"


def test_parse_shell_args():
    args = [
        "pos1",
        "pos2",
        "--key1=value1",
        "--key2",
        "pos3",
        "-k3=value3",
        "--key4='two words'",
        "--add-tags=a,b",
        "--help",
    ]
    shell_args = parse_shell_args(args)

    assert shell_args.args == [
        "pos1",
        "pos2",
        "pos3",
    ]
    assert shell_args.options == {
        "key1": "value1",
        "key2": True,
        "k3": "value3",
        "key4": "two words",
        "add_tags": "a,b",
    }
    assert shell_args.show_help == True


def test_parse_value_options():
    shell_args = parse_shell_args(
        ["Title", "--tag", "work", "--sprint", "--limit=5", "--", "--literal"],
        value_options={"tag", "limit"},
    )
    assert shell_args.args == ["Title", "--literal"]
    assert shell_args.options == {"tag": "work", "sprint": True, "limit": "5"}

    try:
        parse_shell_args(["--tag"], value_options={"tag"})
        assert False
    except InvalidInput:
        pass
