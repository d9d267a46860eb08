"""
Main entry point for the enkit command line.

Usage: enkit <command> [args] [--option=value | --option value | --flag]
"""

import sys
from typing import List, Optional

from enkit.config.logger import get_logger
from enkit.config.setup import setup
from enkit.errors import is_fatal
from enkit.version import get_version_name

log = get_logger(__name__)


def run_command(argv: List[str]) -> int:
    """
    Run one command from its name and shell-style arguments, returning an exit code.
    Self-explanatory errors are reported on one line; anything else also gets a
    stack trace.
    """
    # Importing the commands package registers all commands.
    import enkit.commands  # noqa: F401
    from enkit.commands.command_registry import look_up_command
    from enkit.shell_tools.function_wrapper import wrap_for_shell_args

    name, args = argv[0], argv[1:]
    try:
        command = look_up_command(name)
        wrap_for_shell_args(command)(args)
    except Exception as e:
        if is_fatal(e):
            log.error("Command `%s` failed: %s", name, e, exc_info=True)
        else:
            log.error("%s", e)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    # Do our own arg parsing since everything except these options is a command.
    if argv == ["--version"]:
        print(get_version_name())
        return 0

    setup()

    if not argv or argv[0] in ("--help", "-h"):
        return run_command(["help"])
    elif argv[0].startswith("-"):
        print(f"Unrecognized option: {argv[0]}", file=sys.stderr)
        return 2

    return run_command(argv)


if __name__ == "__main__":
    sys.exit(main())
