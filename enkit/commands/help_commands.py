from rich.text import Text

from enkit.commands.command_registry import all_commands, enkit_command, look_up_command
from enkit.config.settings import APP_NAME, TOKEN_ENV_VAR
from enkit.config.text_styles import COLOR_HINT, COLOR_KEY
from enkit.shell.shell_output import cprint, print_heading, print_hint, Wrap
from enkit.shell_tools.command_help import (
    command_name,
    command_summary,
    print_command_function_help,
)

USAGE = f"""
Usage: {APP_NAME} <command> [args] [--option=value | --option value | --flag]

Create, read, search, and update Evernote notes from the command line. Notes are
written in markdown or plain text and converted to ENML. Notes divided by
top-level headings (like Tasks, Links, Notes) can be edited one section at a time.

Set {TOKEN_ENV_VAR} (or add it to a .env file) before using commands that talk to
Evernote.
"""


@enkit_command
def help(command: str = "") -> None:
    """
    Show this help, or help for a specific command.
    """
    if command:
        print_command_function_help(look_up_command(command))
        return

    cprint(USAGE.strip(), text_wrap=Wrap.NONE)
    print_heading("Commands:")
    for func in all_commands().values():
        cprint(
            Text.assemble(
                ("    ", ""),
                (command_name(func), COLOR_KEY),
                (": ", COLOR_HINT),
                command_summary(func).split(". ")[0].rstrip("."),
            )
        )
    cprint()
    print_hint(f"Run `{APP_NAME} <command> --help` for the options of a command.")
