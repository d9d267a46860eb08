from typing import Any, Callable, Dict

from enkit.config.logger import get_logger
from enkit.errors import InvalidCommand

log = get_logger(__name__)


CommandFunction = Callable[..., Any]

_commands: Dict[str, CommandFunction] = {}


def enkit_command(func: CommandFunction) -> CommandFunction:
    _commands[func.__name__] = func
    return func


def all_commands() -> Dict[str, CommandFunction]:
    """
    All commands, sorted by name.
    """
    return dict(sorted(_commands.items()))


def look_up_command(name: str) -> CommandFunction:
    """
    Find a command by name. Dashes and underscores are interchangeable.
    """
    cmd = _commands.get(name.strip().replace("-", "_"))
    if not cmd:
        raise InvalidCommand(f"Command `{name}` not found (see `enkit --help`)")
    return cmd
