from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from enkit.config.logger import get_logger
from enkit.errors import InvalidCommand
from enkit.shell_tools.command_help import print_command_function_help
from enkit.shell_tools.function_inspect import FuncParam, inspect_function_params
from enkit.util.parse_shell_args import parse_shell_args

log = get_logger(__name__)


def _convert(value: str, param_type: Type, name: str) -> Any:
    try:
        return param_type(value)
    except ValueError:
        raise InvalidCommand(
            f"Invalid value for `{name}` (expected {param_type.__name__}): {repr(value)}"
        )


def _map_positional(
    pos_args: List[str], pos_params: List[FuncParam], kw_params: List[FuncParam]
) -> Tuple[List[Any], int]:
    """
    Map parsed positional arguments to function parameters, ensuring the number of
    arguments matches and converting types.
    """
    pos_values = []
    i = 0
    keywords_consumed = 0

    for param in pos_params:
        param_type = param.type or str
        if param.is_varargs:
            pos_values.extend([_convert(arg, param_type, param.name) for arg in pos_args[i:]])
            return pos_values, 0  # All remaining args are consumed, so we can return early.
        elif i < len(pos_args):
            pos_values.append(_convert(pos_args[i], param_type, param.name))
            i += 1
        else:
            raise InvalidCommand(f"Missing positional argument: {param.name}")

    # If there are remaining positional arguments, they will go toward keyword arguments.
    for param in kw_params:
        param_type = param.type or str
        if not param.is_varargs and not param.is_flag and i < len(pos_args):
            pos_values.append(_convert(pos_args[i], param_type, param.name))
            i += 1
            keywords_consumed += 1
        else:
            break

    if i < len(pos_args):
        raise InvalidCommand(
            f"Too many arguments provided (expected {len(pos_params)}, got {len(pos_args)}): {pos_args}"
        )

    return pos_values, keywords_consumed


def _map_keyword(kw_args: Mapping[str, str | bool], kw_params: List[FuncParam]) -> Dict[str, Any]:
    """
    Map parsed keyword arguments to function parameters, converting types.
    """
    kw_values = {}
    var_kw_param = next((param for param in kw_params if param.is_varargs), None)

    for key, value in kw_args.items():
        matching_param = next((param for param in kw_params if param.name == key), None)
        option = f"--{key.replace('_', '-')}"
        if matching_param:
            matching_param_type = matching_param.type or str

            if isinstance(value, bool) and not issubclass(matching_param_type, bool):
                raise InvalidCommand(f"Option `{option}` expects a value")
            if not isinstance(value, bool) and issubclass(matching_param_type, bool):
                raise InvalidCommand(f"Option `{option}` is boolean and does not take a value")

            kw_values[key] = value if isinstance(value, bool) else _convert(value, matching_param_type, option)
        elif var_kw_param:
            kw_values[key] = value
        else:
            raise InvalidCommand(f"Unknown option `{option}`")

    return kw_values


R = TypeVar("R")


def wrap_for_shell_args(func: Callable[..., R]) -> Callable[[List[str]], Optional[R]]:
    """
    Wrap a function to accept a list of string shell-style arguments, parse them, and call the
    original function. Non-flag keyword parameters can take their value as the next argument
    (`--tag work`) as well as inline (`--tag=work`).
    """
    pos_params, kw_params = inspect_function_params(func)
    value_options = {param.name for param in kw_params if not param.is_flag and not param.is_varargs}

    wrapped_func = func.__wrapped__ if hasattr(func, "__wrapped__") else func

    def wrapped(args: List[str]) -> Optional[R]:
        shell_args = parse_shell_args(args, value_options=value_options)

        if shell_args.show_help:
            print_command_function_help(wrapped_func)
            return None

        pos_values, keywords_consumed = _map_positional(shell_args.args, pos_params, kw_params)

        # Keyword params filled positionally must not be passed twice.
        remaining_kw_params = kw_params[keywords_consumed:]
        for param in kw_params[:keywords_consumed]:
            if param.name in shell_args.options:
                raise InvalidCommand(f"Argument `{param.name}` given twice")

        kw_values = _map_keyword(shell_args.options, remaining_kw_params)

        if args:
            log.info(
                "Mapping shell args to function params: %s -> %s -> %s(*%s, **%s)",
                args,
                shell_args,
                func.__name__,
                pos_values,
                kw_values,
            )

        return func(*pos_values, **kw_values)

    wrapped.__name__ = func.__name__
    wrapped.__doc__ = func.__doc__
    wrapped.__wrapped__ = wrapped_func  # type: ignore
    return wrapped


## Tests


def test_wrap_function():
    def func1(
        title: Optional[str] = None,
        limit: int = 20,
        sprint: bool = False,
        tags: Optional[str] = None,
    ) -> List:
        return [title, limit, sprint, tags]

    def func2(*names: str, counts: bool = False) -> List:
        return [names, counts]

    wrapped_func1 = wrap_for_shell_args(func1)
    wrapped_func2 = wrap_for_shell_args(func2)

    assert wrapped_func1(["Weekly", "--sprint", "--tags", "a,b"]) == ["Weekly", 20, True, "a,b"]
    assert wrapped_func1(["--title=Weekly", "--limit", "5"]) == ["Weekly", 5, False, None]
    assert wrapped_func1(["Weekly", "7"]) == ["Weekly", 7, False, None]
    assert wrapped_func2(["--counts", "x", "y"]) == [("x", "y"), True]

    for bad_args in (
        ["--limit=many"],
        ["--unknown=1"],
        ["--sprint=yes"],
        ["Weekly", "--title=Other"],
        ["a", "1", "extra"],
    ):
        try:
            wrapped_func1(bad_args)
            assert False, bad_args
        except InvalidCommand:
            pass
