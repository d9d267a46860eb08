import inspect
import types
from inspect import Parameter
from typing import Any, Callable, get_args, get_origin, List, Optional, Tuple, Type, Union

from pydantic.dataclasses import dataclass


@dataclass(frozen=True)
class FuncParam:
    name: str
    type: Optional[Type]
    default: Any
    is_varargs: bool

    @property
    def is_flag(self) -> bool:
        return self.type is bool


def inspect_function_params(func: Callable[..., Any]) -> Tuple[List[FuncParam], List[FuncParam]]:
    """
    Extract parameters from a function's variable names and type annotations. Return the
    positional and keyword parameters.
    """
    signature = inspect.signature(func)
    pos_args: List[FuncParam] = []
    kw_args: List[FuncParam] = []

    for param in signature.parameters.values():
        param_name = param.name
        param_default = param.default if param.default != param.empty else None
        param_kind = param.kind

        # Get type from type annotation or default value.
        param_type: Optional[Type] = None
        if param.annotation != param.empty:
            param_type = _extract_simple_type(param.annotation)
        elif param_default is not None:
            param_type = type(param_default)

        func_param = FuncParam(
            param_name,
            param_type,
            param_default,
            param_kind in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD),
        )

        if param_kind in (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD):
            if param.default == param.empty:
                pos_args.append(func_param)
            else:
                kw_args.append(func_param)
        elif param_kind == Parameter.VAR_POSITIONAL:
            pos_args.append(func_param)
        elif param_kind in (Parameter.KEYWORD_ONLY, Parameter.VAR_KEYWORD):
            kw_args.append(func_param)

    return pos_args, kw_args


def _extract_simple_type(annotation: Any) -> Optional[Type]:
    """
    Extract a single Type from an annotation that is an explicit simple type (like `str` or
    an enum) or a simple Union (such as `str` from `Optional[str]`). Return None if it's not
    clear.
    """
    if isinstance(annotation, type):
        return annotation

    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = get_args(annotation)
        non_none_args = [arg for arg in args if arg is not type(None)]
        if len(non_none_args) == 1 and isinstance(non_none_args[0], type):
            return non_none_args[0]
    elif origin is not None and isinstance(origin, type):
        return origin

    return None


## Tests


def test_inspect_function_params():
    def func0(guid: Optional[str] = None) -> List:
        return [guid]

    def func1(title: str, limit: int, sprint: bool = False, tag: str | None = None) -> List:
        return [title, limit, sprint, tag]

    def func2(*names: str, counts: Optional[bool] = False) -> List:
        return [names, counts]

    def func3() -> List:
        return []

    assert inspect_function_params(func0) == (
        [],
        [FuncParam(name="guid", type=str, default=None, is_varargs=False)],
    )

    assert inspect_function_params(func1) == (
        [
            FuncParam(name="title", type=str, default=None, is_varargs=False),
            FuncParam(name="limit", type=int, default=None, is_varargs=False),
        ],
        [
            FuncParam(name="sprint", type=bool, default=False, is_varargs=False),
            FuncParam(name="tag", type=str, default=None, is_varargs=False),
        ],
    )

    pos_params, kw_params = inspect_function_params(func2)
    assert pos_params == [FuncParam(name="names", type=str, default=None, is_varargs=True)]
    assert kw_params[0].is_flag

    assert inspect_function_params(func3) == ([], [])
