from functools import wraps
from types import MappingProxyType
from typing import Callable, Mapping

from runtime import errors
from runtime.objects import NULL, Array, Builtin, BuiltinFn, Integer, Object, String

BuiltinCollection = Mapping[str, Builtin]


def _arity(want: int) -> Callable[[BuiltinFn], BuiltinFn]:
    def decorate(fn: BuiltinFn) -> BuiltinFn:
        @wraps(fn)
        def checked(args: list[Object]) -> Object:
            if len(args) != want:
                return errors.wrong_number_of_args(len(args), want)
            return fn(args)

        return checked

    return decorate


@_arity(1)
def _len(args: list[Object]) -> Object:
    arg = args[0]
    if isinstance(arg, Array):
        return Integer(len(arg.elements))
    elif isinstance(arg, String):
        return Integer(len(arg.val))
    return errors.unsupported_argument("len", arg)


def _puts(args: list[Object]) -> Object:
    for arg in args:
        print(arg.inspect())
    return NULL


@_arity(1)
def _first(args: list[Object]) -> Object:
    arg = args[0]
    if isinstance(arg, Array):
        return arg.elements[0] if arg.elements else NULL
    elif isinstance(arg, String):
        return String(arg.val[0]) if arg.val else NULL
    return errors.argument_must_be("first", "ARRAY or STRING", arg)


@_arity(1)
def _last(args: list[Object]) -> Object:
    arg = args[0]
    if isinstance(arg, Array):
        return arg.elements[-1] if arg.elements else NULL
    elif isinstance(arg, String):
        return String(arg.val[-1]) if arg.val else NULL
    return errors.argument_must_be("last", "ARRAY or STRING", arg)


@_arity(1)
def _rest(args: list[Object]) -> Object:
    arg = args[0]
    if isinstance(arg, Array):
        return Array(arg.elements[1:]) if arg.elements else NULL
    return errors.argument_must_be("rest", "ARRAY", arg)


@_arity(2)
def _push(args: list[Object]) -> Object:
    arr, val = args
    if isinstance(arr, Array):
        return Array([*arr.elements, val])
    return errors.argument_must_be("push", "ARRAY", arr)


BUILTINS: BuiltinCollection = MappingProxyType(
    {
        "len": Builtin(_len),
        "puts": Builtin(_puts),
        "first": Builtin(_first),
        "last": Builtin(_last),
        "rest": Builtin(_rest),
        "push": Builtin(_push),
    }
)
