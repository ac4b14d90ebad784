"""
Built-in functions available to every Toy program.

The table is fixed; user code can shadow a name with `let` but cannot add entries.
Every built-in validates its own argument count and types and reports misuse as an
`Error` object rather than raising.

    len(x)        character count of a string, element count of an array
    first(a)      first element of an array, or null when empty
    last(a)       last element of an array, or null when empty
    rest(a)       new array without the first element, or null when empty
    pop(a)        new array without the last element, or null when empty
    push(a, v)    new array with `v` appended; `a` is left unchanged
    puts(...)     prints each argument's display form, returns null
"""

from toy.toy_object import (
    ARRAY_OBJ,
    NULL,
    Array,
    Builtin,
    Error,
    Integer,
    Object,
    String,
    new_error,
)


def arity_error(name: str, want: int, args: tuple[Object, ...]) -> Error:
    return new_error(
        f"number of arguments for `{name}` expected {want}, actual {len(args)}"
    )


def type_error(name: str, want: str, got: Object) -> Error:
    return new_error(f"argument type of `{name}` expected {want}, actual {got.type()}")


def builtin_len(*args: Object) -> Object:
    if len(args) != 1:
        return arity_error("len", 1, args)
    arg = args[0]
    if isinstance(arg, String):
        return Integer(len(arg.value))
    if isinstance(arg, Array):
        return Integer(len(arg.elements))
    return type_error("len", "STRING or ARRAY", arg)


def _array_arg(name: str, args: tuple[Object, ...], want: int = 1) -> Array | Error:
    if len(args) != want:
        return arity_error(name, want, args)
    if not isinstance(args[0], Array):
        return type_error(name, ARRAY_OBJ, args[0])
    return args[0]


def builtin_first(*args: Object) -> Object:
    arr = _array_arg("first", args)
    if isinstance(arr, Error):
        return arr
    return arr.elements[0] if arr.elements else NULL


def builtin_last(*args: Object) -> Object:
    arr = _array_arg("last", args)
    if isinstance(arr, Error):
        return arr
    return arr.elements[-1] if arr.elements else NULL


def builtin_rest(*args: Object) -> Object:
    arr = _array_arg("rest", args)
    if isinstance(arr, Error):
        return arr
    if not arr.elements:
        return NULL
    return Array(list(arr.elements[1:]))


def builtin_pop(*args: Object) -> Object:
    arr = _array_arg("pop", args)
    if isinstance(arr, Error):
        return arr
    if not arr.elements:
        return NULL
    return Array(list(arr.elements[:-1]))


def builtin_push(*args: Object) -> Object:
    arr = _array_arg("push", args, want=2)
    if isinstance(arr, Error):
        return arr
    return Array(arr.elements + [args[1]])


def builtin_puts(*args: Object) -> Object:
    for arg in args:
        print(arg.inspect())
    return NULL


builtins: dict[str, Builtin] = {
    name: Builtin(name, fn)
    for name, fn in (
        ("len", builtin_len),
        ("first", builtin_first),
        ("last", builtin_last),
        ("rest", builtin_rest),
        ("pop", builtin_pop),
        ("push", builtin_push),
        ("puts", builtin_puts),
    )
}

__all__ = ["builtins"]
