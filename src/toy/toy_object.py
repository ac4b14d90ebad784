"""
Runtime value model for the Toy language.

Every value a program can produce is an `Object` subclass:

    Integer       signed 64-bit integer
    Boolean       `true` / `false` (interned: only `TRUE` and `FALSE` exist)
    String        text
    Null          the absent value (interned: only `NULL` exists)
    Array         ordered sequence of objects, never mutated in place
    Hash          mapping from a hashable key (Integer, Boolean, String) to a pair
                  of (original key, value)
    Function      parameters + body + the environment captured at definition
    Builtin       a host-provided function over a list of objects
    ReturnValue   evaluator-internal wrapper carrying a `return` result
    Error         a runtime fault that suppresses further evaluation

Each object reports a `type()` tag (e.g. "INTEGER") used in error messages, and an
`inspect()` string, its canonical display form.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Union

from toy.toy_ast import BlockStatement, Identifier

if TYPE_CHECKING:
    from toy.toy_environment import Environment

INTEGER_OBJ = "INTEGER"
BOOLEAN_OBJ = "BOOLEAN"
STRING_OBJ = "STRING"
NULL_OBJ = "NULL"
ARRAY_OBJ = "ARRAY"
HASH_OBJ = "HASH"
FUNCTION_OBJ = "FUNCTION"
BUILTIN_OBJ = "BUILTIN"
RETURN_VALUE_OBJ = "RETURN_VALUE"
ERROR_OBJ = "ERROR"

HashKey = tuple[str, Union[int, str]]


class Object:
    """Base class of every runtime value."""

    type_name = "OBJECT"

    def type(self) -> str:
        return self.type_name

    def inspect(self) -> str:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.inspect()!r})"


class Hashable(Object):
    """Marker for the variants that may be used as hash keys."""

    def hash_key(self) -> HashKey:
        raise NotImplementedError


class Integer(Hashable):
    type_name = INTEGER_OBJ

    def __init__(self, value: int) -> None:
        self.value = value

    def inspect(self) -> str:
        return str(self.value)

    def hash_key(self) -> HashKey:
        return (self.type_name, self.value)


class Boolean(Hashable):
    type_name = BOOLEAN_OBJ

    def __init__(self, value: bool) -> None:
        self.value = value

    def inspect(self) -> str:
        return "true" if self.value else "false"

    def hash_key(self) -> HashKey:
        return (self.type_name, 1 if self.value else 0)


class String(Hashable):
    type_name = STRING_OBJ

    def __init__(self, value: str) -> None:
        self.value = value

    def inspect(self) -> str:
        return self.value

    def hash_key(self) -> HashKey:
        return (self.type_name, self.value)


class Null(Object):
    type_name = NULL_OBJ

    def inspect(self) -> str:
        return "null"


class Array(Object):
    type_name = ARRAY_OBJ

    def __init__(self, elements: list[Object]) -> None:
        self.elements = elements

    def inspect(self) -> str:
        return "[" + ", ".join(e.inspect() for e in self.elements) + "]"


class HashPair:
    __slots__ = ("key", "value")

    def __init__(self, key: Object, value: Object) -> None:
        self.key = key
        self.value = value


class Hash(Object):
    """Keys are `hash_key()` tuples; insertion order is kept for display."""

    type_name = HASH_OBJ

    def __init__(self, pairs: dict[HashKey, HashPair]) -> None:
        self.pairs = pairs

    def inspect(self) -> str:
        items = ", ".join(
            f"{p.key.inspect()}: {p.value.inspect()}" for p in self.pairs.values()
        )
        return "{" + items + "}"


class Function(Object):
    type_name = FUNCTION_OBJ

    def __init__(
        self, parameters: list[Identifier], body: BlockStatement, env: Environment
    ) -> None:
        self.parameters = parameters
        self.body = body
        self.env = env

    def inspect(self) -> str:
        params = ", ".join(p.value for p in self.parameters)
        return f"fn({params}) {self.body}"


BuiltinFn = Callable[..., Object]


class Builtin(Object):
    type_name = BUILTIN_OBJ

    def __init__(self, name: str, fn: BuiltinFn) -> None:
        self.name = name
        self.fn = fn

    def inspect(self) -> str:
        return "builtin function"


class ReturnValue(Object):
    type_name = RETURN_VALUE_OBJ

    def __init__(self, value: Object) -> None:
        self.value = value

    def inspect(self) -> str:
        return self.value.inspect()


class Error(Object):
    type_name = ERROR_OBJ

    def __init__(self, message: str) -> None:
        self.message = message

    def inspect(self) -> str:
        return f"ERROR: {self.message}"

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Error) and self.message == other.message

    __hash__ = None  # type: ignore[assignment]


TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = Null()


def native_bool_to_boolean(value: bool) -> Boolean:
    return TRUE if value else FALSE


def new_error(message: str) -> Error:
    return Error(message)


def is_error(obj: Object | None) -> bool:
    return isinstance(obj, Error)


def is_truthy(obj: Object) -> bool:
    """`false` and `null` are falsy; everything else, including `0`, is truthy."""
    return obj is not FALSE and obj is not NULL


__all__ = [
    "ARRAY_OBJ",
    "Array",
    "BOOLEAN_OBJ",
    "BUILTIN_OBJ",
    "Boolean",
    "Builtin",
    "ERROR_OBJ",
    "Error",
    "FALSE",
    "FUNCTION_OBJ",
    "Function",
    "HASH_OBJ",
    "Hash",
    "HashKey",
    "HashPair",
    "Hashable",
    "INTEGER_OBJ",
    "Integer",
    "NULL",
    "NULL_OBJ",
    "Null",
    "Object",
    "RETURN_VALUE_OBJ",
    "ReturnValue",
    "STRING_OBJ",
    "String",
    "TRUE",
    "is_error",
    "is_truthy",
    "native_bool_to_boolean",
    "new_error",
]
