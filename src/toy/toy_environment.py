"""Lexical scopes for the Toy evaluator."""

from __future__ import annotations

from toy.toy_object import Object


class Environment:
    """A mutable name → object scope with an optional enclosing scope.

    Lookups walk outward through `outer` until a binding is found; `set` always
    binds in this scope, shadowing any outer binding of the same name. A single
    environment chain must not be shared between concurrent evaluations.
    """

    def __init__(self, outer: Environment | None = None) -> None:
        self.store: dict[str, Object] = {}
        self.outer = outer

    def get(self, name: str) -> Object | None:
        if name in self.store:
            return self.store[name]
        if self.outer is not None:
            return self.outer.get(name)
        return None

    def set(self, name: str, value: Object) -> Object:
        self.store[name] = value
        return value

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def names(self) -> list[str]:
        """Bindings visible from this scope, innermost shadowing outermost."""
        seen: dict[str, None] = {}
        env: Environment | None = self
        while env is not None:
            for name in env.store:
                seen.setdefault(name, None)
            env = env.outer
        return sorted(seen)


def new_environment() -> Environment:
    return Environment()


def new_enclosed_environment(outer: Environment) -> Environment:
    return Environment(outer)


__all__ = ["Environment", "new_enclosed_environment", "new_environment"]
