"""
Keyword aliases for the Toy language.

An alias lets a user spell a keyword differently, for example `function` for `fn`
or `yes` for `true`. The lexer asks the mapper about every identifier that is not
already a reserved word.

Classes:
    - UserInterfaceMapper: Alias word to keyword kind table.
    - MappingError: Invalid or conflicting alias configuration.

Configuration is a JSON object whose keys are one alias or a comma-separated
group of aliases and whose values are keyword kinds from `KEYWORD_TOKENS`:

    {"function,lambda": "FUNC", "yes": "TRUE"}

It is read from the `--aliases` path or, failing that, from `$TOY_ALIASES`.

Usage:
    >>> mapper = UserInterfaceMapper()
    >>> mapper.configure({"function": "FUNC"})
    >>> mapper.get_token("function").type
    'FUNC'
"""

import json
import logging
import os
from collections.abc import Iterator
from typing import Any

from toy.toy_constants import KEYWORD_TOKENS, token_hashmap
from toy.toy_lexer import Token

logger = logging.getLogger(__name__)

ALIASES_ENV_VAR = "TOY_ALIASES"


class MappingError(Exception):
    """Raised for an unusable alias configuration.

    Attributes:
        conflicts (list[str]): One line per offending alias, empty when the whole
            configuration was rejected up front.
    """

    def __init__(self, message: str, conflicts: list[str] | None = None):
        super().__init__(message)
        self.conflicts = conflicts or []


def _split_aliases(entry: Any) -> Iterator[str]:
    """Yields alias words from a string (comma-separated) or a nested iterable."""
    if isinstance(entry, str):
        for word in entry.split(","):
            if word.strip():
                yield word.strip()
    elif isinstance(entry, (list, tuple, set, frozenset)):
        for item in entry:
            yield from _split_aliases(item)


def _is_identifier(word: str) -> bool:
    return (word[0].isalpha() or word[0] == "_") and all(
        ch.isalnum() or ch == "_" for ch in word
    )


class UserInterfaceMapper:
    """Alias table consulted by the lexer.

    Attributes:
        token_map (dict[str, str]): alias → keyword kind.
    """

    def __init__(self) -> None:
        self.token_map: dict[str, str] = {}

    def get_token(self, alias: str, line: int = 0, col: int = 0) -> Token | None:
        """The keyword token for `alias`, or None when it is not an alias.

        The token keeps the alias as its literal so diagnostics show what the user
        actually wrote.
        """
        kind = self.token_map.get(alias)
        if kind is None:
            return None
        return Token(kind, alias, line, col)

    def report(self) -> str:
        return "\n".join(
            f"{alias:>12} → {kind}" for alias, kind in sorted(self.token_map.items())
        )

    def summary(self) -> dict[str, str]:
        return dict(self.token_map)

    def _problem(self, alias: str, kind: str, pending: dict[str, str]) -> str | None:
        if not _is_identifier(alias):
            return f"'{alias}' is not a valid identifier"
        if alias in token_hashmap:
            return f"'{alias}' is a reserved word"
        previous = pending.get(alias, self.token_map.get(alias))
        if previous is not None and previous != kind:
            return f"'{alias}' → conflict between {previous} and {kind}"
        return None

    def configure(self, cfg: dict[Any, Any]) -> None:
        """
        Adds the aliases in `cfg` to the table.

        Either every alias in `cfg` is applied or none is.

        Raises:
            MappingError: If `cfg` is not a dict, names an unknown kind, or holds
                an alias that is not an identifier, is a reserved word, or already
                maps to another kind.
        """
        if not isinstance(cfg, dict):
            raise MappingError("Configuration must be a dict")

        pending: dict[str, str] = {}
        conflicts: list[str] = []
        for group, kind in cfg.items():
            if kind not in KEYWORD_TOKENS:
                raise MappingError(f"Unknown keyword token name: {kind}")
            for alias in _split_aliases(group):
                problem = self._problem(alias, kind, pending)
                if problem is None:
                    pending[alias] = kind
                else:
                    conflicts.append(problem)

        if conflicts:
            raise MappingError("Alias collision(s) detected", conflicts)
        self.token_map.update(pending)
        logger.debug("configured %d keyword alias(es)", len(pending))

    def load_from_json(self, path: str) -> None:
        """Reads a JSON alias file and passes it to `configure`.

        Raises:
            MappingError: If the file cannot be read or parsed, or is rejected by
                `configure`.
        """
        logger.debug("loading keyword aliases from %s", path)
        try:
            with open(path, encoding="utf-8") as f:
                cfg = json.load(f)
        except (OSError, ValueError) as e:
            raise MappingError(f"Failed to load alias file: {e}") from e
        self.configure(cfg)

    @classmethod
    def from_sources(cls, path: str | None = None) -> "UserInterfaceMapper":
        """A mapper loaded from `path`, else `$TOY_ALIASES`, else empty."""
        mapper = cls()
        source = path or os.environ.get(ALIASES_ENV_VAR)
        if source:
            mapper.load_from_json(source)
        return mapper
