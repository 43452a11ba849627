"""
Provides the `ParserContext` that bundles the vocabularies a parse consults,
plus the helpers used to build, load and publish it.

Classes:
    - ParserContextValues: TypedDict describing the four vocabulary lists.
    - ParserContext: Immutable bundle of emote, modifier, nick and tag indexes.
    - ContextHandle: Shared reference to the current context, swapped atomically.
    - ContextConfigError: Raised when a vocabulary snapshot file is unusable.

Functions:
    - load_context_values(path): Read a JSON vocabulary snapshot.

A context is built once and then only read. When the moderation service
pushes new vocabularies, build a fresh context (`ParserContext.with_values`
or `ParserContext.from_json`) and publish it with `ContextHandle.swap`.
Parses already running keep the snapshot they started with.

Snapshot format:
    {
        "emotes": ["PEPE", "CuckCrab"],
        "emote_modifiers": ["wide", "spin"],
        "nicks": ["abeous", {"nick": "wrxst", "meta": {"flair": "sub"}}],
        "tags": ["nsfw"]
    }

Every key is optional. Entry contents are never validated.
"""

import json
import logging
import threading
from collections.abc import Iterable
from typing import Any, TypedDict

from chatspan.chatspan_constants import CONFIG_KEYS
from chatspan.chatspan_vocab import NickIndex, NickValue, RuneIndex

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class ContextConfigError(Exception):
    """Raised when a vocabulary snapshot cannot be turned into a context.

    Attributes:
        problems (list[str]): Human readable description of each problem found.

    Example:
        raise ContextConfigError("Invalid vocabulary snapshot", ["'emotes' must be a list"])
    """

    def __init__(self, message: str, problems: list[str] | None = None):
        super().__init__(message)
        self.problems = problems or []


class ParserContextValues(TypedDict, total=False):
    """Plain-data form of a ParserContext.

    Fields:
        emotes (list[str]): Emote names, matched exactly.
        emote_modifiers (list[str]): Modifier names allowed after `EMOTE:`.
        nicks (list[NickValue]): Nicknames, or `(nick, meta)` pairs.
        tags (list[str]): Moderation tag words, matched exactly.
    """

    emotes: list[str]
    emote_modifiers: list[str]
    nicks: list[NickValue]
    tags: list[str]


class ParserContext:
    """Immutable bundle of the four vocabulary indexes.

    The parser never mutates a context, so one instance can be shared by any
    number of concurrent parses.

    Attributes:
        emotes (RuneIndex)
        emote_modifiers (RuneIndex)
        nicks (NickIndex)
        tags (RuneIndex)
    """

    def __init__(
        self,
        emotes: Iterable[str] = (),
        emote_modifiers: Iterable[str] = (),
        nicks: Iterable[NickValue] = (),
        tags: Iterable[str] = (),
    ) -> None:
        self.emotes = RuneIndex(emotes)
        self.emote_modifiers = RuneIndex(emote_modifiers)
        self.nicks = NickIndex(nicks)
        self.tags = RuneIndex(tags)
        logger.debug(
            "built parser context: %d emotes, %d modifiers, %d nicks, %d tags",
            len(self.emotes),
            len(self.emote_modifiers),
            len(self.nicks),
            len(self.tags),
        )

    @classmethod
    def from_values(cls, values: ParserContextValues) -> "ParserContext":
        return cls(
            emotes=values.get("emotes", ()),
            emote_modifiers=values.get("emote_modifiers", ()),
            nicks=values.get("nicks", ()),
            tags=values.get("tags", ()),
        )

    @classmethod
    def from_json(cls, path: str) -> "ParserContext":
        """Builds a context from a JSON vocabulary snapshot.

        Raises:
            ContextConfigError: If the file cannot be read or has the wrong shape.
        """
        return cls.from_values(load_context_values(path))

    def values(self) -> ParserContextValues:
        """Exports the current vocabularies as sorted plain lists."""
        nicks: list[NickValue] = [
            e.nick if e.meta is None else (e.nick, e.meta) for e in self.nicks
        ]
        return {
            "emotes": list(self.emotes),
            "emote_modifiers": list(self.emote_modifiers),
            "nicks": nicks,
            "tags": list(self.tags),
        }

    def with_values(self, **changes: Any) -> "ParserContext":
        """Returns a new context with some vocabularies replaced.

        Example:
            >>> ctx = ParserContext(emotes=["PEPE"])
            >>> ctx2 = ctx.with_values(tags=["nsfw"])
            >>> "PEPE" in ctx2.emotes and "nsfw" in ctx2.tags
            True
        """
        unknown = sorted(set(changes) - set(CONFIG_KEYS))
        if unknown:
            raise TypeError(f"Unknown vocabulary name(s): {', '.join(unknown)}")
        values = self.values()
        values.update(changes)  # type: ignore[typeddict-item]
        return ParserContext.from_values(values)

    def __repr__(self) -> str:
        return (
            f"ParserContext(emotes={len(self.emotes)}, "
            f"emote_modifiers={len(self.emote_modifiers)}, "
            f"nicks={len(self.nicks)}, tags={len(self.tags)})"
        )


class ContextHandle:
    """Shared, atomically replaceable reference to the current ParserContext.

    Readers call `get()` once per parse and use that snapshot for the whole
    parse. Writers publish a complete new context with `swap()`.
    """

    def __init__(self, context: ParserContext | None = None) -> None:
        self._lock = threading.Lock()
        self._context = context if context is not None else ParserContext()

    def get(self) -> ParserContext:
        return self._context

    def swap(self, context: ParserContext) -> ParserContext:
        """Publishes `context` and returns the one it replaced."""
        with self._lock:
            previous = self._context
            self._context = context
        logger.debug("swapped parser context: %r -> %r", previous, context)
        return previous

    def update(self, **changes: Any) -> ParserContext:
        """Builds a copy of the current context with `changes` applied and publishes it."""
        with self._lock:
            context = self._context.with_values(**changes)
            self._context = context
        logger.debug("updated parser context vocabularies: %s", ", ".join(sorted(changes)))
        return context


def _coerce_nick(entry: Any) -> NickValue:
    if isinstance(entry, dict) and "nick" in entry:
        return (str(entry["nick"]), entry.get("meta"))
    return str(entry)


def load_context_values(path: str) -> ParserContextValues:
    """
    Loads a vocabulary snapshot from a JSON file.

    Args:
        path: Path to a JSON object with optional `emotes`, `emote_modifiers`,
            `nicks` and `tags` lists.

    Returns:
        The snapshot as ParserContextValues.

    Raises:
        ContextConfigError: If the file cannot be read or parsed, is not an
            object, has unknown keys, or has a value that is not a list.
    """
    try:
        with open(path, encoding="utf-8") as f:
            raw_cfg = json.load(f)
    except (OSError, ValueError) as e:
        raise ContextConfigError(f"Failed to load vocabulary snapshot: {e}") from e

    if not isinstance(raw_cfg, dict):
        raise ContextConfigError("Vocabulary snapshot must be a JSON object")

    problems: list[str] = []
    for key, value in raw_cfg.items():
        if key not in CONFIG_KEYS:
            problems.append(f"unknown key '{key}'")
        elif not isinstance(value, list):
            problems.append(f"'{key}' must be a list, got {type(value).__name__}")
    if problems:
        raise ContextConfigError("Invalid vocabulary snapshot", problems)

    values: ParserContextValues = {
        "emotes": [str(v) for v in raw_cfg.get("emotes", [])],
        "emote_modifiers": [str(v) for v in raw_cfg.get("emote_modifiers", [])],
        "nicks": [_coerce_nick(v) for v in raw_cfg.get("nicks", [])],
        "tags": [str(v) for v in raw_cfg.get("tags", [])],
    }
    logger.debug("loaded vocabulary snapshot from %s", path)
    return values


__all__ = [
    "ContextConfigError",
    "ContextHandle",
    "ParserContext",
    "ParserContextValues",
    "load_context_values",
]
