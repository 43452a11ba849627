"""
Vocabulary indexes consulted by the chatspan parser.

Classes:
    RuneIndex: Exact-match membership index (emotes, emote modifiers, tags).
    NickIndex: Case-insensitive nickname index carrying optional metadata.
    NickEntry: A resolved nickname: canonical spelling plus metadata.

Both indexes are hash backed, so a lookup costs O(1) regardless of
dictionary size. Each index owns a `threading.Lock` that is taken for the
duration of a single lookup or mutation and never across a parse. Many
threads can therefore share one index while an occasional moderation update
mutates it in place. Swapping in a whole new `ParserContext` (see
`chatspan_context.ContextHandle`) is the preferred way to publish updates.

Construction never validates entries: empty strings and duplicates are
accepted, and inserting an entry twice is the same as inserting it once.
"""

import threading
from collections.abc import Iterable, Iterator
from typing import Any, Union

NickValue = Union[str, tuple[str, Any]]


class RuneIndex:
    """Exact-match string index.

    Attributes:
        values (set[str]): The indexed strings.
    """

    def __init__(self, values: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self.values: set[str] = set(values)

    def contains(self, value: str) -> bool:
        with self._lock:
            return value in self.values

    def insert(self, value: str) -> None:
        with self._lock:
            self.values.add(value)

    def remove(self, value: str) -> None:
        """Removes `value` if present; missing values are ignored."""
        with self._lock:
            self.values.discard(value)

    def replace(self, values: Iterable[str]) -> None:
        """Replaces the whole dictionary in one step."""
        new_values = set(values)
        with self._lock:
            self.values = new_values

    def __contains__(self, value: object) -> bool:
        return isinstance(value, str) and self.contains(value)

    def __len__(self) -> int:
        with self._lock:
            return len(self.values)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            snapshot = sorted(self.values)
        return iter(snapshot)

    def __repr__(self) -> str:
        return f"RuneIndex({len(self)} values)"


class NickEntry:
    """A nickname as stored in a NickIndex.

    Attributes:
        nick (str): Canonical spelling, as first inserted.
        meta (Any): Opaque caller data (user flags, colours, ...); None by default.
    """

    __slots__ = ("nick", "meta")

    def __init__(self, nick: str, meta: Any = None) -> None:
        self.nick = nick
        self.meta = meta

    def __repr__(self) -> str:
        if self.meta is None:
            return f"NickEntry({self.nick!r})"
        return f"NickEntry({self.nick!r}, meta={self.meta!r})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, NickEntry)
            and self.nick == other.nick
            and self.meta == other.meta
        )

    def __hash__(self) -> int:
        return hash(self.nick)


def fold_nick(value: str) -> str:
    """Returns the lookup key for a nickname.

    Lowercases one code point at a time, so the key is as long as `value`.
    `str.lower()` alone would turn `İ` into two code points.
    """
    return "".join(ch.lower()[0] for ch in value)


def _split_nick_value(value: NickValue) -> tuple[str, Any]:
    if isinstance(value, tuple):
        nick, meta = value
        return nick, meta
    return value, None


class NickIndex:
    """Case-insensitive nickname index.

    Keys are folded with `fold_nick`, both on insert and on lookup. During
    bulk construction the first spelling of a nickname wins, so a duplicated
    list resolves exactly like the deduplicated one. `insert` replaces the
    stored entry, which is how a caller updates a user's metadata.

    Attributes:
        entries (dict[str, NickEntry]): Folded key to entry.
    """

    def __init__(self, values: Iterable[NickValue] = ()) -> None:
        self._lock = threading.Lock()
        self.entries: dict[str, NickEntry] = self._build(values)

    @staticmethod
    def _build(values: Iterable[NickValue]) -> dict[str, NickEntry]:
        entries: dict[str, NickEntry] = {}
        for value in values:
            nick, meta = _split_nick_value(value)
            entries.setdefault(fold_nick(nick), NickEntry(nick, meta))
        return entries

    def lookup(self, value: str) -> NickEntry | None:
        """Resolves `value` to its entry, ignoring case."""
        key = fold_nick(value)
        with self._lock:
            return self.entries.get(key)

    def contains(self, value: str) -> bool:
        return self.lookup(value) is not None

    def insert(self, nick: str, meta: Any = None) -> None:
        entry = NickEntry(nick, meta)
        with self._lock:
            self.entries[fold_nick(nick)] = entry

    def remove(self, nick: str) -> None:
        key = fold_nick(nick)
        with self._lock:
            self.entries.pop(key, None)

    def replace(self, values: Iterable[NickValue]) -> None:
        entries = self._build(values)
        with self._lock:
            self.entries = entries

    def __contains__(self, value: object) -> bool:
        return isinstance(value, str) and self.contains(value)

    def __len__(self) -> int:
        with self._lock:
            return len(self.entries)

    def __iter__(self) -> Iterator[NickEntry]:
        with self._lock:
            snapshot = [self.entries[k] for k in sorted(self.entries)]
        return iter(snapshot)

    def __repr__(self) -> str:
        return f"NickIndex({len(self)} nicks)"


__all__ = ["NickEntry", "NickIndex", "NickValue", "RuneIndex", "fold_nick"]
