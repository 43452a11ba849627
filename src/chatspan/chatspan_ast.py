"""
Defines the span tree produced by the chatspan parser.

Classes:
    Span:
        A contiguous region of the message with a kind (Message, Code, Spoiler,
        Greentext, Me, Text) and ordered child nodes.
    Emote:
        A recognised emote with its chain of modifiers.
    Nick:
        A recognised nickname, in canonical spelling, with optional metadata.
    Tag:
        A recognised moderation tag word.
    NodeDict:
        TypedDict form of any node, as returned by `to_dict()`, for JSON output.

Every node carries `start` and `end`, code-point offsets into the parsed
message with `end` exclusive. The node set is closed: renderers dispatch on
the class (or on the `node` key of the dict form).

Children of a Span are ordered by `start`, do not overlap, and lie inside the
parent. `Span.insert` keeps adjacent spans of the same kind collapsed into one.

Example:
    root = Span("Message", [Emote("PEPE", ["wide"], 0, 9)], 0, 9)
"""

from typing import Any, TypedDict, Union


class NodeDict(TypedDict, total=False):
    """
    Serialized form of a span tree node.

    Fields:
        node (str): One of "span", "emote", "nick", "tag".
        kind (str): Span kind (spans only).
        children (list[NodeDict]): Child nodes (spans only).
        name (str): Emote or tag name.
        modifiers (list[str]): Emote modifiers, in order.
        nick (str): Canonical nickname.
        meta (Any): Nick metadata, passed through untouched.
        start (int): Code-point offset of the first character.
        end (int): Code-point offset one past the last character.
    """

    node: str
    kind: str
    children: list["NodeDict"]
    name: str
    modifiers: list[str]
    nick: str
    meta: Any
    start: int
    end: int


class Span:
    """
    A region of the message, possibly containing other nodes.

    Args:
        kind (str): Span kind, one of `chatspan_constants.SPAN_KINDS`.
        children (list[Node], optional): Child nodes, in order.
        start (int): Offset of the first character.
        end (int): Offset one past the last character.
    """

    def __init__(
        self,
        kind: str,
        children: list["Node"] | None = None,
        start: int = 0,
        end: int = 0,
    ):
        self.kind = kind
        self.children: list["Node"] = list(children or ())
        self.start = start
        self.end = end

    def insert(self, node: "Node") -> None:
        """Appends `node`, folding it into the last child when both are spans of one kind."""
        last = self.children[-1] if self.children else None
        if (
            isinstance(node, Span)
            and isinstance(last, Span)
            and last.kind == node.kind
        ):
            last.children.extend(node.children)
            last.end = node.end
        else:
            self.children.append(node)

    def walk(self) -> "list[Node]":
        """Returns this span and every descendant, depth first."""
        nodes: list["Node"] = [self]
        for child in self.children:
            if isinstance(child, Span):
                nodes.extend(child.walk())
            else:
                nodes.append(child)
        return nodes

    def __repr__(self) -> str:
        parts = [self.kind, f"{self.start}:{self.end}"]
        if self.children:
            preview = ", ".join(repr(c) for c in self.children[:3])
            if len(self.children) > 3:
                preview += ", ..."
            parts.append(f"children=[{preview}]")
        return f"Span({', '.join(parts)})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Span)
            and self.kind == other.kind
            and self.start == other.start
            and self.end == other.end
            and self.children == other.children
        )

    def to_dict(self) -> NodeDict:
        return {
            "node": "span",
            "kind": self.kind,
            "children": [c.to_dict() for c in self.children],
            "start": self.start,
            "end": self.end,
        }


class Emote:
    """An emote, e.g. `PEPE` or `PEPE:wide:spin`.

    Attributes:
        name (str): Emote name as it appears in the emote dictionary.
        modifiers (list[str]): Modifier names in the order they were written.
    """

    def __init__(
        self,
        name: str,
        modifiers: list[str] | None = None,
        start: int = 0,
        end: int = 0,
    ):
        self.name = name
        self.modifiers: list[str] = list(modifiers or ())
        self.start = start
        self.end = end

    def insert_modifier(self, modifier: str) -> None:
        self.modifiers.append(modifier)

    def __repr__(self) -> str:
        mods = "".join(f":{m}" for m in self.modifiers)
        return f"Emote({self.name}{mods}, {self.start}:{self.end})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Emote)
            and self.name == other.name
            and self.modifiers == other.modifiers
            and self.start == other.start
            and self.end == other.end
        )

    def to_dict(self) -> NodeDict:
        return {
            "node": "emote",
            "name": self.name,
            "modifiers": list(self.modifiers),
            "start": self.start,
            "end": self.end,
        }


class Nick:
    """A nickname mention, with or without a leading `@`.

    Attributes:
        nick (str): Canonical spelling from the nick dictionary.
        meta (Any): Metadata stored with the nick, or None.
    """

    def __init__(self, nick: str, meta: Any = None, start: int = 0, end: int = 0):
        self.nick = nick
        self.meta = meta
        self.start = start
        self.end = end

    def __repr__(self) -> str:
        return f"Nick({self.nick}, {self.start}:{self.end})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Nick)
            and self.nick == other.nick
            and self.meta == other.meta
            and self.start == other.start
            and self.end == other.end
        )

    def to_dict(self) -> NodeDict:
        return {
            "node": "nick",
            "nick": self.nick,
            "meta": self.meta,
            "start": self.start,
            "end": self.end,
        }


class Tag:
    def __init__(self, name: str, start: int = 0, end: int = 0):
        self.name = name
        self.start = start
        self.end = end

    def __repr__(self) -> str:
        return f"Tag({self.name}, {self.start}:{self.end})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Tag)
            and self.name == other.name
            and self.start == other.start
            and self.end == other.end
        )

    def to_dict(self) -> NodeDict:
        return {"node": "tag", "name": self.name, "start": self.start, "end": self.end}


Node = Union[Span, Emote, Nick, Tag]

__all__ = ["Emote", "Nick", "Node", "NodeDict", "Span", "Tag"]
