"""
chatspan Message Parser

Parses a chat message into a span tree.

The parser pulls tokens from `chatspan_lexer.tokenize` and classifies them
against the vocabularies of a `ParserContext`. It works in a single pass
with one token of lookahead and never backtracks. A parse is linear in the
number of tokens.

Supported Constructs
--------------------
- Spans:
    * Spoilers: `||hidden||`, may contain code, emotes, nicks and tags
    * Code: `` `literal` ``, contents are never interpreted
    * Greentext: a leading `>` marks the whole message
    * Actions: a leading `/me ` marks the whole message
- Words:
    * Tags (exact match), checked first
    * Emotes (exact match) with `:modifier` chains, checked second
    * Nicks (case-insensitive), checked last
- Mentions:
    * `@nick`, case-insensitive, the node includes the `@`

Parser Behavior
---------------
- Tolerant: every string parses. Unterminated spoilers and code spans run
  to the end of the message. Anything unrecognised is plain text, which is
  never materialised as a node.
- Adjacent spans of the same kind are merged (see `Span.insert`).
- Spoiler nesting is capped by `max_spoiler_depth`; a `||` that would open
  a spoiler beyond the cap is plain text.

Entry Points
------------
- `parse_message(source, ctx)`: Parse one message.
- `Parser(ctx, source).parse_message()`: Same, with control over the depth cap.

Returns
-------
Span
    The root span, of kind Message, Greentext or Me.
"""

from __future__ import annotations

import logging

from chatspan.chatspan_ast import Emote, Nick, Span, Tag
from chatspan.chatspan_constants import (
    AT,
    BACKTICK,
    COLON,
    DEFAULT_MAX_SPOILER_DEPTH,
    EOF,
    ME_COMMAND,
    RANGLE,
    SLASH,
    SPAN_CODE,
    SPAN_GREENTEXT,
    SPAN_ME,
    SPAN_MESSAGE,
    SPAN_SPOILER,
    SPOILER,
    START,
    WHITESPACE,
    WORD,
)
from chatspan.chatspan_context import ContextHandle, ParserContext
from chatspan.chatspan_lexer import Token, tokenize
from chatspan.chatspan_vocab import NickEntry

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class Parser:
    """
    chatspan Parser Class

    Turns one message into a span tree. A Parser is single use: create one
    per message. The context it is given is only read.

    Attributes
    ----------
    ctx : ParserContext
        Vocabularies consulted while classifying words.
    source : str
        The message being parsed.
    max_spoiler_depth : int
        Maximum number of simultaneously open spoilers.
    tok : Token
        The current token.

    Methods
    -------
    parse_message() -> Span
        Parse the whole message into a root span.
    parse_span(kind, depth) -> Span
        Parse a Message or Spoiler span starting at the current token.
    parse_code() -> Span
        Parse a backtick-delimited code span.
    parse_emote() -> Emote
        Parse an emote and its modifier chain.
    parse_tag() -> Tag
        Parse a moderation tag word.
    parse_nick(entry) -> Nick
        Parse a bare nickname word.
    try_parse_at_nick() -> Nick | None
        Parse an `@` mention if the following word is a known nick.
    """

    def __init__(
        self,
        ctx: ParserContext,
        source: str,
        max_spoiler_depth: int = DEFAULT_MAX_SPOILER_DEPTH,
    ) -> None:
        self.ctx = ctx
        self.source = source
        self.max_spoiler_depth = max_spoiler_depth
        self._tokens = tokenize(source)
        self._lookahead: Token | None = None
        self.tok: Token = Token(START, "", 0)

    def next(self) -> Token:
        """Advances to the next token; stays on EOF once it is reached."""
        if self._lookahead is not None:
            self.tok, self._lookahead = self._lookahead, None
        else:
            self.tok = next(self._tokens, self.tok)
        return self.tok

    def peek(self) -> Token:
        if self._lookahead is None:
            self._lookahead = next(self._tokens, self.tok)
        return self._lookahead

    def parse_message(self) -> Span:
        """Parse the whole message and return the root span."""
        return self.parse_span(SPAN_MESSAGE)

    def parse_span(self, kind: str, depth: int = 0) -> Span:
        span = Span(kind, start=self.tok.pos)

        self.next()

        if kind == SPAN_MESSAGE:
            self._parse_root_mode(span)

        while True:
            tok = self.tok
            if tok.type == EOF:
                span.end = tok.pos
                return span
            if tok.type == SPOILER:
                if kind == SPAN_SPOILER:
                    self.next()
                    span.end = self.tok.pos
                    return span
                if depth < self.max_spoiler_depth:
                    span.insert(self.parse_span(SPAN_SPOILER, depth + 1))
                else:
                    logger.debug(
                        "spoiler depth cap %d reached at offset %d",
                        self.max_spoiler_depth,
                        tok.pos,
                    )
                    self.next()
            elif tok.type == BACKTICK:
                span.insert(self.parse_code())
            elif tok.type == AT:
                nick = self.try_parse_at_nick()
                if nick is not None:
                    span.insert(nick)
            elif tok.type == WORD:
                self._parse_word(span)
            else:
                self.next()

    def _parse_root_mode(self, span: Span) -> None:
        # Greentext and /me only count as the very first token
        if self.tok.type == RANGLE:
            span.kind = SPAN_GREENTEXT
            self.next()
        elif self.tok.type == SLASH:
            self.next()
            if self.tok.type == WORD and self.tok.value == ME_COMMAND:
                span.kind = SPAN_ME
                self.next()
                if self.tok.type == WHITESPACE:
                    self.next()
                span.start = self.tok.pos

    def _parse_word(self, span: Span) -> None:
        word = self.tok.value
        if self.ctx.tags.contains(word):
            span.insert(self.parse_tag())
        elif self.ctx.emotes.contains(word):
            span.insert(self.parse_emote())
        else:
            entry = self.ctx.nicks.lookup(word)
            if entry is not None:
                span.insert(self.parse_nick(entry))
            else:
                self.next()

    def parse_code(self) -> Span:
        span = Span(SPAN_CODE, start=self.tok.pos)

        while self.tok.type != EOF:
            self.next()
            if self.tok.type == BACKTICK:
                self.next()
                break

        span.end = self.tok.pos
        return span

    def parse_emote(self) -> Emote:
        """Parse an emote followed by any `:modifier` suffixes.

        A colon that is not followed by a known modifier ends the emote and
        is left as the current token.
        """
        tok = self.tok
        emote = Emote(tok.value, start=tok.pos, end=tok.end)
        self.next()

        while self.tok.type == COLON:
            mod = self.peek()
            if mod.type != WORD or not self.ctx.emote_modifiers.contains(mod.value):
                break
            self.next()
            self.next()
            emote.insert_modifier(mod.value)
            emote.end = mod.end

        return emote

    def parse_tag(self) -> Tag:
        tok = self.tok
        self.next()
        return Tag(tok.value, tok.pos, tok.end)

    def parse_nick(self, entry: NickEntry) -> Nick:
        tok = self.tok
        self.next()
        return Nick(entry.nick, entry.meta, tok.pos, tok.end)

    def try_parse_at_nick(self) -> Nick | None:
        """Parse `@nick`.

        An `@` followed by an unknown word swallows that word as plain text.
        An `@` followed by anything else leaves that token to the caller, so
        `@||x||` still opens a spoiler.
        """
        at = self.tok
        self.next()

        if self.tok.type != WORD:
            return None

        entry = self.ctx.nicks.lookup(self.tok.value)
        if entry is None:
            self.next()
            return None

        nick = self.parse_nick(entry)
        nick.start = at.pos
        return nick


def parse_message(
    source: str,
    ctx: ParserContext | ContextHandle,
    max_spoiler_depth: int = DEFAULT_MAX_SPOILER_DEPTH,
) -> Span:
    """Parse `source` against `ctx` and return the root span.

    Passing a ContextHandle reads its current snapshot once, so a swap that
    happens mid-parse does not affect this parse.
    """
    if isinstance(ctx, ContextHandle):
        ctx = ctx.get()
    return Parser(ctx, source, max_spoiler_depth).parse_message()


__all__ = ["Parser", "parse_message"]
