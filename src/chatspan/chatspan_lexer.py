"""
Lexical analyzer for chatspan chat markup.

This module converts a raw chat message into a stream of typed tokens over
Unicode code points:

Classes:
    CharacterStream: Cursor over the message with single-character and regex reads.
    Token: A single token with type, text value, and code-point offset.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Functions:
    tokenize(source): Generator yielding every token up to and including EOF.

Features:
    - Single-character tokens for `` ` ``, `:`, `>`, `@` and `/`
    - `||` spoiler delimiters, matched greedily in pairs
    - Backslash escapes for markup characters (`\\``, `\\|`, ...)
    - Whitespace runs and word runs
    - One PUNCT token per non-word code point (never merged)

Words are defined negatively: a word is a maximal run of code points that are
neither whitespace nor members of the non-word Unicode properties (dashes,
quotation marks, math symbols, pattern syntax, terminal punctuation). CJK text,
emoji sequences and combining scripts therefore lex as ordinary words.

The lexer never raises. Every code point of the input ends up in exactly one
token, so joining the token values reproduces the input.

Example:
    >>> [t.type for t in tokenize("PEPE:wide")]
    ['WORD', 'COLON', 'WORD', 'EOF']

Exports:
    - CharacterStream
    - Token
    - Lexer
    - tokenize
"""

from collections.abc import Iterator
from typing import Any

import regex

from chatspan.chatspan_constants import (
    EOF,
    ESCAPE,
    ESCAPE_CHAR,
    NON_WORD_PROPERTIES,
    PUNCT,
    SPOILER,
    SPOILER_DELIM,
    WHITESPACE,
    WORD,
    escapable_chars,
    single_char_tokens,
)

_NON_WORD_CLASS = "".join(rf"\p{{{prop}}}" for prop in NON_WORD_PROPERTIES)

WHITESPACE_RUN = regex.compile(r"\p{White_Space}+")
WORD_RUN = regex.compile(rf"[^{_NON_WORD_CLASS}]+")


class CharacterStream:
    """
    A cursor over the message being lexed.

    Positions are indices into the Python string, which are code points, so
    every token offset is a valid cut point regardless of the encoding the
    message arrived in.

    Attributes:
        source (str): The input message.
        position (int): Current index in the source.
    """

    def __init__(self, source: str, position: int = 0):
        self.source = source
        self.position = position

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Raises:
            Exception: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise Exception(
                f"CharacterStreamError: Attempted to read past end of source at position=<{self.position}>"
            )
        char = self.source[self.position]
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """
        Returns the character at the given offset from the current position without advancing.

        Returns:
            str: The character at the offset, or an empty string if out of bounds.
        """
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def startswith(self, prefix: str) -> bool:
        return self.source.startswith(prefix, self.position)

    def match(self, pattern: "regex.Pattern[str]") -> str:
        """Consumes the longest match of `pattern` at the current position.

        Returns:
            str: The matched text, or an empty string (nothing consumed) on no match.
        """
        m = pattern.match(self.source, self.position)
        if m is None:
            return ""
        self.position = m.end()
        return m.group()

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Token:
    """Represents a single lexical token of a chat message.

    Attributes:
        type (str): The token type (e.g. 'WORD', 'SPOILER', 'EOF').
        value (str): The exact input text covered by the token.
        pos (int): Code-point offset of the token's first character.
    """

    def __init__(self, type_: str, value: str, pos: int = 0):
        self.type = type_
        self.value = value
        self.pos = pos

    @property
    def end(self) -> int:
        return self.pos + len(self.value)

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r}, {self.pos})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.pos == other.pos
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.pos))


class Lexer:
    """Lexical analyzer for chat messages.

    Wraps a CharacterStream and hands out one Token per `next_token()` call.
    Once the input is exhausted every further call returns an EOF token at
    the end offset.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream."""
        stream = self.stream
        pos = stream.position

        if stream.end_of_file():
            return Token(EOF, "", pos)

        ch = stream.peek()

        # 1. Single-character markup tokens
        if ch in single_char_tokens:
            return Token(single_char_tokens[ch], stream.next(), pos)

        # 2. Spoiler delimiter; a lone "|" falls through to PUNCT
        if stream.startswith(SPOILER_DELIM):
            stream.position += len(SPOILER_DELIM)
            return Token(SPOILER, SPOILER_DELIM, pos)

        # 3. Escaped markup character
        if ch == ESCAPE_CHAR and stream.peek(1) in escapable_chars:
            value = stream.next() + stream.next()
            return Token(ESCAPE, value, pos)

        # 4. Whitespace run
        run = stream.match(WHITESPACE_RUN)
        if run:
            return Token(WHITESPACE, run, pos)

        # 5. Word run
        run = stream.match(WORD_RUN)
        if run:
            return Token(WORD, run, pos)

        # 6. Anything else is a single non-word code point
        return Token(PUNCT, stream.next(), pos)


def tokenize(source: str) -> Iterator[Token]:
    """Yields every token of `source`, ending with exactly one EOF token.

    Each call builds its own stream and lexer, so two tokenizations of the
    same text never share state.
    """
    lexer = Lexer(CharacterStream(source))
    while True:
        tok = lexer.next_token()
        yield tok
        if tok.type == EOF:
            return


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize"]
