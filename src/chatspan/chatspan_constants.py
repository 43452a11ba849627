"""
Shared constants for the chatspan lexer, parser and context loader.

Token types are plain strings, as are span kinds. Keeping them in one module
lets the lexer, the parser and the tests agree on spelling without importing
each other.
"""

# TOKEN TYPES (LEXER)

# Placeholder held by the parser before it reads the first token
START = "START"
EOF = "EOF"
SPOILER = "SPOILER"
BACKTICK = "BACKTICK"
COLON = "COLON"
RANGLE = "RANGLE"
AT = "AT"
SLASH = "SLASH"
ESCAPE = "ESCAPE"
WHITESPACE = "WHITESPACE"
PUNCT = "PUNCT"
WORD = "WORD"

# Characters that become their own typed token instead of PUNCT
single_char_tokens: dict[str, str] = {
    "`": BACKTICK,
    ":": COLON,
    ">": RANGLE,
    "@": AT,
    "/": SLASH,
}

SPOILER_DELIM = "||"
ESCAPE_CHAR = "\\"

# A backslash only escapes characters that carry markup meaning
escapable_chars: frozenset[str] = frozenset("`|\\>@/:")

# Unicode properties whose members never belong to a word
NON_WORD_PROPERTIES: tuple[str, ...] = (
    "Dash",
    "Hyphen",
    "Other_Math",
    "Pattern_Syntax",
    "Pattern_White_Space",
    "Quotation_Mark",
    "Sentence_Terminal",
    "Terminal_Punctuation",
    "White_Space",
)

# SPAN KINDS (PARSER)

SPAN_MESSAGE = "Message"
SPAN_TEXT = "Text"
SPAN_CODE = "Code"
SPAN_GREENTEXT = "Greentext"
SPAN_SPOILER = "Spoiler"
SPAN_ME = "Me"

SPAN_KINDS: tuple[str, ...] = (
    SPAN_MESSAGE,
    SPAN_TEXT,
    SPAN_CODE,
    SPAN_GREENTEXT,
    SPAN_SPOILER,
    SPAN_ME,
)

ME_COMMAND = "me"

DEFAULT_MAX_SPOILER_DEPTH = 16

# CONTEXT CONFIG KEYS

CONFIG_KEYS: tuple[str, ...] = ("emotes", "emote_modifiers", "nicks", "tags")
