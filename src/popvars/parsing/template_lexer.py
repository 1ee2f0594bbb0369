"""Lexer for popvars templates."""

import re

import ply.lex as lex
from ply.lex import TOKEN

from popvars.errors import TemplateSyntaxError
from popvars.values import Literal, parse_number_literal

# Escapes allowed in plain text: \\ \{ \} \@
_TEXT = r"(?:[^\\{]|\\[\\{}@]|\{(?![{@]))+"

# Bare segments may escape \\ \@ \{ \} \. and stop at whitespace and brackets.
# Inside block tags they also stop at comparison operators.
_EXPR_SEGMENT = r"(?:[^\s{}@.`\\]|\\[\\@{}.])+"
_BLOCK_SEGMENT = r"(?:[^\s{}@.`\\<>=!]|\\[\\@{}.])+"

# Backtick-quoted segments allow anything, escaping the backtick as well
_QUOTED_SEGMENT = r"`(?:[^`\\]|\\[\\@{}.`])+`"

_STRING = r'"(?:[^"\\]|\\[\\@{}."])*"'
_NUMBER = r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"

_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)


def unescape(text: str) -> str:
    """Replace every backslash escape with the escaped character."""
    return _ESCAPE_RE.sub(r"\1", text)


class TemplateLexer:
    """Lexer for tokenizing templates.

    Plain text is lexed in the INITIAL state. ``{{`` switches to the ``expr``
    state and ``{@`` to the ``block`` state; a comparison operator inside a
    block switches to the ``literal`` state for exactly one literal.
    """

    # Keywords are only recognised as bare words inside block tags
    reserved = {
        "for": "FOR",
        "other": "OTHER",
        "in": "IN",
        "where": "WHERE",
        "if": "IF",
        "end": "END",
    }

    tokens = [
        "TEXT",
        "LEXPR",
        "REXPR",
        "LBLOCK",
        "RBLOCK",
        "SEGMENT",
        "DOT",
        "AT",
        "WS",
        "OPERATOR",
        "LITERAL",
    ] + list(reserved.values())

    states = (
        ("expr", "exclusive"),
        ("block", "exclusive"),
        ("literal", "exclusive"),
    )

    # Whitespace is significant in every state except around literals
    t_expr_ignore = ""
    t_block_ignore = ""
    t_literal_ignore = " \t\r\n"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore
        self.data = ""
        self.previous: lex.LexToken | None = None
        self.current: lex.LexToken | None = None

    # --- INITIAL: plain text ---

    def t_LEXPR(self, t: lex.LexToken) -> lex.LexToken:
        r"\{\{\s*"
        t.lexer.begin("expr")
        return t

    def t_LBLOCK(self, t: lex.LexToken) -> lex.LexToken:
        r"\{@\s*"
        t.lexer.begin("block")
        return t

    @TOKEN(_TEXT)
    def t_TEXT(self, t: lex.LexToken) -> lex.LexToken:
        t.value = unescape(t.value)
        return t

    def t_error(self, t: lex.LexToken) -> None:
        self._invalid_escape(t)
        self._fail(f"Illegal character '{t.value[0]}'", t.lexpos)

    # --- expr and block: closing brackets come before WS and AT ---

    def t_expr_REXPR(self, t: lex.LexToken) -> lex.LexToken:
        r"\s*\}\}"
        t.lexer.begin("INITIAL")
        return t

    def t_block_RBLOCK(self, t: lex.LexToken) -> lex.LexToken:
        r"\s*@\}"
        t.lexer.begin("INITIAL")
        return t

    def t_expr_block_WS(self, t: lex.LexToken) -> lex.LexToken:
        r"\s+"
        return t

    @TOKEN(_QUOTED_SEGMENT)
    def t_expr_block_QUOTED(self, t: lex.LexToken) -> lex.LexToken:
        # Quoted segments are never keywords
        t.type = "SEGMENT"
        t.value = unescape(t.value[1:-1])
        return t

    @TOKEN(_EXPR_SEGMENT)
    def t_expr_SEGMENT(self, t: lex.LexToken) -> lex.LexToken:
        t.value = unescape(t.value)
        return t

    @TOKEN(_BLOCK_SEGMENT)
    def t_block_SEGMENT(self, t: lex.LexToken) -> lex.LexToken:
        t.type = self.reserved.get(t.value, "SEGMENT")
        t.value = unescape(t.value)
        return t

    def t_expr_block_DOT(self, t: lex.LexToken) -> lex.LexToken:
        r"\."
        return t

    def t_expr_block_AT(self, t: lex.LexToken) -> lex.LexToken:
        r"@"
        return t

    def t_block_OPERATOR(self, t: lex.LexToken) -> lex.LexToken:
        r"!=|>=|<=|>|<|="
        t.lexer.begin("literal")
        return t

    def t_expr_error(self, t: lex.LexToken) -> None:
        self._bracket_error(t, "interpolation", "}}")

    def t_block_error(self, t: lex.LexToken) -> None:
        self._bracket_error(t, "block tag", "@}")

    # --- literal: one string or number after a comparison operator ---

    @TOKEN(_STRING)
    def t_literal_STRING(self, t: lex.LexToken) -> lex.LexToken:
        t.type = "LITERAL"
        t.value = Literal.text(unescape(t.value[1:-1]))
        t.lexer.begin("block")
        return t

    @TOKEN(_NUMBER)
    def t_literal_NUMBER(self, t: lex.LexToken) -> lex.LexToken:
        literal = parse_number_literal(t.value)
        if literal is None:
            self._fail(f"Invalid number literal '{t.value}'", t.lexpos)
        t.type = "LITERAL"
        t.value = literal
        t.lexer.begin("block")
        return t

    def t_literal_error(self, t: lex.LexToken) -> None:
        t.lexer.begin("INITIAL")
        self._fail(
            f"Expected a quoted string or a number after comparison operator, got '{t.value[0]}'",
            t.lexpos,
        )

    # --- Error helpers ---

    def _fail(self, message: str, position: int) -> None:
        raise TemplateSyntaxError(message, position, self.data)

    def _invalid_escape(self, t: lex.LexToken) -> None:
        if t.value[0] != "\\":
            return
        if len(t.value) < 2:
            self._fail("Unfinished escape sequence at end of template", t.lexpos)
        self._fail(f"Invalid escape sequence '\\{t.value[1]}'", t.lexpos)

    def _bracket_error(self, t: lex.LexToken, what: str, close: str) -> None:
        self._invalid_escape(t)
        ch = t.value[0]
        if ch == "`":
            self._fail("Unterminated quoted segment", t.lexpos)
        self._fail(f"Unexpected '{ch}' in {what} (expected '{close}')", t.lexpos)

    # --- Lexer methods ---

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        kwargs.setdefault("errorlog", lex.NullLogger())
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize and reset to plain-text mode."""
        self.data = data
        self.previous = None
        self.current = None
        self.lexer.begin("INITIAL")
        self.lexer.lineno = 1
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        """Return the next token."""
        tok = self.lexer.token()
        self.previous, self.current = self.current, tok
        return tok

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input and return all tokens."""
        self.input(data)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens
