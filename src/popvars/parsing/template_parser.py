"""Parser for popvars templates."""

from __future__ import annotations

from typing import Any

import ply.yacc as yacc

from popvars.errors import TemplateSyntaxError, line_and_column
from popvars.parsing.nodes import (
    Block,
    Comparison,
    Expand,
    ForTag,
    IfTag,
    Lookup,
    Node,
    Text,
)
from popvars.parsing.template_lexer import TemplateLexer
from popvars.values import Comparator


class _EndTagMismatch(Exception):
    def __init__(self, reason: str, position: int) -> None:
        super().__init__(reason)
        self.reason = reason
        self.position = position


class TemplateParser:
    """Parser for templates.

    Produces a list of nodes. Blocks nest through the grammar; the name in an
    ``end`` tag is checked against the innermost open block when the block is
    reduced.
    """

    tokens = TemplateLexer.tokens

    def __init__(self) -> None:
        self.lexer = TemplateLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        # (keyword, position) of each block whose end tag has not been seen
        self._open_blocks: list[tuple[str, int]] = []

    # ---- Template structure ----

    def p_template(self, p: yacc.YaccProduction) -> None:
        """template : nodes"""
        p[0] = p[1]

    def p_nodes_multiple(self, p: yacc.YaccProduction) -> None:
        """nodes : nodes node"""
        p[0] = p[1] + [p[2]]

    def p_nodes_empty(self, p: yacc.YaccProduction) -> None:
        """nodes : """
        p[0] = []

    def p_node_text(self, p: yacc.YaccProduction) -> None:
        """node : TEXT"""
        p[0] = Text(p[1])

    def p_node_interpolation(self, p: yacc.YaccProduction) -> None:
        """node : LEXPR expand REXPR"""
        p[0] = p[2]

    def p_node_block(self, p: yacc.YaccProduction) -> None:
        """node : block_open nodes block_close"""
        tag = p[1]
        keyword, position = p[3]
        expected, _ = self._open_blocks.pop()
        if keyword != tag.keyword:
            # PLY swallows SyntaxError raised inside a rule, so defer to parse()
            raise _EndTagMismatch(
                f"Mismatched end tag: expected 'end {expected}' but found 'end {keyword}'",
                position,
            )
        p[0] = Block(tag=tag, body=tuple(p[2]))

    # ---- Block tags ----

    def p_block_open_for(self, p: yacc.YaccProduction) -> None:
        """block_open : LBLOCK FOR WS for_clause RBLOCK"""
        self._open_blocks.append(("for", p.lexpos(1)))
        p[0] = p[4]

    def p_block_open_if(self, p: yacc.YaccProduction) -> None:
        """block_open : LBLOCK IF WS comparison RBLOCK"""
        self._open_blocks.append(("if", p.lexpos(1)))
        p[0] = IfTag(comparison=p[4])

    def p_block_close(self, p: yacc.YaccProduction) -> None:
        """block_close : LBLOCK END WS FOR RBLOCK
                       | LBLOCK END WS IF RBLOCK"""
        p[0] = (p[4], p.lexpos(1))

    def p_for_clause(self, p: yacc.YaccProduction) -> None:
        """for_clause : for_name WS IN WS lookup"""
        other, name = p[1]
        p[0] = ForTag(name=name, lookup=p[5], other=other)

    def p_for_clause_where(self, p: yacc.YaccProduction) -> None:
        """for_clause : for_name WS IN WS lookup WS WHERE WS comparison"""
        other, name = p[1]
        p[0] = ForTag(name=name, lookup=p[5], where=p[9], other=other)

    def p_for_name(self, p: yacc.YaccProduction) -> None:
        """for_name : SEGMENT"""
        p[0] = (False, p[1])

    def p_for_name_other(self, p: yacc.YaccProduction) -> None:
        """for_name : OTHER WS SEGMENT"""
        p[0] = (True, p[3])

    # ---- Comparisons ----

    def p_comparison(self, p: yacc.YaccProduction) -> None:
        """comparison : expand OPERATOR LITERAL
                      | expand WS OPERATOR LITERAL"""
        p[0] = Comparison(expand=p[1], comparator=Comparator(p[len(p) - 2]), literal=p[len(p) - 1])

    # ---- Expansions and lookups ----

    def p_expand_field(self, p: yacc.YaccProduction) -> None:
        """expand : SEGMENT"""
        p[0] = Expand(field=p[1])

    def p_expand_path(self, p: yacc.YaccProduction) -> None:
        """expand : path DOT SEGMENT"""
        p[0] = Expand(field=p[3], path=tuple(p[1]))

    def p_path_single(self, p: yacc.YaccProduction) -> None:
        """path : lookup"""
        p[0] = [p[1]]

    def p_path_multiple(self, p: yacc.YaccProduction) -> None:
        """path : path DOT lookup"""
        p[0] = p[1] + [p[3]]

    def p_lookup(self, p: yacc.YaccProduction) -> None:
        """lookup : SEGMENT"""
        p[0] = Lookup(table=p[1])

    def p_lookup_index(self, p: yacc.YaccProduction) -> None:
        """lookup : SEGMENT AT SEGMENT"""
        p[0] = Lookup(table=p[1], index=p[3])

    # ---- Errors ----

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p is None:
            self._fail_at_end()
        previous = self.lexer.previous
        if previous is not None and previous.type == "LBLOCK":
            if p.type == "SEGMENT":
                self._fail(f"Unknown block tag '{p.value}'", p.lexpos)
            if p.type == "END" and not self._open_blocks:
                self._fail("Unexpected end tag with no open block", p.lexpos)
        if previous is not None and previous.type == "AT":
            self._fail("An explicit index must follow '@' (escape a literal '@' as '\\@')", p.lexpos)
        self._fail(f"Syntax error at {self._describe(p)}", p.lexpos)

    def _fail_at_end(self) -> None:
        end = len(self.lexer.data)
        state = self.lexer.lexer.lexstate
        if state == "expr":
            self._fail("Unterminated interpolation (expected '}}')", end)
        if state in ("block", "literal"):
            self._fail("Unterminated block tag (expected '@}')", end)
        if self._open_blocks:
            keyword, position = self._open_blocks[-1]
            line, column = line_and_column(self.lexer.data, position)
            self._fail(
                f"Missing '{{@ end {keyword} @}}' for block opened at line {line}, column {column}",
                end,
            )
        self._fail("Unexpected end of template", end)

    @staticmethod
    def _describe(tok: Any) -> str:
        if tok.type == "WS":
            return "whitespace"
        if tok.type in TemplateLexer.reserved.values():
            return f"keyword '{tok.value}'"
        return f"'{tok.value}'"

    def _fail(self, message: str, position: int) -> None:
        raise TemplateSyntaxError(message, position, self.lexer.data)

    # ---- Parser methods ----

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        kwargs.setdefault("errorlog", yacc.NullLogger())
        self.parser = yacc.yacc(module=self, start="template", **kwargs)

    def parse(self, data: str) -> list[Node]:
        """Parse a template string into a list of nodes."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self._open_blocks = []
        try:
            return self.parser.parse(data, lexer=self.lexer)
        except _EndTagMismatch as e:
            raise TemplateSyntaxError(e.reason, e.position, data) from None
