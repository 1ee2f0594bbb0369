"""popvars Language Server: diagnostics, completion, hover via pygls."""

from __future__ import annotations

import re

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from popvars import __version__
from popvars.errors import TemplateSyntaxError
from popvars.parsing.template_parser import TemplateParser
from popvars.table import ID_FIELD, OUTFILE_FIELD

# ---------------------------------------------------------------------------
# Static data
# ---------------------------------------------------------------------------

KEYWORDS: dict[str, str] = {
    "for": "Repeat the body once per record of a table: `{@ for name in table @}`",
    "other": "Skip the record the current row points at: `{@ for other name in table @}`",
    "in": "Names the table a loop iterates",
    "where": "Keep only records for which a comparison holds",
    "if": "Render the body only when a comparison holds: `{@ if field = \"x\" @}`",
    "end": "Close the innermost block: `{@ end for @}` or `{@ end if @}`",
}

SPECIAL_FIELDS: dict[str, str] = {
    ID_FIELD: "Record identity; lookups match a key against this field",
    OUTFILE_FIELD: "Output file name for this vars row",
}

# (label, snippet, detail); offered right after `{@`
BLOCK_SNIPPETS: list[tuple[str, str, str]] = [
    ("for", "for ${1:name} in ${2:table} @}$0{@ end for @}", "Loop over a table"),
    (
        "for where",
        "for ${1:name} in ${2:table} where ${3:field} ${4:=} ${5:\"value\"} @}$0{@ end for @}",
        "Loop over the records matching a comparison",
    ),
    (
        "for other",
        "for other ${1:name} in ${2:table} @}$0{@ end for @}",
        "Loop over every record except the current one",
    ),
    ("if", "if ${1:field} ${2:=} ${3:\"value\"} @}$0{@ end if @}", "Conditional section"),
    ("end for", "end for @}", "Close a for block"),
    ("end if", "end if @}", "Close an if block"),
]

# Names bound by for tags, for completion inside interpolations
_LOOP_NAME_RE = re.compile(r"\{@\s*for\s+(?:other\s+)?(`[^`]+`|[^\s`{}@.]+)\s+in\b")

# ---------------------------------------------------------------------------
# Helpers (module-level so they are easy to unit-test)
# ---------------------------------------------------------------------------


def lexpos_to_position(source: str, lexpos: int) -> types.Position:
    """Convert a character offset into an LSP ``Position(line, character)``."""
    line = source.count("\n", 0, lexpos)
    last_nl = source.rfind("\n", 0, lexpos)
    character = lexpos if last_nl == -1 else lexpos - last_nl - 1
    return types.Position(line=line, character=character)


def _syntax_diagnostic(source: str, exc: TemplateSyntaxError) -> types.Diagnostic:
    start = lexpos_to_position(source, exc.position)
    end = types.Position(line=start.line, character=start.character + 1)
    return types.Diagnostic(
        range=types.Range(start=start, end=end),
        severity=types.DiagnosticSeverity.Error,
        source="popvars",
        message=exc.reason,
    )


def _find_loop_names(source: str) -> list[str]:
    """Return loop names bound in *source*, in order of first appearance."""
    names: dict[str, None] = {}
    for m in _LOOP_NAME_RE.finditer(source):
        names.setdefault(m.group(1), None)
    return list(names)


def _word_at_position(line_text: str, character: int) -> str:
    """Return the contiguous identifier-like word surrounding *character*.

    A leading ``$`` is part of the word so special fields can be hovered.
    """
    if character < 0 or character >= len(line_text):
        return ""

    def is_word(ch: str) -> bool:
        return ch.isalnum() or ch in "_$"

    if not is_word(line_text[character]):
        return ""
    left = character
    while left > 0 and is_word(line_text[left - 1]):
        left -= 1
    right = character
    while right < len(line_text) and is_word(line_text[right]):
        right += 1
    return line_text[left:right]


def _opens_block(prefix: str) -> bool:
    return prefix.rstrip().endswith("{@")


def _opens_interpolation(prefix: str) -> bool:
    return prefix.rstrip().endswith("{{")


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

server = LanguageServer("popvars-language-server", __version__)
_parser = TemplateParser()


@server.feature(types.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: types.DidOpenTextDocumentParams) -> None:
    _validate_document(params.text_document.uri)


@server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: types.DidChangeTextDocumentParams) -> None:
    _validate_document(params.text_document.uri)


def validate_source(source: str) -> list[types.Diagnostic]:
    """Parse *source* and return diagnostics for any syntax error."""
    try:
        _parser.parse(source)
    except TemplateSyntaxError as exc:
        return [_syntax_diagnostic(source, exc)]
    return []


def _validate_document(uri: str) -> None:
    doc = server.workspace.get_text_document(uri)
    server.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(uri=uri, diagnostics=validate_source(doc.source))
    )


def completion_items(source: str, prefix: str) -> list[types.CompletionItem]:
    """Completion items for a cursor preceded by *prefix* on its line."""
    items: list[types.CompletionItem] = []
    if _opens_block(prefix):
        for label, snippet, detail in BLOCK_SNIPPETS:
            items.append(
                types.CompletionItem(
                    label=label,
                    kind=types.CompletionItemKind.Snippet,
                    detail=detail,
                    insert_text=snippet,
                    insert_text_format=types.InsertTextFormat.Snippet,
                )
            )
    elif _opens_interpolation(prefix):
        for name in _find_loop_names(source):
            items.append(
                types.CompletionItem(
                    label=name,
                    kind=types.CompletionItemKind.Variable,
                    detail="Loop binding",
                )
            )
        for name, desc in SPECIAL_FIELDS.items():
            items.append(
                types.CompletionItem(
                    label=name,
                    kind=types.CompletionItemKind.Field,
                    detail=desc,
                )
            )
    return items


@server.feature(
    types.TEXT_DOCUMENT_COMPLETION,
    types.CompletionOptions(trigger_characters=["@", "{", " "]),
)
def completions(params: types.CompletionParams) -> types.CompletionList:
    doc = server.workspace.get_text_document(params.text_document.uri)
    line_text = doc.lines[params.position.line] if params.position.line < len(doc.lines) else ""
    prefix = line_text[: params.position.character]
    return types.CompletionList(is_incomplete=False, items=completion_items(doc.source, prefix))


def hover_text(word: str) -> str | None:
    """Markdown hover content for *word*, or None."""
    if word in KEYWORDS:
        return f"**{word}**: {KEYWORDS[word]}"
    if word in SPECIAL_FIELDS:
        return f"**{word}**: {SPECIAL_FIELDS[word]}"
    return None


@server.feature(types.TEXT_DOCUMENT_HOVER)
def hover(params: types.HoverParams) -> types.Hover | None:
    doc = server.workspace.get_text_document(params.text_document.uri)
    if params.position.line >= len(doc.lines):
        return None
    word = _word_at_position(doc.lines[params.position.line], params.position.character)
    content = hover_text(word) if word else None
    if content is None:
        return None
    return types.Hover(
        contents=types.MarkupContent(
            kind=types.MarkupKind.Markdown,
            value=content,
        )
    )


def main() -> None:
    server.start_io()


if __name__ == "__main__":
    main()
