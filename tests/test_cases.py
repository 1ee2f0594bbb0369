"""Run the markdown cases in tests/cases.

Each case file holds named code blocks: ``template:``, ``output:`` and
``vars:``, followed by any number of lookup tables named after their block.
"""

import re
from pathlib import Path

import pytest

from popvars import Definition, compile_template, render_all

CASES_DIR = Path(__file__).parent / "cases"

_BLOCK_RE = re.compile(
    r"^(?P<name>[^\r\n:`#]+):[ \t]*\r?\n\s*```[ \t]*\r?\n(?P<body>.*?)^```",
    re.MULTILINE | re.DOTALL,
)


def parse_case(text: str) -> dict[str, str]:
    blocks = {m.group("name").strip(): m.group("body") for m in _BLOCK_RE.finditer(text)}
    for required in ("template", "output", "vars"):
        if required not in blocks:
            raise ValueError(f"case is missing a `{required}:` block")
    return blocks


def case_files():
    return sorted(CASES_DIR.glob("*.md"))


class TestCaseParsing:
    def test_named_blocks(self):
        blocks = parse_case("template:\n```\n{{ a }}\n```\n\noutput:\n```\n1\n```\n\nvars:\n```\na\n1\n```\n")
        assert blocks == {"template": "{{ a }}\n", "output": "1\n", "vars": "a\n1\n"}

    def test_missing_block(self):
        with pytest.raises(ValueError, match="missing a `vars:` block"):
            parse_case("template:\n```\nx\n```\noutput:\n```\nx\n```\n")

    def test_cases_exist(self):
        assert case_files()


@pytest.mark.parametrize("path", case_files(), ids=lambda p: p.stem)
def test_case(path):
    blocks = parse_case(path.read_text(encoding="utf-8").replace("\r\n", "\n"))
    template = blocks.pop("template")
    expected = blocks.pop("output")
    vars_csv = blocks.pop("vars")

    definition = Definition.from_csv_strings(vars_csv, blocks)
    outputs = render_all(compile_template(template), definition)

    assert outputs[0] == expected
