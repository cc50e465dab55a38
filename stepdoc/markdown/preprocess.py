"""Rewrite import directives into inert placeholders before markdown rendering.

An import directive is a line consisting only of `<<path/to/file.md>>`. The
renderer would otherwise treat it as broken inline HTML, so it is replaced by
an HTML comment the walker recognizes later.
"""

import html
import re

IMPORT_DIRECTIVE = re.compile(r"^<<([^<>()]+\.md)>>\s*$")
IMPORT_PLACEHOLDER_PREFIX = "__stepdoc_import="

_FENCE = re.compile(r"^ {0,3}(`{3,}|~{3,})")


def import_placeholder(path: str) -> str:
    return f"<!--{IMPORT_PLACEHOLDER_PREFIX}{html.escape(path)}-->"


def convert_imports(text: str) -> str:
    """Replace import directive lines with placeholder comments.

    Lines inside fenced code blocks are left untouched.
    """
    lines = text.split("\n")
    fence: str | None = None
    for i, line in enumerate(lines):
        if m := _FENCE.match(line):
            marker = m.group(1)
            if fence is None:
                fence = marker
            elif marker[0] == fence[0] and len(marker) >= len(fence) and not line[m.end() :].strip():
                fence = None
            continue
        if fence is not None:
            continue
        if m := IMPORT_DIRECTIVE.match(line):
            lines[i] = import_placeholder(m.group(1))
    return "\n".join(lines)


def import_target(comment: str) -> str | None:
    """Return the referenced path if comment is an import placeholder."""
    data = comment.strip()
    if not data.startswith(IMPORT_PLACEHOLDER_PREFIX):
        return None
    return html.unescape(data.removeprefix(IMPORT_PLACEHOLDER_PREFIX)) or None
