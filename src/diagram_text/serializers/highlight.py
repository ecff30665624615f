"""HTML syntax highlighting for the default text format.

Purely cosmetic: the output is only meant for display next to the source
and never feeds back into the parser.
"""

from __future__ import annotations

import html
import re
from collections.abc import Mapping

_TOKEN_RE = re.compile(
    r'(?P<string>"(?:[^"\\]|\\.)*"?)'
    r"|(?P<keyword>\b(?:props|metadata|stylesheet|label):)"
    r"|(?P<bracket>[{}])"
)


def _span(css: str, text: str) -> str:
    return f'<span class="{css}">{html.escape(text, quote=False)}</span>'


def highlight_line(line: str) -> str:
    out: list[str] = []
    pos = 0
    for match in _TOKEN_RE.finditer(line):
        out.append(html.escape(line[pos : match.start()], quote=False))
        kind = match.lastgroup
        out.append(_span(f"syntax-{kind}", match.group()))
        pos = match.end()
    out.append(html.escape(line[pos:], quote=False))
    return "".join(out)


def highlight_syntax(lines: list[str], errors: Mapping[int, str] | None = None) -> list[str]:
    """Wrap strings, body keywords and braces of each line in HTML spans.

    Args:
        lines: Source lines, without trailing newlines.
        errors: Parse errors keyed by 0-based line; an error line is wrapped
            whole in a ``syntax-error`` span carrying the message as title.

    Returns:
        One highlighted HTML fragment per input line.
    """
    errors = errors or {}
    result: list[str] = []
    for idx, line in enumerate(lines):
        highlighted = highlight_line(line)
        if idx in errors:
            title = html.escape(errors[idx], quote=True)
            highlighted = f'<span class="syntax-error" title="{title}">{highlighted}</span>'
        result.append(highlighted)
    return result
