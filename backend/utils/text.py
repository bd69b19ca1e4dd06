"""
Text helpers shared by the source adapters and the description parser.

html_to_text() keeps line structure (list items become bullets, headings
become markdown headers) so the parser can still find sections after an
adapter has cleaned a description. strip_html() flattens everything onto
one line for short fields such as list items or titles.
"""

import html
import re

_BR = re.compile(r"<br\s*/?>", re.IGNORECASE)
_LI_OPEN = re.compile(r"<li[^>]*>", re.IGNORECASE)
_HEADING_OPEN = re.compile(r"<h[1-6][^>]*>", re.IGNORECASE)
_BLOCK_CLOSE = re.compile(r"</(?:p|div|li|h[1-6]|tr|ul|ol)>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")
_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")


def html_to_text(raw: str | None) -> str:
    """
    Convert an HTML (or plain text) description to clean multi-line text.

    Example:
        "<h3>Requirements</h3><ul><li>5 years Python</li></ul>"
        -> "## Requirements\\n\\n• 5 years Python"
    """
    if not raw:
        return ""

    text = _BR.sub("\n", raw)
    text = _LI_OPEN.sub("\n• ", text)
    text = _HEADING_OPEN.sub("\n## ", text)
    text = _BLOCK_CLOSE.sub("\n", text)
    text = _TAG.sub("", text)
    text = html.unescape(text).replace("\xa0", " ")
    text = text.replace("\r\n", "\n").replace("\r", "\n")

    lines = [" ".join(line.split()) for line in text.split("\n")]
    text = "\n".join(lines)
    text = _EXTRA_BLANK_LINES.sub("\n\n", text)
    return text.strip()


def strip_html(raw: str | None, max_length: int | None = None) -> str:
    """Strip tags, decode entities and collapse all whitespace to single spaces."""
    if not raw:
        return ""

    text = _TAG.sub(" ", raw)
    text = html.unescape(text)
    text = " ".join(text.split())

    if max_length:
        text = truncate(text, max_length)
    return text


def truncate(text: str, max_length: int) -> str:
    """Truncate at a word boundary and append '...'."""
    if len(text) <= max_length:
        return text
    cut = text[:max_length]
    cut = re.sub(r"\s+\S*$", "", cut)
    return cut + "..."
