"""Lightweight markup → HTML / plain-text formatter for outbound email bodies.

Supported markup, one construct per line:

    # Heading / ## Subheading / ### Minor heading
    - bullet item   (or "* bullet item")
    blank line      paragraph break

Inline: ``**bold**``, ``*italic*`` and ``[text](https://link)``.
"""

from __future__ import annotations

import re
from html import escape

_HEADING_RE = re.compile(r"^(#{1,3})\s+(.*)$")
_BULLET_RE = re.compile(r"^\s*[-*]\s+(.*)$")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_ITALIC_RE = re.compile(r"\*(.+?)\*")
_SAFE_URL_RE = re.compile(r"^(https?://|mailto:)", re.IGNORECASE)


def _inline_html(text: str) -> str:
    def _link(match: re.Match[str]) -> str:
        label, url = match.group(1), match.group(2)
        if not _SAFE_URL_RE.match(url):
            return label
        return f'<a href="{url}">{label}</a>'

    out = escape(text, quote=True)
    out = _LINK_RE.sub(_link, out)
    out = _BOLD_RE.sub(r"<strong>\1</strong>", out)
    return _ITALIC_RE.sub(r"<em>\1</em>", out)


def _inline_plain(text: str) -> str:
    out = _LINK_RE.sub(r"\1 (\2)", text)
    out = _BOLD_RE.sub(r"\1", out)
    return _ITALIC_RE.sub(r"\1", out)


def to_html(text: str) -> str:
    """Convert markup to an HTML fragment. All input text is escaped first."""
    blocks: list[str] = []
    paragraph: list[str] = []
    bullets: list[str] = []

    def _flush() -> None:
        if paragraph:
            blocks.append("<p>" + "<br>".join(paragraph) + "</p>")
            paragraph.clear()
        if bullets:
            items = "".join(f"<li>{item}</li>" for item in bullets)
            blocks.append(f"<ul>{items}</ul>")
            bullets.clear()

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            _flush()
            continue

        heading = _HEADING_RE.match(stripped)
        if heading:
            _flush()
            level = len(heading.group(1))
            blocks.append(f"<h{level}>{_inline_html(heading.group(2))}</h{level}>")
            continue

        bullet = _BULLET_RE.match(line)
        if bullet:
            if paragraph:
                blocks.append("<p>" + "<br>".join(paragraph) + "</p>")
                paragraph.clear()
            bullets.append(_inline_html(bullet.group(1).strip()))
            continue

        if bullets:
            _flush()
        paragraph.append(_inline_html(stripped))

    _flush()
    return "\n".join(blocks)


def to_plain_text(text: str) -> str:
    """Strip markup down to readable plain text."""
    lines: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            if lines and lines[-1] != "":
                lines.append("")
            continue

        heading = _HEADING_RE.match(stripped)
        if heading:
            title = _inline_plain(heading.group(2))
            lines.append(title.upper() if len(heading.group(1)) == 1 else title)
            continue

        bullet = _BULLET_RE.match(line)
        if bullet:
            lines.append(f"• {_inline_plain(bullet.group(1).strip())}")
            continue

        lines.append(_inline_plain(stripped))

    while lines and lines[-1] == "":
        lines.pop()
    return "\n".join(lines)
