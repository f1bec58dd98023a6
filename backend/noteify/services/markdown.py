"""Render the note markup subset to HTML.

Supported syntax:

    # Heading        -> <h2>
    ## Subheading    -> <h3>
    **bold**         -> <strong>
    _italic_         -> <em>
    `code`           -> <code class="...">
    - item           -> <ul><li>, consecutive items share one list
    newline          -> <br /> (dropped next to headings)

Every other ``<`` and ``>`` is escaped. The tags emitted here are left alone,
so rendering already-rendered HTML returns it unchanged.
"""

from __future__ import annotations

import re

CODE_CLASS = "bg-muted text-muted-foreground rounded-sm px-1.5 py-1 font-mono"
CODE_OPEN = f'<code class="{CODE_CLASS}">'

_OWN_TAGS = (
    r"</?(?:strong|em|h2|h3|ul|li)>",
    r"<br />",
    re.escape(CODE_OPEN),
    r"</code>",
)
_ESCAPE_RE = re.compile("(" + "|".join(_OWN_TAGS) + ")|[<>]")

# Inline spans stay on one line and never cross a block-level tag
_SPAN = r"((?:(?!<br />|</?(?:h2|h3|ul|li)>).)*?)"

_H3_RE = re.compile(r"^## (.*)$", re.MULTILINE)
_H2_RE = re.compile(r"^# (.*)$", re.MULTILINE)
_BOLD_RE = re.compile(r"\*\*" + _SPAN + r"\*\*")
_ITALIC_RE = re.compile(r"_" + _SPAN + r"_")
_CODE_RE = re.compile(r"`" + _SPAN + r"`")
_LIST_RE = re.compile(r"^- (.*)$", re.MULTILINE)
_BR_BEFORE_HEADING_RE = re.compile(r"(?:<br />)+(<h[23]>)")
_BR_AFTER_HEADING_RE = re.compile(r"(</h[23]>)(?:<br />)+")


def _escape(text: str) -> str:
    return _ESCAPE_RE.sub(
        lambda m: m.group(1) or ("&lt;" if m.group(0) == "<" else "&gt;"), text
    )


def render_markdown(text: str) -> str:
    """Return HTML for ``text``; empty input renders to an empty string."""
    if not text:
        return ""
    html = _escape(text.replace("\r\n", "\n"))
    html = _H3_RE.sub(r"<h3>\1</h3>", html)
    html = _H2_RE.sub(r"<h2>\1</h2>", html)
    html = _BOLD_RE.sub(r"<strong>\1</strong>", html)
    html = _ITALIC_RE.sub(r"<em>\1</em>", html)
    html = _CODE_RE.sub(CODE_OPEN + r"\1</code>", html)
    html = _LIST_RE.sub(r"<ul><li>\1</li></ul>", html)
    html = html.replace("</ul>\n<ul>", "")
    html = html.replace("\n", "<br />")
    html = _BR_BEFORE_HEADING_RE.sub(r"\1", html)
    html = _BR_AFTER_HEADING_RE.sub(r"\1", html)
    return html


__all__ = ["render_markdown", "CODE_CLASS"]
