"""Light markdown-to-HTML formatting for assistant replies.

Only the handful of constructs chat answers actually use are handled.
Input is HTML-escaped first, so model output cannot inject markup.
"""

from __future__ import annotations

import html
import re

_CODE_BLOCK = re.compile(r"```(?:[\w+-]*\n)?([\s\S]*?)```")
_HEADINGS = (
    (re.compile(r"^### (.+)$", re.MULTILINE), r"<h3>\1</h3>"),
    (re.compile(r"^## (.+)$", re.MULTILINE), r"<h2>\1</h2>"),
    (re.compile(r"^# (.+)$", re.MULTILINE), r"<h1>\1</h1>"),
)
_BOLD = re.compile(r"\*\*(.*?)\*\*")
_ITALIC = re.compile(r"\*([^*\n]+)\*")
_INLINE_CODE = re.compile(r"`([^`\n]+)`")
_BLOCKQUOTE = re.compile(r"^&gt; (.+)$", re.MULTILINE)
_RULE = re.compile(r"^-{3,}$", re.MULTILINE)
_ORDERED_ITEM = re.compile(r"^\d+\.\s+(.+)$")
_UNORDERED_ITEM = re.compile(r"^(?:- |• )(.+)$")
_URL = re.compile(r"(?<![\"'=>])(https?://[^\s<]+)")
_BLOCK_END = re.compile(r"(?:</(?:h1|h2|h3|blockquote|ol|ul)>|<hr>|\x00)$")

_PLACEHOLDER = "\x00CODE{}\x00"


def _group_lists(text: str) -> str:
    """Collapse consecutive list lines into ``<ol>``/``<ul>`` blocks."""
    out: list[str] = []
    items: list[str] = []
    kind: str | None = None

    def flush() -> None:
        nonlocal kind
        if kind is not None:
            out.append(f"<{kind}>" + "".join(f"<li>{i}</li>" for i in items) + f"</{kind}>")
            items.clear()
            kind = None

    for line in text.split("\n"):
        ordered = _ORDERED_ITEM.match(line)
        unordered = _UNORDERED_ITEM.match(line) if not ordered else None
        line_kind = "ol" if ordered else "ul" if unordered else None
        if line_kind is None:
            flush()
            out.append(line)
            continue
        if line_kind != kind:
            flush()
            kind = line_kind
        items.append((ordered or unordered).group(1))
    flush()
    return "\n".join(out)


def format_message_text(text: str | None) -> str:
    """Render *text* as an HTML fragment."""
    if not text:
        return ""

    text = html.escape(text, quote=False)

    # Code blocks are cut out first so nothing else rewrites their content.
    blocks: list[str] = []

    def _stash(match: re.Match[str]) -> str:
        blocks.append(f"<pre><code>{match.group(1)}</code></pre>")
        return _PLACEHOLDER.format(len(blocks) - 1)

    text = _CODE_BLOCK.sub(_stash, text)

    for pattern, repl in _HEADINGS:
        text = pattern.sub(repl, text)
    text = _BOLD.sub(r"<strong>\1</strong>", text)
    text = _ITALIC.sub(r"<em>\1</em>", text)
    text = _INLINE_CODE.sub(r"<code>\1</code>", text)
    text = _BLOCKQUOTE.sub(r"<blockquote>\1</blockquote>", text)
    text = _RULE.sub("<hr>", text)
    text = _group_lists(text)
    text = _URL.sub(r'<a href="\1" target="_blank" rel="noopener noreferrer">\1</a>', text)

    lines = text.split("\n")
    rendered = lines[0]
    for previous, line in zip(lines, lines[1:]):
        # No <br> after a block element; the block already breaks the line.
        rendered += ("\n" if _BLOCK_END.search(previous) else "<br>") + line

    for index, block in enumerate(blocks):
        rendered = rendered.replace(_PLACEHOLDER.format(index), block)
    return rendered
