"""Line-based markdown-lite parsing for message display.

Each line becomes one tagged block: a heading (levels 1-3), a list item, a
blank line or a paragraph. Inline markup is left as-is.
"""

import html
from dataclasses import dataclass, field

HEADING = "heading"
LIST_ITEM = "list_item"
BLANK = "blank"
PARAGRAPH = "paragraph"

_HEADING_PREFIXES = [("### ", 3), ("## ", 2), ("# ", 1)]
_LIST_PREFIXES = ("- ", "* ")


@dataclass(frozen=True)
class Block:
    kind: str
    text: str = ""
    level: int = 0  # heading level, 0 for other kinds


@dataclass
class Document:
    blocks: list[Block] = field(default_factory=list)


def parse_line(line: str) -> Block:
    for prefix, level in _HEADING_PREFIXES:
        if line.startswith(prefix):
            return Block(HEADING, line[len(prefix):], level)
    if line.startswith(_LIST_PREFIXES):
        return Block(LIST_ITEM, line[2:])
    if not line.strip():
        return Block(BLANK)
    return Block(PARAGRAPH, line)


def parse_message(text: str) -> Document:
    return Document([parse_line(line) for line in text.split("\n")])


def render_html(doc: Document) -> str:
    """Render a document as escaped HTML, grouping adjacent list items."""
    parts = []
    in_list = False

    for block in doc.blocks:
        if block.kind == LIST_ITEM:
            if not in_list:
                parts.append("<ul>")
                in_list = True
            parts.append(f"<li>{html.escape(block.text)}</li>")
            continue

        if in_list:
            parts.append("</ul>")
            in_list = False

        if block.kind == HEADING:
            parts.append(f"<h{block.level}>{html.escape(block.text)}</h{block.level}>")
        elif block.kind == BLANK:
            parts.append("<br>")
        else:
            parts.append(f"<p>{html.escape(block.text)}</p>")

    if in_list:
        parts.append("</ul>")
    return "".join(parts)
