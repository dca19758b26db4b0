"""A parser for Telegram's Markdown v2 markup.

Produces plain text with formatting entities whose offsets are counted in
UTF-16 code units. Reserved characters outside code must be escaped with a
backslash; malformed markup raises ``MarkdownError``. The language tag of a
pre-formatted block is accepted and dropped.
"""

from __future__ import annotations

from dataclasses import dataclass

from relaybot.telegram import EntityKind, FormattedText, TextEntity
from relaybot.utf16 import encode_utf16, len_utf16

_RESERVED = frozenset("_*[]()~`>#+-=|{}.!")

_CLOSERS = {
    EntityKind.BOLD: "*",
    EntityKind.ITALIC: "_",
    EntityKind.UNDERLINE: "__",
    EntityKind.STRIKETHROUGH: "~",
    EntityKind.SPOILER: "||",
    EntityKind.CODE: "`",
    EntityKind.PRE: "```",
}


class MarkdownError(ValueError):
    """Raised when text is not valid Markdown v2."""


@dataclass
class _Open:
    kind: EntityKind
    offset: int
    position: int
    out_index: int


def _is_escapable(char: str) -> bool:
    return 0 < ord(char) <= 126


def parse_markdown_v2(text: str) -> FormattedText:
    """Parse Markdown v2 into plain text and formatting entities."""
    out: list[str] = []
    entities: list[TextEntity] = []
    stack: list[_Open] = []
    offset = 0
    i = 0
    n = len(text)

    def emit(char: str) -> None:
        nonlocal offset
        out.append(char)
        offset += len_utf16(encode_utf16(char))

    def finish(opened: _Open, url: str = "") -> None:
        if offset > opened.offset:
            entities.append(
                TextEntity(kind=opened.kind, offset=opened.offset, length=offset - opened.offset, url=url)
            )

    while i < n:
        char = text[i]
        if char == "\\" and i + 1 < n and _is_escapable(text[i + 1]):
            emit(text[i + 1])
            i += 2
            continue

        top = stack[-1] if stack else None

        if top is not None and top.kind in (EntityKind.CODE, EntityKind.PRE):
            closer = _CLOSERS[top.kind]
            if text.startswith(closer, i):
                stack.pop()
                finish(top)
                i += len(closer)
            else:
                emit(char)
                i += 1
            continue

        if char not in _RESERVED:
            emit(char)
            i += 1
            continue

        if char == "]" and top is not None and top.kind is EntityKind.TEXT_URL:
            stack.pop()
            i += 1
            if i < n and text[i] == "(":
                i += 1
                url_chars: list[str] = []
                while i < n and text[i] != ")":
                    if text[i] == "\\" and i + 1 < n and _is_escapable(text[i + 1]):
                        i += 1
                    url_chars.append(text[i])
                    i += 1
                if i >= n:
                    raise MarkdownError(f"Can't find end of a URL at position {top.position}")
                i += 1
                url = "".join(url_chars)
            else:
                url = "".join(out[top.out_index:])
            if url:
                finish(top, url)
            continue

        if top is not None and top.kind in _CLOSERS:
            closer = _CLOSERS[top.kind]
            if text.startswith(closer, i):
                stack.pop()
                finish(top)
                i += len(closer)
                continue

        if char == "_":
            kind, size = (EntityKind.UNDERLINE, 2) if text.startswith("__", i) else (EntityKind.ITALIC, 1)
        elif char == "*":
            kind, size = EntityKind.BOLD, 1
        elif char == "~":
            kind, size = EntityKind.STRIKETHROUGH, 1
        elif char == "|" and text.startswith("||", i):
            kind, size = EntityKind.SPOILER, 2
        elif char == "[":
            kind, size = EntityKind.TEXT_URL, 1
        elif char == "`" and text.startswith("```", i):
            position = i
            i += 3
            end = i
            while end < n and not text[end].isspace() and text[end] != "`":
                end += 1
            if end > i and end < n and text[end] != "`":
                i = end
            if text.startswith("\r\n", i):
                i += 2
            elif i < n and text[i] == "\n":
                i += 1
            stack.append(_Open(EntityKind.PRE, offset, position, len(out)))
            continue
        elif char == "`":
            kind, size = EntityKind.CODE, 1
        else:
            raise MarkdownError(
                f"Character {char!r} is reserved and must be escaped with the preceding '\\'"
            )
        stack.append(_Open(kind, offset, i, len(out)))
        i += size

    if stack:
        unclosed = stack[-1]
        raise MarkdownError(
            f"Can't find end of {unclosed.kind.value} entity at position {unclosed.position}"
        )

    entities.sort(key=lambda ent: (ent.offset, -ent.length))
    return FormattedText(text="".join(out), entities=list(entities))