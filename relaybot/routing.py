"""Per-source and per-destination settings that drive message transformation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from relaybot.telegram import FormattedText


@dataclass
class Target:
    """A titled addition (sign, link, prev, next) enabled for some destination chats."""

    title: str = ""
    for_chats: list[int] = field(default_factory=list)

    def applies_to(self, chat_id: int) -> bool:
        """True if the addition is enabled for the destination chat."""
        return chat_id in self.for_chats


@dataclass
class Translate:
    """Translation into ``lang`` for the listed destination chats."""

    lang: str = ""
    for_chats: list[int] = field(default_factory=list)


@dataclass
class ReplaceFragment:
    """Replaces every occurrence of ``old`` with ``new``."""

    old: str = ""
    new: str = ""


@dataclass
class ReplaceMyselfLinks:
    """Rewrites links to source messages into links to their copies."""

    run: bool = False
    delete_external: bool = False


@dataclass
class Source:
    """Settings of a source chat."""

    chat_id: int = 0
    translate: Optional[Translate] = None
    auto_answer: bool = False
    sign: Optional[Target] = None
    link: Optional[Target] = None
    prev: Optional[Target] = None
    next: Optional[Target] = None


@dataclass
class Destination:
    """Settings of a destination chat."""

    chat_id: int = 0
    replace_myself_links: Optional[ReplaceMyselfLinks] = None
    replace_fragments: list[ReplaceFragment] = field(default_factory=list)


@dataclass
class TransformParams:
    """Everything needed to transform one message for one destination."""

    text: Optional[FormattedText] = None
    source: Source = field(default_factory=Source)
    destination: Optional[Destination] = None
    src_chat_id: int = 0
    src_message_id: int = 0
    dst_chat_id: int = 0
    prev_message_id: int = 0
    for_album: bool = False
    with_sources: bool = False
    reply_markup: bytes = b""