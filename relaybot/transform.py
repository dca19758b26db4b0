"""Applies text transformations to a message before it is sent to a destination.

The steps run in order: translation, callback auto-answer, rewriting of links
to own messages, fragment replacement, source sign, source link and a link to
the previous version. Failures of the Telegram client are logged or skipped;
they never abort a transformation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Protocol

from relaybot.helpers import (
    apply_replacement,
    contains_chat_id,
    deep_copy_formatted_text,
    entity_url,
    is_url_entity,
    parse_message_id,
    replace_fragment,
)
from relaybot.markdown import MarkdownError, parse_markdown_v2
from relaybot.routing import ReplaceMyselfLinks, Source, Target, TransformParams
from relaybot.telegram import EntityKind, FormattedText, Message
from relaybot.utf16 import encode_utf16, len_utf16

logger = logging.getLogger(__name__)

DELETED_LINK = "DELETED LINK"


class ChatKind(Enum):
    PRIVATE = "private"
    BASIC_GROUP = "basic_group"
    SUPERGROUP = "supergroup"
    SECRET = "secret"


@dataclass
class Chat:
    id: int = 0
    kind: ChatKind = ChatKind.PRIVATE


@dataclass
class MessageLink:
    link: str = ""


@dataclass
class MessageLinkInfo:
    chat_id: int = 0
    message: Optional[Message] = None


@dataclass
class CallbackQueryAnswer:
    text: str = ""


class TelegramRepo(Protocol):
    """The Telegram client calls the transformations need; failures raise."""

    def translate_text(self, text: Optional[FormattedText], to_language_code: str) -> FormattedText:
        """Translate a formatted text."""

    def get_message_link(self, chat_id: int, message_id: int, for_album: bool) -> Optional[MessageLink]:
        """Return a public link to a message."""

    def get_message_link_info(self, url: str) -> Optional[MessageLinkInfo]:
        """Resolve a message link to its chat and message."""

    def get_callback_query_answer(
        self, chat_id: int, message_id: int, data: bytes
    ) -> Optional[CallbackQueryAnswer]:
        """Press an inline callback button and return the bot's answer."""

    def get_chat(self, chat_id: int) -> Chat:
        """Return a chat."""


class StateRepo(Protocol):
    """Stored mapping between source messages and their copies."""

    def get_new_message_id(self, chat_id: int, tmp_message_id: int) -> int:
        """Return the final id of a sent message, or 0 if unknown."""

    def get_copied_message_ids(self, chat_id: int, message_id: int) -> list[str]:
        """Return copies as "ruleID:dstChatID:tmpMessageID" strings."""


class _Replacement(NamedTuple):
    offset: int
    length: int
    new_text: str
    entity_index: Optional[int]


def _link_markdown(title: str, link: str) -> str:
    return f"[{title}]({link})"


class TransformService:
    """Transforms message text per source and destination settings."""

    def __init__(self, telegram: TelegramRepo, state: StateRepo) -> None:
        self._telegram = telegram
        self._state = state

    def transform(self, params: TransformParams) -> Optional[FormattedText]:
        """Apply every configured transformation and return the new text."""
        text = params.text
        source = params.source
        dst = params.dst_chat_id

        if source.translate is not None and contains_chat_id(source.translate.for_chats, dst):
            try:
                text = self._telegram.translate_text(text, source.translate.lang)
            except Exception as exc:
                logger.error("Translation failed: %s", exc)

        if source.auto_answer and params.reply_markup:
            text = self._add_auto_answer(text, params.src_chat_id, params.src_message_id, params.reply_markup)

        destination = params.destination
        if destination is not None and destination.replace_myself_links is not None:
            if destination.replace_myself_links.run:
                text = self._replace_myself_links(
                    text, params.src_chat_id, dst, destination.replace_myself_links
                )

        if destination is not None:
            for fragment in destination.replace_fragments:
                text = replace_fragment(text, fragment)

        if params.with_sources and source.sign is not None and source.sign.applies_to(dst):
            text = self.add_text(text, "*" + source.sign.title + "*")

        if params.with_sources and source.link is not None and source.link.applies_to(dst):
            text = self._add_link(
                text, source.link, params.src_chat_id, params.src_message_id, params.for_album
            )

        if params.prev_message_id and source.prev is not None and source.prev.applies_to(dst):
            text = self._add_link(text, source.prev, dst, params.prev_message_id, params.for_album)

        return text

    def add_next_link(
        self,
        text: Optional[FormattedText],
        source: Source,
        dst_chat_id: int,
        next_message_id: int,
    ) -> Optional[FormattedText]:
        """Append a link to the next version of a message, for a later edit."""
        if source.next is None or not source.next.applies_to(dst_chat_id):
            return text
        return self._add_link(text, source.next, dst_chat_id, next_message_id, False)

    def add_text(self, text: Optional[FormattedText], markdown: str) -> FormattedText:
        """Append Markdown v2 after a blank line; invalid markup is appended as plain text."""
        result = deep_copy_formatted_text(text) or FormattedText()
        try:
            parsed = parse_markdown_v2(markdown)
        except MarkdownError:
            result.text += "\n\n" + markdown
            return result

        offset = len_utf16(encode_utf16(result.text + "\n\n"))
        result.text += "\n\n" + parsed.text
        for entity in parsed.entities:
            entity.offset += offset
            result.entities.append(entity)
        return result

    def _add_link(
        self,
        text: Optional[FormattedText],
        target: Target,
        chat_id: int,
        message_id: int,
        for_album: bool,
    ) -> Optional[FormattedText]:
        try:
            link = self._telegram.get_message_link(chat_id, message_id, for_album)
        except Exception:
            return text
        if link is None or not link.link:
            return text
        return self.add_text(text, _link_markdown(target.title, link.link))

    def _add_auto_answer(
        self,
        text: Optional[FormattedText],
        src_chat_id: int,
        src_message_id: int,
        reply_markup: bytes,
    ) -> Optional[FormattedText]:
        try:
            answer = self._telegram.get_callback_query_answer(src_chat_id, src_message_id, reply_markup)
        except Exception as exc:
            logger.error("Failed to get callback query answer: %s", exc)
            return text
        if answer is None or not answer.text:
            return text
        return self.add_text(text, answer.text)

    def _replace_myself_links(
        self,
        text: Optional[FormattedText],
        src_chat_id: int,
        dst_chat_id: int,
        settings: ReplaceMyselfLinks,
    ) -> Optional[FormattedText]:
        if text is None or not text.entities:
            return text

        try:
            chat = self._telegram.get_chat(src_chat_id)
        except Exception as exc:
            logger.error("Failed to get chat: %s", exc)
            return text
        # Basic groups have no message links.
        if chat.kind is ChatKind.BASIC_GROUP:
            return text

        result = text.copy()
        replacements: list[_Replacement] = []

        for index, entity in enumerate(result.entities):
            if entity is None or not is_url_entity(entity):
                continue
            url = entity_url(result.text, entity)
            if not url:
                continue
            try:
                info = self._telegram.get_message_link_info(url)
            except Exception:
                continue
            if info is None:
                continue

            if info.chat_id != src_chat_id:
                if settings.delete_external:
                    replacements.append(_Replacement(entity.offset, entity.length, DELETED_LINK, index))
                continue

            src_message_id = info.message.id if info.message is not None else 0
            copy_link = self._find_copy_link(info.chat_id, src_message_id, dst_chat_id)
            if not copy_link:
                continue
            if entity.kind is EntityKind.TEXT_URL:
                entity.url = copy_link
            else:
                replacements.append(_Replacement(entity.offset, entity.length, copy_link, None))

        # Right to left, so the offsets of earlier replacements stay valid.
        for replacement in reversed(replacements):
            result = apply_replacement(result, replacement.offset, replacement.length, replacement.new_text)
            if replacement.entity_index is not None:
                struck = result.entities[replacement.entity_index]
                struck.kind = EntityKind.STRIKETHROUGH
                struck.url = ""

        return result

    def _find_copy_link(self, src_chat_id: int, src_message_id: int, dst_chat_id: int) -> str:
        for copy in self._state.get_copied_message_ids(src_chat_id, src_message_id):
            parts = copy.split(":")
            if len(parts) < 3:
                continue
            if parse_message_id(parts[1]) != dst_chat_id:
                continue
            new_id = self._state.get_new_message_id(dst_chat_id, parse_message_id(parts[2]))
            if new_id == 0:
                continue
            try:
                link = self._telegram.get_message_link(dst_chat_id, new_id, False)
            except Exception:
                continue
            if link is not None:
                return link.link
        return ""