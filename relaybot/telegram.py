"""Message, text and markup types exchanged with the Telegram client."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class EntityKind(Enum):
    """Kind of a formatting entity inside a formatted text."""

    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"
    SPOILER = "spoiler"
    CODE = "code"
    PRE = "pre"
    URL = "url"
    TEXT_URL = "text_url"
    MENTION = "mention"
    HASHTAG = "hashtag"


@dataclass
class TextEntity:
    """A formatting span; offset and length count UTF-16 code units."""

    kind: EntityKind
    offset: int = 0
    length: int = 0
    url: str = ""


@dataclass
class FormattedText:
    """Text together with its formatting entities."""

    text: str = ""
    entities: list[Optional[TextEntity]] = field(default_factory=list)

    def copy(self) -> FormattedText:
        """Return a copy that shares no entity objects with this one."""
        return FormattedText(
            text=self.text,
            entities=[None if ent is None else dataclasses.replace(ent) for ent in self.entities],
        )


@dataclass
class File:
    id: int = 0


@dataclass
class Thumbnail:
    file: Optional[File] = None


@dataclass
class PhotoSize:
    photo: Optional[File] = None
    width: int = 0
    height: int = 0


@dataclass
class Photo:
    sizes: list[Optional[PhotoSize]] = field(default_factory=list)


@dataclass
class Video:
    video: Optional[File] = None
    thumbnail: Optional[Thumbnail] = None
    width: int = 0
    height: int = 0
    duration: int = 0


@dataclass
class Document:
    document: Optional[File] = None
    thumbnail: Optional[Thumbnail] = None


@dataclass
class Audio:
    audio: Optional[File] = None
    album_cover_thumbnail: Optional[Thumbnail] = None
    duration: int = 0
    title: str = ""
    performer: str = ""


@dataclass
class Animation:
    animation: Optional[File] = None
    thumbnail: Optional[Thumbnail] = None
    width: int = 0
    height: int = 0
    duration: int = 0


@dataclass
class VoiceNote:
    voice: Optional[File] = None
    duration: int = 0
    waveform: bytes = b""


@dataclass
class LinkPreviewOptions:
    is_disabled: bool = False


@dataclass
class MessageText:
    text: Optional[FormattedText] = None
    link_preview_options: Optional[LinkPreviewOptions] = None


@dataclass
class MessagePhoto:
    photo: Optional[Photo] = None
    caption: Optional[FormattedText] = None


@dataclass
class MessageVideo:
    video: Optional[Video] = None
    caption: Optional[FormattedText] = None


@dataclass
class MessageDocument:
    document: Optional[Document] = None
    caption: Optional[FormattedText] = None


@dataclass
class MessageAudio:
    audio: Optional[Audio] = None
    caption: Optional[FormattedText] = None


@dataclass
class MessageAnimation:
    animation: Optional[Animation] = None
    caption: Optional[FormattedText] = None


@dataclass
class MessageVoiceNote:
    voice_note: Optional[VoiceNote] = None
    caption: Optional[FormattedText] = None


@dataclass
class MessageSticker:
    """A sticker; carries no text."""


@dataclass
class MessageChatJoinByLink:
    """A service event: a member joined by an invite link."""


MessageContent = Union[
    MessageText,
    MessagePhoto,
    MessageVideo,
    MessageDocument,
    MessageAudio,
    MessageAnimation,
    MessageVoiceNote,
    MessageSticker,
    MessageChatJoinByLink,
]


@dataclass
class CallbackButton:
    data: bytes = b""


@dataclass
class UrlButton:
    url: str = ""


@dataclass
class InlineKeyboardButton:
    text: str = ""
    type: Union[CallbackButton, UrlButton, None] = None


@dataclass
class ReplyMarkupInlineKeyboard:
    rows: list[list[InlineKeyboardButton]] = field(default_factory=list)


@dataclass
class ReplyMarkupForceReply:
    is_personal: bool = False


@dataclass
class ReplyMarkupRemoveKeyboard:
    is_personal: bool = False


@dataclass
class ReplyMarkupShowKeyboard:
    rows: list[list[str]] = field(default_factory=list)


ReplyMarkup = Union[
    ReplyMarkupInlineKeyboard,
    ReplyMarkupForceReply,
    ReplyMarkupRemoveKeyboard,
    ReplyMarkupShowKeyboard,
]


@dataclass
class Message:
    id: int = 0
    chat_id: int = 0
    media_album_id: int = 0
    content: Optional[MessageContent] = None
    reply_markup: Optional[ReplyMarkup] = None