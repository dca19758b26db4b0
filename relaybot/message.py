"""Extracts the text of messages and rebuilds their content for resending.

Supported content kinds are text, photo, video, document, audio, animation
and voice note. Every other kind (stickers, chat events and the like) is
treated as a system message: it carries no text and is only forwarded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from relaybot.telegram import (
    CallbackButton,
    FormattedText,
    Message,
    MessageAnimation,
    MessageAudio,
    MessageDocument,
    MessagePhoto,
    MessageText,
    MessageVideo,
    MessageVoiceNote,
    Photo,
    PhotoSize,
    ReplyMarkupInlineKeyboard,
    Thumbnail,
)

_CAPTIONED = (
    MessagePhoto,
    MessageVideo,
    MessageDocument,
    MessageAudio,
    MessageAnimation,
    MessageVoiceNote,
)
_SUPPORTED = (MessageText, *_CAPTIONED)


@dataclass
class InputFileId:
    """A file already stored on the server, referred to by its id."""

    id: int = 0


@dataclass
class InputThumbnail:
    thumbnail: Optional[InputFileId] = None


@dataclass
class InputMessageText:
    text: Optional[FormattedText] = None
    link_preview_options: Optional["LinkPreviewOptions"] = None


@dataclass
class InputMessagePhoto:
    photo: Optional[InputFileId] = None
    thumbnail: Optional[InputThumbnail] = None
    width: int = 0
    height: int = 0
    caption: Optional[FormattedText] = None


@dataclass
class InputMessageVideo:
    video: Optional[InputFileId] = None
    thumbnail: Optional[InputThumbnail] = None
    width: int = 0
    height: int = 0
    duration: int = 0
    caption: Optional[FormattedText] = None


@dataclass
class InputMessageDocument:
    document: Optional[InputFileId] = None
    thumbnail: Optional[InputThumbnail] = None
    caption: Optional[FormattedText] = None


@dataclass
class InputMessageAudio:
    audio: Optional[InputFileId] = None
    album_cover_thumbnail: Optional[InputThumbnail] = None
    duration: int = 0
    title: str = ""
    performer: str = ""
    caption: Optional[FormattedText] = None


@dataclass
class InputMessageAnimation:
    animation: Optional[InputFileId] = None
    thumbnail: Optional[InputThumbnail] = None
    width: int = 0
    height: int = 0
    duration: int = 0
    caption: Optional[FormattedText] = None


@dataclass
class InputMessageVoiceNote:
    voice_note: Optional[InputFileId] = None
    duration: int = 0
    waveform: bytes = b""
    caption: Optional[FormattedText] = None


from relaybot.telegram import LinkPreviewOptions  # noqa: E402

InputMessageContent = Union[
    InputMessageText,
    InputMessagePhoto,
    InputMessageVideo,
    InputMessageDocument,
    InputMessageAudio,
    InputMessageAnimation,
    InputMessageVoiceNote,
]


def get_formatted_text(message: Optional[Message]) -> Optional[FormattedText]:
    """Return the text or caption of a message, or None if it has none."""
    if message is None or message.content is None:
        return None
    content = message.content
    if isinstance(content, MessageText):
        return content.text
    if isinstance(content, _CAPTIONED):
        return content.caption
    return None


def is_system_message(message: Optional[Message]) -> bool:
    """True for content kinds that carry no text or caption."""
    if message is None or message.content is None:
        return False
    return not isinstance(message.content, _SUPPORTED)


def get_reply_markup_data(message: Optional[Message]) -> Optional[bytes]:
    """Return the callback data of the first inline callback button, if any."""
    if message is None or not isinstance(message.reply_markup, ReplyMarkupInlineKeyboard):
        return None
    for row in message.reply_markup.rows:
        for button in row:
            if isinstance(button.type, CallbackButton):
                return button.type.data
    return None


def _file_input(file) -> Optional[InputFileId]:
    return None if file is None else InputFileId(id=file.id)


def _thumbnail_input(thumbnail: Optional[Thumbnail]) -> Optional[InputThumbnail]:
    if thumbnail is None or thumbnail.file is None:
        return None
    return InputThumbnail(thumbnail=InputFileId(id=thumbnail.file.id))


def _largest_size(photo: Optional[Photo]) -> Optional[PhotoSize]:
    if photo is None or not photo.sizes:
        return None
    return photo.sizes[-1]


def _smallest_size(photo: Optional[Photo]) -> Optional[PhotoSize]:
    if photo is None or not photo.sizes:
        return None
    return photo.sizes[0]


def _build_photo(content: MessagePhoto, text: Optional[FormattedText]) -> InputMessagePhoto:
    largest = _largest_size(content.photo)
    smallest = _smallest_size(content.photo)
    thumbnail = None
    if smallest is not None and smallest.photo is not None:
        thumbnail = InputThumbnail(thumbnail=InputFileId(id=smallest.photo.id))
    return InputMessagePhoto(
        photo=None if largest is None else _file_input(largest.photo),
        thumbnail=thumbnail,
        width=0 if largest is None else largest.width,
        height=0 if largest is None else largest.height,
        caption=text,
    )


def build_input_content(
    message: Optional[Message], text: Optional[FormattedText]
) -> InputMessageContent:
    """Rebuild a message's content for sending, with ``text`` as its text or caption.

    For text the link preview setting is inverted: a copy of a message that
    showed a preview is sent without one. Media keep their file ids and
    metadata. Unsupported content becomes plain text.
    """
    if message is None or message.content is None:
        return InputMessageText(text=text)
    content = message.content

    if isinstance(content, MessageText):
        options = content.link_preview_options
        disabled = options.is_disabled if options is not None else False
        return InputMessageText(
            text=text,
            link_preview_options=LinkPreviewOptions(is_disabled=not disabled),
        )

    if isinstance(content, MessagePhoto):
        return _build_photo(content, text)

    if isinstance(content, MessageVideo):
        video = content.video
        if video is None:
            return InputMessageVideo(caption=text)
        return InputMessageVideo(
            video=_file_input(video.video),
            thumbnail=_thumbnail_input(video.thumbnail),
            width=video.width,
            height=video.height,
            duration=video.duration,
            caption=text,
        )

    if isinstance(content, MessageDocument):
        document = content.document
        if document is None:
            return InputMessageDocument(caption=text)
        return InputMessageDocument(
            document=_file_input(document.document),
            thumbnail=_thumbnail_input(document.thumbnail),
            caption=text,
        )

    if isinstance(content, MessageAudio):
        audio = content.audio
        if audio is None:
            return InputMessageAudio(caption=text)
        return InputMessageAudio(
            audio=_file_input(audio.audio),
            album_cover_thumbnail=_thumbnail_input(audio.album_cover_thumbnail),
            duration=audio.duration,
            title=audio.title,
            performer=audio.performer,
            caption=text,
        )

    if isinstance(content, MessageAnimation):
        animation = content.animation
        if animation is None:
            return InputMessageAnimation(caption=text)
        return InputMessageAnimation(
            animation=_file_input(animation.animation),
            thumbnail=_thumbnail_input(animation.thumbnail),
            width=animation.width,
            height=animation.height,
            duration=animation.duration,
            caption=text,
        )

    if isinstance(content, MessageVoiceNote):
        voice = content.voice_note
        if voice is None:
            return InputMessageVoiceNote(caption=text)
        return InputMessageVoiceNote(
            voice_note=_file_input(voice.voice),
            duration=voice.duration,
            waveform=voice.waveform,
            caption=text,
        )

    return InputMessageText(text=text)