"""Helpers for editing formatted text whose entities are counted in UTF-16 units."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Optional

from relaybot.routing import ReplaceFragment
from relaybot.telegram import EntityKind, FormattedText, TextEntity
from relaybot.utf16 import decode_utf16, encode_utf16, len_utf16

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")


def deep_copy_formatted_text(text: Optional[FormattedText]) -> Optional[FormattedText]:
    """Copy a formatted text without sharing its entities."""
    return None if text is None else text.copy()


def entity_url(text: str, entity: TextEntity) -> str:
    """Return the URL an entity points to, or "" if it is not a URL entity."""
    if entity.kind is EntityKind.URL:
        return extract_substring(text, entity.offset, entity.length)
    if entity.kind is EntityKind.TEXT_URL:
        return entity.url
    return ""


def is_url_entity(entity: TextEntity) -> bool:
    """True for plain and text URL entities."""
    return entity.kind in (EntityKind.URL, EntityKind.TEXT_URL)


def replace_fragment(text: Optional[FormattedText], fragment: ReplaceFragment) -> Optional[FormattedText]:
    """Replace every occurrence of the fragment; the input is returned as is if none occur."""
    if text is None or fragment.old not in text.text:
        return text
    result = text.copy()
    result.text = result.text.replace(fragment.old, fragment.new)
    return result


def contains_chat_id(ids: Optional[Iterable[int]], target: int) -> bool:
    """True if ``target`` is among ``ids``."""
    return ids is not None and target in ids


def extract_substring(text: str, offset: int, length: int) -> str:
    """Return the part of ``text`` at a UTF-16 offset and length, or "" if out of range."""
    units = encode_utf16(text)
    if offset < 0 or length < 0 or offset + length > len(units):
        return ""
    return decode_utf16(units[offset : offset + length])


def apply_replacement(text: FormattedText, offset: int, length: int, new_text: str) -> FormattedText:
    """Replace a UTF-16 span in place and shift the entities that follow it."""
    units = encode_utf16(text.text)
    new_units = encode_utf16(new_text)
    new_length = len_utf16(new_units)
    diff = new_length - length

    text.text = decode_utf16(units[:offset] + new_units + units[offset + length :])

    for entity in text.entities:
        if entity is None:
            continue
        if entity.offset > offset:
            entity.offset += diff
        elif entity.offset == offset:
            entity.length = new_length
    return text


def parse_message_id(value: str) -> int:
    """Parse a decimal 64-bit id; anything invalid gives 0."""
    if not _DECIMAL.fullmatch(value):
        return 0
    number = int(value)
    if not _INT64_MIN <= number <= _INT64_MAX:
        return 0
    return number