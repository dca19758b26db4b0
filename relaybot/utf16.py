"""UTF-16 code unit helpers; entity offsets and lengths are counted in these units."""

from __future__ import annotations

import re
import struct
from collections.abc import Iterable

MAX_INT32 = 2**31 - 1

_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def encode_utf16(text: str) -> list[int]:
    """Encode text as UTF-16 code units; lone surrogates become U+FFFD."""
    data = _LONE_SURROGATE.sub("\ufffd", text).encode("utf-16-le")
    return list(struct.unpack(f"<{len(data) // 2}H", data))


def decode_utf16(units: Iterable[int]) -> str:
    """Decode UTF-16 code units; unpaired surrogates become U+FFFD."""
    values = list(units)
    try:
        data = struct.pack(f"<{len(values)}H", *values)
    except struct.error as exc:
        raise ValueError("UTF-16 code units must be in range 0..65535") from exc
    return data.decode("utf-16-le", errors="replace")


def len_utf16(units: Iterable[int]) -> int:
    """Return the number of code units, clamped to the 32-bit signed maximum."""
    return min(len(list(units)), MAX_INT32)