# relaybot

Building blocks for a bot that copies messages from source chats to destination
chats. The package holds plain data types for messages and a set of
thread-safe services that decide what to forward and how to rewrite it.

## Modules

- `relaybot.telegram`: dataclasses for messages and their content
  (`Message`, `MessageText`, `MessagePhoto`, `MessageVideo`, `MessageDocument`,
  `MessageAudio`, `MessageAnimation`, `MessageVoiceNote`, `MessageSticker`,
  `MessageChatJoinByLink`), formatted text (`FormattedText`, `TextEntity`,
  `EntityKind`) and reply markup (`ReplyMarkupInlineKeyboard` and friends).
  `FormattedText.copy()` returns a copy that shares no entity objects.
- `relaybot.utf16`: `encode_utf16`, `decode_utf16` and `len_utf16`. Entity
  offsets and lengths are counted in UTF-16 code units, as the Telegram API
  counts them.
- `relaybot.filters`: `evaluate(text, rule)` returns a `FiltersMode`
  (`OK`, `CHECK` or `OTHER`) for a `ForwardRule` made of an `exclude` pattern,
  an `include` pattern and `SubmatchRule`s. Patterns are case-insensitive
  regular expressions compiled on every call; an invalid pattern raises
  `regex.error`. An exclude match gives `CHECK`; with include rules present,
  text that matches none of them gives `OTHER`.
- `relaybot.album`: `AlbumCollector` gathers the messages of a media album
  under a key made by `make_key(rule_id, media_album_id)`. `add_message`
  returns `True` for an album's first message, `last_received_age` gives the
  seconds since its last one, `pop_messages` removes the album and returns its
  messages in arrival order. The collector takes an optional clock function.
- `relaybot.dedup`: `Tracker.try_mark(chat_id)` returns `True` only the first
  time a chat is marked.
- `relaybot.limiter`: `ForwardLimiter.wait_for_forward(chat_id, cancel=None)`
  blocks until the interval (3 seconds by default) since the last forward to
  that chat has passed. If the optional `threading.Event` is set while waiting
  it returns `False` and does not claim the slot.
- `relaybot.message`: `get_formatted_text` reads the text or caption of a
  message, `is_system_message` tells apart content with no text (stickers,
  chat events), `get_reply_markup_data` returns the data of the first inline
  callback button, and `build_input_content` rebuilds content for sending
  again with a new text or caption (`InputMessageText`, `InputMessagePhoto`
  and so on). For text, the link preview setting of the copy is inverted.
- `relaybot.markdown`: `parse_markdown_v2(text)` parses Telegram Markdown v2
  into a `FormattedText`; malformed markup raises `MarkdownError`.
- `relaybot.routing`: per-source and per-destination settings (`Source`,
  `Destination`, `Target`, `Translate`, `ReplaceFragment`,
  `ReplaceMyselfLinks`) and `TransformParams`.
- `relaybot.helpers`: editing helpers for formatted text
  (`replace_fragment`, `apply_replacement`, `extract_substring`,
  `entity_url`, `parse_message_id` and others).
- `relaybot.transform`: `TransformService(telegram, state)` applies, in order:
  translation, callback auto-answer, rewriting of links to your own messages
  into links to their copies (external links can be replaced with
  `"DELETED LINK"` and struck through), fragment replacement, the source sign,
  the source link and a link to the previous version. `add_next_link` appends
  a link to the next version, and `add_text` appends Markdown v2 after a blank
  line, falling back to plain text when the markup is invalid. Errors raised
  by the Telegram client are logged or skipped and never abort a
  transformation.

## Installation

```
pip install .
```

Tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Example

```python
from relaybot.album import AlbumCollector, make_key
from relaybot.dedup import Tracker
from relaybot.filters import FiltersMode, ForwardRule, SubmatchRule, evaluate
from relaybot.markdown import parse_markdown_v2
from relaybot.telegram import EntityKind

rule = ForwardRule(
    exclude="spam",
    include_submatch=[SubmatchRule(regexp=r"\$(\w+)", group=1, match=["TSLA"])],
)
assert evaluate("$TSLA is up", rule) is FiltersMode.OK
assert evaluate("spam $TSLA", rule) is FiltersMode.CHECK
assert evaluate("$AAPL is up", rule) is FiltersMode.OTHER

tracker = Tracker([100, 200])
assert tracker.try_mark(100)
assert not tracker.try_mark(100)

albums = AlbumCollector()
key = make_key("rule_1", 42)
albums.add_message(key, "first")
albums.add_message(key, "second")
assert albums.pop_messages(key) == ["first", "second"]

parsed = parse_markdown_v2("*bold* text")
assert parsed.text == "bold text"
assert parsed.entities[0].kind is EntityKind.BOLD
```

## What the package does not do

It does not connect to Telegram and stores nothing. `TransformService` works
through two protocols you supply: `TelegramRepo` (translation, message links,
link resolution, callback answers, chat lookup) and `StateRepo` (the mapping
from source messages to their copies). There is no command-line program and no
loop that receives updates and forwards them; the services are meant to be
called from such a loop.