import pytest

from relaybot.routing import (
    Destination,
    ReplaceFragment,
    ReplaceMyselfLinks,
    Source,
    Target,
    Translate,
    TransformParams,
)
from relaybot.telegram import EntityKind, FormattedText, Message, TextEntity
from relaybot.transform import (
    DELETED_LINK,
    CallbackQueryAnswer,
    Chat,
    ChatKind,
    MessageLink,
    MessageLinkInfo,
    TransformService,
)
from relaybot.utf16 import encode_utf16, len_utf16


class _UnexpectedCall(BaseException):
    """Escapes the service's error handling so an unplanned call fails the test."""


class _Fake:
    def __init__(self, **responses):
        self.responses = responses
        self.calls = []

    def _respond(self, name, *args):
        self.calls.append((name, args))
        if name not in self.responses:
            raise _UnexpectedCall(f"{name}{args}")
        response = self.responses[name]
        if callable(response):
            response = response(*args)
        if isinstance(response, Exception):
            raise response
        return response


class FakeTelegram(_Fake):
    def translate_text(self, text, to_language_code):
        return self._respond("translate_text", text, to_language_code)

    def get_message_link(self, chat_id, message_id, for_album):
        return self._respond("get_message_link", chat_id, message_id, for_album)

    def get_message_link_info(self, url):
        return self._respond("get_message_link_info", url)

    def get_callback_query_answer(self, chat_id, message_id, data):
        return self._respond("get_callback_query_answer", chat_id, message_id, data)

    def get_chat(self, chat_id):
        return self._respond("get_chat", chat_id)


class FakeState(_Fake):
    def get_new_message_id(self, chat_id, tmp_message_id):
        return self._respond("get_new_message_id", chat_id, tmp_message_id)

    def get_copied_message_ids(self, chat_id, message_id):
        return self._respond("get_copied_message_ids", chat_id, message_id)


SOURCE_URL = "https://example.com/c/100/5"
COPY_URL = "https://example.com/c/200/777"
SUPERGROUP = Chat(id=100, kind=ChatKind.SUPERGROUP)


def _url_text(url):
    return FormattedText(url, [TextEntity(EntityKind.URL, 0, len_utf16(encode_utf16(url)))])


def _myself_params(text, src=100, dst=200, delete_external=False):
    return TransformParams(
        text=text,
        source=Source(chat_id=src),
        destination=Destination(
            chat_id=dst,
            replace_myself_links=ReplaceMyselfLinks(run=True, delete_external=delete_external),
        ),
        src_chat_id=src,
        dst_chat_id=dst,
    )


def test_no_transformations():
    telegram = FakeTelegram()
    service = TransformService(telegram, FakeState())
    result = service.transform(TransformParams(text=FormattedText("hello"), source=Source(chat_id=100)))
    assert result.text == "hello"
    assert telegram.calls == []


def test_translation():
    def translate(text, lang):
        if lang == "ru" and text is not None and text.text == "hello":
            return FormattedText("привет")
        return FormattedText("wrong")

    service = TransformService(FakeTelegram(translate_text=translate), FakeState())
    params = TransformParams(
        text=FormattedText("hello"),
        source=Source(chat_id=100, translate=Translate(lang="ru", for_chats=[200])),
        dst_chat_id=200,
    )
    assert service.transform(params).text == "привет"


def test_translation_error_keeps_original():
    service = TransformService(FakeTelegram(translate_text=RuntimeError("boom")), FakeState())
    params = TransformParams(
        text=FormattedText("hello"),
        source=Source(chat_id=100, translate=Translate(lang="ru", for_chats=[200])),
        dst_chat_id=200,
    )
    assert service.transform(params).text == "hello"


def test_translation_skipped_for_other_chat():
    telegram = FakeTelegram()
    service = TransformService(telegram, FakeState())
    params = TransformParams(
        text=FormattedText("hello"),
        source=Source(chat_id=100, translate=Translate(lang="ru", for_chats=[200])),
        dst_chat_id=300,
    )
    assert service.transform(params).text == "hello"
    assert telegram.calls == []


def test_replace_fragments():
    service = TransformService(FakeTelegram(), FakeState())
    params = TransformParams(
        text=FormattedText("foo world"),
        source=Source(chat_id=100),
        destination=Destination(
            chat_id=200,
            replace_fragments=[ReplaceFragment("foo", "bar"), ReplaceFragment("world", "there")],
        ),
        dst_chat_id=200,
    )
    assert service.transform(params).text == "bar there"


def test_sign():
    service = TransformService(FakeTelegram(), FakeState())
    params = TransformParams(
        text=FormattedText("hello"),
        source=Source(chat_id=100, sign=Target(title="Source", for_chats=[200])),
        dst_chat_id=200,
        with_sources=True,
    )
    result = service.transform(params)
    assert "Source" in result.text
    assert [ent.kind for ent in result.entities] == [EntityKind.BOLD]


def test_sign_skipped_without_with_sources():
    service = TransformService(FakeTelegram(), FakeState())
    params = TransformParams(
        text=FormattedText("hello"),
        source=Source(chat_id=100, sign=Target(title="Source", for_chats=[200])),
        dst_chat_id=200,
    )
    assert service.transform(params).text == "hello"


def _link_params(**overrides):
    values = dict(
        text=FormattedText("hello"),
        source=Source(chat_id=100, link=Target(title="Orig", for_chats=[200])),
        dst_chat_id=200,
        src_chat_id=100,
        src_message_id=1,
        with_sources=True,
    )
    values.update(overrides)
    return TransformParams(**values)


def test_link():
    telegram = FakeTelegram(get_message_link=MessageLink("https://example.com/c/100/1"))
    service = TransformService(telegram, FakeState())
    result = service.transform(_link_params())
    assert "Orig" in result.text
    assert telegram.calls == [("get_message_link", (100, 1, False))]


@pytest.mark.parametrize("response", [RuntimeError("boom"), MessageLink("")])
def test_link_failure_skipped(response):
    service = TransformService(FakeTelegram(get_message_link=response), FakeState())
    assert service.transform(_link_params()).text == "hello"


def _prev_params():
    return TransformParams(
        text=FormattedText("hello"),
        source=Source(chat_id=100, prev=Target(title="Prev", for_chats=[200])),
        dst_chat_id=200,
        prev_message_id=50,
        with_sources=True,
    )


def test_prev_link():
    telegram = FakeTelegram(get_message_link=MessageLink("https://example.com/c/200/50"))
    service = TransformService(telegram, FakeState())
    result = service.transform(_prev_params())
    assert "Prev" in result.text
    assert telegram.calls == [("get_message_link", (200, 50, False))]


def test_prev_link_error_skipped():
    service = TransformService(FakeTelegram(get_message_link=RuntimeError("boom")), FakeState())
    assert service.transform(_prev_params()).text == "hello"


def test_auto_answer():
    def answer(chat_id, message_id, data):
        if (chat_id, message_id) == (100, 1):
            return CallbackQueryAnswer("Answered!")
        return None

    service = TransformService(FakeTelegram(get_callback_query_answer=answer), FakeState())
    params = TransformParams(
        text=FormattedText("hello"),
        source=Source(chat_id=100, auto_answer=True),
        src_chat_id=100,
        src_message_id=1,
        dst_chat_id=200,
        reply_markup=b"\x01\x02",
    )
    assert "Answered!" in service.transform(params).text


def test_auto_answer_without_reply_markup_skipped():
    telegram = FakeTelegram()
    service = TransformService(telegram, FakeState())
    params = TransformParams(
        text=FormattedText("hello"), source=Source(chat_id=100, auto_answer=True), dst_chat_id=200
    )
    assert service.transform(params).text == "hello"
    assert telegram.calls == []


@pytest.mark.parametrize("response", [RuntimeError("boom"), CallbackQueryAnswer(""), None])
def test_auto_answer_invalid_answer_keeps_text(response):
    service = TransformService(FakeTelegram(get_callback_query_answer=response), FakeState())
    params = TransformParams(
        text=FormattedText("hello"),
        source=Source(chat_id=100, auto_answer=True),
        dst_chat_id=200,
        reply_markup=b"\x01",
    )
    assert service.transform(params).text == "hello"


def test_replace_myself_links_basic_group_skipped():
    telegram = FakeTelegram(get_chat=Chat(id=100, kind=ChatKind.BASIC_GROUP))
    service = TransformService(telegram, FakeState())
    text = FormattedText("hi " + SOURCE_URL, [TextEntity(EntityKind.URL, 3, len(SOURCE_URL))])
    assert service.transform(_myself_params(text)).text == "hi " + SOURCE_URL
    assert [name for name, _ in telegram.calls] == ["get_chat"]


def test_replace_myself_links_get_chat_error():
    service = TransformService(FakeTelegram(get_chat=RuntimeError("boom")), FakeState())
    text = FormattedText("hi " + SOURCE_URL, [TextEntity(EntityKind.URL, 3, len(SOURCE_URL))])
    assert service.transform(_myself_params(text)).text == "hi " + SOURCE_URL


def test_replace_myself_links_no_entities():
    telegram = FakeTelegram()
    service = TransformService(telegram, FakeState())
    assert service.transform(_myself_params(FormattedText("hello"))).text == "hello"
    assert telegram.calls == []


def _resolving_telegram(chat_id=100, link=COPY_URL):
    return FakeTelegram(
        get_chat=Chat(id=chat_id, kind=ChatKind.SUPERGROUP),
        get_message_link_info=MessageLinkInfo(chat_id=chat_id, message=Message(id=5)),
        get_message_link=MessageLink(link),
    )


def test_replace_myself_links_text_url_entity_replaced():
    telegram = _resolving_telegram()
    state = FakeState(get_copied_message_ids=["r1:200:999"], get_new_message_id=777)
    service = TransformService(telegram, state)
    text = FormattedText("see here", [TextEntity(EntityKind.TEXT_URL, 4, 4, url=SOURCE_URL)])
    result = service.transform(_myself_params(text))
    assert len(result.entities) == 1
    assert result.entities[0].kind is EntityKind.TEXT_URL
    assert result.entities[0].url == COPY_URL
    assert ("get_message_link_info", (SOURCE_URL,)) in telegram.calls
    assert ("get_message_link", (200, 777, False)) in telegram.calls
    assert text.entities[0].url == SOURCE_URL


def test_replace_myself_links_plain_url_replaced():
    state = FakeState(get_copied_message_ids=["r1:200:999"], get_new_message_id=777)
    service = TransformService(_resolving_telegram(), state)
    original = _url_text(SOURCE_URL)
    result = service.transform(_myself_params(original))
    assert result.text == COPY_URL
    assert result.entities[0].length == len_utf16(encode_utf16(COPY_URL))
    assert original.text == SOURCE_URL
    assert state.calls == [
        ("get_copied_message_ids", (100, 5)),
        ("get_new_message_id", (200, 999)),
    ]


def test_replace_myself_links_negative_dst_chat_id():
    telegram = _resolving_telegram(chat_id=-100, link="https://example.com/c/-200/777")
    state = FakeState(get_copied_message_ids=["r1:-200:999"], get_new_message_id=777)
    service = TransformService(telegram, state)
    result = service.transform(_myself_params(_url_text(SOURCE_URL), src=-100, dst=-200))
    assert result.text == "https://example.com/c/-200/777"
    assert ("get_message_link", (-200, 777, False)) in telegram.calls
    assert ("get_new_message_id", (-200, 999)) in state.calls


def test_replace_myself_links_external_link_deleted():
    telegram = FakeTelegram(
        get_chat=SUPERGROUP,
        get_message_link_info=MessageLinkInfo(chat_id=999, message=Message(id=5)),
    )
    service = TransformService(telegram, FakeState())
    result = service.transform(_myself_params(_url_text(SOURCE_URL), delete_external=True))
    assert DELETED_LINK in result.text
    assert result.entities[0].kind is EntityKind.STRIKETHROUGH
    assert result.entities[0].length == len_utf16(encode_utf16(DELETED_LINK))


def test_replace_myself_links_external_link_kept_without_delete():
    telegram = FakeTelegram(get_chat=SUPERGROUP, get_message_link_info=MessageLinkInfo(chat_id=999))
    service = TransformService(telegram, FakeState())
    assert service.transform(_myself_params(_url_text(SOURCE_URL))).text == SOURCE_URL


def test_replace_myself_links_link_info_error_skipped():
    telegram = FakeTelegram(get_chat=SUPERGROUP, get_message_link_info=RuntimeError("boom"))
    service = TransformService(telegram, FakeState())
    assert service.transform(_myself_params(_url_text(SOURCE_URL))).text == SOURCE_URL


def test_replace_myself_links_non_url_entity_skipped():
    telegram = FakeTelegram(get_chat=SUPERGROUP)
    service = TransformService(telegram, FakeState())
    text = FormattedText("bold text", [TextEntity(EntityKind.BOLD, 0, 4)])
    assert service.transform(_myself_params(text)).text == "bold text"
    assert [name for name, _ in telegram.calls] == ["get_chat"]


def test_replace_myself_links_no_copy_found():
    def message_link(chat_id, message_id, for_album):
        if (chat_id, message_id) == (200, 444):
            return RuntimeError("boom")
        return MessageLink("https://example.com/unexpected")

    telegram = FakeTelegram(
        get_chat=SUPERGROUP,
        get_message_link_info=MessageLinkInfo(chat_id=100, message=Message(id=5)),
        get_message_link=message_link,
    )
    state = FakeState(
        get_copied_message_ids=["r1:300:111", "r1:2001", "r1:200:222", "r1:200:333", "r1:200:bad_num"],
        get_new_message_id=lambda chat_id, tmp: {222: 0, 333: 444, 0: 0}[tmp],
    )
    service = TransformService(telegram, state)
    result = service.transform(_myself_params(_url_text(SOURCE_URL)))
    assert result.text == SOURCE_URL
    assert state.calls == [
        ("get_copied_message_ids", (100, 5)),
        ("get_new_message_id", (200, 222)),
        ("get_new_message_id", (200, 333)),
        ("get_new_message_id", (200, 0)),
    ]


def test_replace_myself_links_empty_url():
    telegram = FakeTelegram(get_chat=SUPERGROUP)
    service = TransformService(telegram, FakeState())
    text = FormattedText("link", [TextEntity(EntityKind.TEXT_URL, 0, 4, url="")])
    assert service.transform(_myself_params(text)).text == "link"
    assert [name for name, _ in telegram.calls] == ["get_chat"]


def test_add_next_link():
    telegram = FakeTelegram(get_message_link=MessageLink("https://example.com/c/200/60"))
    service = TransformService(telegram, FakeState())
    source = Source(chat_id=100, next=Target(title="Next", for_chats=[200]))
    result = service.add_next_link(FormattedText("original"), source, 200, 60)
    assert "Next" in result.text
    assert telegram.calls == [("get_message_link", (200, 60, False))]


def test_add_next_link_without_next_config():
    service = TransformService(FakeTelegram(), FakeState())
    result = service.add_next_link(FormattedText("original"), Source(chat_id=100), 200, 60)
    assert result.text == "original"


def test_add_next_link_chat_not_in_for():
    service = TransformService(FakeTelegram(), FakeState())
    source = Source(chat_id=100, next=Target(title="Next", for_chats=[300]))
    assert service.add_next_link(FormattedText("original"), source, 200, 60).text == "original"


@pytest.mark.parametrize("response", [RuntimeError("boom"), MessageLink(""), None])
def test_add_next_link_invalid_link_keeps_original(response):
    service = TransformService(FakeTelegram(get_message_link=response), FakeState())
    source = Source(chat_id=100, next=Target(title="Next", for_chats=[200]))
    assert service.add_next_link(FormattedText("original"), source, 200, 60).text == "original"


def test_add_text_valid_markdown():
    service = TransformService(FakeTelegram(), FakeState())
    result = service.add_text(FormattedText("hi"), "*bold*")
    assert result.text == "hi\n\nbold"
    assert len(result.entities) == 1
    assert result.entities[0].offset == 4
    assert result.entities[0].length == 4
    assert result.entities[0].kind is EntityKind.BOLD


def test_add_text_fallback_on_parse_error():
    service = TransformService(FakeTelegram(), FakeState())
    result = service.add_text(FormattedText("hi"), "*unclosed")
    assert result.text == "hi\n\n*unclosed"
    assert result.entities == []


def test_add_text_preserves_original():
    service = TransformService(FakeTelegram(), FakeState())
    base = FormattedText("hi", [TextEntity(EntityKind.BOLD, 0, 2)])
    result = service.add_text(base, "tail")
    assert base.text == "hi"
    assert len(base.entities) == 1
    assert result.text == "hi\n\ntail"
    assert len(result.entities) == 1
    assert (result.entities[0].offset, result.entities[0].length) == (0, 2)