import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace

from telegram.error import BadRequest

from newsroom.channel import (
    TelegramChannel,
    format_message_id,
    message_timestamp,
    parse_callback_data,
    render_blocks,
    split_text,
    telegram_message_number,
)

POSTED = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


class FakeBot:

    def __init__(self, reject_markdown=False):
        self.reject_markdown = reject_markdown
        self.sent = []

    async def send_message(self, **kwargs):
        if self.reject_markdown and kwargs.get("parse_mode"):
            raise BadRequest("Can't parse entities")
        self.sent.append(kwargs)
        return SimpleNamespace(date=POSTED, message_id=100 + len(self.sent))

    async def get_chat(self, chat_id):
        if chat_id == 1:
            return SimpleNamespace(full_name="Ada Lovelace", username="ada")
        raise BadRequest("Chat not found")


def test_message_id_round_trip():
    message_id = format_message_id(SimpleNamespace(date=POSTED, message_id=42))
    assert message_id == "1700000000.42"
    assert telegram_message_number(message_id) == 42
    assert message_timestamp(message_id) == 1700000000.0
    assert message_timestamp("abc") is None


def test_callback_data():
    assert parse_callback_data("qa|2|3") == (2, 3)
    assert parse_callback_data("sp|x|1") is None
    assert parse_callback_data("qa|a|b") is None
    assert parse_callback_data(None) is None


def test_render_blocks_builds_keyboard():
    blocks = [
        {"type": "section", "text": "*Title*"},
        {"type": "divider"},
        {"type": "quiz", "index": 0, "question": "*Q1: Why?*", "options": ["Yes", "No"]},
    ]
    text, keyboard = render_blocks(blocks)
    assert text.startswith("*Title*")
    assert "A. Yes" in text and "B. No" in text
    rows = keyboard.inline_keyboard
    assert [row[0].callback_data for row in rows] == ["qa|0|0", "qa|0|1"]
    assert rows[0][0].text == "Q1 · A. Yes"


def test_render_blocks_without_quiz_has_no_keyboard():
    assert render_blocks([{"type": "section", "text": "hi"}]) == ("hi", None)


def test_split_text():
    lines = ["a" * 30] * 5
    chunks = split_text("\n".join(lines), limit=70)
    assert all(len(c) <= 70 for c in chunks)
    assert "\n".join(chunks) == "\n".join(lines)
    assert split_text("") == [""]


def test_post_message_returns_last_chunk_id_with_keyboard():
    bot = FakeBot()
    channel = TelegramChannel(bot, chat_id="-100")
    blocks = [
        {"type": "section", "text": "x" * 4000},
        {"type": "section", "text": "y" * 500},
        {"type": "quiz", "index": 0, "question": "Q", "options": ["a", "b"]},
    ]
    message_id = asyncio.run(channel.post_message(blocks, "fallback", thread_parent="1700000000.7"))

    assert len(bot.sent) == 2
    assert bot.sent[0]["reply_markup"] is None
    assert bot.sent[1]["reply_markup"] is not None
    assert bot.sent[0]["reply_parameters"].message_id == 7
    assert message_id == "1700000000.102"


def test_post_message_falls_back_to_plain_text():
    bot = FakeBot(reject_markdown=True)
    channel = TelegramChannel(bot, chat_id="-100")
    asyncio.run(channel.post_message([{"type": "section", "text": "*bad_markdown"}], "fallback"))
    assert bot.sent[0].get("parse_mode") is None
    assert bot.sent[0]["text"] == "*bad_markdown"


def test_lookup_user():
    channel = TelegramChannel(FakeBot(), chat_id="-100")
    assert asyncio.run(channel.lookup_user("1")) == "Ada Lovelace"
    assert asyncio.run(channel.lookup_user("2")) is None
    assert asyncio.run(channel.lookup_user("not-a-number")) is None
