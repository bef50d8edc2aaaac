import logging
from typing import List, Optional, Protocol

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup, ReplyParameters
from telegram.error import BadRequest, TelegramError

log = logging.getLogger(__name__)

MESSAGE_LIMIT = 4096
DIVIDER_TEXT = "━━━━━━━━━━━━━━"
BUTTON_LABEL_LIMIT = 60
OPTION_LETTERS = "ABCDEFGH"


class ChannelPublisher(Protocol):
    async def post_message(self, blocks: List[dict], fallback_text: str,
                           thread_parent: Optional[str] = None) -> str: ...

    async def upload_file(self, data: bytes, filename: str, file_type: str,
                          thread_parent: Optional[str] = None) -> bool: ...

    async def lookup_user(self, user_id: str) -> Optional[str]: ...

    async def add_reaction(self, message_id: str, emoji: str) -> bool: ...


def format_message_id(message):
    """`<unix seconds>.<message_id>` so the posting time travels with the id."""
    return f"{int(message.date.timestamp())}.{message.message_id}"


def telegram_message_number(message_id):
    return int(str(message_id).rsplit(".", 1)[-1])


def message_timestamp(message_id):
    """Posting time (unix seconds) embedded in a message id, or None."""
    head = str(message_id).split(".", 1)[0]
    try:
        return float(head)
    except ValueError:
        return None


def quiz_callback_data(question_index, option_index):
    return f"qa|{question_index}|{option_index}"


def parse_callback_data(data):
    """`qa|q|o` -> (q, o); anything else -> None."""
    parts = (data or "").split("|")
    if len(parts) != 3 or parts[0] != "qa":
        return None
    try:
        return int(parts[1]), int(parts[2])
    except ValueError:
        return None


def render_blocks(blocks):
    """Blocks -> (Markdown text, inline keyboard or None)."""
    parts = []
    rows = []
    for block in blocks:
        kind = block["type"]
        if kind == "divider":
            parts.append(DIVIDER_TEXT)
        elif kind in ("section", "context"):
            parts.append(block["text"])
        elif kind == "quiz":
            i = block["index"]
            lines = [block["question"]]
            lines += [f"{OPTION_LETTERS[j]}. {opt}" for j, opt in enumerate(block["options"])]
            parts.append("\n".join(lines))
            for j, opt in enumerate(block["options"]):
                label = f"Q{i + 1} · {OPTION_LETTERS[j]}. {opt}"
                if len(label) > BUTTON_LABEL_LIMIT:
                    label = label[:BUTTON_LABEL_LIMIT - 3] + "..."
                rows.append([InlineKeyboardButton(label, callback_data=quiz_callback_data(i, j))])
        else:
            log.warning("Unknown block type %r ignored", kind)
    keyboard = InlineKeyboardMarkup(rows) if rows else None
    return "\n\n".join(parts), keyboard


def split_text(text, limit=MESSAGE_LIMIT):
    """Split on line boundaries into chunks of at most `limit` characters."""
    chunks = []
    current, size = [], 0
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append("\n".join(current))
                current, size = [], 0
            chunks.append(line[:limit])
            line = line[limit:]
        added = len(line) + (1 if current else 0)
        if current and size + added > limit:
            chunks.append("\n".join(current))
            current, size = [], 0
            added = len(line)
        current.append(line)
        size += added
    if current or not chunks:
        chunks.append("\n".join(current))
    return chunks


class TelegramChannel:
    """ChannelPublisher over a python-telegram-bot Bot and one chat."""

    def __init__(self, bot: Bot, chat_id):
        self.bot = bot
        self.chat_id = chat_id

    def _reply_to(self, thread_parent):
        if not thread_parent:
            return None
        return ReplyParameters(message_id=telegram_message_number(thread_parent))

    async def _send(self, text, reply_markup=None, thread_parent=None):
        try:
            return await self.bot.send_message(
                chat_id=self.chat_id,
                text=text,
                parse_mode="Markdown",
                reply_markup=reply_markup,
                reply_parameters=self._reply_to(thread_parent),
            )
        except BadRequest as e:
            log.warning("Markdown rejected (%s), sending as plain text", e)
            return await self.bot.send_message(
                chat_id=self.chat_id,
                text=text,
                reply_markup=reply_markup,
                reply_parameters=self._reply_to(thread_parent),
            )

    async def post_message(self, blocks, fallback_text, thread_parent=None):
        text, keyboard = render_blocks(blocks)
        if not text.strip():
            text = fallback_text
        chunks = split_text(text)
        message = None
        for n, chunk in enumerate(chunks):
            last = n == len(chunks) - 1
            message = await self._send(chunk, keyboard if last else None, thread_parent)
        return format_message_id(message)

    async def upload_file(self, data, filename, file_type, thread_parent=None):
        reply = self._reply_to(thread_parent)
        try:
            if file_type == "image":
                await self.bot.send_photo(chat_id=self.chat_id, photo=data, filename=filename,
                                          reply_parameters=reply)
            elif file_type == "audio":
                await self.bot.send_audio(chat_id=self.chat_id, audio=data, filename=filename,
                                          reply_parameters=reply)
            else:
                await self.bot.send_document(chat_id=self.chat_id, document=data, filename=filename,
                                             reply_parameters=reply)
        except TelegramError as e:
            log.error("Upload of %s failed: %s", filename, e)
            return False
        return True

    async def lookup_user(self, user_id):
        try:
            chat = await self.bot.get_chat(int(user_id))
        except (TelegramError, ValueError) as e:
            log.info("Could not resolve user %s: %s", user_id, e)
            return None
        return chat.full_name or chat.username

    async def add_reaction(self, message_id, emoji):
        try:
            return await self.bot.set_message_reaction(
                chat_id=self.chat_id,
                message_id=telegram_message_number(message_id),
                reaction=emoji,
            )
        except TelegramError as e:
            log.info("Reaction %s on %s failed: %s", emoji, message_id, e)
            return False
