"""Turns Telegram updates into recorded answers and pronunciation attempts."""
import logging

from telegram.error import TelegramError

from newsroom.blocks import section
from newsroom.channel import format_message_id, parse_callback_data
from newsroom.models import AnswerEvent

log = logging.getLogger(__name__)

CORRECT_TOAST = "✅ Correct!"
INCORRECT_TOAST = "❌ Incorrect! The answer is: {correct}"
REPEAT_TOAST = "You already answered this question. Only your first answer counts."
UNKNOWN_QUIZ_TOAST = "This quiz is no longer available."


class InteractionHandler:

    def __init__(self, bot, channel, quiz_store, recorder,
                 pronunciation_recorder=None, judge=None):
        self.bot = bot
        self.channel = channel
        self.quiz_store = quiz_store
        self.recorder = recorder
        self.pronunciation_recorder = pronunciation_recorder
        self.judge = judge

    async def handle_update(self, update):
        if update.callback_query:
            await self.handle_answer(update.callback_query)
        elif update.message and (update.message.voice or update.message.audio):
            await self.handle_voice(update.message)

    async def handle_answer(self, query):
        """Record a quiz button tap and answer it with a private toast."""
        parsed = parse_callback_data(query.data)
        if parsed is None or query.message is None:
            await query.answer()
            return None
        question_index, option_index = parsed
        quiz_id = format_message_id(query.message)

        quiz = self.quiz_store.get(quiz_id)
        if quiz is None or question_index >= len(quiz.questions):
            log.warning("No quiz data for message %s", quiz_id)
            await query.answer(UNKNOWN_QUIZ_TOAST, show_alert=True)
            return None
        question = quiz.questions[question_index]
        if option_index >= len(question.options):
            await query.answer(UNKNOWN_QUIZ_TOAST, show_alert=True)
            return None

        event = AnswerEvent(
            user_id=str(query.from_user.id),
            quiz_message_id=quiz_id,
            question_index=question_index,
            selected_option_text=question.options[option_index],
        )
        accepted = self.recorder.record(event, question.correct, question.question)
        if not accepted:
            await query.answer(REPEAT_TOAST, show_alert=True)
        elif event.selected_option_text == question.correct:
            await query.answer(CORRECT_TOAST, show_alert=True)
        else:
            await query.answer(INCORRECT_TOAST.format(correct=question.correct), show_alert=True)
        return accepted

    async def handle_voice(self, message):
        """Judge a voice reply to a published item and post feedback in the thread."""
        parent = message.reply_to_message
        if parent is None or self.judge is None:
            return None
        original_text = parent.text or parent.caption or ""
        thread_id = format_message_id(parent)
        media = message.voice or message.audio

        file = await media.get_file()
        audio = bytes(await file.download_as_bytearray())
        result = await self.judge.judge(audio, original_text, media.mime_type or "audio/ogg")

        if self.pronunciation_recorder is not None:
            self.pronunciation_recorder.record(message.from_user.id, thread_id, original_text, result)

        text = f"🎙️ *Pronunciation score: {result.score}/100*\n\n{result.feedback}"
        await self.channel.post_message([section(text)], text, thread_id)
        await self.channel.add_reaction(format_message_id(message), "🎉" if result.score >= 80 else "👍")
        return result

    async def poll(self, offset=None, timeout=30):
        """Fetch one batch of updates and handle each. Returns the next offset."""
        updates = await self.bot.get_updates(
            offset=offset, timeout=timeout, allowed_updates=["callback_query", "message"]
        )
        for update in updates:
            try:
                await self.handle_update(update)
            except TelegramError as e:
                log.error("Telegram error while handling update %s: %s", update.update_id, e)
            except Exception:
                log.exception("Handling update %s failed", update.update_id)
            offset = update.update_id + 1
        return offset
