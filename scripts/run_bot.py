import asyncio
import logging
from telegram import Bot
from dotenv import load_dotenv

from newsroom.channel import TelegramChannel
from newsroom.config import Settings
from newsroom.interactions import InteractionHandler
from newsroom.judge import GeminiPronunciationJudge
from newsroom.recorder import PronunciationRecorder, ResponseRecorder
from newsroom.stores import build_stores

load_dotenv()

settings = Settings.from_env()
logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
log = logging.getLogger("run_bot")


async def main():
    settings.require("telegram_token", "telegram_chat_id")
    bot = Bot(token=settings.telegram_token)
    channel = TelegramChannel(bot, settings.telegram_chat_id)
    stores = build_stores(settings)

    judge = None
    if settings.gemini_api_key:
        judge = GeminiPronunciationJudge(settings.gemini_api_key, settings.gemini_model)
    else:
        print("⚠️ GEMINI_API_KEY not set, voice replies will be ignored.")

    handler = InteractionHandler(
        bot,
        channel,
        stores.quizzes,
        ResponseRecorder(stores.responses),
        PronunciationRecorder(stores.pronunciations),
        judge,
    )

    # getUpdates does not work while a webhook is registered
    await bot.delete_webhook()
    print("🤖 Listening for quiz answers and voice replies...")

    offset = None
    while True:
        try:
            offset = await handler.poll(offset)
        except Exception:
            log.exception("Polling failed, retrying in 5s")
            await asyncio.sleep(5)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("Stopped.")
