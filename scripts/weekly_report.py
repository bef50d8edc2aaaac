import sys
import asyncio
import logging
from datetime import datetime, timezone
from telegram import Bot
from dotenv import load_dotenv

from newsroom.blocks import section
from newsroom.channel import TelegramChannel
from newsroom.config import Settings
from newsroom.errors import InputError
from newsroom.report import leaderboard_message, week_label
from newsroom.scoring import ScoringEngine, normalize_week, week_key
from newsroom.stores import build_stores

load_dotenv()

settings = Settings.from_env()
logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


async def report(week):
    settings.require("telegram_token", "telegram_chat_id")
    channel = TelegramChannel(Bot(token=settings.telegram_token), settings.telegram_chat_id)
    stores = build_stores(settings)
    engine = ScoringEngine(stores.responses, stores.pronunciations, channel)

    weeks = engine.available_weeks()
    print(f"Weeks with quizzes: {', '.join(weeks) or 'none'}")
    if week != "all" and week not in weeks:
        print(f"No quizzes posted in the week of {week}.")

    scores = await engine.scores(week)
    summary = engine.summary(week)
    pronunciation = await engine.pronunciation_scores()

    msg = leaderboard_message(scores, summary, pronunciation, week)
    await channel.post_message([section(msg)], msg)
    print(f"Leaderboard for {week_label(week)} sent ({len(scores)} players).")

    totals = engine.pronunciation_summary()
    print(f"Pronunciation: {totals['total_attempts']} attempts on {totals['unique_threads']} texts "
          f"by {totals['total_users']} users, avg {totals['overall_average_score']}")
    for stat in totals["thread_stats"]:
        print(f"  🎙️ {stat.original_text[:40]}... → {stat.attempts} tries, "
              f"avg {stat.average_score}, best {stat.best_score}, worst {stat.worst_score}")


if __name__ == "__main__":
    try:
        week = normalize_week(sys.argv[1]) if len(sys.argv) > 1 else week_key(datetime.now(timezone.utc))
    except InputError as e:
        sys.exit(f"❌ {e} (expected YYYY-MM-DD or 'all')")
    asyncio.run(report(week))
