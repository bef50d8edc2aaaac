import sys
import asyncio
import logging
from dotenv import load_dotenv

from newsroom.config import Settings
from newsroom.errors import NewsroomError
from newsroom.pipeline import Pipeline
from newsroom.publisher import BULK_MODES

load_dotenv()

settings = Settings.from_env()
logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

USAGE = f"Usage: python scripts/extract_and_post.py <file> [{'|'.join(BULK_MODES)}]"


def print_items(items):
    for i, item in enumerate(items, 1):
        print(f"\n[{i}] {item.category.upper()}: {item.title}")
        print(f"    {item.body[:120]}")
        if item.source_url:
            print(f"    🔗 {item.source_url}")
        if item.image_ref:
            print(f"    🖼️  {item.image_ref[:80]}")
        if item.audio_ref:
            print(f"    🔊 {item.audio_ref}")
        if item.quiz:
            print(f"    🧠 {len(item.quiz)} quiz questions, 📚 {len(item.vocabulary)} terms")


async def main(filepath, mode):
    with open(filepath, "r", encoding="utf-8") as f:
        text = f.read()

    pipeline = Pipeline.from_settings(settings)

    print("\n--- Extracting and enriching ---")
    items = await pipeline.extract(text)
    print(f"Found {len(items)} items.")
    print_items(items)

    confirm = input(f"\nPublish in '{mode}' mode? (y/n): ").strip().lower()
    if confirm != "y":
        print("Skipped.")
        return

    print("\n--- Publishing ---")
    results = await BULK_MODES[mode](pipeline.publisher, items)
    for r in results:
        label = r.title or f"{r.count} {r.category}"
        print(f"  ✅ {r.action}: {label} → {r.message_id}")

    expected = sum(1 for i in items if i.is_news) + len({i.category for i in items if not i.is_news})
    if mode == "replies":
        expected = sum(1 for i in items if i.is_news and (i.quiz or i.vocabulary))
    failed = expected - len(results)
    print(f"\nDone. {len(results)} posted, {max(failed, 0)} failed or skipped.")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)
    mode = sys.argv[2] if len(sys.argv) > 2 else "all"
    if mode not in BULK_MODES:
        print(USAGE)
        sys.exit(1)
    try:
        asyncio.run(main(sys.argv[1], mode))
    except NewsroomError as e:
        print(f"❌ {e}")
        sys.exit(1)
