import logging

from telegram import Bot

from newsroom.attachments import AttachmentUploader
from newsroom.cache import ExtractionCache, MemoryStore
from newsroom.channel import TelegramChannel
from newsroom.enrichment import Enricher
from newsroom.errors import InputError
from newsroom.extractor import ContentExtractor
from newsroom.llm import GeminiGenerator
from newsroom.narration import ElevenLabsNarrator
from newsroom.publisher import BULK_MODES, Publisher
from newsroom.stores import build_stores, save_extracted

log = logging.getLogger(__name__)


class Pipeline:
    """raw input -> extract -> enrich -> snapshot -> publish"""

    def __init__(self, extractor, enricher, publisher, data_dir=None):
        self.extractor = extractor
        self.enricher = enricher
        self.publisher = publisher
        self.data_dir = data_dir

    @classmethod
    def from_settings(cls, settings):
        settings.require("gemini_api_key", "telegram_token", "telegram_chat_id")
        generator = GeminiGenerator(settings.gemini_api_key, settings.gemini_model)
        cache = ExtractionCache(MemoryStore(settings.cache_ttl), enabled=settings.cache_enabled)
        narrator = None
        if settings.elevenlabs_api_key:
            narrator = ElevenLabsNarrator(
                settings.elevenlabs_api_key, settings.elevenlabs_voice_id, settings.elevenlabs_model_id
            )
        channel = TelegramChannel(Bot(token=settings.telegram_token), settings.telegram_chat_id)
        stores = build_stores(settings)
        uploader = AttachmentUploader(
            channel,
            uploads_dir=settings.uploads_dir,
            audio_dir=settings.audio_dir,
            audio_url_prefix=settings.audio_url_prefix,
            download_timeout=settings.download_timeout,
        )
        return cls(
            extractor=ContentExtractor(generator, cache, timeout=settings.extraction_timeout),
            enricher=Enricher(generator, narrator, settings.audio_dir, settings.audio_url_prefix),
            publisher=Publisher(channel, stores.quizzes, uploader),
            data_dir=settings.data_dir if settings.store_backend == "json" else None,
        )

    async def extract(self, text, urls=(), images=()):
        if not (text or "").strip() and not urls and not images:
            raise InputError("No content provided")
        items = await self.extractor.extract(text or "", urls, images)
        if not items:
            raise InputError("No news, tools, or prompts found in the text")
        await self.enricher.enrich_all(items)
        if self.data_dir is not None:
            save_extracted(self.data_dir, items)
        return items

    async def run(self, text, urls=(), images=(), mode="all"):
        """Extract, enrich and publish. Returns (items, publish results)."""
        if mode not in BULK_MODES:
            raise InputError(f"Unknown publish mode: {mode!r}")
        items = await self.extract(text, urls, images)
        results = await BULK_MODES[mode](self.publisher, items)
        log.info("Published %d of %d items (%s mode)", len(results), len(items), mode)
        return items, results
