import asyncio
import logging
import time
from datetime import datetime, timezone

from newsroom import blocks as b
from newsroom.channel import message_timestamp
from newsroom.errors import PublishError
from newsroom.models import PublishResult, QuizRecord

log = logging.getLogger(__name__)


class Publisher:
    """Posts items to a channel: primary message first, attachments after."""

    def __init__(self, channel, quiz_store=None, uploader=None):
        self.channel = channel
        self.quiz_store = quiz_store
        self.uploader = uploader

    async def _post(self, blocks, fallback, thread_parent=None):
        try:
            return await self.channel.post_message(blocks, fallback, thread_parent)
        except Exception as e:
            raise PublishError(f"Posting message failed: {e}") from e

    def _save_quiz(self, item, message_id):
        if self.quiz_store is None or not item.quiz:
            return
        posted = message_timestamp(message_id) or time.time()
        record = QuizRecord(
            message_id=message_id,
            posted_at=datetime.fromtimestamp(posted, tz=timezone.utc).isoformat(),
            questions=list(item.quiz),
            vocabulary=list(item.vocabulary),
            title=item.title,
        )
        try:
            self.quiz_store.save(record, posted_ms=int(posted * 1000))
        except Exception:
            log.exception("Saving quiz metadata for %r failed", item.title)

    async def _attach(self, item, message_id):
        if self.uploader is None:
            return
        try:
            await self.uploader.attach_all(item, message_id)
        except Exception:
            log.exception("Attachments for %r failed", item.title)

    async def publish(self, item, with_vocabulary=True, with_quiz=True):
        """Post one item and return its message id.

        Raises PublishError when the primary message cannot be posted.
        Attachment failures only get logged.
        """
        blocks = b.item_blocks(item, with_vocabulary=with_vocabulary, with_quiz=with_quiz)
        message_id = await self._post(blocks, b.fallback_text(item))
        item.published_message_id = message_id
        log.info("Posted %s item %r as %s", item.category, item.title, message_id)

        if item.is_news and with_quiz:
            self._save_quiz(item, message_id)
        await self._attach(item, message_id)
        return message_id

    async def publish_threaded_extras(self, item, parent_message_id=None):
        """Post vocabulary and quiz as replies under the item's message.

        Posts the item first when it has no message yet. Returns the id quiz
        answers will reference (the quiz reply), or None when there is no quiz.
        """
        parent = parent_message_id or item.published_message_id
        if not parent:
            parent = await self.publish(item, with_vocabulary=False, with_quiz=False)

        if item.vocabulary:
            try:
                await self._post(b.vocabulary_reply_blocks(item), f"Key terms: {item.title}", parent)
            except PublishError as e:
                log.error("Vocabulary reply for %r failed: %s", item.title, e)

        if not item.quiz:
            return None
        quiz_id = await self._post(b.quiz_reply_blocks(item), f"Quiz: {item.title}", parent)
        self._save_quiz(item, quiz_id)
        log.info("Posted quiz reply for %r as %s", item.title, quiz_id)
        return quiz_id

    async def publish_roundup(self, category, items):
        blocks = b.roundup_blocks(category, items)
        if blocks is None:
            log.info("No substantial %s to post, skipping roundup", category)
            return None
        message_id = await self._post(blocks, b.ROUNDUP_HEADINGS[category])
        for item in items:
            item.published_message_id = message_id
        return PublishResult(category=category, action="roundup", count=len(items), message_id=message_id)

    # ── bulk modes ────────────────────────────────────────

    async def _isolated(self, label, coro):
        try:
            return await coro
        except Exception:
            log.exception("Publishing %s failed", label)
            return None

    async def _gather(self, jobs):
        results = await asyncio.gather(*(self._isolated(label, coro) for label, coro in jobs))
        return [r for r in results if r is not None]

    async def _post_news(self, item, action, with_extras):
        message_id = await self.publish(item, with_vocabulary=with_extras, with_quiz=with_extras)
        return PublishResult(category=item.category, action=action, title=item.title, message_id=message_id)

    def _roundup_jobs(self, items):
        jobs = []
        for category in ("tools", "prompts"):
            group = [i for i in items if i.category == category]
            if group:
                jobs.append((f"{category} roundup", self.publish_roundup(category, group)))
        return jobs

    async def post_all(self, items):
        """News with inline vocabulary and quiz, then tool and prompt roundups."""
        jobs = [(repr(i.title), self._post_news(i, "posted", True)) for i in items if i.is_news]
        return await self._gather(jobs + self._roundup_jobs(items))

    async def post_extracted_only(self, items):
        jobs = [(repr(i.title), self._post_news(i, "posted_without_extras", False))
                for i in items if i.is_news]
        return await self._gather(jobs + self._roundup_jobs(items))

    async def _post_extras(self, item):
        quiz_id = await self.publish_threaded_extras(item)
        return PublishResult(category=item.category, action="extras_replied", title=item.title,
                             message_id=quiz_id or item.published_message_id)

    async def post_quiz_vocab_as_replies(self, items):
        jobs = [(repr(i.title), self._post_extras(i))
                for i in items if i.is_news and (i.quiz or i.vocabulary)]
        return await self._gather(jobs)


BULK_MODES = {
    "all": Publisher.post_all,
    "extracted": Publisher.post_extracted_only,
    "replies": Publisher.post_quiz_vocab_as_replies,
}
