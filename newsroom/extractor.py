import copy
import logging
import re

from newsroom.assigner import assign_images, looks_like_image_url
from newsroom.jsonparse import safe_json_parse
from newsroom.models import CATEGORIES, ContentItem

log = logging.getLogger(__name__)

URL_PATTERN = re.compile(r"(https?://[^\s]+)")
IMAGE_URL_PATTERN = re.compile(r"(https?://\S+\.(?:png|jpg|jpeg|gif|webp)(?:\?\S*)?)", re.IGNORECASE)

# Emoji and pictograph ranges dropped from titles before comparing them.
EMOJI_RANGES = re.compile(
    "[\U0001F300-\U0001F6FF\u2700-\u27BF\U0001F900-\U0001F9FF\U0001F600-\U0001F64F]"
)
PARENTHETICAL = re.compile(r"\s*\([^)]*\)")
DUPLICATE_TAIL = re.compile(r"\s*duplicate.*$", re.IGNORECASE)

SYSTEM_PROMPT = (
    "You are a JSON extractor. Return ONLY valid JSON. "
    "No explanations, comments, or extra text. Extract real content only."
)

EXTRACTION_PROMPT = """
Extract news, tools, and prompts from this content. Return ONLY valid JSON.

Content: {content}
URLs: {urls}

Return JSON in this exact format:
{{
  "items": [
    {{
      "category": "news",
      "title": "Article title",
      "content": "Brief summary",
      "url": "https://example.com",
      "imageUrl": "https://image.com/pic.jpg"
    }}
  ]
}}

Rules:
- category must be: "news", "tools", or "prompts"
- Only extract real, substantial content
- No duplicates or placeholders
- Keep content under 200 chars
- Use null for missing url/imageUrl
- Include {clipboard_count} clipboard images if relevant
- Return ONLY the JSON object"""


def _unique(values):
    return list(dict.fromkeys(values))


def normalize_title(title):
    title = EMOJI_RANGES.sub("", title).strip()
    title = PARENTHETICAL.sub("", title)
    title = DUPLICATE_TAIL.sub("", title).strip()
    return title.lower()


def dedupe_items(items):
    """Keep the first item for every normalized title, in input order."""
    seen = set()
    unique = []
    for item in items:
        key = normalize_title(item.title)
        if key in seen:
            log.info("Skipping duplicate item: %s", item.title)
            continue
        seen.add(key)
        unique.append(item)
    if len(unique) != len(items):
        log.info("Filtered out %d duplicate items", len(items) - len(unique))
    return unique


def collect_urls(text, urls=()):
    return _unique(URL_PATTERN.findall(text) + list(urls))


def candidate_images(text, urls=(), images=()):
    """Image pool in discovery order: inline image links, image-host URLs, pasted images."""
    all_urls = collect_urls(text, urls)
    inline = IMAGE_URL_PATTERN.findall(text)
    hosted = [u for u in all_urls if looks_like_image_url(u)]
    return _unique(inline + hosted + list(images))


def _text_or_none(value):
    return value if isinstance(value, str) and value else None


def parse_items(reply):
    """Validate the model's `{items: [...]}` reply into ContentItems.

    Unparsable replies give an empty list; malformed entries are dropped.
    """
    parsed = safe_json_parse(reply)
    if not isinstance(parsed, dict) or not isinstance(parsed.get("items"), list):
        log.warning("Extraction reply has no items list")
        return []

    items = []
    for raw in parsed["items"]:
        if not isinstance(raw, dict):
            continue
        category = raw.get("category")
        title = raw.get("title")
        if category not in CATEGORIES or not isinstance(title, str) or not title.strip():
            log.info("Dropping malformed item: %r", raw)
            continue
        body = raw.get("content")
        items.append(ContentItem(
            category=category,
            title=title.strip(),
            body=body if isinstance(body, str) else "",
            source_url=_text_or_none(raw.get("url")),
            image_ref=_text_or_none(raw.get("imageUrl")),
        ))
    return items


class ContentExtractor:

    def __init__(self, generator, cache=None, timeout=30):
        self.generator = generator
        self.cache = cache
        self.timeout = timeout

    async def extract(self, text, urls=(), images=()):
        """Turn pasted text, URLs and images into deduplicated ContentItems.

        A generator timeout or failure propagates; an unparsable reply
        yields an empty list.
        """
        if self.cache is not None:
            cached = self.cache.get(text)
            if cached:
                log.info("Using cached extracted items")
                return copy.deepcopy(cached)

        all_urls = collect_urls(text, urls)
        pool = candidate_images(text, urls, images)
        clipboard_count = sum(1 for img in images if img.startswith("data:"))
        log.info("Found %d candidate images (%d from clipboard), %d URLs",
                 len(pool), clipboard_count, len(all_urls))

        content = text
        if clipboard_count:
            content += f"\n\n[{clipboard_count} image(s) detected from clipboard]"
        prompt = EXTRACTION_PROMPT.format(
            content=content,
            urls=", ".join(all_urls),
            clipboard_count=clipboard_count,
        )

        reply = await self.generator.generate(prompt, system=SYSTEM_PROMPT, timeout=self.timeout)
        if not reply:
            log.info("No content returned from the generator")
            return []

        items = dedupe_items(parse_items(reply))
        assigned = assign_images(items, pool)
        log.info("Extracted %d items, assigned %d images", len(items), assigned)

        if self.cache is not None:
            self.cache.put(text, copy.deepcopy(items))
        return items
