"""Fill missing item images from the candidate pool.

News items are served first, then the rest, off one shared cursor over the
pool. Items are never reordered and no best-fit matching is attempted.
"""
import logging
import re

log = logging.getLogger(__name__)

IMAGE_HOSTS = (
    "imgur.com",
    "ibb.co",
    "cloudinary.com",
    "postimg.cc",
    "images.unsplash.com",
    "media.giphy.com",
    "pbs.twimg.com",
)

# Hosts that serve images the channel can fetch, used when publishing.
TRUSTED_IMAGE_HOSTS = IMAGE_HOSTS + (
    "dropbox.com",
    "res.cloudinary.com",
    "unsplash.com",
    "giphy.com",
    "githubusercontent.com",
    "beehiiv.com",
    "googleusercontent.com",
    "storage.googleapis.com",
)

IMAGE_EXTENSION = re.compile(r"\.(png|jpg|jpeg|gif|webp)(\?.*)?$", re.IGNORECASE)

SYNTHETIC_SUBSTRINGS = (
    "images.openai.com",
    "openai.com/assets",
    "example.com",
    "placeholder",
    "/og-image.png",
    "stock-photo",
    "generic-image",
)
SYNTHETIC_PREFIXES = ("https://ai-", "https://synthetic-")

EMOJI_PATTERNS = (
    re.compile(r"emoji", re.IGNORECASE),
    re.compile("[\U0001F300-\U0001F6FF]"),
    re.compile(r":[a-z_]+:", re.IGNORECASE),
    re.compile(r"^https?://[^/]+/emoji/", re.IGNORECASE),
)


def looks_like_image_url(url):
    return any(host in url for host in IMAGE_HOSTS) or bool(IMAGE_EXTENSION.search(url))


def is_synthetic_image(ref):
    return any(s in ref for s in SYNTHETIC_SUBSTRINGS) or ref.startswith(SYNTHETIC_PREFIXES)


def is_emoji_image(ref):
    return any(p.search(ref) for p in EMOJI_PATTERNS)


def validate_image_ref(ref):
    """True if the channel can be handed this image (data URI or fetchable URL)."""
    if not ref:
        return False
    if ref.startswith("data:image/"):
        return True
    if (
        "localhost" in ref
        or "127.0.0.1" in ref
        or ref.startswith("file:")
        or "emoji" in ref
        or not ref.startswith("http")
    ):
        log.info("Image ref refused (bad format): %.80s", ref)
        return False
    if not IMAGE_EXTENSION.search(ref) and not any(h in ref for h in TRUSTED_IMAGE_HOSTS):
        log.info("Image ref refused (not recognised as image): %.80s", ref)
        return False
    return True


def assign_images(items, pool):
    """Mutate `items` in place so that image-less items get pool images.

    Returns the number of pool images handed out.
    """
    for item in items:
        if item.image_ref and is_synthetic_image(item.image_ref):
            log.info("Clearing synthetic image for %r: %s", item.title, item.image_ref)
            item.image_ref = None

    cursor = 0
    # ── Pass 1: news, Pass 2: everything else ──
    for news_pass in (True, False):
        for item in items:
            if cursor >= len(pool):
                break
            if item.is_news != news_pass or item.image_ref:
                continue
            item.image_ref = pool[cursor]
            log.info("Assigned image %d to %s item %r", cursor + 1, item.category, item.title)
            cursor += 1

    for item in items:
        if not item.image_ref and item.source_url and looks_like_image_url(item.source_url):
            log.info("Using source URL as image for %r", item.title)
            item.image_ref = item.source_url

    for item in items:
        if item.image_ref and is_emoji_image(item.image_ref):
            log.info("Clearing emoji-like image for %r: %.80s", item.title, item.image_ref)
            item.image_ref = None

    return cursor
