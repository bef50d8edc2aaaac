"""Image and audio uploads that follow a posted message.

Nothing in here raises: a failed step means the attachment is skipped.
"""
import base64
import binascii
import logging
import os
import re
import time
from pathlib import Path
from urllib.parse import urlparse

import httpx

from newsroom.assigner import validate_image_ref

log = logging.getLogger(__name__)

DATA_URI = re.compile(r"^data:([A-Za-z-+/]+);base64,(.+)$", re.DOTALL)
KNOWN_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")
USER_AGENT = "Mozilla/5.0 (compatible; NewsroomBot/1.0)"


def decode_data_uri(ref):
    """-> (mime type, bytes) or None."""
    match = DATA_URI.match(ref)
    if not match:
        return None
    try:
        return match.group(1), base64.b64decode(match.group(2))
    except (binascii.Error, ValueError) as e:
        log.error("Could not decode data URI: %s", e)
        return None


def clean_image_filename(url):
    """Last path segment without the query string, with a known image extension."""
    name = os.path.basename(urlparse(url).path) or f"image_{int(time.time() * 1000)}"
    if not name.lower().endswith(KNOWN_IMAGE_EXTENSIONS):
        name += ".jpg"
    return name


class AttachmentUploader:

    def __init__(self, channel, uploads_dir="public/uploads", audio_dir="public/audio",
                 audio_url_prefix="/audio", download_timeout=15, http_client=None):
        self.channel = channel
        self.uploads_dir = Path(uploads_dir)
        self.audio_dir = Path(audio_dir)
        self.audio_url_prefix = audio_url_prefix
        self.download_timeout = download_timeout
        self.http_client = http_client

    async def _download(self, url):
        headers = {"User-Agent": USER_AGENT}
        if self.http_client is not None:
            response = await self.http_client.get(url, headers=headers, timeout=self.download_timeout,
                                                  follow_redirects=True)
        else:
            async with httpx.AsyncClient(timeout=self.download_timeout, follow_redirects=True) as client:
                response = await client.get(url, headers=headers)
        response.raise_for_status()
        return response.content

    async def attach_image(self, item, message_id):
        ref = item.image_ref
        if not validate_image_ref(ref):
            return False

        if ref.startswith("data:"):
            decoded = decode_data_uri(ref)
            if decoded is None:
                return False
            mime, data = decoded
            extension = mime.split("/")[-1] or "png"
            filename = f"image_{int(time.time() * 1000)}.{extension}"
            try:
                return await self.channel.upload_file(data, filename, "image", message_id)
            except Exception:
                log.exception("Image upload for %r failed", item.title)
                return False

        filename = clean_image_filename(ref)
        local_path = self.uploads_dir / filename
        try:
            data = await self._download(ref)
            self.uploads_dir.mkdir(parents=True, exist_ok=True)
            local_path.write_bytes(data)
            log.info("Downloaded image for %r to %s", item.title, local_path)
            return await self.channel.upload_file(local_path.read_bytes(), filename, "image", message_id)
        except (httpx.HTTPError, OSError) as e:
            log.error("Image attachment for %r failed: %s", item.title, e)
            return False
        except Exception:
            log.exception("Image upload for %r failed", item.title)
            return False
        finally:
            local_path.unlink(missing_ok=True)

    def local_audio_path(self, audio_ref):
        """Public audio path -> file under audio_dir, or None for remote refs."""
        if audio_ref.startswith(("http://", "https://")):
            return None
        prefix = self.audio_url_prefix.rstrip("/") + "/"
        name = audio_ref[len(prefix):] if audio_ref.startswith(prefix) else os.path.basename(audio_ref)
        return self.audio_dir / name

    async def attach_audio(self, item, message_id):
        if not item.audio_ref:
            return False
        path = self.local_audio_path(item.audio_ref)
        if path is None:
            log.info("Remote audio is not supported, skipping %s", item.audio_ref)
            return False
        try:
            data = path.read_bytes()
            return await self.channel.upload_file(data, path.name, "audio", message_id)
        except OSError as e:
            log.error("Audio attachment for %r failed: %s", item.title, e)
            return False
        except Exception:
            log.exception("Audio upload for %r failed", item.title)
            return False

    async def attach_all(self, item, message_id):
        """Upload whatever the item carries. Returns the number uploaded."""
        uploaded = 0
        if item.image_ref and await self.attach_image(item, message_id):
            uploaded += 1
        if item.audio_ref and await self.attach_audio(item, message_id):
            uploaded += 1
        return uploaded
