import logging
import re
import time
from pathlib import Path

import httpx

log = logging.getLogger(__name__)

ELEVENLABS_URL = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"


class ElevenLabsNarrator:
    """Text-to-speech collaborator. synthesize() returns bytes or None, never raises."""

    def __init__(self, api_key, voice_id="EXAVITQu4vr4xnSDxMaL",
                 model_id="eleven_monolingual_v1", client=None, timeout=60):
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.client = client
        self.timeout = timeout

    async def synthesize(self, text, voice=None, model=None):
        if not self.api_key:
            log.error("ElevenLabs API key is not configured")
            return None

        log.info("Converting text to speech. Text length: %d", len(text))
        payload = {
            "text": text,
            "model_id": model or self.model_id,
            "voice_settings": {"stability": 0.75, "similarity_boost": 0.75},
        }
        headers = {"Accept": "audio/mpeg", "xi-api-key": self.api_key}
        url = ELEVENLABS_URL.format(voice_id=voice or self.voice_id)
        try:
            if self.client is not None:
                response = await self.client.post(url, json=payload, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.error("ElevenLabs error %s: %s", e.response.status_code, e.response.text[:200])
            return None
        except httpx.HTTPError as e:
            log.error("Error converting text to speech: %s", e)
            return None
        return response.content


def narration_filename(title, now=None):
    """`<safe title>_<epoch ms>.mp3`"""
    stamp = int((now if now is not None else time.time()) * 1000)
    safe_title = re.sub(r"[^a-zA-Z0-9]", "_", title)
    return f"{safe_title}_{stamp}.mp3"


def save_narration(audio, title, audio_dir, url_prefix="/audio"):
    """Write narration bytes under audio_dir and return its public path."""
    audio_dir = Path(audio_dir)
    audio_dir.mkdir(parents=True, exist_ok=True)
    filename = narration_filename(title)
    (audio_dir / filename).write_bytes(audio)
    log.info("Audio file saved to: %s", audio_dir / filename)
    return f"{url_prefix}/{filename}"
