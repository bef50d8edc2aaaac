import asyncio
import logging

from google import genai
from google.genai import types

from newsroom.errors import GenerationError, GenerationTimeout
from newsroom.jsonparse import strip_code_fence

log = logging.getLogger(__name__)


class GeminiGenerator:
    """Text generation collaborator backed by Gemini."""

    def __init__(self, api_key, model="gemini-2.5-flash", client=None):
        self.model = model
        self.client = client or genai.Client(api_key=api_key)

    async def generate(self, prompt, system=None, temperature=0.2, timeout=None):
        """Return the reply text (code fences stripped), or None when empty.

        Raises GenerationTimeout when `timeout` seconds pass first, and
        GenerationError for any other failure of the call.
        """
        config = types.GenerateContentConfig(
            system_instruction=system,
            temperature=temperature,
        )
        call = self.client.aio.models.generate_content(
            model=self.model, contents=prompt, config=config
        )
        try:
            if timeout:
                response = await asyncio.wait_for(call, timeout=timeout)
            else:
                response = await call
        except asyncio.TimeoutError as e:
            raise GenerationTimeout(f"Gemini request timed out after {timeout} seconds") from e
        except Exception as e:
            raise GenerationError(f"Gemini request failed: {e}") from e

        text = response.text
        if not text:
            log.info("Gemini returned an empty reply")
            return None
        return strip_code_fence(text)
