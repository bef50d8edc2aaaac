import asyncio
from types import SimpleNamespace

import pytest

from newsroom.errors import GenerationError, GenerationTimeout
from newsroom.llm import GeminiGenerator


class Models:
    def __init__(self, text=None, delay=0, error=None):
        self.text = text
        self.delay = delay
        self.error = error
        self.calls = []

    async def generate_content(self, model, contents, config):
        self.calls.append((model, contents, config))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


def generator(models):
    return GeminiGenerator("key", model="gemini-test", client=SimpleNamespace(aio=SimpleNamespace(models=models)))


def test_generate_strips_code_fence():
    models = Models(text='```json\n{"items": []}\n```')
    assert asyncio.run(generator(models).generate("prompt", system="be json")) == '{"items": []}'
    model, contents, config = models.calls[0]
    assert model == "gemini-test" and contents == "prompt"
    assert config.system_instruction == "be json"


def test_generate_empty_reply_is_none():
    assert asyncio.run(generator(Models(text="")).generate("prompt")) is None


def test_generate_timeout():
    with pytest.raises(GenerationTimeout):
        asyncio.run(generator(Models(text="late", delay=1)).generate("prompt", timeout=0.01))


def test_generate_wraps_errors():
    with pytest.raises(GenerationError):
        asyncio.run(generator(Models(error=RuntimeError("429 RESOURCE_EXHAUSTED"))).generate("prompt"))
