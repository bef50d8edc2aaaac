import asyncio
import json

import httpx

from newsroom.narration import ElevenLabsNarrator, narration_filename, save_narration


def client_returning(status, content=b"ID3audio"):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(status, content=content)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), seen


def test_synthesize_posts_text_and_returns_bytes():
    client, seen = client_returning(200)
    narrator = ElevenLabsNarrator("secret", voice_id="voice1", client=client)

    audio = asyncio.run(narrator.synthesize("Hello there"))

    assert audio == b"ID3audio"
    request = seen[0]
    assert request.url.path == "/v1/text-to-speech/voice1"
    assert request.headers["xi-api-key"] == "secret"
    assert json.loads(request.content)["text"] == "Hello there"


def test_synthesize_returns_none_on_failure():
    client, _ = client_returning(401, b"unauthorized")
    assert asyncio.run(ElevenLabsNarrator("bad", client=client).synthesize("x")) is None
    assert asyncio.run(ElevenLabsNarrator("").synthesize("x")) is None


def test_narration_file_naming(tmp_path):
    assert narration_filename("AI: big news!", now=2.5) == "AI__big_news__2500.mp3"
    ref = save_narration(b"ID3", "Title", tmp_path, "/audio")
    assert ref.startswith("/audio/Title_")
    assert (tmp_path / ref.rsplit("/", 1)[1]).read_bytes() == b"ID3"
