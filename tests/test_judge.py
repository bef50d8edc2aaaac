import asyncio
from types import SimpleNamespace

from newsroom.judge import GeminiPronunciationJudge, parse_judgement, parse_score


def test_parse_score():
    assert parse_score("Score: 87/100") == 87
    assert parse_score("score:   5 / 100") == 5
    assert parse_score("no score here") == 0
    assert parse_score(None) == 0


def test_parse_judgement():
    result = parse_judgement("Transcript: hello wold\nScore: 72/100\nFeedback: Stress the second word.")
    assert result.transcript == "hello wold"
    assert result.score == 72
    assert result.feedback == "Stress the second word."


def test_judge_sends_audio_part():
    class Models:
        async def generate_content(self, model, contents):
            self.contents = contents
            return SimpleNamespace(text="Transcript: hi\nScore: 90/100\nFeedback: Great.")

    models = Models()
    client = SimpleNamespace(aio=SimpleNamespace(models=models))
    result = asyncio.run(GeminiPronunciationJudge("key", client=client).judge(b"OggS", "hi"))

    assert result.score == 90
    assert "hi" in models.contents[0]
    assert models.contents[1].inline_data.data == b"OggS"
