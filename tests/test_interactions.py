import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace

from newsroom.judge import JudgeResult
from newsroom.interactions import CORRECT_TOAST, REPEAT_TOAST, UNKNOWN_QUIZ_TOAST, InteractionHandler
from newsroom.models import QuizQuestion, QuizRecord
from newsroom.recorder import PronunciationRecorder, ResponseRecorder
from newsroom.stores import JsonPronunciationLog, JsonQuizStore, JsonResponseLog

POSTED = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
QUIZ_ID = "1700000000.5"


class FakeQuery:
    def __init__(self, data, user_id=7, message_id=5):
        self.data = data
        self.from_user = SimpleNamespace(id=user_id)
        self.message = SimpleNamespace(date=POSTED, message_id=message_id)
        self.answers = []

    async def answer(self, text=None, show_alert=False):
        self.answers.append(text)


class FakeJudge:
    async def judge(self, audio, original_text, mime_type="audio/ogg"):
        self.seen = (audio, original_text, mime_type)
        return JudgeResult(transcript="helo world", score=85, feedback="Nice work.")


def make_handler(tmp_path, channel, judge=None):
    quizzes = JsonQuizStore(tmp_path / "quizzes")
    quizzes.save(QuizRecord(QUIZ_ID, "2023-11-14T22:13:20+00:00",
                            [QuizQuestion("Which?", ["red", "blue", "green", "pink"], "blue")]))
    return InteractionHandler(
        bot=None,
        channel=channel,
        quiz_store=quizzes,
        recorder=ResponseRecorder(JsonResponseLog(tmp_path / "responses.json")),
        pronunciation_recorder=PronunciationRecorder(JsonPronunciationLog(tmp_path / "pron.json")),
        judge=judge,
    )


def test_button_tap_is_recorded_once(tmp_path, fake_channel):
    handler = make_handler(tmp_path, fake_channel())

    first = FakeQuery("qa|0|1")
    assert asyncio.run(handler.handle_answer(first)) is True
    assert first.answers == [CORRECT_TOAST]

    again = FakeQuery("qa|0|2")
    assert asyncio.run(handler.handle_answer(again)) is False
    assert again.answers == [REPEAT_TOAST]

    [record] = handler.recorder.store.all()
    assert (record.user_id, record.quiz_id, record.answer_text, record.is_correct) == ("7", QUIZ_ID, "blue", True)


def test_wrong_answer_toast_names_the_answer(tmp_path, fake_channel):
    handler = make_handler(tmp_path, fake_channel())
    query = FakeQuery("qa|0|0", user_id=8)
    asyncio.run(handler.handle_answer(query))
    assert "blue" in query.answers[0]


def test_unknown_quiz(tmp_path, fake_channel):
    handler = make_handler(tmp_path, fake_channel())
    query = FakeQuery("qa|0|0", message_id=999)
    assert asyncio.run(handler.handle_answer(query)) is None
    assert query.answers == [UNKNOWN_QUIZ_TOAST]
    assert handler.recorder.store.all() == []


def test_voice_reply_is_judged_and_recorded(tmp_path, fake_channel):
    class FakeFile:
        async def download_as_bytearray(self):
            return bytearray(b"OggS")

    class FakeVoice:
        mime_type = "audio/ogg"

        async def get_file(self):
            return FakeFile()

    channel = fake_channel()
    judge = FakeJudge()
    handler = make_handler(tmp_path, channel, judge)
    parent = SimpleNamespace(date=POSTED, message_id=5, text="Hello world", caption=None)
    message = SimpleNamespace(
        date=POSTED, message_id=6, reply_to_message=parent,
        voice=FakeVoice(), audio=None, from_user=SimpleNamespace(id=7),
    )

    result = asyncio.run(handler.handle_update(SimpleNamespace(callback_query=None, message=message)))

    assert result is None
    assert judge.seen == (b"OggS", "Hello world", "audio/ogg")
    [record] = handler.pronunciation_recorder.store.all()
    assert (record.thread_id, record.score, record.transcribed_text) == (QUIZ_ID, 85, "helo world")
    assert channel.posts[0]["parent"] == QUIZ_ID
    assert "85/100" in channel.posts[0]["text"]
    assert channel.reactions == [("1700000000.6", "🎉")]
