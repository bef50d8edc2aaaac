import logging
import re
from dataclasses import dataclass

from google import genai
from google.genai import types

log = logging.getLogger(__name__)

SCORE_PATTERN = re.compile(r"Score:\s*(\d{1,3})\s*/\s*100", re.IGNORECASE)
TRANSCRIPT_PATTERN = re.compile(r"Transcript:\s*(.+)", re.IGNORECASE)

JUDGE_PROMPT = """You are a friendly English pronunciation coach.

The learner was asked to read this text aloud:
"{original}"

Listen to the attached recording and reply in exactly this format:
Transcript: <what the learner actually said>
Score: <0-100>/100
Feedback: <two or three short sentences on what to improve>"""


@dataclass
class JudgeResult:
    transcript: str
    score: int
    feedback: str


def parse_score(text):
    match = SCORE_PATTERN.search(text or "")
    if not match:
        return 0
    return max(0, min(100, int(match.group(1))))


def parse_judgement(text):
    text = (text or "").strip()
    transcript = TRANSCRIPT_PATTERN.search(text)
    feedback = text.split("Feedback:", 1)[1].strip() if "Feedback:" in text else text
    return JudgeResult(
        transcript=transcript.group(1).strip() if transcript else "",
        score=parse_score(text),
        feedback=feedback,
    )


class GeminiPronunciationJudge:
    """Transcribes and scores a voice recording against the text it should match."""

    def __init__(self, api_key, model="gemini-2.5-flash", client=None):
        self.model = model
        self.client = client or genai.Client(api_key=api_key)

    async def judge(self, audio, original_text, mime_type="audio/ogg"):
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[
                JUDGE_PROMPT.format(original=original_text),
                types.Part.from_bytes(data=audio, mime_type=mime_type),
            ],
        )
        result = parse_judgement(response.text)
        log.info("Pronunciation judged: score %d", result.score)
        return result
