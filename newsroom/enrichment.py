import asyncio
import logging
import re

from newsroom.jsonparse import safe_json_parse, salvage_quiz, salvage_vocabulary
from newsroom.models import QuizQuestion, VocabularyTerm
from newsroom.narration import save_narration

log = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a JSON generator. Return ONLY valid JSON. "
    "No explanations, comments, or extra text. Escape quotes properly."
)

QUIZ_VOCAB_PROMPT = """Content: {content}

Generate exactly 3 quiz questions and 3 vocabulary terms from this content.

Return ONLY valid JSON in this exact format:
{{
  "quiz": [
    {{
      "question": "Question text here",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correct": "Option A"
    }}
  ],
  "vocabulary": [
    {{
      "term": "Term",
      "definition": "Brief definition"
    }}
  ]
}}

Rules:
- Keep options under 60 chars each
- Use simple language
- No special characters or newlines in strings
- Return ONLY the JSON object"""

OPTION_REFERENCE = re.compile(r"^\s*option\s*(\d+)\s*$", re.IGNORECASE)

# Bodies this short are not worth narrating.
MIN_NARRATION_BODY = 10


def literalize_correct(options, correct):
    """Turn an "Option N" answer into the text of options[N-1].

    Answers that already match an option, or whose index is out of range,
    come back unchanged.
    """
    if correct in options:
        return correct
    match = OPTION_REFERENCE.match(correct)
    if match:
        index = int(match.group(1)) - 1
        if 0 <= index < len(options):
            return options[index]
    return correct


def _build_quiz(raw_quiz):
    quiz = []
    for raw in raw_quiz:
        if not isinstance(raw, dict):
            continue
        question, options, correct = raw.get("question"), raw.get("options"), raw.get("correct")
        if not isinstance(question, str) or not isinstance(options, list) or not isinstance(correct, str):
            continue
        options = [str(o) for o in options]
        correct = literalize_correct(options, correct)
        if correct not in options:
            log.warning("Dropping question whose answer is not an option: %r", question)
            continue
        quiz.append(QuizQuestion(question=question, options=options, correct=correct))
    return quiz


def _build_vocabulary(raw_vocabulary):
    return [
        VocabularyTerm(term=str(v["term"]), definition=str(v["definition"]))
        for v in raw_vocabulary
        if isinstance(v, dict) and v.get("term") and v.get("definition")
    ]


def parse_quiz_and_vocabulary(reply):
    """Structured decode first, regex salvage second, empty lists last."""
    parsed = safe_json_parse(reply)
    if isinstance(parsed, dict) and isinstance(parsed.get("quiz"), list) \
            and isinstance(parsed.get("vocabulary"), list):
        raw_quiz, raw_vocabulary = parsed["quiz"], parsed["vocabulary"]
    else:
        log.info("Direct JSON parsing failed, attempting fallback extraction")
        raw_quiz, raw_vocabulary = salvage_quiz(reply), salvage_vocabulary(reply)
    return _build_quiz(raw_quiz), _build_vocabulary(raw_vocabulary)


class Enricher:
    """Adds quiz, vocabulary and narration to news items."""

    def __init__(self, generator, narrator=None, audio_dir="public/audio", audio_url_prefix="/audio"):
        self.generator = generator
        self.narrator = narrator
        self.audio_dir = audio_dir
        self.audio_url_prefix = audio_url_prefix

    async def enrich(self, item):
        if not item.is_news:
            raise ValueError(f"only news items are enriched, got {item.category!r}")
        log.info("Processing news item: %s", item.title)

        content = f"Title: {item.title}\nContent: {item.body}"
        try:
            reply = await self.generator.generate(
                QUIZ_VOCAB_PROMPT.format(content=content), system=SYSTEM_PROMPT, temperature=0.3
            )
            item.quiz, item.vocabulary = parse_quiz_and_vocabulary(reply or "")
        except Exception:
            log.exception("Quiz/vocabulary generation failed for %r", item.title)
            item.quiz, item.vocabulary = [], []
        log.info("%r: %d quiz questions, %d vocabulary terms",
                 item.title, len(item.quiz), len(item.vocabulary))

        await self.narrate(item)
        return item

    async def narrate(self, item):
        if self.narrator is None or len(item.body) <= MIN_NARRATION_BODY:
            return
        try:
            audio = await self.narrator.synthesize(f"{item.title}. {item.body}")
            if audio:
                item.audio_ref = save_narration(audio, item.title, self.audio_dir, self.audio_url_prefix)
        except Exception:
            log.exception("Narration failed for %r", item.title)

    async def enrich_all(self, items):
        """Enrich every news item concurrently; other items pass through untouched."""
        news = [item for item in items if item.is_news]
        await asyncio.gather(*(self.enrich(item) for item in news))
        return items
