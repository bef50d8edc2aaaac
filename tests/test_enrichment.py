import asyncio
import json

from newsroom.enrichment import Enricher, literalize_correct, parse_quiz_and_vocabulary
from newsroom.models import ContentItem

OPTIONS = ["Alpha", "Beta", "Gamma", "Delta"]


def quiz_reply(correct="Beta"):
    return json.dumps({
        "quiz": [{"question": "Which one?", "options": OPTIONS, "correct": correct}],
        "vocabulary": [{"term": "LLM", "definition": "Large language model"}],
    })


def test_literalize_option_reference():
    assert literalize_correct(OPTIONS, "Option 2") == "Beta"
    assert literalize_correct(OPTIONS, "option 4 ") == "Delta"


def test_literalize_leaves_other_answers_alone():
    assert literalize_correct(OPTIONS, "Gamma") == "Gamma"
    assert literalize_correct(OPTIONS, "Option 7") == "Option 7"
    assert literalize_correct(["Option 1", "x"], "Option 1") == "Option 1"


def test_parse_repairs_indexed_answers():
    quiz, vocabulary = parse_quiz_and_vocabulary(quiz_reply("Option 2"))
    assert quiz[0].correct == OPTIONS[1]
    assert vocabulary[0].term == "LLM"


def test_parse_drops_questions_with_unknown_answer():
    quiz, _ = parse_quiz_and_vocabulary(quiz_reply("Option 9"))
    assert quiz == []


def test_parse_falls_back_to_salvage():
    broken = quiz_reply()[:-3]
    quiz, vocabulary = parse_quiz_and_vocabulary(broken)
    assert [q.question for q in quiz] == ["Which one?"]
    assert [v.term for v in vocabulary] == ["LLM"]


def test_parse_failure_gives_empty_lists():
    assert parse_quiz_and_vocabulary("nothing useful") == ([], [])


def test_enrich_all_isolates_failures(fake_generator, fake_narrator, tmp_path):
    items = [
        ContentItem("news", "Good", "A long enough body"),
        ContentItem("news", "Bad", "Another long body"),
        ContentItem("tools", "Tool", "Not enriched"),
    ]
    generator = fake_generator(quiz_reply(), RuntimeError("quota"))
    narrator = fake_narrator()
    enricher = Enricher(generator, narrator, audio_dir=tmp_path, audio_url_prefix="/audio")

    asyncio.run(enricher.enrich_all(items))

    good, bad, tool = items
    assert len(good.quiz) == 1 and len(good.vocabulary) == 1
    assert bad.quiz == [] and bad.vocabulary == []
    assert tool.quiz == [] and tool.audio_ref is None
    assert good.audio_ref.startswith("/audio/Good_") and good.audio_ref.endswith(".mp3")
    assert (tmp_path / good.audio_ref.split("/")[-1]).read_bytes() == b"ID3fake"
    assert "Good. A long enough body" in narrator.texts


def test_short_bodies_are_not_narrated(fake_generator, fake_narrator, tmp_path):
    item = ContentItem("news", "Tiny", "short")
    narrator = fake_narrator()
    asyncio.run(Enricher(fake_generator(quiz_reply()), narrator, audio_dir=tmp_path).enrich(item))
    assert narrator.texts == []
    assert item.audio_ref is None


def test_failed_synthesis_leaves_audio_unset(fake_generator, fake_narrator, tmp_path):
    item = ContentItem("news", "Quiet", "A body long enough to narrate")
    asyncio.run(Enricher(fake_generator(quiz_reply()), fake_narrator(audio=None), audio_dir=tmp_path).enrich(item))
    assert item.audio_ref is None
    assert len(item.quiz) == 1
