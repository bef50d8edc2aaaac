"""Two-stage parsing of model replies: structured decode, then regex salvage."""
import json
import logging
import re

log = logging.getLogger(__name__)

_LEADING_JUNK = re.compile(r"^[^{\[]*")
_TRAILING_JUNK = re.compile(r"[^}\]]*$")
_CONTROL_CHARS = re.compile(r"[\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F-\u009F]")
_OBJECT = re.compile(r"\{[\s\S]*\}")
_ARRAY = re.compile(r"\[[\s\S]*\]")

_QUIZ_PATTERN = re.compile(
    r'"question":\s*"([^"]+)"[^}]*"options":\s*\[([^\]]+)\][^}]*"correct":\s*"([^"]+)"'
)
_VOCAB_PATTERN = re.compile(r'"term":\s*"([^"]+)"[^}]*"definition":\s*"([^"]+)"')
_QUOTED = re.compile(r'"([^"]+)"')


def strip_code_fence(text):
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0]
    return text.strip()


def clean_json_string(text):
    text = text.strip()
    text = _LEADING_JUNK.sub("", text)
    text = _TRAILING_JUNK.sub("", text)
    text = _CONTROL_CHARS.sub("", text)
    text = text.replace("\u201c", '"').replace("\u201d", '"')
    text = text.replace("\u2018", "'").replace("\u2019", "'")
    return text


def safe_json_parse(text):
    """Parse JSON out of a model reply. Returns None when nothing decodes."""
    if not text:
        return None
    try:
        return json.loads(clean_json_string(text))
    except json.JSONDecodeError as e:
        log.debug("Direct JSON parse failed: %s", e)

    for pattern in (_OBJECT, _ARRAY):
        match = pattern.search(text)
        if not match:
            continue
        try:
            return json.loads(clean_json_string(match.group(0)))
        except json.JSONDecodeError as e:
            log.debug("JSON extraction failed: %s", e)

    log.warning("Could not parse JSON from reply: %s...", text[:200])
    return None


def salvage_quiz(text):
    """Pull quiz questions out of a reply that would not decode."""
    quiz = []
    for question, options_raw, correct in _QUIZ_PATTERN.findall(text or ""):
        options = _QUOTED.findall(options_raw)
        if question and len(options) == 4 and correct:
            quiz.append({"question": question, "options": options, "correct": correct})
    return quiz


def salvage_vocabulary(text):
    return [
        {"term": term, "definition": definition}
        for term, definition in _VOCAB_PATTERN.findall(text or "")
        if term and definition
    ]
