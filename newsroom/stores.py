"""Append-only stores for responses, quiz metadata and pronunciation attempts.

Two backends share the same small surface (append + full scan): flat JSON
files under the data directory, and Supabase tables. Writes are
read-modify-write without locking.
"""
import json
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from newsroom.errors import ConfigError
from newsroom.models import PronunciationRecord, QuizRecord, ResponseRecord

log = logging.getLogger(__name__)


def _read_json_list(path):
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        log.error("Could not read %s: %s", path, e)
        return []
    return data if isinstance(data, list) else []


def _write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


# ── JSON files ─────────────────────────────────────────────

class JsonResponseLog:

    def __init__(self, path):
        self.path = Path(path)

    def all(self):
        return [ResponseRecord.from_dict(r) for r in _read_json_list(self.path)]

    def append(self, record):
        rows = _read_json_list(self.path)
        rows.append(record.to_dict())
        _write_json(self.path, rows)


class JsonPronunciationLog:

    def __init__(self, path):
        self.path = Path(path)

    def all(self):
        return [PronunciationRecord.from_dict(r) for r in _read_json_list(self.path)]

    def append(self, record):
        rows = _read_json_list(self.path)
        rows.append(record.to_dict())
        _write_json(self.path, rows)


def quiz_filename(message_id, posted_ms):
    safe_id = re.sub(r"[^A-Za-z0-9_-]", "_", str(message_id))
    return f"quiz_{posted_ms}_{safe_id}.json"


class JsonQuizStore:
    """One file per posted quiz, keyed by (posting time, message id)."""

    def __init__(self, directory):
        self.directory = Path(directory)

    def save(self, record, posted_ms=None):
        posted_ms = posted_ms if posted_ms is not None else int(time.time() * 1000)
        path = self.directory / quiz_filename(record.message_id, posted_ms)
        _write_json(path, record.to_dict())
        log.info("Quiz data saved to %s", path)
        return path

    def all(self):
        if not self.directory.exists():
            return []
        records = []
        for path in sorted(self.directory.glob("quiz_*.json")):
            try:
                records.append(QuizRecord.from_dict(json.loads(path.read_text(encoding="utf-8"))))
            except (json.JSONDecodeError, KeyError) as e:
                log.error("Skipping unreadable quiz file %s: %s", path, e)
        return records

    def get(self, message_id):
        for record in self.all():
            if record.message_id == str(message_id):
                return record
        return None


def save_extracted(data_dir, items, now=None):
    """Snapshot an extraction as extracted_<ms>.json. Returns the path."""
    stamp = int((now if now is not None else time.time()) * 1000)
    path = Path(data_dir) / f"extracted_{stamp}.json"
    _write_json(path, {"items": [item.to_dict() for item in items]})
    log.info("Extracted data saved to %s", path)
    return path


# ── Supabase tables ────────────────────────────────────────

class SupabaseResponseLog:
    table = "quiz_responses"

    def __init__(self, client):
        self.client = client

    def all(self):
        result = self.client.table(self.table).select("*").execute()
        return [
            ResponseRecord(
                user_id=str(row["user_id"]),
                quiz_id=str(row["quiz_id"]),
                question_index=int(row["question_index"]),
                question_text=row.get("question") or "",
                answer_text=row.get("answer") or "",
                is_correct=bool(row["is_correct"]),
                timestamp=row["timestamp"],
            )
            for row in result.data or []
        ]

    def append(self, record):
        self.client.table(self.table).insert({
            "user_id": record.user_id,
            "quiz_id": record.quiz_id,
            "question_index": record.question_index,
            "question": record.question_text,
            "answer": record.answer_text,
            "is_correct": record.is_correct,
            "timestamp": record.timestamp,
        }).execute()


class SupabasePronunciationLog:
    table = "pronunciation_responses"

    def __init__(self, client):
        self.client = client

    def all(self):
        result = self.client.table(self.table).select("*").execute()
        return [
            PronunciationRecord(
                user_id=str(row["user_id"]),
                thread_id=str(row.get("thread_id") or ""),
                original_text=row.get("original_text") or "",
                transcribed_text=row.get("transcribed_text") or "",
                score=int(row.get("score") or 0),
                feedback=row.get("feedback") or "",
                timestamp=row["timestamp"],
            )
            for row in result.data or []
        ]

    def append(self, record):
        self.client.table(self.table).insert({
            "user_id": record.user_id,
            "thread_id": record.thread_id,
            "original_text": record.original_text,
            "transcribed_text": record.transcribed_text,
            "score": record.score,
            "feedback": record.feedback,
            "timestamp": record.timestamp,
        }).execute()


class SupabaseQuizStore:
    table = "quizzes"

    def __init__(self, client):
        self.client = client

    @staticmethod
    def _record(row):
        return QuizRecord.from_dict({
            "messageId": row["message_id"],
            "date": row.get("date"),
            "title": row.get("title"),
            "quiz": row.get("quiz"),
            "vocabulary": row.get("vocabulary"),
        })

    def save(self, record, posted_ms=None):
        self.client.table(self.table).insert({
            "message_id": record.message_id,
            "date": record.posted_at,
            "title": record.title,
            "quiz": [q.to_dict() for q in record.questions],
            "vocabulary": [v.to_dict() for v in record.vocabulary],
        }).execute()
        log.info("Quiz data saved for message %s", record.message_id)

    def all(self):
        result = self.client.table(self.table).select("*").execute()
        return [self._record(row) for row in result.data or []]

    def get(self, message_id):
        result = self.client.table(self.table)\
            .select("*")\
            .eq("message_id", str(message_id))\
            .execute()
        return self._record(result.data[0]) if result.data else None


@dataclass
class Stores:
    responses: object
    quizzes: object
    pronunciations: object


def build_stores(settings, client=None):
    """Stores for the configured backend (`json` or `supabase`)."""
    if settings.store_backend not in ("json", "supabase"):
        raise ConfigError(f"Unknown store backend: {settings.store_backend!r}")
    if settings.store_backend == "supabase":
        if client is None:
            settings.require("supabase_url", "supabase_key")
            client = create_client(settings.supabase_url, settings.supabase_key)
        return Stores(
            responses=SupabaseResponseLog(client),
            quizzes=SupabaseQuizStore(client),
            pronunciations=SupabasePronunciationLog(client),
        )

    data_dir = Path(settings.data_dir)
    return Stores(
        responses=JsonResponseLog(data_dir / "responses.json"),
        quizzes=JsonQuizStore(data_dir / "quizzes"),
        pronunciations=JsonPronunciationLog(data_dir / "pronunciation-responses.json"),
    )
