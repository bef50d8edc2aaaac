import logging
from datetime import datetime, timezone

from newsroom.models import PronunciationRecord, ResponseRecord

log = logging.getLogger(__name__)


def utc_now():
    return datetime.now(timezone.utc).isoformat()


class ResponseRecorder:
    """First-attempt-only answer log.

    A (user, quiz, question) triple is answered at most once; later events
    for the same triple are rejected without touching the store. There is no
    lock between the scan and the append.
    """

    def __init__(self, store, clock=utc_now):
        self.store = store
        self.clock = clock

    def already_answered(self, user_id, quiz_id, question_index):
        key = (str(user_id), str(quiz_id), int(question_index))
        return any(r.key == key for r in self.store.all())

    def record(self, event, correct_answer, question_text=""):
        """-> True when stored, False for a repeat answer."""
        if self.already_answered(event.user_id, event.quiz_message_id, event.question_index):
            log.info("User %s already answered question %d of quiz %s",
                     event.user_id, event.question_index, event.quiz_message_id)
            return False

        record = ResponseRecord(
            user_id=str(event.user_id),
            quiz_id=str(event.quiz_message_id),
            question_index=int(event.question_index),
            question_text=question_text,
            answer_text=event.selected_option_text,
            is_correct=event.selected_option_text == correct_answer,
            timestamp=self.clock(),
        )
        self.store.append(record)
        log.info("Recorded answer from %s for %s/%d (correct=%s)",
                 record.user_id, record.quiz_id, record.question_index, record.is_correct)
        return True


class PronunciationRecorder:
    """Every attempt is kept."""

    def __init__(self, store, clock=utc_now):
        self.store = store
        self.clock = clock

    def record(self, user_id, thread_id, original_text, result):
        record = PronunciationRecord(
            user_id=str(user_id),
            thread_id=str(thread_id),
            original_text=original_text,
            transcribed_text=result.transcript,
            score=result.score,
            feedback=result.feedback,
            timestamp=self.clock(),
        )
        self.store.append(record)
        return record
