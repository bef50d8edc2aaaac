"""Leaderboards and statistics derived from the response logs.

Nothing here is persisted; every report recomputes from the records.
Weeks run Sunday to Saturday (UTC) and are named by their Sunday date.
A quiz response counts toward the week its quiz was posted, read from the
timestamp embedded in the quiz message id.
"""
import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone

from newsroom.channel import message_timestamp
from newsroom.errors import InputError
from newsroom.models import PronunciationStat, QuestionStat, UserPronunciationScore, UserScore

log = logging.getLogger(__name__)

ALL_WEEKS = "all"
PREVIEW_LENGTH = 100


def week_start(moment):
    """Sunday (date) of the week containing `moment`, in UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    day = moment.date()
    return day - timedelta(days=(day.weekday() + 1) % 7)


def week_key(moment):
    return week_start(moment).isoformat()


def quiz_week(quiz_id):
    posted = message_timestamp(quiz_id)
    if posted is None:
        return None
    return week_key(datetime.fromtimestamp(posted, tz=timezone.utc))


def _wants_all(week):
    return week is None or week == ALL_WEEKS


def normalize_week(week):
    """Any date (or datetime) string -> the key of the week containing it.

    None and "all" pass through unchanged.
    """
    if _wants_all(week):
        return week
    try:
        return week_key(datetime.fromisoformat(str(week)))
    except ValueError:
        raise InputError(f"Invalid week: {week!r}") from None


def filter_week(records, week):
    if _wants_all(week):
        return list(records)
    week = normalize_week(week)
    return [r for r in records if quiz_week(r.quiz_id) == week]


def available_weeks(records):
    """Distinct quiz weeks, newest first."""
    weeks = {quiz_week(r.quiz_id) for r in records}
    weeks.discard(None)
    return sorted(weeks, reverse=True)


def _parse_timestamp(value):
    try:
        moment = datetime.fromisoformat(str(value))
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def chronological(records):
    return sorted(records, key=lambda r: _parse_timestamp(r.timestamp))


def first_attempts(records):
    """Earliest record per (user, quiz, question), in chronological order."""
    seen = defaultdict(set)
    firsts = []
    for record in chronological(records):
        key = (record.quiz_id, record.question_index)
        if key in seen[record.user_id]:
            continue
        seen[record.user_id].add(key)
        firsts.append(record)
    return firsts


def compute_user_scores(records, week=None):
    totals = {}
    for record in first_attempts(filter_week(records, week)):
        score = totals.setdefault(record.user_id, UserScore(record.user_id, record.user_id))
        score.total_answered += 1
        if record.is_correct:
            score.correct_answers += 1
            score.score += 1

    for score in totals.values():
        if score.total_answered:
            score.accuracy = round(score.correct_answers / score.total_answered * 100, 1)
    return sorted(totals.values(), key=lambda s: (-s.score, -s.accuracy, s.user_id))


def compute_question_stats(records, week=None, ascending=True):
    """Share of correct first attempts per question.

    ascending=True lists the hardest questions first.
    """
    stats = {}
    for record in first_attempts(filter_week(records, week)):
        key = (record.quiz_id, record.question_index)
        stat = stats.setdefault(key, QuestionStat(record.quiz_id, record.question_index, record.question_text))
        stat.attempts += 1
        if record.is_correct:
            stat.correct += 1

    for stat in stats.values():
        stat.correct_percentage = round(stat.correct / stat.attempts * 100, 1)
    ordered = sorted(stats.values(), key=lambda s: (s.quiz_id, s.question_index))
    return sorted(ordered, key=lambda s: s.correct_percentage, reverse=not ascending)


def quiz_summary(records, week=None):
    in_week = filter_week(records, week)
    return {
        "total_responses": len(in_week),
        "unique_users": len({r.user_id for r in in_week}),
        "question_stats": compute_question_stats(records, week),
    }


def compute_pronunciation_scores(records):
    by_user = defaultdict(list)
    for record in chronological(records):
        by_user[record.user_id].append(record)

    scores = []
    for user_id, attempts in by_user.items():
        values = [a.score for a in attempts]
        scores.append(UserPronunciationScore(
            user_id=user_id,
            display_name=user_id,
            average_score=round(sum(values) / len(values), 1),
            best_score=max(values),
            total_attempts=len(values),
            improvement_trend=round(float(values[-1] - values[0]), 1),
        ))
    return sorted(scores, key=lambda s: (-s.average_score, s.user_id))


def preview(text):
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


def compute_pronunciation_stats(records):
    """Per-thread attempt statistics, lowest average (hardest text) first."""
    by_thread = defaultdict(list)
    for record in chronological(records):
        by_thread[record.thread_id].append(record)

    stats = []
    for thread_id, attempts in by_thread.items():
        values = [a.score for a in attempts]
        stats.append(PronunciationStat(
            thread_id=thread_id,
            original_text=preview(attempts[0].original_text),
            attempts=len(values),
            average_score=round(sum(values) / len(values), 1),
            best_score=max(values),
            worst_score=min(values),
        ))
    return sorted(stats, key=lambda s: (s.average_score, s.thread_id))


def pronunciation_summary(records):
    values = [r.score for r in records]
    return {
        "total_attempts": len(values),
        "unique_threads": len({r.thread_id for r in records}),
        "total_users": len({r.user_id for r in records}),
        "overall_average_score": round(sum(values) / len(values), 1) if values else 0,
        "thread_stats": compute_pronunciation_stats(records),
    }


class ScoringEngine:
    """Report entry points over the stores, with display-name lookup."""

    def __init__(self, responses, pronunciations=None, channel=None):
        self.responses = responses
        self.pronunciations = pronunciations
        self.channel = channel

    async def _display_name(self, user_id):
        if self.channel is None:
            return user_id
        try:
            name = await self.channel.lookup_user(user_id)
        except Exception as e:
            log.warning("Could not resolve user %s: %s", user_id, e)
            return user_id
        return name or user_id

    async def resolve_names(self, rows):
        names = await asyncio.gather(*(self._display_name(r.user_id) for r in rows))
        for row, name in zip(rows, names):
            row.display_name = name
        return rows

    def available_weeks(self):
        return available_weeks(self.responses.all())

    async def scores(self, week=None):
        return await self.resolve_names(compute_user_scores(self.responses.all(), week))

    def question_stats(self, week=None, ascending=True):
        return compute_question_stats(self.responses.all(), week, ascending)

    def summary(self, week=None):
        return quiz_summary(self.responses.all(), week)

    def _pronunciation_records(self):
        return self.pronunciations.all() if self.pronunciations is not None else []

    async def pronunciation_scores(self):
        return await self.resolve_names(compute_pronunciation_scores(self._pronunciation_records()))

    def pronunciation_stats(self):
        return compute_pronunciation_stats(self._pronunciation_records())

    def pronunciation_summary(self):
        return pronunciation_summary(self._pronunciation_records())
