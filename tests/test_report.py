from newsroom.models import QuestionStat, UserPronunciationScore, UserScore
from newsroom.report import leaderboard_message


def test_leaderboard_message():
    scores = [UserScore("1", "Ada", 3, 4, 3, 75.0), UserScore("2", "Bo", 1, 1, 1, 100.0)]
    summary = {"total_responses": 5, "unique_users": 2,
               "question_stats": [QuestionStat("q", 0, "Why?", 2, 1, 50.0)]}
    pron = [UserPronunciationScore("1", "Ada", 80.5, 90, 3, 12.0)]

    msg = leaderboard_message(scores, summary, pron, week="2023-11-12")

    assert "week of 2023-11-12" in msg
    assert "🥇 *Ada*: 3 pts (3/4, 75%)" in msg
    assert "🥈 *Bo*" in msg
    assert "Why?: 50% correct" in msg
    assert "trend +12" in msg


def test_empty_leaderboard():
    msg = leaderboard_message([], {"total_responses": 0, "unique_users": 0, "question_stats": []})
    assert "all time" in msg
    assert "No quiz answers yet." in msg
