MEDALS = ["🥇", "🥈", "🥉"]


def week_label(week):
    return "all time" if week in (None, "all") else f"week of {week}"


def leaderboard_message(scores, summary, pronunciation=None, week=None, top=10):
    """Weekly leaderboard as Telegram Markdown."""
    msg = f"🏆 *QUIZ LEADERBOARD* ({week_label(week)})\n\n"

    if not scores:
        msg += "No quiz answers yet.\n"
    else:
        msg += f"Answers: {summary['total_responses']} | Players: {summary['unique_users']}\n\n"
        for rank, s in enumerate(scores[:top]):
            badge = MEDALS[rank] if rank < len(MEDALS) else f"{rank + 1}."
            msg += f"{badge} *{s.display_name}*: {s.score} pts "
            msg += f"({s.correct_answers}/{s.total_answered}, {s.accuracy:g}%)\n"

    hardest = [q for q in summary.get("question_stats", []) if q.attempts][:3]
    if hardest:
        msg += "\n*Toughest questions:*\n"
        for q in hardest:
            msg += f"  • {q.question.strip('*')}: {q.correct_percentage:g}% correct\n"

    if pronunciation:
        msg += "\n🎙️ *Pronunciation*\n"
        for p in pronunciation[:top]:
            trend = f"+{p.improvement_trend:g}" if p.improvement_trend > 0 else f"{p.improvement_trend:g}"
            msg += f"  • {p.display_name}: avg {p.average_score:g}, best {p.best_score} "
            msg += f"({p.total_attempts} tries, trend {trend})\n"

    return msg
