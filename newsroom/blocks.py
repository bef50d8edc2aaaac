"""One block builder shared by every publish path.

A message is a list of plain dict blocks:

    {"type": "section", "text": "..."}
    {"type": "divider"}
    {"type": "context", "text": "..."}
    {"type": "quiz", "index": i, "question": "...", "options": ["..."]}

The channel decides how to render them.
"""

OPTION_LIMIT = 75
DIVIDER = {"type": "divider"}

HEADINGS = {
    "news": "📰 *{title}!*",
    "tools": "🛠️ *Cool Tool Alert: {title}*",
    "prompts": "✨ *Prompt Magic: {title}*",
}

VOCABULARY_HEADING = "*🔍 Key Terminology*"
VOCABULARY_REPLY_HEADING = "*📚 Key Terminology*"
QUIZ_REPLY_HEADING = "*🧠 Test Your Knowledge!*"
QUIZ_PRIVACY_NOTE = "_Your answers will be visible only to you_"

ROUNDUP_HEADINGS = {
    "tools": "🛠️ *Awesome AI Tools Roundup!* 🚀",
    "prompts": "✨ *Magical AI Prompts Collection* 💬",
}
ROUNDUP_ITEM_EMOJI = {"tools": "🔧", "prompts": "💡"}


def truncate_option(text, limit=OPTION_LIMIT):
    if len(text) > limit:
        return text[:limit - 3] + "..."
    return text


def section(text):
    return {"type": "section", "text": text}


def heading(item):
    return HEADINGS[item.category].format(title=item.title)


def vocabulary_blocks(vocabulary, title=VOCABULARY_HEADING):
    if not vocabulary:
        return []
    lines = [f"• *{v.term}*: {v.definition}" for v in vocabulary]
    return [section(title + "\n" + "\n".join(lines)), DIVIDER]


def quiz_blocks(quiz):
    blocks = []
    for i, q in enumerate(quiz):
        blocks.append({
            "type": "quiz",
            "index": i,
            "question": f"*Q{i + 1}: {q.question}*",
            "options": [truncate_option(o) for o in q.options],
        })
    if blocks:
        blocks.append({"type": "context", "text": QUIZ_PRIVACY_NOTE})
    return blocks


class MessageBuilder:
    """Assembles heading, body, vocabulary and quiz blocks for one message."""

    def __init__(self):
        self.blocks = []

    def content(self, item):
        text = f"{heading(item)}\n\n{item.body}"
        if item.source_url:
            text += f"\n\n[Read more]({item.source_url})"
        self.blocks.append(section(text))
        self.blocks.append(DIVIDER)
        return self

    def heading_only(self, text):
        self.blocks.append(section(text))
        return self

    def vocabulary(self, vocabulary, title=VOCABULARY_HEADING):
        self.blocks.extend(vocabulary_blocks(vocabulary, title))
        return self

    def quiz(self, quiz):
        self.blocks.extend(quiz_blocks(quiz))
        return self

    def build(self):
        return list(self.blocks)


def item_blocks(item, with_vocabulary=True, with_quiz=True):
    builder = MessageBuilder().content(item)
    if item.is_news and with_vocabulary:
        builder.vocabulary(item.vocabulary)
    if item.is_news and with_quiz:
        builder.quiz(item.quiz)
    return builder.build()


def vocabulary_reply_blocks(item):
    return MessageBuilder().vocabulary(item.vocabulary, VOCABULARY_REPLY_HEADING).build()


def quiz_reply_blocks(item):
    return MessageBuilder().heading_only(QUIZ_REPLY_HEADING).quiz(item.quiz).build()


def is_substantial(item):
    return len(item.body) >= 100 or bool(item.source_url)


def roundup_blocks(category, items):
    """Combined message for every tools or prompts item; None when nothing is worth posting."""
    if not any(is_substantial(i) for i in items):
        return None
    blocks = [section(ROUNDUP_HEADINGS[category]), DIVIDER]
    emoji = ROUNDUP_ITEM_EMOJI[category]
    for item in items:
        text = f"{emoji} *{item.title}*\n{item.body}"
        if item.source_url:
            text += f"\n[Read more]({item.source_url})"
        blocks.append(section(text))
    return blocks


def fallback_text(item):
    return f"{item.title}\n\n{item.body}"
