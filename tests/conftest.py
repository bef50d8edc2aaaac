import pytest


class FakeGenerator:
    """Returns canned replies in order and remembers the prompts."""

    def __init__(self, *replies, error=None):
        self.replies = list(replies)
        self.error = error
        self.prompts = []

    async def generate(self, prompt, system=None, temperature=0.2, timeout=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if not self.replies:
            return None
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeNarrator:

    def __init__(self, audio=b"ID3fake"):
        self.audio = audio
        self.texts = []

    async def synthesize(self, text, voice=None, model=None):
        self.texts.append(text)
        return self.audio


class FakeChannel:
    """Hands out `<posted>.<n>` ids and records every call."""

    def __init__(self, posted_at=1700000000, fail_when=None, names=None):
        self.posted_at = posted_at
        self.fail_when = fail_when or (lambda blocks, parent: False)
        self.names = names or {}
        self.posts = []
        self.uploads = []
        self.reactions = []
        self.counter = 0

    async def post_message(self, blocks, fallback_text, thread_parent=None):
        if self.fail_when(blocks, thread_parent):
            raise RuntimeError("channel unavailable")
        self.counter += 1
        message_id = f"{self.posted_at}.{self.counter}"
        self.posts.append({"id": message_id, "blocks": blocks, "text": fallback_text, "parent": thread_parent})
        return message_id

    async def upload_file(self, data, filename, file_type, thread_parent=None):
        self.uploads.append({"data": data, "filename": filename, "type": file_type, "parent": thread_parent})
        return True

    async def lookup_user(self, user_id):
        name = self.names.get(user_id)
        if isinstance(name, Exception):
            raise name
        return name

    async def add_reaction(self, message_id, emoji):
        self.reactions.append((message_id, emoji))
        return True


class FakeResult:
    def __init__(self, data):
        self.data = data


class FakeTable:
    """Just enough of the supabase query builder: select/eq/insert/execute."""

    def __init__(self, rows):
        self.rows = rows
        self._filters = []
        self._insert = None

    def select(self, columns="*"):
        self._filters = []
        self._insert = None
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def insert(self, row):
        self._insert = row
        return self

    def execute(self):
        if self._insert is not None:
            self.rows.append(dict(self._insert))
            inserted, self._insert = self._insert, None
            return FakeResult([inserted])
        matches = [r for r in self.rows if all(r.get(c) == v for c, v in self._filters)]
        return FakeResult(matches)


class FakeSupabase:

    def __init__(self):
        self.tables = {}

    def table(self, name):
        return FakeTable(self.tables.setdefault(name, []))


@pytest.fixture
def fake_generator():
    return FakeGenerator


@pytest.fixture
def fake_narrator():
    return FakeNarrator


@pytest.fixture
def fake_channel():
    return FakeChannel


@pytest.fixture
def fake_supabase():
    return FakeSupabase()
