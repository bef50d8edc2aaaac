"""Data model shared by the extraction, publishing and scoring halves."""
from dataclasses import asdict, dataclass, field
from typing import List, Optional

CATEGORIES = ("news", "tools", "prompts")


@dataclass
class QuizQuestion:
    question: str
    options: List[str]
    correct: str

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        return cls(
            question=data["question"],
            options=list(data["options"]),
            correct=data["correct"],
        )


@dataclass
class VocabularyTerm:
    term: str
    definition: str

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        return cls(term=data["term"], definition=data["definition"])


@dataclass
class ContentItem:
    category: str
    title: str
    body: str
    source_url: Optional[str] = None
    image_ref: Optional[str] = None
    audio_ref: Optional[str] = None
    quiz: List[QuizQuestion] = field(default_factory=list)
    vocabulary: List[VocabularyTerm] = field(default_factory=list)
    published_message_id: Optional[str] = None

    def __setattr__(self, name, value):
        # category is fixed once the item exists
        if name == "category" and "category" in self.__dict__ and value != self.__dict__["category"]:
            raise AttributeError("category of a ContentItem cannot change")
        super().__setattr__(name, value)

    @property
    def is_news(self):
        return self.category == "news"

    def to_dict(self):
        return {
            "category": self.category,
            "title": self.title,
            "content": self.body,
            "url": self.source_url,
            "imageUrl": self.image_ref,
            "audioUrl": self.audio_ref,
            "quiz": [q.to_dict() for q in self.quiz],
            "vocabulary": [v.to_dict() for v in self.vocabulary],
            "messageId": self.published_message_id,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            category=data["category"],
            title=data["title"],
            body=data.get("content") or "",
            source_url=data.get("url") or None,
            image_ref=data.get("imageUrl") or None,
            audio_ref=data.get("audioUrl") or None,
            quiz=[QuizQuestion.from_dict(q) for q in data.get("quiz") or []],
            vocabulary=[VocabularyTerm.from_dict(v) for v in data.get("vocabulary") or []],
            published_message_id=data.get("messageId") or None,
        )


@dataclass
class AnswerEvent:
    user_id: str
    quiz_message_id: str
    question_index: int
    selected_option_text: str


@dataclass
class ResponseRecord:
    user_id: str
    quiz_id: str
    question_index: int
    question_text: str
    answer_text: str
    is_correct: bool
    timestamp: str

    @property
    def key(self):
        return (self.user_id, self.quiz_id, self.question_index)

    def to_dict(self):
        return {
            "userId": self.user_id,
            "quizId": self.quiz_id,
            "questionIndex": self.question_index,
            "question": self.question_text,
            "answer": self.answer_text,
            "isCorrect": self.is_correct,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            user_id=str(data["userId"]),
            quiz_id=str(data["quizId"]),
            question_index=int(data["questionIndex"]),
            question_text=data.get("question", ""),
            answer_text=data.get("answer", ""),
            is_correct=bool(data["isCorrect"]),
            timestamp=data["timestamp"],
        )


@dataclass
class PronunciationRecord:
    user_id: str
    thread_id: str
    original_text: str
    transcribed_text: str
    score: int
    feedback: str
    timestamp: str

    def to_dict(self):
        return {
            "userId": self.user_id,
            "threadId": self.thread_id,
            "originalText": self.original_text,
            "transcribedText": self.transcribed_text,
            "score": self.score,
            "feedback": self.feedback,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            user_id=str(data["userId"]),
            thread_id=str(data.get("threadId", "")),
            original_text=data.get("originalText", ""),
            transcribed_text=data.get("transcribedText", ""),
            score=int(data.get("score", 0)),
            feedback=data.get("feedback", ""),
            timestamp=data["timestamp"],
        )


@dataclass
class QuizRecord:
    """Metadata of a posted quiz, keyed by the message its controls live on."""

    message_id: str
    posted_at: str
    questions: List[QuizQuestion]
    vocabulary: List[VocabularyTerm] = field(default_factory=list)
    title: str = ""

    def to_dict(self):
        return {
            "messageId": self.message_id,
            "date": self.posted_at,
            "title": self.title,
            "quiz": [q.to_dict() for q in self.questions],
            "vocabulary": [v.to_dict() for v in self.vocabulary],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            message_id=str(data["messageId"]),
            posted_at=data.get("date", ""),
            title=data.get("title", ""),
            questions=[QuizQuestion.from_dict(q) for q in data.get("quiz") or []],
            vocabulary=[VocabularyTerm.from_dict(v) for v in data.get("vocabulary") or []],
        )


@dataclass
class UserScore:
    user_id: str
    display_name: str
    score: int = 0
    total_answered: int = 0
    correct_answers: int = 0
    accuracy: float = 0.0


@dataclass
class QuestionStat:
    quiz_id: str
    question_index: int
    question: str
    attempts: int = 0
    correct: int = 0
    correct_percentage: float = 0.0


@dataclass
class UserPronunciationScore:
    user_id: str
    display_name: str
    average_score: float
    best_score: int
    total_attempts: int
    improvement_trend: float


@dataclass
class PronunciationStat:
    thread_id: str
    original_text: str
    attempts: int
    average_score: float
    best_score: int
    worst_score: int


@dataclass
class PublishResult:
    category: str
    action: str
    title: Optional[str] = None
    count: Optional[int] = None
    message_id: Optional[str] = None
