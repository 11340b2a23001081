from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .config import settings


# --- Quiz ---
class QuizQuestion(BaseModel):
    question: str = Field(..., min_length=1)
    options: Optional[List[str]] = None
    correct_answer: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_options(self):
        if self.options is not None:
            if len(self.options) < 2:
                raise ValueError("MCQ questions must have at least 2 options")
            if self.correct_answer not in self.options:
                raise ValueError("Correct answer must be included in options")
        return self


class AnswerRecord(BaseModel):
    question: str
    user_answer: Optional[str]
    correct_answer: str
    is_correct: bool
    attempted: bool


class QuizResult(BaseModel):
    correct_count: int
    total_questions: int
    score_percentage: int
    answers: List[AnswerRecord]


class ScoreQuizRequest(BaseModel):
    questions: List[QuizQuestion]
    answers: Dict[int, str] = {}


# --- Vocabulary ---
class QuestionType(str, Enum):
    WORD_TO_MEANING = "word-to-meaning"
    WORD_TO_URDU = "word-to-urdu"
    WORD_TO_USAGE = "word-to-usage"


class VocabularyEntryCreate(BaseModel):
    word: str
    meaning: str
    urdu_translation: str
    usage_example: str

    @field_validator("word", "meaning", "urdu_translation", "usage_example")
    @classmethod
    def strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("field must not be empty")
        return value


class VocabularyEntry(VocabularyEntryCreate):
    id: str
    user_id: str
    created_at: datetime
    updated_at: datetime


class VocabularyPage(BaseModel):
    entries: List[VocabularyEntry]
    total: int
    page: int
    total_pages: int


class ImportMode(str, Enum):
    APPEND = "append"
    REPLACE = "replace"


class ImportRequest(BaseModel):
    csv_content: str = Field(..., min_length=1)
    mode: ImportMode = ImportMode.APPEND


class ImportStats(BaseModel):
    added: int = 0
    skipped: int = 0


class VocabularyQuizConfig(BaseModel):
    # An empty type list is reported by the generator, not the schema.
    question_types: List[QuestionType]
    question_count: int = Field(..., ge=1, le=settings.MAX_QUESTION_COUNT)


class GeneratedQuiz(BaseModel):
    questions: List[QuizQuestion]
    total_entries: int


class QuizKind(str, Enum):
    PRACTICE = "practice"
    VOCABULARY = "vocabulary"


class SaveQuizRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    questions: List[QuizQuestion] = Field(..., min_length=1)
    question_types: List[QuestionType] = []


class SavedQuiz(BaseModel):
    id: str
    kind: QuizKind
    title: str
    description: Optional[str]
    questions: List[QuizQuestion]
    question_types: List[QuestionType]
    total_questions: int
    created_at: datetime


class SubmitAttemptRequest(BaseModel):
    quiz_id: str
    answers: Dict[int, str]


class AttemptResult(QuizResult):
    attempt_id: str
    quiz_id: str
    completed_at: datetime


class QuizHistory(BaseModel):
    id: str
    title: str
    description: Optional[str]
    total_questions: int
    question_types: List[QuestionType]
    created_at: datetime
    total_attempts: int
    highest_score: int
    latest_score: Optional[int]
    last_attempt_date: Optional[datetime]


# --- Translation feedback ---
class FeedbackRow(BaseModel):
    urdu_phrase: str
    user_translation: str
    suggested_translation: str
    explanation: str


class ParsedFeedback(BaseModel):
    feedback_rows: List[FeedbackRow]
    natural_version: str
    score: float = Field(..., ge=0, le=10)
    score_detected: bool
    raw_response: str


class FeedbackRequest(BaseModel):
    response_text: str
