import logging
import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Cookie, Depends, Query, Request, Response

from .config import settings
from .errors import AuthenticationError
from .feedback import parse_feedback_response
from .models import (
    AttemptResult,
    FeedbackRequest,
    GeneratedQuiz,
    ImportRequest,
    ImportStats,
    ParsedFeedback,
    QuizHistory,
    QuizResult,
    SavedQuiz,
    SaveQuizRequest,
    ScoreQuizRequest,
    SubmitAttemptRequest,
    VocabularyEntry,
    VocabularyEntryCreate,
    VocabularyPage,
    VocabularyQuizConfig,
)
from .quiz_generator import generate_vocabulary_quiz
from .quiz_store import QuizStore
from .scoring import grade_quiz
from .vocabulary import VocabularyManager

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependencies ---
def get_user_id(
    user_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME)
) -> str:
    if not user_id:
        raise AuthenticationError("Authentication required")
    return user_id


def get_vocab_manager(request: Request) -> VocabularyManager:
    return request.app.state.vocab_manager


def get_vocab_quiz_store(request: Request) -> QuizStore:
    return request.app.state.vocab_quiz_store


def get_practice_store(request: Request) -> QuizStore:
    return request.app.state.practice_store


# --- Routes ---
@router.get("/api/health")
async def health_check():
    return {"status": "healthy"}


@router.post("/api/session")
async def start_session(
    response: Response,
    user_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME),
):
    if not user_id:
        user_id = str(uuid.uuid4())
        logger.info(f"New session: {user_id}")
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=user_id,
        httponly=True,
        samesite="Lax",
    )
    return {"user_id": user_id}


# --- Vocabulary ---
@router.get("/api/vocabulary", response_model=VocabularyPage)
def list_vocabulary(
    search: str = "",
    sort_by: str = "word",
    order: str = "asc",
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1),
    user_id: str = Depends(get_user_id),
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    return manager.list_entries(user_id, search, sort_by, order, page, limit)


@router.post("/api/vocabulary", response_model=VocabularyEntry)
def add_vocabulary(
    data: VocabularyEntryCreate,
    user_id: str = Depends(get_user_id),
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    return manager.add_entry(user_id, data)


@router.post("/api/vocabulary/import", response_model=ImportStats)
def import_vocabulary(
    request_data: ImportRequest,
    user_id: str = Depends(get_user_id),
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    return manager.import_csv(user_id, request_data.csv_content, request_data.mode)


@router.get("/api/vocabulary/export")
def export_vocabulary(
    user_id: str = Depends(get_user_id),
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    content = manager.export_csv(user_id)
    filename = f"vocabulary-export-{date.today().isoformat()}.csv"
    return Response(
        content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/api/vocabulary/{entry_id}", response_model=VocabularyEntry)
def get_vocabulary(
    entry_id: str,
    user_id: str = Depends(get_user_id),
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    return manager.get_entry(user_id, entry_id)


@router.put("/api/vocabulary/{entry_id}", response_model=VocabularyEntry)
def update_vocabulary(
    entry_id: str,
    data: VocabularyEntryCreate,
    user_id: str = Depends(get_user_id),
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    return manager.update_entry(user_id, entry_id, data)


@router.delete("/api/vocabulary/{entry_id}")
def delete_vocabulary(
    entry_id: str,
    user_id: str = Depends(get_user_id),
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    manager.delete_entry(user_id, entry_id)
    return {"status": "success"}


# --- Vocabulary quizzes ---
@router.post("/api/vocabulary-quiz/generate", response_model=GeneratedQuiz)
def generate_quiz(
    config: VocabularyQuizConfig,
    user_id: str = Depends(get_user_id),
    manager: VocabularyManager = Depends(get_vocab_manager),
):
    entries = manager.get_entries(user_id)
    questions = generate_vocabulary_quiz(entries, config, user_id)
    return GeneratedQuiz(questions=questions, total_entries=len(entries))


@router.post("/api/vocabulary-quiz/save", response_model=SavedQuiz)
def save_vocabulary_quiz(
    request_data: SaveQuizRequest,
    user_id: str = Depends(get_user_id),
    store: QuizStore = Depends(get_vocab_quiz_store),
):
    return store.save_quiz(user_id, request_data)


@router.get("/api/vocabulary-quiz/history", response_model=List[QuizHistory])
def vocabulary_quiz_history(
    user_id: str = Depends(get_user_id),
    store: QuizStore = Depends(get_vocab_quiz_store),
):
    return store.history(user_id)


@router.post("/api/vocabulary-quiz/submit", response_model=AttemptResult)
def submit_vocabulary_quiz(
    request_data: SubmitAttemptRequest,
    user_id: str = Depends(get_user_id),
    store: QuizStore = Depends(get_vocab_quiz_store),
):
    return store.submit_attempt(user_id, request_data.quiz_id, request_data.answers)


@router.get("/api/vocabulary-quiz/{quiz_id}", response_model=SavedQuiz)
def get_vocabulary_quiz(
    quiz_id: str,
    user_id: str = Depends(get_user_id),
    store: QuizStore = Depends(get_vocab_quiz_store),
):
    return store.get_quiz(user_id, quiz_id)


@router.delete("/api/vocabulary-quiz/{quiz_id}")
def delete_vocabulary_quiz(
    quiz_id: str,
    user_id: str = Depends(get_user_id),
    store: QuizStore = Depends(get_vocab_quiz_store),
):
    store.delete_quiz(user_id, quiz_id)
    return {"status": "success"}


# --- Practice quizzes ---
@router.post("/api/quiz/score", response_model=QuizResult)
async def score_quiz(request_data: ScoreQuizRequest):
    return grade_quiz(request_data.questions, request_data.answers)


@router.post("/api/quiz/save", response_model=SavedQuiz)
def save_practice_quiz(
    request_data: SaveQuizRequest,
    user_id: str = Depends(get_user_id),
    store: QuizStore = Depends(get_practice_store),
):
    return store.save_quiz(user_id, request_data)


@router.get("/api/quiz/history", response_model=List[QuizHistory])
def practice_quiz_history(
    user_id: str = Depends(get_user_id),
    store: QuizStore = Depends(get_practice_store),
):
    return store.history(user_id)


@router.post("/api/quiz/submit", response_model=AttemptResult)
def submit_practice_quiz(
    request_data: SubmitAttemptRequest,
    user_id: str = Depends(get_user_id),
    store: QuizStore = Depends(get_practice_store),
):
    return store.submit_attempt(user_id, request_data.quiz_id, request_data.answers)


@router.get("/api/quiz/{quiz_id}", response_model=SavedQuiz)
def get_practice_quiz(
    quiz_id: str,
    user_id: str = Depends(get_user_id),
    store: QuizStore = Depends(get_practice_store),
):
    return store.get_quiz(user_id, quiz_id)


@router.delete("/api/quiz/{quiz_id}")
def delete_practice_quiz(
    quiz_id: str,
    user_id: str = Depends(get_user_id),
    store: QuizStore = Depends(get_practice_store),
):
    store.delete_quiz(user_id, quiz_id)
    return {"status": "success"}


# --- Translation feedback ---
@router.post("/api/translation/feedback", response_model=ParsedFeedback)
async def translation_feedback(
    request_data: FeedbackRequest, user_id: str = Depends(get_user_id)
):
    return parse_feedback_response(request_data.response_text)
