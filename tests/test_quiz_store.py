import sqlite3

import pytest

from lingoquiz.errors import NotFoundError
from lingoquiz.models import QuestionType, QuizKind, QuizQuestion, SaveQuizRequest
from lingoquiz.quiz_store import QuizStore

QUESTIONS = [
    QuizQuestion(
        question="What is the meaning of 'cat'?",
        options=["a canine", "a small feline", "a tree", "a river"],
        correct_answer="a small feline",
    ),
    QuizQuestion(
        question="What is the Urdu translation of 'dog'?",
        options=["بلی", "کتا", "گھر", "پانی"],
        correct_answer="کتا",
    ),
]


@pytest.fixture
def store(database):
    return QuizStore(database, QuizKind.VOCABULARY)


@pytest.fixture
def saved_quiz(store):
    return store.save_quiz(
        "user-1",
        SaveQuizRequest(
            title="Animals",
            description="",
            questions=QUESTIONS,
            question_types=[QuestionType.WORD_TO_MEANING, QuestionType.WORD_TO_URDU],
        ),
    )


def test_save_and_get_quiz(store, saved_quiz):
    loaded = store.get_quiz("user-1", saved_quiz.id)

    assert loaded.title == "Animals"
    assert loaded.description is None
    assert loaded.questions == QUESTIONS
    assert loaded.total_questions == 2
    assert loaded.question_types == [
        QuestionType.WORD_TO_MEANING,
        QuestionType.WORD_TO_URDU,
    ]


def test_quiz_belongs_to_its_owner(store, saved_quiz):
    with pytest.raises(NotFoundError):
        store.get_quiz("user-2", saved_quiz.id)


def test_submit_attempt_scores_on_server(store, saved_quiz):
    result = store.submit_attempt("user-1", saved_quiz.id, {0: "a small feline", 1: "بلی"})

    assert result.quiz_id == saved_quiz.id
    assert result.correct_count == 1
    assert result.total_questions == 2
    assert result.score_percentage == 50
    assert result.answers[1].is_correct is False


def test_submit_attempt_unknown_quiz(store):
    with pytest.raises(NotFoundError):
        store.submit_attempt("user-1", "missing", {})


def test_history_without_attempts(store, saved_quiz):
    [item] = store.history("user-1")

    assert item.id == saved_quiz.id
    assert item.total_attempts == 0
    assert item.highest_score == 0
    assert item.latest_score is None
    assert item.last_attempt_date is None
    assert store.history("user-2") == []


def test_history_with_attempts(store, saved_quiz):
    store.submit_attempt("user-1", saved_quiz.id, {0: "a small feline", 1: "کتا"})
    store.submit_attempt("user-1", saved_quiz.id, {0: "a tree"})

    [item] = store.history("user-1")

    assert item.total_attempts == 2
    assert item.highest_score == 2
    assert item.latest_score == 0
    assert item.last_attempt_date is not None


def test_delete_quiz_removes_its_attempts(store, saved_quiz, database):
    store.submit_attempt("user-1", saved_quiz.id, {0: "a small feline"})

    with pytest.raises(NotFoundError):
        store.delete_quiz("user-2", saved_quiz.id)
    store.delete_quiz("user-1", saved_quiz.id)

    assert store.history("user-1") == []
    with pytest.raises(NotFoundError):
        store.get_quiz("user-1", saved_quiz.id)
    with pytest.raises(NotFoundError):
        store.delete_quiz("user-1", saved_quiz.id)
    with database.transaction() as conn:
        count = conn.execute("SELECT COUNT(*) FROM quiz_attempts").fetchone()[0]
    assert count == 0


@pytest.fixture
def practice_store(database):
    return QuizStore(database, QuizKind.PRACTICE)


def test_practice_quiz_with_free_text_question(practice_store):
    quiz = practice_store.save_quiz(
        "user-1",
        SaveQuizRequest(
            title="Capitals",
            questions=[
                QuizQuestion(question="Capital of Pakistan?", correct_answer="Islamabad"),
                QUESTIONS[0],
            ],
        ),
    )
    assert quiz.kind == QuizKind.PRACTICE
    assert practice_store.get_quiz("user-1", quiz.id).questions[0].options is None

    result = practice_store.submit_attempt("user-1", quiz.id, {0: "  ISLAMABAD "})

    assert result.correct_count == 1
    assert result.answers[0].is_correct is True
    assert result.answers[1].attempted is False
    [item] = practice_store.history("user-1")
    assert item.question_types == []
    assert item.latest_score == 1


def test_quiz_kinds_are_kept_apart(store, practice_store, saved_quiz):
    with pytest.raises(NotFoundError):
        practice_store.get_quiz("user-1", saved_quiz.id)
    with pytest.raises(NotFoundError):
        practice_store.submit_attempt("user-1", saved_quiz.id, {})
    with pytest.raises(NotFoundError):
        practice_store.delete_quiz("user-1", saved_quiz.id)
    assert practice_store.history("user-1") == []
    assert len(store.history("user-1")) == 1


def test_attempts_require_existing_quiz(database):
    with database.transaction() as conn:
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                "INSERT INTO quiz_attempts (id, quiz_id, user_id, score, "
                "total_questions, answers, completed_at) "
                "VALUES ('a', 'missing', 'user-1', 0, 0, '{}', '2024-01-01')"
            )
