import json
import logging
import uuid
from datetime import datetime
from typing import Dict, List

import pandas as pd

from .database import Database
from .errors import NotFoundError
from .models import (
    AttemptResult,
    QuizHistory,
    QuizKind,
    SavedQuiz,
    SaveQuizRequest,
)
from .scoring import grade_quiz

logger = logging.getLogger(__name__)


class QuizStore:
    """Saved quizzes of one kind (practice or vocabulary) and their attempts."""

    def __init__(self, database: Database, kind: QuizKind):
        self.database = database
        self.kind = kind

    def save_quiz(self, user_id: str, request: SaveQuizRequest) -> SavedQuiz:
        quiz = SavedQuiz(
            id=str(uuid.uuid4()),
            kind=self.kind,
            title=request.title,
            description=request.description or None,
            questions=request.questions,
            question_types=request.question_types,
            total_questions=len(request.questions),
            created_at=datetime.now(),
        )
        with self.database.transaction() as conn:
            conn.execute(
                "INSERT INTO quizzes (id, user_id, kind, title, description, "
                "questions, question_types, total_questions, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    quiz.id,
                    user_id,
                    self.kind.value,
                    quiz.title,
                    quiz.description,
                    json.dumps([q.model_dump() for q in quiz.questions]),
                    json.dumps([t.value for t in quiz.question_types]),
                    quiz.total_questions,
                    quiz.created_at.isoformat(),
                ),
            )
        logger.info(f"Saved {self.kind.value} quiz {quiz.id} for {user_id}")
        return quiz

    def get_quiz(self, user_id: str, quiz_id: str) -> SavedQuiz:
        with self.database.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM quizzes WHERE id = ? AND user_id = ? AND kind = ?",
                (quiz_id, user_id, self.kind.value),
            ).fetchone()
        if row is None:
            raise NotFoundError(f"{self.kind.value.capitalize()} quiz not found")
        return SavedQuiz(
            id=row["id"],
            kind=row["kind"],
            title=row["title"],
            description=row["description"],
            questions=json.loads(row["questions"]),
            question_types=json.loads(row["question_types"]),
            total_questions=row["total_questions"],
            created_at=row["created_at"],
        )

    def delete_quiz(self, user_id: str, quiz_id: str):
        """Deletes a quiz; its attempts go with it (ON DELETE CASCADE)."""
        with self.database.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM quizzes WHERE id = ? AND user_id = ? AND kind = ?",
                (quiz_id, user_id, self.kind.value),
            )
        if cursor.rowcount == 0:
            raise NotFoundError(f"{self.kind.value.capitalize()} quiz not found")
        logger.info(f"Deleted {self.kind.value} quiz {quiz_id} for {user_id}")

    def submit_attempt(
        self, user_id: str, quiz_id: str, answers: Dict[int, str]
    ) -> AttemptResult:
        quiz = self.get_quiz(user_id, quiz_id)
        result = grade_quiz(quiz.questions, answers)
        attempt = AttemptResult(
            attempt_id=str(uuid.uuid4()),
            quiz_id=quiz.id,
            completed_at=datetime.now(),
            **result.model_dump(),
        )
        with self.database.transaction() as conn:
            conn.execute(
                "INSERT INTO quiz_attempts (id, quiz_id, user_id, score, "
                "total_questions, answers, completed_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    attempt.attempt_id,
                    quiz.id,
                    user_id,
                    attempt.correct_count,
                    attempt.total_questions,
                    json.dumps({str(k): v for k, v in answers.items()}),
                    attempt.completed_at.isoformat(),
                ),
            )
        logger.info(
            f"Attempt on {self.kind.value} quiz {quiz.id} by {user_id}: "
            f"{attempt.correct_count}/{attempt.total_questions}"
        )
        return attempt

    def history(self, user_id: str) -> List[QuizHistory]:
        """Saved quizzes, newest first, with attempt statistics."""
        with self.database.transaction() as conn:
            quizzes = pd.read_sql_query(
                "SELECT id, title, description, question_types, total_questions, "
                "created_at FROM quizzes WHERE user_id = ? AND kind = ? "
                "ORDER BY created_at DESC",
                conn,
                params=(user_id, self.kind.value),
            )
            attempts = pd.read_sql_query(
                "SELECT a.quiz_id, a.score, a.completed_at FROM quiz_attempts a "
                "JOIN quizzes q ON q.id = a.quiz_id "
                "WHERE a.user_id = ? AND q.kind = ?",
                conn,
                params=(user_id, self.kind.value),
            )

        summary = (
            attempts.sort_values("completed_at", ascending=False)
            .groupby("quiz_id")
            .agg(
                total_attempts=("score", "size"),
                highest_score=("score", "max"),
                latest_score=("score", "first"),
                last_attempt_date=("completed_at", "first"),
            )
        )

        history = []
        for quiz in quizzes.itertuples(index=False):
            stats = {
                "total_attempts": 0,
                "highest_score": 0,
                "latest_score": None,
                "last_attempt_date": None,
            }
            if quiz.id in summary.index:
                row = summary.loc[quiz.id]
                stats = {
                    "total_attempts": int(row["total_attempts"]),
                    "highest_score": int(row["highest_score"]),
                    "latest_score": int(row["latest_score"]),
                    "last_attempt_date": row["last_attempt_date"],
                }
            history.append(
                QuizHistory(
                    id=quiz.id,
                    title=quiz.title,
                    description=quiz.description if pd.notna(quiz.description) else None,
                    total_questions=int(quiz.total_questions),
                    question_types=json.loads(quiz.question_types),
                    created_at=quiz.created_at,
                    **stats,
                )
            )
        return history
