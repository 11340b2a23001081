import re
from typing import List, Mapping, Optional

from .models import AnswerRecord, QuizQuestion, QuizResult

_WHITESPACE = re.compile(r"\s+")


def normalize_answer(answer: str) -> str:
    return _WHITESPACE.sub(" ", answer.strip().lower())


def is_answer_correct(question: QuizQuestion, answer: Optional[str]) -> bool:
    """MCQ answers must match verbatim; free-text answers are normalized."""
    if answer is None:
        return False
    if question.options is not None:
        return answer == question.correct_answer
    return normalize_answer(answer) == normalize_answer(question.correct_answer)


def score_quiz(questions: List[QuizQuestion], answers: Mapping[int, str]) -> int:
    return sum(
        1
        for index, question in enumerate(questions)
        if is_answer_correct(question, answers.get(index))
    )


def grade_quiz(questions: List[QuizQuestion], answers: Mapping[int, str]) -> QuizResult:
    records = []
    for index, question in enumerate(questions):
        user_answer = answers.get(index)
        records.append(
            AnswerRecord(
                question=question.question,
                user_answer=user_answer,
                correct_answer=question.correct_answer,
                is_correct=is_answer_correct(question, user_answer),
                attempted=user_answer is not None,
            )
        )

    total = len(questions)
    correct = sum(1 for r in records if r.is_correct)
    return QuizResult(
        correct_count=correct,
        total_questions=total,
        score_percentage=round((correct / total) * 100) if total > 0 else 0,
        answers=records,
    )
