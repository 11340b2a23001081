import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Tuple

from .config import settings
from .errors import ValidationError
from .models import QuestionType, QuizQuestion, VocabularyEntry, VocabularyQuizConfig
from .shuffle import generate_seed, shuffle_with_seed

logger = logging.getLogger(__name__)

# question type -> (prompt template, entry field holding the answer)
QUESTION_TEMPLATES: Dict[QuestionType, Tuple[str, str]] = {
    QuestionType.WORD_TO_MEANING: ("What is the meaning of '{word}'?", "meaning"),
    QuestionType.WORD_TO_URDU: (
        "What is the Urdu translation of '{word}'?",
        "urdu_translation",
    ),
    QuestionType.WORD_TO_USAGE: (
        "Which sentence correctly uses the word '{word}'?",
        "usage_example",
    ),
}


class QuizGenerator(ABC):
    """Base class for quiz generation strategies."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock

    @abstractmethod
    def generate(
        self,
        entries: List[VocabularyEntry],
        config: VocabularyQuizConfig,
        identity: str,
    ) -> List[QuizQuestion]:
        pass

    def _generate_options(
        self,
        correct_answer: str,
        distractors: List[str],
        seed_input: str,
    ) -> List[str]:
        """Mixes the correct answer into the distractors in a reproducible order."""
        options = [correct_answer] + distractors
        return shuffle_with_seed(options, generate_seed(seed_input))


class VocabularyQuizGenerator(QuizGenerator):
    """Builds four-option MCQs from a user's vocabulary collection."""

    def generate(
        self,
        entries: List[VocabularyEntry],
        config: VocabularyQuizConfig,
        identity: str,
    ) -> List[QuizQuestion]:
        self._check_preconditions(entries, config)

        # Only decides which entries are asked; option order is seeded separately.
        now_ms = int(self.clock() * 1000)
        pool = shuffle_with_seed(entries, generate_seed(f"{identity}{now_ms}"))

        type_count = len(config.question_types)
        per_type, remainder = divmod(config.question_count, type_count)

        questions: List[QuizQuestion] = []
        entry_index = 0
        for type_index, question_type in enumerate(config.question_types):
            count = per_type + (1 if type_index < remainder else 0)
            for _ in range(count):
                if entry_index >= len(pool):
                    entry_index = 0
                entry = pool[entry_index]
                questions.append(
                    self._build_question(
                        entry, question_type, entries, identity, len(questions)
                    )
                )
                entry_index += 1

        logger.info(
            f"Generated {len(questions)} questions for {identity} "
            f"[types: {', '.join(t.value for t in config.question_types)}]"
        )
        return questions

    def _check_preconditions(
        self, entries: List[VocabularyEntry], config: VocabularyQuizConfig
    ):
        if len(entries) < settings.MIN_VOCABULARY_ENTRIES:
            raise ValidationError(
                f"At least {settings.MIN_VOCABULARY_ENTRIES} vocabulary entries "
                "are required to generate quiz with distractors"
            )
        if len(entries) < config.question_count:
            raise ValidationError(
                f"Not enough vocabulary entries. You have {len(entries)} "
                f"but requested {config.question_count} questions"
            )
        if not config.question_types:
            raise ValidationError("At least one question type must be selected")

    def _build_question(
        self,
        entry: VocabularyEntry,
        question_type: QuestionType,
        entries: List[VocabularyEntry],
        identity: str,
        position: int,
    ) -> QuizQuestion:
        template, field = QUESTION_TEMPLATES[question_type]
        correct_answer = getattr(entry, field)
        distractors = self._pick_distractors(entry, entries, field)
        options = self._generate_options(
            correct_answer, distractors, f"{identity}{position}{entry.id}"
        )
        return QuizQuestion(
            question=template.format(word=entry.word),
            options=options,
            correct_answer=correct_answer,
        )

    def _pick_distractors(
        self, entry: VocabularyEntry, entries: List[VocabularyEntry], field: str
    ) -> List[str]:
        correct_answer = getattr(entry, field)
        candidates = [
            getattr(other, field)
            for other in entries
            if other.id != entry.id and getattr(other, field) != correct_answer
        ]
        unique = list(dict.fromkeys(candidates))

        count = settings.DISTRACTOR_COUNT
        if len(unique) < count:
            raise ValidationError(
                "Not enough unique entries to generate distractors for "
                f"'{entry.word}'. Need at least {count + 1} unique entries."
            )

        shuffled = shuffle_with_seed(unique, generate_seed(f"{entry.id}{field}"))
        return shuffled[:count]


def generate_vocabulary_quiz(
    entries: List[VocabularyEntry],
    config: VocabularyQuizConfig,
    identity: str,
) -> List[QuizQuestion]:
    return VocabularyQuizGenerator().generate(entries, config, identity)
