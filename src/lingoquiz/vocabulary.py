import logging
import math
import sqlite3
import uuid
from datetime import datetime
from typing import Iterable, List, Optional

import pandas as pd

from .config import settings
from .csv_import import parse_vocabulary_csv
from .database import Database
from .errors import DuplicateEntryError, NotFoundError, ValidationError
from .models import (
    ImportMode,
    ImportStats,
    VocabularyEntry,
    VocabularyEntryCreate,
    VocabularyPage,
)

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = ("word", "meaning", "created_at", "updated_at")
TEXT_COLUMNS = ("word", "meaning")
EXPORT_COLUMNS = {
    "word": "Word",
    "meaning": "Meaning/Definition",
    "urdu_translation": "Urdu Translation",
    "usage_example": "Usage in a Sentence",
}


def find_duplicate(
    entries: Iterable[VocabularyEntry], word: str
) -> Optional[VocabularyEntry]:
    """Case-insensitive lookup of ``word`` among ``entries``."""
    normalized = word.strip().lower()
    for entry in entries:
        if entry.word.strip().lower() == normalized:
            return entry
    return None


def _duplicate_word(word: str) -> DuplicateEntryError:
    return DuplicateEntryError(f'The word "{word}" already exists in your vocabulary')


class VocabularyManager:
    """Manages each user's vocabulary collection."""

    def __init__(self, database: Database):
        self.database = database

    def get_entries(self, user_id: str) -> List[VocabularyEntry]:
        with self.database.transaction() as conn:
            return self._fetch_entries(conn, user_id)

    def get_entry(self, user_id: str, entry_id: str) -> VocabularyEntry:
        with self.database.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM vocabulary_entries WHERE id = ? AND user_id = ?",
                (entry_id, user_id),
            ).fetchone()
        if row is None:
            raise NotFoundError("Vocabulary entry not found")
        return VocabularyEntry(**dict(row))

    def list_entries(
        self,
        user_id: str,
        search: str = "",
        sort_by: str = "word",
        order: str = "asc",
        page: int = 1,
        limit: int = settings.DEFAULT_PAGE_SIZE,
    ) -> VocabularyPage:
        if sort_by not in SORTABLE_COLUMNS:
            raise ValidationError(f"Cannot sort by '{sort_by}'")
        if order not in ("asc", "desc"):
            raise ValidationError("Order must be 'asc' or 'desc'")
        if page < 1 or limit < 1:
            raise ValidationError("Page and limit must be positive")

        where = "user_id = ?"
        params: list = [user_id]
        if search:
            where += " AND instr(lower(word), lower(?)) > 0"
            params.append(search)
        collate = " COLLATE NOCASE" if sort_by in TEXT_COLUMNS else ""

        with self.database.transaction() as conn:
            total = conn.execute(
                f"SELECT COUNT(*) FROM vocabulary_entries WHERE {where}", params
            ).fetchone()[0]
            rows = conn.execute(
                f"SELECT * FROM vocabulary_entries WHERE {where} "
                f"ORDER BY {sort_by}{collate} {order.upper()} LIMIT ? OFFSET ?",
                params + [limit, (page - 1) * limit],
            ).fetchall()

        return VocabularyPage(
            entries=[VocabularyEntry(**dict(row)) for row in rows],
            total=total,
            page=page,
            total_pages=math.ceil(total / limit),
        )

    def add_entry(self, user_id: str, data: VocabularyEntryCreate) -> VocabularyEntry:
        if find_duplicate(self.get_entries(user_id), data.word):
            raise _duplicate_word(data.word)
        try:
            with self.database.transaction() as conn:
                entry = self._insert(conn, user_id, data)
        except sqlite3.IntegrityError:
            # lost a race with a concurrent insert of the same word
            raise _duplicate_word(data.word) from None
        logger.info(f"Added vocabulary entry '{entry.word}' for {user_id}")
        return entry

    def update_entry(
        self, user_id: str, entry_id: str, data: VocabularyEntryCreate
    ) -> VocabularyEntry:
        current = self.get_entry(user_id, entry_id)
        others = [e for e in self.get_entries(user_id) if e.id != entry_id]
        if find_duplicate(others, data.word):
            raise _duplicate_word(data.word)

        entry = VocabularyEntry(
            id=current.id,
            user_id=user_id,
            created_at=current.created_at,
            updated_at=datetime.now(),
            **data.model_dump(),
        )
        try:
            with self.database.transaction() as conn:
                cursor = conn.execute(
                    "UPDATE vocabulary_entries SET word = ?, meaning = ?, "
                    "urdu_translation = ?, usage_example = ?, updated_at = ? "
                    "WHERE id = ? AND user_id = ?",
                    (
                        entry.word,
                        entry.meaning,
                        entry.urdu_translation,
                        entry.usage_example,
                        entry.updated_at.isoformat(),
                        entry_id,
                        user_id,
                    ),
                )
        except sqlite3.IntegrityError:
            raise _duplicate_word(data.word) from None
        if cursor.rowcount == 0:
            raise NotFoundError("Vocabulary entry not found")
        logger.info(f"Updated vocabulary entry '{entry.word}' for {user_id}")
        return entry

    def delete_entry(self, user_id: str, entry_id: str):
        with self.database.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM vocabulary_entries WHERE id = ? AND user_id = ?",
                (entry_id, user_id),
            )
        if cursor.rowcount == 0:
            raise NotFoundError("Vocabulary entry not found")

    def import_csv(
        self, user_id: str, content: str, mode: ImportMode = ImportMode.APPEND
    ) -> ImportStats:
        parsed = parse_vocabulary_csv(content)
        if len(parsed) > settings.MAX_IMPORT_ENTRIES:
            raise ValidationError(
                f"Cannot import more than {settings.MAX_IMPORT_ENTRIES} entries at once"
            )

        stats = ImportStats()
        with self.database.transaction() as conn:
            if mode == ImportMode.REPLACE:
                conn.execute(
                    "DELETE FROM vocabulary_entries WHERE user_id = ?", (user_id,)
                )
            known = self._fetch_entries(conn, user_id)

            for data in parsed:
                entry = None
                if not find_duplicate(known, data.word):
                    # words inserted concurrently are skipped by the unique index
                    entry = self._insert(conn, user_id, data, ignore_duplicate=True)
                if entry is None:
                    stats.skipped += 1
                    continue
                known.append(entry)
                stats.added += 1

        logger.info(
            f"Import for {user_id} [{mode.value}]: "
            f"{stats.added} added, {stats.skipped} skipped"
        )
        return stats

    def export_csv(self, user_id: str) -> str:
        entries = self.get_entries(user_id)
        if not entries:
            raise NotFoundError("No vocabulary entries to export")

        df = pd.DataFrame([e.model_dump() for e in entries])
        df = df.sort_values("word", key=lambda col: col.str.lower())
        df = df[list(EXPORT_COLUMNS)].rename(columns=EXPORT_COLUMNS)
        return df.to_csv(index=False, lineterminator="\n")

    def _fetch_entries(self, conn, user_id: str) -> List[VocabularyEntry]:
        rows = conn.execute(
            "SELECT * FROM vocabulary_entries WHERE user_id = ? "
            "ORDER BY created_at DESC",
            (user_id,),
        ).fetchall()
        return [VocabularyEntry(**dict(row)) for row in rows]

    def _insert(
        self,
        conn,
        user_id: str,
        data: VocabularyEntryCreate,
        ignore_duplicate: bool = False,
    ) -> Optional[VocabularyEntry]:
        """Inserts an entry; returns None when ``ignore_duplicate`` swallowed a clash."""
        now = datetime.now()
        entry = VocabularyEntry(
            id=str(uuid.uuid4()),
            user_id=user_id,
            created_at=now,
            updated_at=now,
            **data.model_dump(),
        )
        verb = "INSERT OR IGNORE" if ignore_duplicate else "INSERT"
        cursor = conn.execute(
            f"{verb} INTO vocabulary_entries (id, user_id, word, meaning, "
            "urdu_translation, usage_example, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                entry.id,
                entry.user_id,
                entry.word,
                entry.meaning,
                entry.urdu_translation,
                entry.usage_example,
                entry.created_at.isoformat(),
                entry.updated_at.isoformat(),
            ),
        )
        if cursor.rowcount == 0:
            return None
        return entry
