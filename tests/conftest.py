from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from lingoquiz.app import create_app
from lingoquiz.config import settings
from lingoquiz.database import Database
from lingoquiz.models import VocabularyEntry

WORDS = [
    ("cat", "a small feline", "بلی", "The cat slept on the mat."),
    ("dog", "a loyal canine", "کتا", "The dog barked all night."),
    ("tree", "a tall woody plant", "درخت", "We sat under the tree."),
    ("house", "a building to live in", "گھر", "Their house is near the river."),
    ("water", "a clear liquid", "پانی", "Drink a glass of water."),
    ("book", "pages bound together", "کتاب", "She read the book twice."),
]


@pytest.fixture
def make_entries():
    def _make(count=len(WORDS), user_id="user-1"):
        now = datetime(2024, 1, 1, 12, 0, 0)
        return [
            VocabularyEntry(
                id=f"entry-{i}",
                user_id=user_id,
                word=word,
                meaning=meaning,
                urdu_translation=urdu,
                usage_example=usage,
                created_at=now,
                updated_at=now,
            )
            for i, (word, meaning, urdu, usage) in enumerate(WORDS[:count])
        ]

    return _make


@pytest.fixture
def database(tmp_path):
    db = Database(str(tmp_path / "lingoquiz.db"))
    db.init_db()
    return db


@pytest.fixture
def app(database, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "LOG_DIR", str(tmp_path / "log"))
    return create_app(database)


@pytest.fixture
def anonymous_client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def client(anonymous_client):
    anonymous_client.cookies.set(settings.SESSION_COOKIE_NAME, "user-1")
    return anonymous_client


CSV_CONTENT = "\n".join(
    ["Word,Meaning,Urdu,Usage"]
    + [",".join(f'"{field}"' for field in row) for row in WORDS]
)


@pytest.fixture
def csv_content():
    return CSV_CONTENT
