import threading

import pytest

from lingoquiz.errors import DuplicateEntryError, NotFoundError, ValidationError
from lingoquiz.models import ImportMode, VocabularyEntryCreate
from lingoquiz.vocabulary import VocabularyManager, find_duplicate


@pytest.fixture
def manager(database):
    return VocabularyManager(database)


def entry_data(word, meaning="a meaning"):
    return VocabularyEntryCreate(
        word=word, meaning=meaning, urdu_translation="اردو", usage_example=f"Use {word}."
    )


def test_find_duplicate_ignores_case_and_whitespace(make_entries):
    entries = make_entries()
    assert find_duplicate(entries, "  CAT ").word == "cat"
    assert find_duplicate(entries, "lion") is None


def test_add_and_get_entries(manager):
    entry = manager.add_entry("user-1", entry_data("  apple "))

    assert entry.word == "apple"
    assert [e.id for e in manager.get_entries("user-1")] == [entry.id]
    assert manager.get_entries("user-2") == []


def test_add_duplicate_word_is_rejected(manager):
    manager.add_entry("user-1", entry_data("Apple"))
    with pytest.raises(DuplicateEntryError):
        manager.add_entry("user-1", entry_data("apple"))
    # other users have their own collection
    manager.add_entry("user-2", entry_data("apple"))


def test_delete_entry(manager):
    entry = manager.add_entry("user-1", entry_data("apple"))

    with pytest.raises(NotFoundError):
        manager.delete_entry("user-2", entry.id)
    manager.delete_entry("user-1", entry.id)
    assert manager.get_entries("user-1") == []
    with pytest.raises(NotFoundError):
        manager.delete_entry("user-1", entry.id)


def test_get_entry(manager):
    entry = manager.add_entry("user-1", entry_data("apple"))

    assert manager.get_entry("user-1", entry.id) == entry
    with pytest.raises(NotFoundError):
        manager.get_entry("user-2", entry.id)


def test_update_entry(manager):
    entry = manager.add_entry("user-1", entry_data("apple"))

    updated = manager.update_entry(
        "user-1", entry.id, entry_data("  Apple ", "a round fruit")
    )

    assert updated.id == entry.id
    assert updated.word == "Apple"
    assert updated.meaning == "a round fruit"
    assert updated.created_at == entry.created_at
    assert updated.updated_at >= entry.updated_at
    assert manager.get_entry("user-1", entry.id) == updated


def test_update_entry_rejects_word_of_another_entry(manager):
    manager.add_entry("user-1", entry_data("apple"))
    banana = manager.add_entry("user-1", entry_data("banana"))

    with pytest.raises(DuplicateEntryError):
        manager.update_entry("user-1", banana.id, entry_data("APPLE"))
    assert manager.get_entry("user-1", banana.id).word == "banana"


def test_update_entry_of_another_user(manager):
    entry = manager.add_entry("user-1", entry_data("apple"))

    with pytest.raises(NotFoundError):
        manager.update_entry("user-2", entry.id, entry_data("pear"))
    assert manager.get_entry("user-1", entry.id).word == "apple"


def test_list_entries_search_sort_and_pages(manager):
    for word in ["banana", "apple", "cherry", "pineapple"]:
        manager.add_entry("user-1", entry_data(word))

    page = manager.list_entries("user-1", search="APPLE")
    assert [e.word for e in page.entries] == ["apple", "pineapple"]
    assert page.total == 2

    page = manager.list_entries("user-1", order="desc", page=2, limit=3)
    assert [e.word for e in page.entries] == ["apple"]
    assert page.total == 4
    assert page.total_pages == 2


def test_list_entries_sorts_text_ignoring_case(manager):
    for word in ["Zebra", "apple", "Mango"]:
        manager.add_entry("user-1", entry_data(word))

    page = manager.list_entries("user-1", sort_by="word")
    assert [e.word for e in page.entries] == ["apple", "Mango", "Zebra"]

    page = manager.list_entries("user-1", sort_by="word", order="desc")
    assert [e.word for e in page.entries] == ["Zebra", "Mango", "apple"]


def test_list_entries_rejects_unknown_sort_column(manager):
    with pytest.raises(ValidationError):
        manager.list_entries("user-1", sort_by="word; DROP TABLE logs")


def test_import_appends_and_skips_duplicates(manager, csv_content):
    manager.add_entry("user-1", entry_data("Cat"))

    stats = manager.import_csv("user-1", csv_content + '\n"dog","again","کتا","Dog."')

    assert stats.added == 5
    assert stats.skipped == 2
    assert len(manager.get_entries("user-1")) == 6


def test_import_replace_clears_collection(manager, csv_content):
    manager.add_entry("user-1", entry_data("zebra"))

    stats = manager.import_csv("user-1", csv_content, ImportMode.REPLACE)

    assert stats.added == 6
    words = {e.word for e in manager.get_entries("user-1")}
    assert "zebra" not in words
    assert "cat" in words


def test_import_invalid_csv_changes_nothing(manager):
    kept = manager.add_entry("user-1", entry_data("apple"))

    with pytest.raises(ValidationError):
        manager.import_csv("user-1", "h\ncat,only two", ImportMode.REPLACE)

    assert [e.id for e in manager.get_entries("user-1")] == [kept.id]


def test_export_csv(manager):
    manager.add_entry("user-1", entry_data("banana", "a yellow fruit, curved"))
    manager.add_entry("user-1", entry_data("Apple"))

    lines = manager.export_csv("user-1").splitlines()

    assert lines[0] == "Word,Meaning/Definition,Urdu Translation,Usage in a Sentence"
    assert lines[1].startswith("Apple,")
    assert lines[2] == 'banana,"a yellow fruit, curved",اردو,Use banana.'


def test_export_empty_collection(manager):
    with pytest.raises(NotFoundError):
        manager.export_csv("user-1")


def test_concurrent_adds_keep_words_unique(manager):
    users = [f"user-{n}" for n in range(20)]
    failures = []

    def add(user_id, word, barrier):
        barrier.wait()
        try:
            manager.add_entry(user_id, entry_data(word))
        except DuplicateEntryError:
            pass
        except Exception as exc:
            failures.append(exc)

    threads = []
    for user_id in users:
        barrier = threading.Barrier(2)
        for word in ("Apple", "apple"):
            threads.append(
                threading.Thread(target=add, args=(user_id, word, barrier))
            )
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert failures == []
    for user_id in users:
        assert len(manager.get_entries(user_id)) == 1


def test_add_entry_duplicate_caught_by_database(manager, monkeypatch):
    manager.add_entry("user-1", entry_data("Apple"))
    # a concurrent writer slips past the in-memory check
    monkeypatch.setattr("lingoquiz.vocabulary.find_duplicate", lambda entries, word: None)

    with pytest.raises(DuplicateEntryError):
        manager.add_entry("user-1", entry_data(" apple"))
    assert len(manager.get_entries("user-1")) == 1


def test_import_skips_duplicate_caught_by_database(manager, monkeypatch):
    manager.add_entry("user-1", entry_data("Cat"))
    monkeypatch.setattr("lingoquiz.vocabulary.find_duplicate", lambda entries, word: None)

    stats = manager.import_csv("user-1", 'Word,Meaning,Urdu,Usage\ncat,a pet,بلی,A cat.\n')

    assert stats.added == 0
    assert stats.skipped == 1
    assert [e.word for e in manager.get_entries("user-1")] == ["Cat"]
