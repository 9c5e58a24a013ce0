"""
Unit tests for the quote repository
"""

import json

import pytest
from unittest.mock import Mock

from database import QuoteRepository, MemoryKeyValueStore, Quote, DEFAULT_QUOTES, QUOTES_KEY, find_first_index
from utils.exceptions import ValidationError, EmptyImportError, MalformedImportError, StorageError
from tests.factories import QuoteFactory, InvalidRecordFactory


def stored_quotes(store):
    return json.loads(store.get(QUOTES_KEY))


@pytest.mark.unit
class TestRepositoryLoading:
    """Loading from the key-value store"""

    def test_defaults_when_store_empty(self, memory_store):
        repo = QuoteRepository(memory_store)
        assert repo.list() == DEFAULT_QUOTES
        assert [q.category for q in repo.list()] == ["Life", "Motivation", "Inspiration"]

    def test_loads_stored_quotes(self):
        store = MemoryKeyValueStore({QUOTES_KEY: json.dumps([{"text": "A", "category": "X"}])})
        repo = QuoteRepository(store)
        assert repo.list() == (Quote("A", "X"),)

    def test_corrupted_payload_falls_back_to_defaults(self):
        store = MemoryKeyValueStore({QUOTES_KEY: "{not json"})
        repo = QuoteRepository(store)
        assert repo.list() == DEFAULT_QUOTES

    def test_non_array_payload_falls_back_to_defaults(self):
        store = MemoryKeyValueStore({QUOTES_KEY: json.dumps({"text": "A", "category": "X"})})
        assert QuoteRepository(store).list() == DEFAULT_QUOTES

    def test_invalid_stored_records_are_dropped(self):
        store = MemoryKeyValueStore({QUOTES_KEY: json.dumps([
            {"text": "A", "category": "X"},
            {"text": "", "category": "Y"},
            "garbage",
        ])})
        assert QuoteRepository(store).list() == (Quote("A", "X"),)

    def test_storage_read_error_falls_back_to_defaults(self):
        store = Mock()
        store.get.side_effect = StorageError("disk gone")
        assert QuoteRepository(store).list() == DEFAULT_QUOTES


@pytest.mark.unit
class TestRepositoryAdd:
    """add()"""

    def test_add_appends_exactly_one_record_at_end(self, seeded_repository):
        before = seeded_repository.list()
        quote = seeded_repository.add("Knowledge is power.", "Wisdom")

        after = seeded_repository.list()
        assert len(after) == len(before) + 1
        assert after[:-1] == before
        assert after[-1] == quote == Quote("Knowledge is power.", "Wisdom")
        assert sum(1 for q in after if q == quote) == 1

    def test_add_persists(self, repository, memory_store):
        repository.add("A", "X")
        assert stored_quotes(memory_store) == [{"text": "A", "category": "X"}]

    def test_add_strips_whitespace(self, repository):
        quote = repository.add("  Padded text  ", "\tLife\n")
        assert quote == Quote("Padded text", "Life")

    @pytest.mark.parametrize("text,category", [
        ("", "Life"),
        ("Text", ""),
        ("   ", "Life"),
        ("Text", "  "),
        (None, "Life"),
        ("Text", 3),
    ])
    def test_add_rejects_invalid_fields(self, repository, memory_store, text, category):
        with pytest.raises(ValidationError):
            repository.add(text, category)
        assert len(repository) == 0
        assert memory_store.get(QUOTES_KEY) is None

    def test_add_for_random_valid_pairs(self, repository):
        for quote in QuoteFactory.create_quotes(10):
            before = len(repository)
            repository.add(quote.text, quote.category)
            assert len(repository) == before + 1
            assert repository.list()[-1] == quote


@pytest.mark.unit
class TestRepositoryImport:
    """import_many() / import_json()"""

    def test_import_keeps_only_valid_in_order(self, repository):
        valid = QuoteFactory.create_records(4)
        invalid = InvalidRecordFactory.create_invalid_records()
        candidates = [invalid[0], valid[0], invalid[1], valid[1], valid[2], invalid[2], valid[3]] + invalid[3:]

        imported = repository.import_many(candidates)

        assert [q.to_dict() for q in imported] == valid
        assert [q.to_dict() for q in repository.list()] == valid

    def test_import_appends_after_existing(self, seeded_repository):
        before = seeded_repository.list()
        seeded_repository.import_many([{"text": "New", "category": "Fresh"}])
        assert seeded_repository.list() == before + (Quote("New", "Fresh"),)

    def test_import_ignores_extra_fields(self, repository):
        repository.import_many([{"text": "A", "category": "X", "author": "Anon"}])
        assert repository.list() == (Quote("A", "X"),)

    def test_import_with_no_valid_records_raises(self, seeded_repository, memory_store):
        before = seeded_repository.list()
        persisted = memory_store.get(QUOTES_KEY)

        with pytest.raises(EmptyImportError):
            seeded_repository.import_many(InvalidRecordFactory.create_invalid_records())

        assert seeded_repository.list() == before
        assert memory_store.get(QUOTES_KEY) == persisted

    def test_import_empty_list_raises(self, repository):
        with pytest.raises(EmptyImportError) as exc_info:
            repository.import_many([])
        assert exc_info.value.message == "No valid quotes found in file."

    def test_import_persists(self, repository, memory_store):
        repository.import_many([{"text": "A", "category": "X"}, {"text": "B", "category": "Y"}])
        assert stored_quotes(memory_store) == [
            {"text": "A", "category": "X"},
            {"text": "B", "category": "Y"},
        ]

    def test_import_json_rejects_non_array(self, repository):
        with pytest.raises(MalformedImportError):
            repository.import_json(json.dumps({"text": "A", "category": "X"}))
        assert len(repository) == 0

    def test_import_json_rejects_invalid_json(self, repository):
        with pytest.raises(MalformedImportError):
            repository.import_json("[{'text': 'single quotes'}]")

    def test_import_json_valid(self, repository):
        imported = repository.import_json(json.dumps([{"text": "A", "category": "X"}]))
        assert imported == [Quote("A", "X")]


@pytest.mark.unit
class TestRepositoryQueries:
    """filter_by_category() / distinct_categories() / export_json()"""

    def test_filter_all_returns_everything(self, seeded_repository):
        assert seeded_repository.filter_by_category("all") == seeded_repository.list()

    def test_filter_all_is_case_sensitive(self, repository):
        repository.import_many([{"text": "A", "category": "All"}, {"text": "B", "category": "Other"}])
        assert repository.filter_by_category("ALL") == (Quote("A", "All"),)

    def test_filter_is_case_insensitive_exact_match(self, repository):
        repository.import_many([
            {"text": "A", "category": "Life"},
            {"text": "B", "category": "LIFE"},
            {"text": "C", "category": "Lifestyle"},
            {"text": "D", "category": "life"},
        ])
        assert [q.text for q in repository.filter_by_category("life")] == ["A", "B", "D"]

    def test_filter_unknown_category_is_empty(self, seeded_repository):
        assert seeded_repository.filter_by_category("Nope") == ()

    def test_distinct_categories_first_occurrence_order(self, repository):
        repository.import_many([
            {"text": "A", "category": "B"},
            {"text": "B", "category": "A"},
            {"text": "C", "category": "B"},
            {"text": "D", "category": "C"},
        ])
        assert repository.distinct_categories() == ["B", "A", "C"]

    def test_list_is_read_only_snapshot(self, seeded_repository):
        snapshot = seeded_repository.list()
        seeded_repository.add("Later", "X")
        assert isinstance(snapshot, tuple)
        assert len(snapshot) == len(seeded_repository) - 1

    def test_find_first_index_first_match(self, repository):
        repository.import_many([
            {"text": "Dup", "category": "X"},
            {"text": "Dup", "category": "Y"},
        ])
        assert find_first_index(repository.list(), "Dup") == 0
        assert find_first_index(repository.list(), "missing") is None

    def test_apply_merged_replaces_and_persists(self, repository, memory_store):
        merged = (Quote("A", "X"), Quote("B", "Y"))

        assert repository.apply_merged(merged) is True

        assert repository.list() == merged
        assert stored_quotes(memory_store) == [q.to_dict() for q in merged]

    def test_export_json_pretty_printed(self, seeded_repository):
        exported = seeded_repository.export_json()
        assert json.loads(exported) == [q.to_dict() for q in seeded_repository.list()]
        assert '\n  {' in exported


@pytest.mark.unit
class TestRepositoryPersistenceFailure:
    """Write-through failures are logged, never propagated"""

    def test_failed_write_keeps_memory_state(self):
        store = Mock()
        store.get.return_value = None
        store.set.side_effect = StorageError("quota exceeded")
        repo = QuoteRepository(store, defaults=())

        quote = repo.add("Still here", "Memory")

        assert repo.list() == (quote,)
        assert repo.save() is False

    def test_save_returns_true_on_success(self, repository):
        assert repository.save() is True
