"""
Unit tests for deck persistence.

Tests cover:
- JSON deck loading (document and hand-written list formats)
- Upserts and atomic rewrites
- Session history JSONL
- Error reporting via StoreError
"""

import json

import pytest

from src.engine.items import Item, LearningStage
from src.storage.item_store import InMemoryItemStore, JsonItemStore, StoreError


@pytest.fixture
def deck_path(tmp_path):
    return tmp_path / "decks" / "gre.json"


@pytest.fixture
def store(deck_path):
    return JsonItemStore(deck_path)


class TestJsonItemStore:
    def test_missing_file_is_empty_deck(self, store):
        assert store.load_items() == []

    def test_save_and_load(self, store, sample_item, make_item):
        other = make_item("Lucid")
        store.save_items([sample_item, other])

        loaded = {item.item_id: item for item in store.load_items()}
        assert loaded == {sample_item.item_id: sample_item, other.item_id: other}

    def test_save_upserts_by_id(self, store, sample_item, make_item):
        store.save_items([sample_item, make_item("Lucid")])
        updated = Item.from_dict({**sample_item.to_dict(), "learning_stage": "previewed"})

        store.save_items([updated])
        loaded = {item.item_id: item for item in store.load_items()}

        assert len(loaded) == 2
        assert loaded[sample_item.item_id].learning_stage == LearningStage.PREVIEWED

    def test_document_layout(self, store, deck_path, sample_item):
        store.save_items([sample_item])
        document = json.loads(deck_path.read_text(encoding="utf-8"))

        assert document["version"] == 1
        assert document["items"]["laconic"]["term"] == "Laconic"

    def test_no_temp_files_left(self, store, deck_path, sample_item):
        store.save_items([sample_item])
        assert [path.name for path in deck_path.parent.iterdir()] == ["gre.json"]

    def test_replace_all(self, store, sample_item, make_item):
        store.save_items([sample_item])
        store.replace_all([make_item("Lucid")])
        assert [item.term for item in store.load_items()] == ["Lucid"]

    def test_hand_written_list(self, tmp_path):
        path = tmp_path / "words.json"
        path.write_text(
            json.dumps([
                {"term": "Lucid", "definition": "Clear", "synonyms": ["clear"]},
                {"term": "Opaque", "definition": "Not transparent", "frequency": "rare"},
            ]),
            encoding="utf-8",
        )
        items = JsonItemStore(path).load_items()

        assert [item.term for item in items] == ["Lucid", "Opaque"]
        assert items[0].synonyms == ("clear",)

    def test_hand_written_ids_are_stable(self, tmp_path):
        path = tmp_path / "words.json"
        path.write_text(json.dumps([{"term": "Lucid", "definition": "Clear"}]), encoding="utf-8")
        store = JsonItemStore(path)

        (item,) = store.load_items()
        store.save_items([Item.from_dict({**item.to_dict(), "learning_stage": "previewed"})])

        (reloaded,) = store.load_items()
        assert reloaded.item_id == item.item_id
        assert reloaded.learning_stage == LearningStage.PREVIEWED

    def test_corrupt_json(self, deck_path, store):
        deck_path.parent.mkdir(parents=True)
        deck_path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError, match="Cannot read deck"):
            store.load_items()

    def test_unknown_layout(self, deck_path, store):
        deck_path.parent.mkdir(parents=True)
        deck_path.write_text(json.dumps({"words": []}), encoding="utf-8")
        with pytest.raises(StoreError, match="Unrecognised"):
            store.load_items()

    def test_invalid_item(self, deck_path, store):
        deck_path.parent.mkdir(parents=True)
        deck_path.write_text(json.dumps([{"term": "Lucid"}]), encoding="utf-8")
        with pytest.raises(StoreError, match="Invalid item #0"):
            store.load_items()

    @pytest.mark.parametrize(
        "record,message",
        [
            ({"term": "   ", "definition": "Clear"}, "Term cannot be empty"),
            ({"term": "Lucid", "definition": ""}, "Definition cannot be empty"),
            ({"term": "Lucid", "definition": "x" * 501}, "Definition is too long"),
            ({"term": "L" * 101, "definition": "Clear"}, "Term is too long"),
        ],
    )
    def test_content_is_validated(self, deck_path, store, record, message):
        deck_path.parent.mkdir(parents=True)
        deck_path.write_text(
            json.dumps([{"term": "Opaque", "definition": "Hard to see through"}, record]),
            encoding="utf-8",
        )
        with pytest.raises(StoreError, match=rf"Invalid item #1 .*{message}"):
            store.load_items()

    def test_invalid_enum_value(self, deck_path, store):
        deck_path.parent.mkdir(parents=True)
        deck_path.write_text(
            json.dumps([{"term": "Lucid", "definition": "Clear", "learning_stage": "bogus"}]),
            encoding="utf-8",
        )
        with pytest.raises(StoreError):
            store.load_items()

    def test_write_failure(self, tmp_path, sample_item):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        with pytest.raises(StoreError, match="Cannot write deck"):
            JsonItemStore(blocker / "deck.json").save_items([sample_item])


class TestSessionHistory:
    def test_sessions_file_sits_beside_deck(self, store, deck_path):
        assert store.sessions_path == deck_path.with_name("gre.sessions.jsonl")

    def test_append_and_load(self, store):
        store.save_session_stats("s1", {"quiz_correct": 2, "total_questions": 3})
        store.save_session_stats("s2", {"quiz_correct": 1, "total_questions": 1})

        history = store.load_session_history()
        assert [record["session_id"] for record in history] == ["s1", "s2"]
        assert history[0]["quiz_correct"] == 2
        assert "saved_at" in history[0]

    def test_corrupt_line_skipped(self, store):
        store.save_session_stats("s1", {"quiz_correct": 2})
        with open(store.sessions_path, "a", encoding="utf-8") as f:
            f.write("{broken\n\n")
        store.save_session_stats("s2", {"quiz_correct": 1})

        assert [record["session_id"] for record in store.load_session_history()] == ["s1", "s2"]

    def test_empty_history(self, store):
        assert store.load_session_history() == []


class TestInMemoryItemStore:
    def test_round_trip(self, sample_item, make_item):
        store = InMemoryItemStore([sample_item])
        store.save_items([make_item("Lucid")])
        store.save_session_stats("s1", {"quiz_correct": 1})

        assert len(store.load_items()) == 2
        assert store.load_session_history() == [{"session_id": "s1", "quiz_correct": 1}]
