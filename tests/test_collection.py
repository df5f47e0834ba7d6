"""Tests for PersistedCollection CRUD, loading and persistence failures."""

import json
import threading
from datetime import date, datetime, timezone

import pytest

from jujuhub.core.codec import decode_records
from jujuhub.core import collection as collection_module
from jujuhub.core.collection import PersistedCollection
from jujuhub.core.kinds import BOOKS, DIARY, MEMORIES, MUSIC, NOTES
from jujuhub.exceptions import PersistenceError, ResourceNotFound, ValidationError
from jujuhub.storage import MemoryStorage


def stored(storage, key):
    """Decode what the storage currently holds for key."""
    return decode_records(storage.load(key))


# ============================================================================
# add()
# ============================================================================

class TestAdd:
    """Tests for record creation."""

    def test_add_book_positional_fields(self, hub, clock):
        """Positional values fill the kind's fields in order."""
        book = hub.books.add("Dune", "Herbert", "", "to-read", "")

        assert book["title"] == "Dune"
        assert book["author"] == "Herbert"
        assert book["coverUrl"] == ""
        assert book["status"] == "to-read"
        assert book["notes"] == ""
        assert book["addedAt"] == clock()
        assert book["completedAt"] is None
        assert isinstance(book["id"], str) and book["id"]

    def test_add_uses_field_defaults(self, hub):
        """Omitted fields take the kind's defaults."""
        book = hub.books.add("Dune", "Herbert", "")
        item = hub.bucketlist.add("Skydiving")
        track = hub.music.add("Song", "Artist", "chill")

        assert book["status"] == "to-read"
        assert book["notes"] == ""
        assert item["description"] == ""
        assert item["priority"] == "medium"
        assert item["dueDate"] is None
        assert item["completed"] is False
        assert item["completedAt"] is None
        assert track["link"] == ""

    def test_add_performs_no_validation(self, hub):
        """Empty strings are stored as given."""
        note = hub.notes.add("", "")

        assert note["title"] == ""
        assert note["content"] == ""
        assert len(hub.notes) == 1

    def test_add_keyword_fields_and_extras(self, hub):
        """Keyword fields override positionals; unknown fields are kept."""
        track = hub.music.add("Song", "Artist", "chill", vibe="upbeat", rating=5)

        assert track["vibe"] == "upbeat"
        assert track["rating"] == 5

    def test_add_too_many_positional_values(self, hub):
        """More positional values than fields is a programming error."""
        with pytest.raises(TypeError, match="at most 2 positional"):
            hub.notes.add("a", "b", "c")

    def test_add_appends_in_order(self, hub):
        """New records go to the end of the sequence."""
        first = hub.notes.add("First", "")
        second = hub.notes.add("Second", "")

        assert hub.notes.ids() == [first["id"], second["id"]]

    def test_add_stamps_created_and_updated(self, hub, clock):
        """Notes track updatedAt; both start at the creation instant."""
        note = hub.notes.add("Title", "Body")

        assert note["createdAt"] == clock()
        assert note["updatedAt"] == clock()

    def test_add_diary_uses_date_as_creation_field(self, hub, clock):
        """Diary entries record their creation instant in 'date'."""
        entry = hub.diary.add("Dear diary", "😊")

        assert entry["date"] == clock()
        assert "createdAt" not in entry

    def test_add_memory_date_defaults_to_now(self, hub, clock):
        """A memory without a date is dated at creation."""
        undated = hub.memories.add("Beach", "https://example.com/beach.jpg")
        empty = hub.memories.add("Park", "https://example.com/park.jpg", "", "")
        dated = hub.memories.add("Hike", "https://example.com/hike.jpg", "", "2024-06-01")

        assert undated["date"] == clock()
        assert empty["date"] == clock()
        assert dated["date"] == "2024-06-01"
        assert dated["createdAt"] == clock()

    def test_add_normalises_dates(self, hub):
        """date and datetime values are stored as ISO strings."""
        item = hub.bucketlist.add("Trip", dueDate=date(2025, 7, 1))
        memory = hub.memories.add(
            "Dinner", "url", date=datetime(2024, 2, 14, 19, 30, tzinfo=timezone.utc)
        )

        assert item["dueDate"] == "2025-07-01"
        assert memory["date"] == "2024-02-14T19:30:00.000Z"
        assert stored(hub.storage, MEMORIES.key)[0]["date"] == "2024-02-14T19:30:00.000Z"

    def test_add_ignores_store_owned_fields(self, hub, clock):
        """Callers cannot choose id or timestamps."""
        note = hub.notes.add("T", "C", id="mine", createdAt="1999-01-01T00:00:00.000Z")

        assert note["id"] != "mine"
        assert note["createdAt"] == clock()

    def test_add_persists_whole_collection(self, hub, storage):
        """Every add writes the full sequence."""
        hub.notes.add("One", "")
        hub.notes.add("Two", "")

        assert [r["title"] for r in stored(storage, NOTES.key)] == ["One", "Two"]
        assert storage.writes == 2


class TestIdentifiers:
    """Tests for id uniqueness."""

    def test_ids_are_unique(self, hub):
        """Many adds never produce a duplicate id."""
        ids = [hub.notes.add(f"Note {i}", "")["id"] for i in range(200)]

        assert len(set(ids)) == len(ids)

    def test_deleted_id_is_not_reused(self, storage, clock):
        """A generator repeating a retired id is retried."""
        candidates = iter(["a", "a", "b"])
        notes = PersistedCollection(NOTES, storage, now_fn=clock, id_fn=lambda: next(candidates))

        first = notes.add("One", "")
        notes.delete(first["id"])
        second = notes.add("Two", "")

        assert first["id"] == "a"
        assert second["id"] == "b"

    def test_id_generation_gives_up(self, storage, clock):
        """A generator that only repeats itself fails loudly."""
        notes = PersistedCollection(NOTES, storage, now_fn=clock, id_fn=lambda: "same")
        notes.add("One", "")

        with pytest.raises(RuntimeError, match="unique id"):
            notes.add("Two", "")
        assert len(notes) == 1


# ============================================================================
# update()
# ============================================================================

class TestUpdate:
    """Tests for partial updates."""

    def test_update_overwrites_only_given_fields(self, hub):
        """Fields absent from the changes are untouched."""
        track = hub.music.add("Song", "Artist", "chill", "https://example.com")

        hub.music.update(track["id"], {"vibe": "focus"})
        result = hub.music.get(track["id"])

        assert result["vibe"] == "focus"
        assert result["title"] == "Song"
        assert result["link"] == "https://example.com"

    def test_update_returns_full_sequence(self, hub):
        """update() returns every record, in order."""
        a = hub.music.add("A", "x", "chill")
        b = hub.music.add("B", "y", "chill")

        records = hub.music.update(b["id"], {"title": "B2"})

        assert [r["id"] for r in records] == [a["id"], b["id"]]
        assert records[1]["title"] == "B2"

    def test_update_refreshes_updated_at(self, hub, clock):
        """updatedAt moves on every update, even with no changes."""
        note = hub.notes.add("Title", "Body")
        created = clock()
        later = clock.advance(120)

        hub.notes.update(note["id"], {})
        result = hub.notes.get(note["id"])

        assert result["updatedAt"] == later
        assert result["createdAt"] == created

    def test_update_cannot_touch_creation_stamp(self, hub, clock):
        """createdAt/addedAt never change after creation."""
        book = hub.books.add("Dune", "Herbert", "")
        clock.advance()

        hub.books.update(book["id"], {"addedAt": clock(), "id": "other"})
        result = hub.books.get(book["id"])

        assert result["addedAt"] == book["addedAt"]
        assert result["id"] == book["id"]

    def test_update_unknown_id_is_noop(self, hub, storage):
        """Updating a missing id returns the records and writes nothing."""
        hub.notes.add("One", "")
        writes = storage.writes

        records = hub.notes.update("missing", {"title": "x"})

        assert [r["title"] for r in records] == ["One"]
        assert storage.writes == writes

    def test_update_persists(self, hub, storage):
        """The change reaches durable storage."""
        note = hub.notes.add("Old", "")

        hub.notes.update(note["id"], {"title": "New"})

        assert stored(storage, NOTES.key)[0]["title"] == "New"


# ============================================================================
# Value checks
# ============================================================================

class TestValueChecks:
    """Only values that survive a reload are accepted."""

    @pytest.mark.parametrize("value", [["a", "b"], {"nested": 1}, {1, 2}, object()])
    def test_add_rejects_non_primitive(self, hub, storage, clock, value):
        """A rejected add leaves memory and storage untouched."""
        hub.notes.add("Keep me", "important")
        writes = storage.writes

        with pytest.raises(ValidationError) as exc_info:
            hub.notes.add("Tagged", "x", tags=value)

        assert exc_info.value.details["field"] == "tags"
        assert len(hub.notes) == 1
        assert hub.notes.is_durable
        assert storage.writes == writes
        reloaded = PersistedCollection(NOTES, storage, now_fn=clock)
        assert [r["title"] for r in reloaded.all()] == ["Keep me"]

    @pytest.mark.parametrize("value", [["a"], {"nested": 1}, {1, 2}])
    def test_update_rejects_non_primitive(self, hub, storage, clock, value):
        note = hub.notes.add("Keep me", "important")
        writes = storage.writes

        with pytest.raises(ValidationError):
            hub.notes.update(note["id"], {"content": value})

        assert hub.notes.get(note["id"])["content"] == "important"
        assert storage.writes == writes
        reloaded = PersistedCollection(NOTES, storage, now_fn=clock)
        assert reloaded.get(note["id"])["content"] == "important"

    def test_positional_values_are_checked(self, hub):
        with pytest.raises(ValidationError):
            hub.music.add("Song", ["Artist A", "Artist B"], "chill")

        assert len(hub.music) == 0

    def test_collection_usable_after_rejection(self, hub):
        hub.notes.add("First", "")
        with pytest.raises(ValidationError):
            hub.notes.add("Bad", "", extra={1, 2})

        hub.notes.add("Second", "")

        assert [r["title"] for r in hub.notes.all()] == ["First", "Second"]

    def test_primitives_accepted(self, hub, storage, clock):
        track = hub.music.add("Song", "Artist", "chill", rating=4.5, plays=3, liked=True, album=None)

        reloaded = PersistedCollection(MUSIC, storage, now_fn=clock)

        assert reloaded.get(track["id"]) == track

    def test_encode_failure_leaves_state_untouched(self, hub, storage, monkeypatch):
        """If the blob cannot be encoded, nothing is installed or written."""
        hub.notes.add("First", "")
        writes = storage.writes

        def broken_encode(records):
            raise TypeError("not serializable")

        with monkeypatch.context() as m:
            m.setattr(collection_module, "encode_records", broken_encode)
            with pytest.raises(TypeError):
                hub.notes.add("Second", "")

        assert [r["title"] for r in hub.notes.all()] == ["First"]
        assert hub.notes.is_durable
        assert storage.writes == writes

        hub.notes.add("Third", "")
        assert [r["title"] for r in stored(storage, NOTES.key)] == ["First", "Third"]


# ============================================================================
# delete() and reads
# ============================================================================

class TestDelete:
    """Tests for deletion."""

    def test_delete_removes_from_memory_and_storage(self, hub, storage):
        """A deleted record is gone everywhere."""
        keep = hub.notes.add("Keep", "")
        drop = hub.notes.add("Drop", "")

        records = hub.notes.delete(drop["id"])

        assert [r["id"] for r in records] == [keep["id"]]
        assert drop["id"] not in hub.notes
        assert [r["id"] for r in stored(storage, NOTES.key)] == [keep["id"]]

    def test_delete_unknown_id_is_noop(self, hub, storage):
        """Deleting a missing id returns the same records without writing."""
        for title in ("A", "B", "C"):
            hub.notes.add(title, "")
        writes = storage.writes

        records = hub.notes.delete("not-there")

        assert [r["title"] for r in records] == ["A", "B", "C"]
        assert storage.writes == writes

    def test_delete_is_idempotent(self, hub):
        """Deleting twice is the same as deleting once."""
        note = hub.notes.add("Once", "")

        hub.notes.delete(note["id"])
        hub.notes.delete(note["id"])

        assert len(hub.notes) == 0


class TestReads:
    """Tests for get/all/iteration."""

    def test_get_missing_raises(self, hub):
        """get() reports a missing id."""
        with pytest.raises(ResourceNotFound) as exc_info:
            hub.books.get("missing")

        assert exc_info.value.details == {"id": "missing", "kind": "books"}

    def test_records_are_copies(self, hub):
        """Mutating a fetched record does not change the store."""
        note = hub.notes.add("Original", "")

        fetched = hub.notes.all()[0]
        fetched["title"] = "Hacked"
        note["title"] = "Hacked too"

        assert hub.notes.get(note["id"])["title"] == "Original"

    def test_len_iter_contains(self, hub):
        """Collections behave like read-only sequences of records."""
        a = hub.diary.add("One", "😊")
        hub.diary.add("Two", "😔")

        assert len(hub.diary) == 2
        assert [r["content"] for r in hub.diary] == ["One", "Two"]
        assert a["id"] in hub.diary
        assert "nope" not in hub.diary


# ============================================================================
# Loading from storage
# ============================================================================

class TestLoading:
    """Tests for lazy initialization from durable storage."""

    def test_loads_lazily(self, clock):
        """Nothing is read until first access."""
        storage = MemoryStorage({BOOKS.key: json.dumps([{"id": "b1", "title": "Dune"}])})
        books = PersistedCollection(BOOKS, storage, now_fn=clock)

        assert not books.loaded
        assert books.initialize()[0]["title"] == "Dune"
        assert books.loaded

    def test_absent_blob_is_empty(self, storage, clock):
        """No stored data means an empty collection."""
        books = PersistedCollection(BOOKS, storage, now_fn=clock)

        assert books.all() == []

    @pytest.mark.parametrize("blob", [
        "{not json",
        '{"id": "a"}',
        '[1, 2, 3]',
        '[{"title": "no id"}]',
        '[{"id": "a", "tags": ["nested"]}]',
    ])
    def test_malformed_blob_is_empty(self, clock, caplog, blob):
        """Corrupt data is treated as no data and logged."""
        storage = MemoryStorage({NOTES.key: blob})
        notes = PersistedCollection(NOTES, storage, now_fn=clock)

        with caplog.at_level("WARNING", logger="jujuhub"):
            assert notes.all() == []

        assert "malformed" in caplog.text

    def test_malformed_blob_replaced_on_next_write(self, clock):
        """The first mutation writes a valid blob over the corrupt one."""
        storage = MemoryStorage({NOTES.key: "garbage"})
        notes = PersistedCollection(NOTES, storage, now_fn=clock)

        notes.add("Fresh", "")

        assert [r["title"] for r in stored(storage, NOTES.key)] == ["Fresh"]

    def test_duplicate_ids_keep_first(self, clock):
        """A blob with repeated ids loads with the first occurrence only."""
        blob = json.dumps([
            {"id": "a", "title": "first"},
            {"id": "a", "title": "second"},
            {"id": "b", "title": "other"},
        ])
        notes = PersistedCollection(NOTES, MemoryStorage({NOTES.key: blob}), now_fn=clock)

        assert notes.ids() == ["a", "b"]
        assert notes.get("a")["title"] == "first"

    def test_loads_browser_blob(self, clock):
        """Data written by the browser application loads unchanged."""
        blob = json.dumps([{
            "id": "6f1c2a1e-9d7b-4a53-8f0e-3b6f0a7c9d21",
            "title": "Dune",
            "author": "Frank Herbert",
            "coverUrl": "",
            "status": "done",
            "notes": "",
            "addedAt": "2024-03-01T10:00:00.000Z",
            "completedAt": "2024-03-20T21:15:00.000Z",
        }])
        books = PersistedCollection(BOOKS, MemoryStorage({BOOKS.key: blob}), now_fn=clock)

        assert books.all() == json.loads(blob)

    def test_read_failure_propagates(self, failing_storage, clock):
        """A storage read error is not mistaken for an empty collection."""
        failing_storage.fail_reads = True
        notes = PersistedCollection(NOTES, failing_storage, now_fn=clock)

        with pytest.raises(PersistenceError):
            notes.all()
        assert not notes.loaded

        failing_storage.fail_reads = False
        assert notes.all() == []


# ============================================================================
# Persistence failures
# ============================================================================

class TestPersistenceFailure:
    """Tests for surfaced write failures."""

    def test_write_failure_is_reported(self, failing_storage, clock):
        """A failed write raises, but the mutation stays visible."""
        notes = PersistedCollection(NOTES, failing_storage, now_fn=clock)
        failing_storage.fail_writes = True

        with pytest.raises(PersistenceError) as exc_info:
            notes.add("Unsaved", "")

        assert exc_info.value.key == NOTES.key
        assert [r["title"] for r in notes.all()] == ["Unsaved"]
        assert not notes.is_durable
        assert failing_storage.load(NOTES.key) is None

    def test_flush_recovers(self, failing_storage, clock):
        """flush() writes the in-memory state once storage works again."""
        notes = PersistedCollection(NOTES, failing_storage, now_fn=clock)
        failing_storage.fail_writes = True
        with pytest.raises(PersistenceError):
            notes.add("Unsaved", "")

        failing_storage.fail_writes = False
        notes.flush()

        assert notes.is_durable
        assert [r["title"] for r in stored(failing_storage, NOTES.key)] == ["Unsaved"]

    def test_next_successful_write_restores_durability(self, failing_storage, clock):
        """Repeating a mutation is also a valid retry."""
        notes = PersistedCollection(NOTES, failing_storage, now_fn=clock)
        note = notes.add("Saved", "")
        failing_storage.fail_writes = True
        with pytest.raises(PersistenceError):
            notes.update(note["id"], {"title": "Edited"})

        failing_storage.fail_writes = False
        notes.update(note["id"], {"title": "Edited"})

        assert notes.is_durable
        assert stored(failing_storage, NOTES.key)[0]["title"] == "Edited"

    def test_write_failure_is_logged(self, failing_storage, clock, caplog):
        """Failed writes are logged as errors."""
        diary = PersistedCollection(DIARY, failing_storage, now_fn=clock)
        failing_storage.fail_writes = True

        with caplog.at_level("ERROR", logger="jujuhub"):
            with pytest.raises(PersistenceError):
                diary.add("Entry", "😊")

        assert "Could not persist jujuhub-diary" in caplog.text


# ============================================================================
# Concurrency
# ============================================================================

class TestConcurrency:
    """Tests for the per-collection lock."""

    def test_concurrent_adds_lose_nothing(self, storage, clock):
        """Parallel writers never overwrite each other's records."""
        tracks = PersistedCollection(MUSIC, storage, now_fn=clock)

        def worker(n):
            for i in range(25):
                tracks.add(f"Track {n}-{i}", "Artist", "chill")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(tracks) == 200
        assert len(stored(storage, MUSIC.key)) == 200
