"""Persisted ordered collection of records.

One PersistedCollection holds every record of one kind (books, notes, ...)
in order, and mirrors the whole sequence to durable storage after each
mutation.

ARCHITECTURE:
- The kind descriptor (``jujuhub.core.kinds``) supplies everything
  entity-specific: persistence key, fields, derived timestamps
- Storage is injected; the collection never chooses where data lives
- Clock and id generator are injected so tests are deterministic

MUTATION SEMANTICS:
- add/update/delete/reorder each rewrite the entire blob (no patches)
- Records handed out are copies; the only way to change a record is update()
- update()/delete() on an unknown id are no-ops and do not write

DERIVED TIMESTAMPS:
For each status pair of the kind, after the caller's changes are applied:
- inactive -> active: stamp = now
- active -> inactive: stamp = None
- unchanged: stamp untouched (re-saving a finished book keeps its date)

FAILURE SEMANTICS:
- Corrupt or absent blob at load: start empty (logged, not raised)
- Storage read failure at load: PersistenceError, collection stays unloaded
- Storage write failure: memory keeps the mutation, PersistenceError raised,
  ``is_durable`` turns False until a later write (or flush) succeeds

CONCURRENCY:
Every read-modify-write holds one re-entrant lock per collection, so two
threads can never both read the old sequence and overwrite each other.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import TYPE_CHECKING, Any, Callable, Iterator, Mapping, Sequence

from ..exceptions import (
    MalformedStateError,
    PersistenceError,
    ResourceNotFound,
    ValidationError,
)
from ..host.time import now_iso
from . import query
from .codec import PRIMITIVE_TYPES, decode_records, encode_records
from .kinds import NOW, CollectionKind
from .reorder import array_move, validate_permutation
from .types import to_primitive

if TYPE_CHECKING:
    from ..storage.base import Storage

logger = logging.getLogger(__name__)

Record = dict[str, Any]


def generate_id() -> str:
    """Generate a new record id (UUID4 string)."""
    return str(uuid.uuid4())


class PersistedCollection:
    """Ordered, durably mirrored collection of one kind of record.

    Attributes:
        kind: Descriptor of the entity kind
        storage: Durable mirror
    """

    ID_RETRIES = 3

    def __init__(
        self,
        kind: CollectionKind,
        storage: "Storage",
        now_fn: Callable[[], str] = now_iso,
        id_fn: Callable[[], str] = generate_id,
    ):
        """Initialize an unloaded collection.

        Args:
            kind: Descriptor of the entity kind
            storage: A ``jujuhub.storage.Storage``
            now_fn: Returns the current instant as an ISO 8601 string
            id_fn: Returns a fresh record id
        """
        self.kind = kind
        self.storage = storage
        self._now = now_fn
        self._new_id = id_fn
        self._records: list[Record] | None = None
        self._retired_ids: set[str] = set()
        self._durable = True
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        state = "unloaded" if self._records is None else f"{len(self._records)} records"
        return f"<PersistedCollection {self.kind.name} ({state})>"

    # ==========================================================================
    # LOADING
    # ==========================================================================

    @property
    def loaded(self) -> bool:
        return self._records is not None

    @property
    def is_durable(self) -> bool:
        """False when the last write to storage failed."""
        return self._durable

    def initialize(self) -> list[Record]:
        """Load the collection from storage if not loaded yet.

        Returns:
            Copies of the records in stored order

        Raises:
            PersistenceError: If the storage backend could not be read
        """
        with self._lock:
            self._ensure_loaded()
            return self._copies()

    def _ensure_loaded(self) -> list[Record]:
        if self._records is None:
            self._records = self._load()
        return self._records

    def _load(self) -> list[Record]:
        key = self.kind.key
        blob = self.storage.load(key)
        if blob is None:
            logger.debug("No stored data for %s, starting empty", key)
            return []

        try:
            records = decode_records(blob, id_field=self.kind.id_field)
        except MalformedStateError as e:
            logger.warning("Discarding malformed data for %s: %s", key, e.message)
            return []

        id_field = self.kind.id_field
        seen: set[str] = set()
        unique = []
        for record in records:
            if record[id_field] in seen:
                logger.warning("Dropping duplicate id %s in %s", record[id_field], key)
                continue
            seen.add(record[id_field])
            unique.append(record)

        logger.debug("Loaded %d records for %s", len(unique), key)
        return unique

    # ==========================================================================
    # READS
    # ==========================================================================

    def _copies(self, records: Sequence[Record] | None = None) -> list[Record]:
        if records is None:
            records = self._ensure_loaded()
        return [dict(r) for r in records]

    def _index_of(self, record_id: str) -> int | None:
        id_field = self.kind.id_field
        for index, record in enumerate(self._ensure_loaded()):
            if record[id_field] == record_id:
                return index
        return None

    def all(self) -> list[Record]:
        """Copies of all records in stored order."""
        with self._lock:
            return self._copies()

    def ids(self) -> list[str]:
        """Record ids in stored order."""
        with self._lock:
            return [r[self.kind.id_field] for r in self._ensure_loaded()]

    def get(self, record_id: str) -> Record:
        """Get one record by id.

        Raises:
            ResourceNotFound: If no record has that id
        """
        with self._lock:
            index = self._index_of(record_id)
            if index is None:
                raise ResourceNotFound(
                    f"{self.kind.name} record '{record_id}' not found",
                    {"id": record_id, "kind": self.kind.name},
                )
            return dict(self._records[index])

    def __len__(self) -> int:
        with self._lock:
            return len(self._ensure_loaded())

    def __iter__(self) -> Iterator[Record]:
        return iter(self.all())

    def __contains__(self, record_id: object) -> bool:
        with self._lock:
            return self._index_of(record_id) is not None

    # ==========================================================================
    # MUTATIONS
    # ==========================================================================

    def _persist(self, records: list[Record]) -> None:
        """Install ``records`` as the current sequence and write them out.

        Encoding happens before memory is touched. Memory is then replaced
        before the write so that a failed write leaves the mutation visible
        for the session.
        """
        key = self.kind.key
        blob = encode_records(records)
        self._records = records
        try:
            self.storage.save(key, blob)
        except PersistenceError as e:
            self._durable = False
            logger.error("Could not persist %s (%d records): %s", key, len(records), e.message)
            raise
        self._durable = True

    def _strip_protected(self, values: Mapping[str, Any], operation: str) -> dict[str, Any]:
        protected = self.kind.protected_fields
        ignored = sorted(name for name in values if name in protected)
        if ignored:
            logger.debug("%s %s: ignoring store-owned fields %s", operation, self.kind.name, ignored)
        cleaned = {name: to_primitive(v) for name, v in values.items() if name not in protected}
        for name, value in cleaned.items():
            if not isinstance(value, PRIMITIVE_TYPES):
                raise ValidationError(
                    f"{operation} {self.kind.name}: field '{name}' must be a string, number, "
                    f"boolean or None, got {type(value).__name__}",
                    {"kind": self.kind.name, "field": name, "type": type(value).__name__},
                )
        return cleaned

    def _unique_id(self) -> str:
        taken = {r[self.kind.id_field] for r in self._ensure_loaded()} | self._retired_ids
        for _ in range(self.ID_RETRIES):
            record_id = self._new_id()
            if record_id not in taken:
                return record_id
        raise RuntimeError(f"Failed to generate unique id after {self.ID_RETRIES} attempts")

    def add(self, *values: Any, **fields: Any) -> Record:
        """Create a record and append it to the collection.

        Positional values map onto the kind's fields in order, so
        ``books.add("Dune", "Herbert", "", "to-read", "")`` fills title,
        author, coverUrl, status and notes. Keyword fields override and may
        name fields outside the kind's list. Omitted fields take their
        defaults. Values must be JSON primitives (dates are converted); beyond
        that nothing is validated and empty strings are stored as is.

        Args:
            *values: Field values in the kind's positional order
            **fields: Field values by name

        Returns:
            Copy of the new record

        Raises:
            TypeError: If more positional values are given than the kind has fields
            ValidationError: If a value is not a string, number, boolean or None
            PersistenceError: If the write failed (record still added in memory)
        """
        names = self.kind.field_names
        if len(values) > len(names):
            raise TypeError(
                f"{self.kind.name}.add() takes at most {len(names)} positional values "
                f"({len(values)} given)"
            )

        with self._lock:
            records = self._ensure_loaded()
            supplied = dict(zip(names, values))
            supplied.update(fields)
            supplied = self._strip_protected(supplied, "add")

            now = self._now()
            record: Record = {self.kind.id_field: self._unique_id()}
            for field in self.kind.fields:
                value = supplied.pop(field.name, field.default)
                if value is NOW or (field.now_if_empty and not value):
                    value = now
                record[field.name] = value
            record.update(supplied)

            record[self.kind.created_field] = now
            if self.kind.tracks_updated_at:
                record["updatedAt"] = now
            for pair in self.kind.status_pairs:
                record[pair.stamp_field] = now if pair.is_active(record.get(pair.field)) else None

            logger.debug("Adding %s record %s", self.kind.name, record[self.kind.id_field])
            self._persist(records + [record])
            return dict(record)

    def update(self, record_id: str, changes: Mapping[str, Any]) -> list[Record]:
        """Overwrite some fields of a record.

        Fields absent from ``changes`` are untouched. Derived timestamps are
        then reconciled against the previous status values, and
        ``updatedAt`` is refreshed where the kind tracks it, even if nothing
        else changed.

        Args:
            record_id: Id of the record to change
            changes: Field overwrites

        Returns:
            Copies of all records; unchanged (and nothing written) if the id
            is unknown

        Raises:
            ValidationError: If a value is not a string, number, boolean or None
            PersistenceError: If the write failed (change kept in memory)
        """
        with self._lock:
            index = self._index_of(record_id)
            if index is None:
                logger.debug("update %s: no record %s", self.kind.name, record_id)
                return self._copies()

            records = self._records
            previous = records[index]
            updated = {**previous, **self._strip_protected(changes, "update")}

            now = self._now()
            for pair in self.kind.status_pairs:
                was_active = pair.is_active(previous.get(pair.field))
                is_active = pair.is_active(updated.get(pair.field))
                if is_active and not was_active:
                    updated[pair.stamp_field] = now
                elif was_active and not is_active:
                    updated[pair.stamp_field] = None
            if self.kind.tracks_updated_at:
                updated["updatedAt"] = now

            self._persist(records[:index] + [updated] + records[index + 1:])
            return self._copies()

    def delete(self, record_id: str) -> list[Record]:
        """Remove a record.

        Deleting an unknown id is a no-op and performs no write.

        Returns:
            Copies of the remaining records

        Raises:
            PersistenceError: If the write failed (record still gone from memory)
        """
        with self._lock:
            index = self._index_of(record_id)
            if index is None:
                logger.debug("delete %s: no record %s", self.kind.name, record_id)
                return self._copies()

            records = self._records
            self._retired_ids.add(record_id)
            logger.debug("Deleting %s record %s", self.kind.name, record_id)
            self._persist(records[:index] + records[index + 1:])
            return self._copies()

    def _require_manual_order(self) -> None:
        if not self.kind.manual_order:
            raise ValidationError(
                f"{self.kind.name} does not support manual ordering",
                {"kind": self.kind.name},
            )

    def reorder(self, new_order: Sequence[str | Mapping[str, Any]]) -> list[Record]:
        """Replace the stored order with a caller-computed permutation.

        Args:
            new_order: Every stored record exactly once, as ids or as records

        Returns:
            Copies of all records in the new order

        Raises:
            ValidationError: If the kind does not support manual ordering
            InvalidPermutationError: If new_order is not a permutation of
                the stored records (nothing changes)
            PersistenceError: If the write failed (new order kept in memory)
        """
        self._require_manual_order()

        id_field = self.kind.id_field
        new_ids = [item.get(id_field) if isinstance(item, Mapping) else item for item in new_order]

        with self._lock:
            records = self._ensure_loaded()
            validate_permutation((r[id_field] for r in records), new_ids)

            by_id = {r[id_field]: r for r in records}
            self._persist([by_id[record_id] for record_id in new_ids])
            return self._copies()

    def move(self, active_id: str, over_id: str) -> list[Record]:
        """Move one record to the position of another (drag and drop).

        Same id, or an unknown id on either side, leaves the order as is.

        Returns:
            Copies of all records in the resulting order
        """
        self._require_manual_order()
        with self._lock:
            old_index = self._index_of(active_id)
            new_index = self._index_of(over_id)
            if old_index is None or new_index is None or old_index == new_index:
                return self._copies()
            return self.reorder(array_move(self.ids(), old_index, new_index))

    def flush(self) -> None:
        """Write the current in-memory sequence to storage again.

        The retry path after a PersistenceError.

        Raises:
            PersistenceError: If the write failed again
        """
        with self._lock:
            self._persist(list(self._ensure_loaded()))

    # ==========================================================================
    # PROJECTIONS
    # ==========================================================================

    def filter(self, field: str, value: Any) -> list[Record]:
        """Records whose field equals value (empty value: all records)."""
        return query.filter_by(self.all(), field, value)

    def by_status(self, value: Any) -> list[Record]:
        """Filter on the kind's filter field (book status, track vibe, ...)."""
        if self.kind.filter_field is None:
            raise ValidationError(
                f"{self.kind.name} has no status filter",
                {"kind": self.kind.name},
            )
        return query.filter_by(self.all(), self.kind.filter_field, value)

    def search(self, term: str | None) -> list[Record]:
        """Case-insensitive search over the kind's text fields."""
        return query.search(self.all(), term, self.kind.search_fields)

    def sorted(self, order: str | None = None) -> list[Record]:
        """Records in a named display order (see ``query.sort_records``).

        The default order is newest first by the kind's creation field.
        """
        if not order or order == "createdAt":
            return query.newest_first(self.all(), self.kind.created_field)
        return query.sort_records(self.all(), order)
