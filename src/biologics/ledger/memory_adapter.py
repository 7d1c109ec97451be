"""Memory ledger store: versioned in-process ledger for development and tests.

Keeps the current world state plus a per-key version log, and runs a small
subset of the Mango rich-query language (selector, sort) with bookmark based
pagination. Failure behavior is configurable for integration testing.
"""

import base64
import binascii
import hashlib
import json
import threading
from datetime import UTC, datetime
from uuid import uuid4

from biologics.ledger.port import (
    KV,
    KeyModification,
    LedgerStorePort,
    QueryResponseMetadata,
    ResultsIterator,
    StoreQueryError,
    StoreReadError,
    StoreWriteError,
)

_SORT_DIRECTIONS = ("asc", "desc")


def _lookup(document, path):
    """Resolve a dotted field path. Returns (found, value)."""
    current = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return False, None
        current = current[part]
    return True, current


def _collation_key(value):
    """Order values the way CouchDB collates JSON: null < bools < numbers < strings < arrays < objects."""
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, int(value))
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, str):
        return (3, value)
    if isinstance(value, list):
        return (4, json.dumps(value, sort_keys=True))
    return (5, json.dumps(value, sort_keys=True))


def _matches_condition(found, value, condition):
    if not isinstance(condition, dict):
        return found and value == condition

    for operator, operand in condition.items():
        if operator == "$exists":
            if bool(operand) != found:
                return False
        elif operator == "$eq":
            if not found or value != operand:
                return False
        elif operator == "$ne":
            if found and value == operand:
                return False
        elif operator == "$in":
            if not isinstance(operand, list):
                raise StoreQueryError(f"$in expects a list, got {operand!r}")
            if not found or value not in operand:
                return False
        else:
            raise StoreQueryError(f"Unsupported selector operator: {operator}")
    return True


def _matches(document, selector):
    for path, condition in selector.items():
        found, value = _lookup(document, path)
        if not _matches_condition(found, value, condition):
            return False
    return True


def _parse_sort(sort):
    """Normalize a Mango sort list into ([fields], direction)."""
    if sort is None:
        return [], "asc"
    if not isinstance(sort, list):
        raise StoreQueryError(f"sort must be a list, got {sort!r}")

    fields = []
    directions = set()
    for entry in sort:
        if isinstance(entry, str):
            fields.append(entry)
            directions.add("asc")
        elif isinstance(entry, dict) and len(entry) == 1:
            (field, direction), = entry.items()
            if direction not in _SORT_DIRECTIONS:
                raise StoreQueryError(f"Invalid sort direction for {field}: {direction!r}")
            fields.append(field)
            directions.add(direction)
        else:
            raise StoreQueryError(f"Invalid sort entry: {entry!r}")

    if len(directions) > 1:
        raise StoreQueryError("All sort fields must use the same direction")
    return fields, directions.pop() if directions else "asc"


class MemoryLedgerStore(LedgerStorePort):
    """In-process ledger with history and paginated rich queries.

    Args:
        indexed_fields: when given, only these fields may be used to sort;
            sorting on anything else fails like an unindexed sort would.
    """

    def __init__(self, indexed_fields=None):
        self._lock = threading.RLock()
        self._state: dict[str, bytes] = {}
        self._history: dict[str, list[KeyModification]] = {}
        self.indexed_fields = set(indexed_fields) if indexed_fields is not None else None
        self.open_cursors = 0
        self.fail_reads = False
        self.fail_writes = False
        self.fail_queries = False
        self.failure_reason = "Ledger unavailable"

    def configure(
        self,
        fail_reads: bool = False,
        fail_writes: bool = False,
        fail_queries: bool = False,
        failure_reason: str = "Ledger unavailable",
    ):
        """Configure the store's failure behavior for testing."""
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.fail_queries = fail_queries
        self.failure_reason = failure_reason

    def reset(self):
        """Drop all state and history."""
        with self._lock:
            self._state.clear()
            self._history.clear()
            self.open_cursors = 0

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def _append_version(self, key, value, is_delete):
        modification = KeyModification(
            tx_id=uuid4().hex,
            timestamp=datetime.now(UTC).isoformat(),
            is_delete=is_delete,
            value=value,
        )
        self._history.setdefault(key, []).append(modification)

    def put(self, key: str, value: bytes) -> None:
        if self.fail_writes:
            raise StoreWriteError(f"Failed to put state for {key}: {self.failure_reason}")
        if not key:
            raise StoreWriteError("Key must not be empty")
        if not isinstance(value, (bytes, bytearray)):
            raise StoreWriteError(f"Value for {key} must be bytes, got {type(value).__name__}")

        with self._lock:
            self._state[key] = bytes(value)
            self._append_version(key, bytes(value), is_delete=False)

    def delete(self, key: str) -> None:
        if self.fail_writes:
            raise StoreWriteError(f"Failed to delete state for {key}: {self.failure_reason}")

        with self._lock:
            if key not in self._state:
                return
            del self._state[key]
            self._append_version(key, b"", is_delete=True)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, key: str) -> bytes | None:
        if self.fail_reads:
            raise StoreReadError(f"Failed to read state for {key}: {self.failure_reason}")
        with self._lock:
            return self._state.get(key)

    def _cursor(self, items):
        with self._lock:
            self.open_cursors += 1
        return ResultsIterator(items, on_close=self._release_cursor)

    def _release_cursor(self):
        with self._lock:
            self.open_cursors -= 1

    def get_history(self, key: str) -> ResultsIterator:
        if self.fail_reads:
            raise StoreReadError(f"Failed to read history for {key}: {self.failure_reason}")
        with self._lock:
            versions = list(self._history.get(key, []))
        return self._cursor(versions)

    def get_state_by_range(self, start_key: str, end_key: str) -> ResultsIterator:
        if self.fail_reads:
            raise StoreReadError(f"Failed to scan range [{start_key!r}, {end_key!r}): {self.failure_reason}")
        with self._lock:
            rows = [
                KV(key=key, value=value)
                for key, value in sorted(self._state.items())
                if (not start_key or key >= start_key) and (not end_key or key < end_key)
            ]
        return self._cursor(rows)

    # -------------------------------------------------------------------
    # Rich queries
    # -------------------------------------------------------------------
    def _parse_query(self, query):
        try:
            parsed = json.loads(query)
        except (TypeError, ValueError) as exc:
            raise StoreQueryError(f"Query is not valid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise StoreQueryError("Query must be a JSON object")

        selector = parsed.get("selector")
        if not isinstance(selector, dict):
            raise StoreQueryError("Query must contain a selector object")

        fields, direction = _parse_sort(parsed.get("sort"))
        if self.indexed_fields is not None:
            unindexed = [field for field in fields if field not in self.indexed_fields]
            if unindexed:
                raise StoreQueryError(f"No index exists for sort field(s): {', '.join(unindexed)}")

        fingerprint = hashlib.sha256(
            json.dumps({"selector": selector, "sort": parsed.get("sort")}, sort_keys=True).encode("utf-8")
        ).hexdigest()[:16]
        return selector, fields, direction, fingerprint

    @staticmethod
    def _encode_bookmark(fingerprint, row_key, sort_values):
        payload = json.dumps({"fp": fingerprint, "key": row_key, "values": sort_values})
        return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")

    @staticmethod
    def _decode_bookmark(bookmark, fingerprint):
        try:
            payload = json.loads(base64.urlsafe_b64decode(bookmark.encode("ascii")))
        except (binascii.Error, UnicodeError, ValueError) as exc:
            raise StoreQueryError(f"Invalid bookmark: {bookmark!r}") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("values"), list) or "key" not in payload:
            raise StoreQueryError(f"Invalid bookmark: {bookmark!r}")
        if payload.get("fp") != fingerprint:
            raise StoreQueryError("Bookmark does not belong to this query")
        return payload["key"], payload["values"]

    def query_with_pagination(
        self,
        query: str,
        page_size: int,
        bookmark: str,
    ) -> tuple[ResultsIterator, QueryResponseMetadata]:
        if self.fail_queries:
            raise StoreQueryError(f"Failed to execute query: {self.failure_reason}")
        if not isinstance(page_size, int) or page_size <= 0:
            raise StoreQueryError(f"Page size must be a positive integer, got {page_size!r}")

        selector, fields, direction, fingerprint = self._parse_query(query)

        with self._lock:
            snapshot = sorted(self._state.items())

        rows = []
        for key, value in snapshot:
            try:
                document = json.loads(value)
            except ValueError:
                continue
            if not isinstance(document, dict) or not _matches(document, selector):
                continue
            lookups = [_lookup(document, field) for field in fields]
            if not all(found for found, _ in lookups):
                continue
            sort_values = [value for _, value in lookups]
            rows.append((tuple(_collation_key(v) for v in sort_values), key, sort_values, value))

        descending = direction == "desc"
        rows.sort(key=lambda row: (row[0], row[1]), reverse=descending)

        if bookmark:
            last_key, last_values = self._decode_bookmark(bookmark, fingerprint)
            position = (tuple(_collation_key(v) for v in last_values), last_key)
            if descending:
                rows = [row for row in rows if (row[0], row[1]) < position]
            else:
                rows = [row for row in rows if (row[0], row[1]) > position]

        page = rows[:page_size]
        if page:
            _, last_key, last_values, _ = page[-1]
            next_bookmark = self._encode_bookmark(fingerprint, last_key, last_values)
        else:
            next_bookmark = bookmark

        metadata = QueryResponseMetadata(fetched_records_count=len(page), bookmark=next_bookmark)
        return self._cursor([KV(key=key, value=value) for _, key, _, value in page]), metadata
