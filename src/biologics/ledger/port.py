"""Ledger store port: abstract interface for the versioned key-value ledger.

Order code programs against this port; adapters are swapped via configuration.
Iterators handed out by the port hold store-side cursors and must be closed,
so they are context managers:

    with store.get_history(order_id) as history:
        for modification in history:
            ...
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass


class LedgerStoreError(Exception):
    """Base class for failures reported by a ledger store adapter."""


class StoreWriteError(LedgerStoreError):
    """A put or delete could not be applied."""


class StoreReadError(LedgerStoreError):
    """A point read, range scan or history read failed."""


class StoreQueryError(LedgerStoreError):
    """A rich query failed (bad selector, unindexed sort field, invalid bookmark)."""


@dataclass(frozen=True)
class KV:
    """A key and its current value as returned by range scans and queries."""

    key: str
    value: bytes


@dataclass(frozen=True)
class KeyModification:
    """One version of a key from the ledger's version log."""

    tx_id: str
    timestamp: str
    is_delete: bool
    value: bytes


@dataclass(frozen=True)
class QueryResponseMetadata:
    fetched_records_count: int
    bookmark: str


class ResultsIterator:
    """Closable iterator over store results.

    Adapters wrap whatever cursor they hold in one of these; closing it
    releases the cursor. Closing twice is a no-op.
    """

    def __init__(self, items, on_close=None):
        self._items = iter(items)
        self._on_close = on_close
        self.closed = False

    def __iter__(self) -> Iterator:
        return self

    def __next__(self):
        if self.closed:
            raise StopIteration
        return next(self._items)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class LedgerStorePort(ABC):
    """Abstract interface for ledger store adapters."""

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        """Write a new version of `key`.

        Raises:
            StoreWriteError: the write could not be applied.
        """
        ...

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the current value of `key`, or None when nothing is stored.

        Raises:
            StoreReadError: the read failed.
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Mark `key` deleted. The deletion is recorded in the key's history.

        Raises:
            StoreWriteError: the deletion could not be applied.
        """
        ...

    @abstractmethod
    def get_history(self, key: str) -> ResultsIterator:
        """Return a closable iterator of KeyModification for `key`.

        A key that never existed yields an empty iterator.

        Raises:
            StoreReadError: the history could not be read.
        """
        ...

    @abstractmethod
    def get_state_by_range(self, start_key: str, end_key: str) -> ResultsIterator:
        """Return a closable iterator of KV for keys in [start_key, end_key).

        Empty bounds are open-ended.

        Raises:
            StoreReadError: the scan failed.
        """
        ...

    @abstractmethod
    def query_with_pagination(
        self,
        query: str,
        page_size: int,
        bookmark: str,
    ) -> tuple[ResultsIterator, QueryResponseMetadata]:
        """Run a JSON rich query and return one page of KV results.

        `query` is JSON text with a `selector` object and an optional `sort`
        list. An empty `bookmark` starts from the first page.

        Raises:
            StoreQueryError: the query could not be executed.
        """
        ...
