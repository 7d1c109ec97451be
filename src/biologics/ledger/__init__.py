"""Ledger store abstraction: pluggable versioned key-value ledger."""

import os

from protean.utils.globals import current_domain

_store_instance = None


def _configured_adapter():
    custom = current_domain.config.get("custom", {}) if current_domain else {}
    return os.environ.get("LEDGER_STORE_ADAPTER") or custom.get("LEDGER_STORE_ADAPTER") or "memory"


def get_ledger_store():
    """Return the configured ledger store adapter (singleton).

    Uses MemoryLedgerStore by default. Configure via the LEDGER_STORE_ADAPTER
    environment variable or the domain's `custom` config.
    """
    global _store_instance
    if _store_instance is None:
        adapter = _configured_adapter()
        if adapter == "memory":
            from biologics.ledger.memory_adapter import MemoryLedgerStore

            _store_instance = MemoryLedgerStore()
        else:
            raise ValueError(f"Unknown ledger store adapter: {adapter}")
    return _store_instance


def reset_ledger_store():
    """Reset the ledger store singleton (useful for testing)."""
    global _store_instance
    _store_instance = None
