"""Biologics bounded context: therapy order lifecycle on a versioned ledger.

Orders are recorded as whole JSON documents in a key-value ledger. Every
status change appends to the order's status history and writes a new version
of the document, so the ledger's per-key version log doubles as an audit trail.
"""

from protean.domain import Domain

from biologics.utils.logging import configure_logging, get_logger

configure_logging(log_file_prefix="biologics")

logger = get_logger(__name__)

biologics = Domain(name="biologics")
