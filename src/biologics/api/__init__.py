"""Biologics domain API package."""

from biologics.api.routes import ledger_router, order_router, register_ledger_exception_handlers

__all__ = ["ledger_router", "order_router", "register_ledger_exception_handlers"]
