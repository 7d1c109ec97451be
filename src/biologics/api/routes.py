"""FastAPI routes for the Biologics domain: therapy orders on the ledger."""

import json

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from biologics.api.schemas import (
    CreateOrderRequest,
    OrderExistsResponse,
    OrderPageResponse,
    UpdateOrderStatusRequest,
)
from biologics.ledger.port import LedgerStoreError
from biologics.order.creation import CreateOrder
from biologics.order.ledger import OrderLedger
from biologics.order.status import UpdateOrderStatus

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201)
async def create_order(body: CreateOrderRequest) -> dict:
    command = CreateOrder(
        order_id=body.order_id,
        order_data=json.dumps(body.to_payload()),
    )
    return current_domain.process(command, asynchronous=False)


@order_router.put("/{order_id}/status")
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> dict:
    command = UpdateOrderStatus(
        order_id=order_id,
        update_data=json.dumps(body.to_payload(order_id)),
    )
    return current_domain.process(command, asynchronous=False)


@order_router.get("", response_model=OrderPageResponse)
async def list_orders(
    page_size: str = "10",
    bookmark: str = "",
    sort_field: str | None = None,
    sort_order: str | None = None,
) -> dict:
    return OrderLedger.from_config().get_all_orders_with_pagination(
        page_size,
        bookmark,
        sort_field=sort_field,
        sort_order=sort_order,
    )


@order_router.get("/{order_id}")
async def get_order(order_id: str) -> dict:
    return OrderLedger.from_config().get_order(order_id)


@order_router.get("/{order_id}/exists", response_model=OrderExistsResponse)
async def order_exists(order_id: str) -> OrderExistsResponse:
    return OrderExistsResponse(order_id=order_id, exists=OrderLedger.from_config().order_exists(order_id))


@order_router.get("/{order_id}/history")
async def get_order_history(order_id: str) -> list[dict]:
    return OrderLedger.from_config().get_order_history(order_id)


# ---------------------------------------------------------------------------
# Ledger Router
# ---------------------------------------------------------------------------
# Whole-ledger reads live outside /orders so no order id can shadow them.
ledger_router = APIRouter(prefix="/ledger", tags=["ledger"])


@ledger_router.get("/orders")
async def list_all_orders() -> list[dict]:
    return OrderLedger.from_config().get_all_orders()


# ---------------------------------------------------------------------------
# Ledger failures
# ---------------------------------------------------------------------------
async def ledger_error_handler(_request: Request, exc: LedgerStoreError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"error": str(exc)})


def register_ledger_exception_handlers(app: FastAPI) -> None:
    """Map ledger store failures to 503 responses."""
    app.add_exception_handler(LedgerStoreError, ledger_error_handler)
