"""Activity implementations, wired to in-memory adapters."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from examples.order_processing.contract import (
    InventoryResult,
    LogEntry,
    Notification,
    PaymentRequest,
    PaymentResult,
    ShipmentRequest,
    ShippingResult,
    StockRequest,
)
from taskcontract import Err, Ok, Result, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PaymentDeclined:
    """Domain error returned (not raised) by the payment activity."""

    customer_id: str
    amount: float
    code: str = "PAYMENT_DECLINED"
    retryable: bool = False

    @property
    def message(self) -> str:
        return f"Card of {self.customer_id} declined for {self.amount:.2f}"


@dataclass
class PaymentGateway:
    balances: dict[str, float] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def charge(self, customer_id: str, amount: float) -> str | None:
        if self.balances.get(customer_id, 0.0) < amount:
            return None
        self.balances[customer_id] -= amount
        return f"TXN-{next(self._ids):04d}"


@dataclass
class Warehouse:
    stock: dict[str, int] = field(default_factory=dict)
    reservations: dict[str, list[StockRequest]] = field(default_factory=dict)

    def reserve(self, items: list[StockRequest]) -> str | None:
        if any(self.stock.get(item.product_id, 0) < item.quantity for item in items):
            return None
        for item in items:
            self.stock[item.product_id] -= item.quantity
        reservation_id = f"RES-{len(self.reservations) + 1:04d}"
        self.reservations[reservation_id] = list(items)
        return reservation_id

    def release(self, reservation_id: str) -> None:
        for item in self.reservations.pop(reservation_id, []):
            self.stock[item.product_id] += item.quantity


@dataclass
class Dependencies:
    payments: PaymentGateway
    warehouse: Warehouse
    outbox: list[Notification] = field(default_factory=list)
    journal: list[LogEntry] = field(default_factory=list)


def build_activities(deps: Dependencies) -> Mapping[str, Callable[..., Any]]:
    """Implementation factory: every activity of the contract, bound to ``deps``."""

    def log(entry: LogEntry) -> None:
        deps.journal.append(entry)
        logger.info("order.log", entry_level=entry.level, message=entry.message)

    async def send_notification(notification: Notification) -> None:
        deps.outbox.append(notification)

    def process_payment(request: PaymentRequest) -> Result[PaymentResult, PaymentDeclined]:
        transaction_id = deps.payments.charge(request.customer_id, request.amount)
        if transaction_id is None:
            return Err(PaymentDeclined(request.customer_id, request.amount))
        return Ok(
            PaymentResult(
                transaction_id=transaction_id,
                status="success",
                paid_amount=request.amount,
            )
        )

    async def reserve_inventory(items: list[StockRequest]) -> InventoryResult:
        reservation_id = deps.warehouse.reserve(items)
        return InventoryResult(reserved=reservation_id is not None, reservation_id=reservation_id)

    def release_inventory(reservation_id: str) -> None:
        deps.warehouse.release(reservation_id)

    async def create_shipment(request: ShipmentRequest) -> dict[str, str]:
        eta = date(2024, 1, 1) + timedelta(days=3)
        return {
            "tracking_number": f"TRACK-{request.order_id}",
            "estimated_delivery": eta.isoformat(),
        }

    return {
        "log": log,
        "send_notification": send_notification,
        "process_payment": process_payment,
        "reserve_inventory": reserve_inventory,
        "release_inventory": release_inventory,
        "create_shipment": create_shipment,
    }
