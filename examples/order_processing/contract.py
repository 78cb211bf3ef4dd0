"""Order processing contract and its schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from taskcontract import (
    define_activity,
    define_contract,
    define_query,
    define_signal,
    define_workflow,
)


class OrderItem(BaseModel):
    product_id: str
    quantity: int = Field(gt=0)
    price: float = Field(gt=0)


class Order(BaseModel):
    order_id: str
    customer_id: str
    items: list[OrderItem] = Field(min_length=1)
    total_amount: float = Field(gt=0)


class LogEntry(BaseModel):
    level: Literal["debug", "info", "warning", "error"]
    message: str


class Notification(BaseModel):
    customer_id: str
    subject: str
    message: str


class PaymentRequest(BaseModel):
    customer_id: str
    amount: float = Field(gt=0)


class PaymentResult(BaseModel):
    transaction_id: str
    status: Literal["success", "failed"]
    paid_amount: float


class StockRequest(BaseModel):
    product_id: str
    quantity: int


class InventoryResult(BaseModel):
    reserved: bool
    reservation_id: str | None = None


class ShipmentRequest(BaseModel):
    order_id: str
    customer_id: str


class ShippingResult(BaseModel):
    tracking_number: str
    estimated_delivery: str


class OrderResult(BaseModel):
    order_id: str
    status: Literal["completed", "failed", "cancelled"]
    transaction_id: str | None = None
    tracking_number: str | None = None
    failure_reason: str | None = None


contract = define_contract(
    "order-processing",
    activities={
        "log": define_activity(LogEntry),
        "send_notification": define_activity(Notification),
    },
    workflows={
        "process_order": define_workflow(
            Order,
            OrderResult,
            activities={
                "process_payment": define_activity(PaymentRequest, PaymentResult),
                "reserve_inventory": define_activity(list[StockRequest], InventoryResult),
                "release_inventory": define_activity(str),
                "create_shipment": define_activity(ShipmentRequest, ShippingResult),
            },
            signals={"cancel_order": define_signal(str)},
            queries={"get_status": define_query(dict, str)},
        ),
    },
)
