"""The ``process_order`` workflow implementation."""

from __future__ import annotations

from examples.order_processing.contract import Order, OrderResult
from taskcontract import ActivityExecutionError, WorkflowContext


class OrderState:
    """Mutable run state, read by the ``get_status`` query and the ``cancel_order`` signal."""

    def __init__(self) -> None:
        self.status = "pending"
        self.cancel_reason: str | None = None

    def cancel(self, reason: str) -> None:
        self.cancel_reason = reason

    def describe(self, _: dict) -> str:
        return self.status


def build_process_order(state: OrderState):
    """Workflow implementation bound to one run's ``state``."""

    async def process_order(context: WorkflowContext, order: Order) -> OrderResult:
        activities = context.activities
        await activities.log({"level": "info", "message": f"Processing order {order.order_id}"})

        if state.cancel_reason is not None:
            state.status = "cancelled"
            return OrderResult(
                order_id=order.order_id, status="cancelled", failure_reason=state.cancel_reason
            )

        state.status = "charging"
        try:
            payment = await activities.process_payment(
                {"customer_id": order.customer_id, "amount": order.total_amount}
            )
        except ActivityExecutionError as exc:
            state.status = "failed"
            await activities.log({"level": "error", "message": f"{exc.code}: {exc.message}"})
            await activities.send_notification(
                {
                    "customer_id": order.customer_id,
                    "subject": "Order failed",
                    "message": f"Payment failed for order {order.order_id}",
                }
            )
            return OrderResult(order_id=order.order_id, status="failed", failure_reason=exc.code)

        state.status = "reserving"
        inventory = await activities.reserve_inventory(
            [{"product_id": item.product_id, "quantity": item.quantity} for item in order.items]
        )
        if not inventory.reserved:
            state.status = "failed"
            return OrderResult(
                order_id=order.order_id,
                status="failed",
                transaction_id=payment.transaction_id,
                failure_reason="OUT_OF_STOCK",
            )

        state.status = "shipping"
        try:
            shipment = await activities.create_shipment(
                {"order_id": order.order_id, "customer_id": order.customer_id}
            )
        except ActivityExecutionError:
            await activities.release_inventory(inventory.reservation_id)
            raise

        await activities.send_notification(
            {
                "customer_id": order.customer_id,
                "subject": "Order shipped",
                "message": f"Tracking number {shipment.tracking_number}",
            }
        )
        state.status = "completed"
        return OrderResult(
            order_id=order.order_id,
            status="completed",
            transaction_id=payment.transaction_id,
            tracking_number=shipment.tracking_number,
        )

    return process_order
