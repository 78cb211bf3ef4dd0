"""
Run the order processing sample in-process.

The "runtime" here is a plain coroutine that forwards each scheduled activity
to the worker's flat handler map, and a ``WorkflowStarter`` that executes
workflow handlers directly, so both sides of the boundary are validated
exactly as they would be behind a real orchestration service.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Any

from examples.order_processing.activities import (
    Dependencies,
    PaymentGateway,
    Warehouse,
    build_activities,
)
from examples.order_processing.contract import OrderResult, contract
from examples.order_processing.workflow import OrderState, build_process_order
from taskcontract import (
    ActivitiesHandler,
    ActivityOptions,
    Err,
    Ok,
    TypedClient,
    WorkflowHandler,
    configure_logging,
    create_worker_registration,
    declare_activities_handler,
    declare_workflow,
    get_logger,
)

logger = get_logger(__name__)


def in_process_invoker(activities: ActivitiesHandler):
    async def invoke(name: str, validated_input: Any, options: ActivityOptions) -> Any:
        return await activities.invoke(name, validated_input)

    return invoke


class InProcessStarter:
    """``WorkflowStarter`` that runs a fresh workflow handler per start."""

    def __init__(self, activities: ActivitiesHandler):
        self._activities = activities
        self._ids = itertools.count(1)
        self._runs: dict[str, tuple[WorkflowHandler, asyncio.Task[Any]]] = {}

    def new_handler(self) -> WorkflowHandler:
        state = OrderState()
        return declare_workflow(
            contract,
            "process_order",
            build_process_order(state),
            invoker=in_process_invoker(self._activities),
            signals={"cancel_order": state.cancel},
            queries={"get_status": state.describe},
        )

    async def start(self, workflow: str, arg: Any, *, task_queue: str, **options: Any) -> str:
        workflow_id = f"{workflow}-{next(self._ids)}"
        handler = self.new_handler()
        self._runs[workflow_id] = (handler, asyncio.ensure_future(handler.execute(arg)))
        return workflow_id

    async def execute(self, workflow: str, arg: Any, *, task_queue: str, **options: Any) -> Any:
        return await self.new_handler().execute(arg)

    async def result(self, workflow_id: str) -> Any:
        return await self._runs[workflow_id][1]

    async def query(self, workflow_id: str, name: str, arg: Any) -> Any:
        return await self._runs[workflow_id][0].query(name, arg)

    async def signal(self, workflow_id: str, name: str, arg: Any) -> None:
        await self._runs[workflow_id][0].signal(name, arg)

    async def update(self, workflow_id: str, name: str, arg: Any) -> Any:
        return await self._runs[workflow_id][0].update(name, arg)


def build_dependencies() -> Dependencies:
    return Dependencies(
        payments=PaymentGateway(balances={"alice": 500.0, "bob": 5.0}),
        warehouse=Warehouse(stock={"widget": 10, "gadget": 1}),
    )


async def run_demo(deps: Dependencies | None = None) -> list[OrderResult]:
    """Process one order that succeeds and one whose payment is declined."""
    deps = deps or build_dependencies()
    activities = declare_activities_handler(contract, build_activities, dependencies=deps)
    starter = InProcessStarter(activities)
    registration = create_worker_registration(
        contract, activities, [starter.new_handler()]
    )
    logger.info("demo.worker_ready", activities=sorted(registration.activities))

    client = TypedClient(contract, starter)
    orders = [
        {
            "order_id": "ORD-1",
            "customer_id": "alice",
            "items": [{"product_id": "widget", "quantity": 2, "price": 25.0}],
            "total_amount": 50.0,
        },
        {
            "order_id": "ORD-2",
            "customer_id": "bob",
            "items": [{"product_id": "gadget", "quantity": 1, "price": 99.0}],
            "total_amount": 99.0,
        },
    ]

    results: list[OrderResult] = []
    for order in orders:
        match await client.execute_workflow("process_order", order):
            case Ok(result):
                results.append(result)
            case Err(error):
                raise error
    return results


def main() -> None:
    configure_logging(level="INFO", json_format=False, service="order-processing")
    for result in asyncio.run(run_demo()):
        print(result.model_dump_json(exclude_none=True))


if __name__ == "__main__":
    main()
