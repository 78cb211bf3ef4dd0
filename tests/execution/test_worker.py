"""Tests for taskcontract.execution.worker."""

import pytest
from structlog.testing import capture_logs

from taskcontract import define_activity, define_contract, define_workflow
from taskcontract.core.errors import (
    DefinitionNotFoundError,
    MissingImplementationError,
    OperationKind,
    OrphanImplementationError,
    RegistrationError,
    WorkflowNotFoundError,
)
from taskcontract.execution.worker import create_worker_registration, declare_activities_handler
from taskcontract.execution.workflow import declare_workflow


def shadow_implementations():
    return {
        "ping": lambda value: value,
        "notify": lambda value: "sent",
        "only": lambda value: {"n": value.n + 1},
    }


async def never_invoked(name, value, options):
    raise AssertionError(f"unexpected activity call: {name}")


class TestDeclareActivitiesHandler:
    def test_flat_map_covers_every_context(self, shadow_contract):
        handler = declare_activities_handler(shadow_contract, shadow_implementations())
        assert sorted(handler.activities) == ["notify", "only", "ping"]
        assert set(handler.tables) == {None, "alpha", "beta"}
        assert handler.task_queue == "shadow"

    @pytest.mark.asyncio
    async def test_global_definition_wins_in_flat_map(self, shadow_contract, number_model):
        with capture_logs() as logs:
            handler = declare_activities_handler(shadow_contract, shadow_implementations())
        assert await handler.invoke("ping", {"n": "5"}) == number_model(n=5)
        assert await handler.dispatcher("alpha").invoke("ping", "5") == 5
        assert {
            "event": "registration.activity_conflict",
            "log_level": "warning",
            "task_queue": "shadow",
            "activity": "ping",
            "kept": "global",
            "ignored": "alpha",
        } in logs

    @pytest.mark.asyncio
    async def test_workflow_seeing_only_global_keeps_its_schema(self, number_model):
        contract = define_contract(
            "logging",
            workflows={
                "a": define_workflow(
                    number_model, number_model, activities={"log": define_activity(str)}
                ),
                "b": define_workflow(number_model, number_model),
            },
            activities={"log": define_activity(int)},
        )
        received = []
        handler = declare_activities_handler(contract, {"log": received.append})
        assert await handler.invoke("log", 3) is None
        assert received == [3]

    @pytest.mark.asyncio
    async def test_global_dispatcher_keeps_global_definition(self, shadow_contract, number_model):
        handler = declare_activities_handler(shadow_contract, shadow_implementations())
        result = await handler.dispatcher().invoke("ping", {"n": 2})
        assert result == number_model(n=2)
        assert handler.dispatcher("beta").names() == ["notify", "ping"]
        assert handler.dispatcher("alpha").names() == ["notify", "only", "ping"]

    @pytest.mark.asyncio
    async def test_fire_and_forget_returns_none(self, shadow_contract):
        handler = declare_activities_handler(shadow_contract, shadow_implementations())
        assert await handler.invoke("notify", {"n": 1}) is None

    @pytest.mark.asyncio
    async def test_factory_receives_dependencies(self, math_contract):
        def build(deps):
            factor = deps["factor"]
            return {
                "double": lambda value: {"n": value.n * factor},
                "triple": lambda value: value,
            }

        handler = declare_activities_handler(math_contract, build, dependencies={"factor": 10})
        assert (await handler.invoke("double", {"n": 3})).n == 30

    @pytest.mark.asyncio
    async def test_unknown_activity(self, math_contract):
        handler = declare_activities_handler(
            math_contract, {"double": lambda v: v, "triple": lambda v: v}
        )
        with pytest.raises(DefinitionNotFoundError) as exc_info:
            await handler.invoke("quadruple", {"n": 1})
        assert exc_info.value.available_names == ("double", "triple")

    def test_unknown_context(self, math_contract):
        handler = declare_activities_handler(
            math_contract, {"double": lambda v: v, "triple": lambda v: v}
        )
        with pytest.raises(WorkflowNotFoundError) as exc_info:
            handler.dispatcher("missing")
        assert exc_info.value.available_names == ("compute",)

    def test_missing_implementation(self, shadow_contract):
        implementations = shadow_implementations()
        del implementations["notify"]
        with pytest.raises(MissingImplementationError) as exc_info:
            declare_activities_handler(shadow_contract, implementations)
        assert exc_info.value.missing == ("notify",)

    def test_missing_local_implementation(self, math_contract):
        with pytest.raises(MissingImplementationError) as exc_info:
            declare_activities_handler(math_contract, {"double": lambda v: v})
        assert exc_info.value.workflow == "compute"

    def test_orphan_implementation(self, math_contract):
        with pytest.raises(OrphanImplementationError) as exc_info:
            declare_activities_handler(
                math_contract,
                {"double": lambda v: v, "triple": lambda v: v, "halve": lambda v: v},
            )
        assert exc_info.value.orphans == ("halve",)

    def test_orphan_warn_policy(self, math_contract):
        with capture_logs() as logs:
            handler = declare_activities_handler(
                math_contract,
                {"double": lambda v: v, "triple": lambda v: v, "halve": lambda v: v},
                orphan_policy="warn",
            )
        assert "halve" not in handler.activities
        warnings = [entry for entry in logs if entry["event"] == "registration.orphan_implementations"]
        assert warnings[0]["orphans"] == ["halve"]
        assert warnings[0]["log_level"] == "warning"

    def test_orphan_policy_from_environment(self, math_contract, monkeypatch):
        monkeypatch.setenv("TASKCONTRACT_ORPHAN_POLICY", "warn")
        handler = declare_activities_handler(
            math_contract,
            {"double": lambda v: v, "triple": lambda v: v, "halve": lambda v: v},
        )
        assert sorted(handler.activities) == ["double", "triple"]

    @pytest.mark.asyncio
    async def test_conflicting_local_activities(self, number_model):
        contract = define_contract(
            "conflict",
            workflows={
                "first": define_workflow(
                    number_model, number_model, activities={"shared": define_activity(int, int)}
                ),
                "second": define_workflow(
                    number_model, number_model, activities={"shared": define_activity(str, str)}
                ),
            },
        )
        with capture_logs() as logs:
            handler = declare_activities_handler(contract, {"shared": lambda value: value})

        assert await handler.invoke("shared", "7") == 7
        assert {
            "event": "registration.activity_conflict",
            "log_level": "warning",
            "task_queue": "conflict",
            "activity": "shared",
            "kept": "first",
            "ignored": "second",
        } in logs


class TestCreateWorkerRegistration:
    @pytest.fixture
    def beta(self, shadow_contract):
        return declare_workflow(shadow_contract, "beta", lambda ctx, value: value, invoker=never_invoked)

    def test_registration(self, shadow_contract, beta):
        activities = declare_activities_handler(shadow_contract, shadow_implementations())
        registration = create_worker_registration(shadow_contract, activities, [beta])
        assert registration.task_queue == "shadow"
        assert dict(registration.workflows) == {"beta": beta}
        assert registration.activities is activities.activities

    def test_workflows_only(self, shadow_contract, beta):
        registration = create_worker_registration(shadow_contract, workflows={"beta": beta})
        assert dict(registration.activities) == {}

    def test_orphan_workflow(self, shadow_contract, beta):
        with pytest.raises(OrphanImplementationError) as exc_info:
            create_worker_registration(shadow_contract, workflows={"gamma": beta})
        assert exc_info.value.kind is OperationKind.WORKFLOW

    def test_key_mismatch(self, shadow_contract, beta):
        with pytest.raises(RegistrationError, match="registered as 'alpha'"):
            create_worker_registration(shadow_contract, workflows={"alpha": beta})

    def test_workflow_from_other_task_queue(self, math_contract):
        other = define_contract("other-math", workflows=dict(math_contract.workflows))
        handler = declare_workflow(math_contract, "compute", lambda ctx, value: value, invoker=never_invoked)
        with pytest.raises(RegistrationError, match="task queue 'math'"):
            create_worker_registration(other, workflows=[handler])

    def test_activities_from_other_task_queue(self, math_contract, shadow_contract):
        activities = declare_activities_handler(
            math_contract, {"double": lambda v: v, "triple": lambda v: v}
        )
        with pytest.raises(RegistrationError, match="Activities belong to task queue 'math'"):
            create_worker_registration(shadow_contract, activities)

    @pytest.mark.asyncio
    async def test_registered_workflow_runs(self, shadow_contract, beta, number_model):
        registration = create_worker_registration(shadow_contract, workflows=[beta])
        result = await registration.workflows["beta"].execute({"n": 4})
        assert result == number_model(n=4)
