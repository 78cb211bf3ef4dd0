"""Tests for taskcontract.contract.helpers."""

import pytest

from taskcontract.contract.builder import define_activity, define_contract, define_workflow
from taskcontract.contract.helpers import (
    get_all_activity_names,
    get_contract_stats,
    get_workflow_activities,
    get_workflow_activity_names,
    get_workflow_names,
    has_global_activity,
    has_workflow,
    is_contract,
    is_workflow_activity,
    merge_contracts,
)
from taskcontract.core.errors import ContractDefinitionError, WorkflowNotFoundError


class TestWorkflowActivities:
    def test_local_shadows_global(self, shadow_contract):
        effective = get_workflow_activities(shadow_contract, "alpha")
        local = shadow_contract.workflows["alpha"].activities["ping"]
        assert effective["ping"] is local
        assert effective["notify"] is shadow_contract.activities["notify"]
        assert set(effective) == {"ping", "notify", "only"}

    def test_global_only_workflow(self, shadow_contract):
        effective = get_workflow_activities(shadow_contract, "beta")
        assert dict(effective) == dict(shadow_contract.activities)

    def test_read_only(self, shadow_contract):
        with pytest.raises(TypeError):
            get_workflow_activities(shadow_contract, "beta")["x"] = None  # type: ignore[index]

    def test_unknown_workflow(self, shadow_contract):
        with pytest.raises(WorkflowNotFoundError):
            get_workflow_activities(shadow_contract, "gamma")

    def test_names(self, shadow_contract):
        assert get_workflow_activity_names(shadow_contract, "alpha") == ["notify", "only", "ping"]


class TestNames:
    def test_workflow_names_sorted(self, shadow_contract):
        assert get_workflow_names(shadow_contract) == ["alpha", "beta"]

    def test_all_activity_names_deduplicated(self, shadow_contract):
        assert get_all_activity_names(shadow_contract) == ["notify", "only", "ping"]

    def test_is_workflow_activity_uses_effective_set(self, shadow_contract):
        assert is_workflow_activity(shadow_contract, "alpha", "only") is True
        assert is_workflow_activity(shadow_contract, "alpha", "notify") is True
        assert is_workflow_activity(shadow_contract, "beta", "ping") is True
        assert is_workflow_activity(shadow_contract, "beta", "only") is False
        assert is_workflow_activity(shadow_contract, "gamma", "only") is False

    def test_has_workflow_and_global(self, shadow_contract):
        assert has_workflow(shadow_contract, "alpha")
        assert not has_workflow(shadow_contract, "gamma")
        assert has_global_activity(shadow_contract, "notify")
        assert not has_global_activity(shadow_contract, "only")


class TestStats:
    def test_counts(self, shadow_contract):
        assert get_contract_stats(shadow_contract) == {
            "workflow_count": 2,
            "global_activity_count": 2,
            "total_activity_count": 4,
            "signal_count": 1,
            "query_count": 1,
            "update_count": 1,
        }


class TestMergeContracts:
    def test_later_wins(self, number_model):
        first = define_contract(
            "a",
            workflows={"w": define_workflow(int, int)},
            activities={"log": define_activity(str)},
        )
        second = define_contract(
            "b",
            workflows={"w": define_workflow(number_model, number_model), "v": define_workflow(int, int)},
            activities={"audit": define_activity(str)},
        )
        merged = merge_contracts("merged", [first, second])
        assert merged.task_queue == "merged"
        assert merged.workflows["w"] is second.workflows["w"]
        assert set(merged.workflows) == {"w", "v"}
        assert set(merged.activities) == {"log", "audit"}

    def test_empty(self):
        with pytest.raises(ContractDefinitionError):
            merge_contracts("x", [])


class TestIsContract:
    def test_is_contract(self, math_contract):
        assert is_contract(math_contract)
        assert not is_contract(define_contract("empty", workflows={}))
        assert not is_contract({"task_queue": "math"})
