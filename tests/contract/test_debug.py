"""Tests for taskcontract.contract.debug."""

import json

from taskcontract.contract.builder import define_activity, define_contract, define_signal, define_workflow
from taskcontract.contract.debug import (
    ContractDiff,
    compare_contracts,
    contract_to_dict,
    describe_contract,
    validate_contract_naming,
)


class TestDescribeContract:
    def test_summary(self, shadow_contract):
        assert describe_contract(shadow_contract).splitlines() == [
            "Contract: shadow",
            "  Workflows: 2",
            "    - alpha (activities: 2, signals: 1, queries: 1, updates: 1)",
            "    - beta",
            "  Global Activities: 2",
        ]

    def test_no_global_activities(self):
        contract = define_contract("q", workflows={"w": define_workflow(int, int)})
        assert "Global Activities" not in describe_contract(contract)


class TestContractToDict:
    def test_json_ready(self, shadow_contract, number_model):
        data = contract_to_dict(shadow_contract)
        json.dumps(data)
        assert data["task_queue"] == "shadow"
        alpha = data["workflows"]["alpha"]
        assert alpha["input"] == "Number"
        assert alpha["activities"]["ping"] == {"input": "int", "output": "int"}
        assert alpha["signals"]["cancel"] == {"input": "str", "output": "none"}
        assert data["activities"]["notify"] == {"input": "Number", "output": "none"}


class TestValidateContractNaming:
    def test_clean(self, shadow_contract):
        assert validate_contract_naming(shadow_contract) == []

    def test_reports_each_bad_name(self):
        contract = define_contract(
            "q",
            workflows={
                "Process-Order": define_workflow(
                    int, int, signals={"Cancel": define_signal(str)}
                ),
            },
            activities={"send_email": define_activity(str), "SendSms": define_activity(str)},
        )
        issues = validate_contract_naming(contract)
        assert len(issues) == 3
        assert issues[0].startswith("Workflow 'Process-Order' does not match naming pattern")
        assert issues[1].startswith("Global activity 'SendSms'")
        assert issues[2].startswith("Signal in workflow 'Process-Order': 'Cancel'")

    def test_custom_pattern(self, shadow_contract):
        issues = validate_contract_naming(shadow_contract, r"^[a-z]+$")
        assert issues == [
            "Update in workflow 'alpha': 'setLimit' does not match naming pattern ^[a-z]+$"
        ]

    def test_pattern_from_settings(self, monkeypatch, shadow_contract):
        monkeypatch.setenv("TASKCONTRACT_NAMING_PATTERN", r"^[a-z]{1,4}$")
        issues = validate_contract_naming(shadow_contract)
        assert "Global activity 'notify' does not match naming pattern ^[a-z]{1,4}$" in issues


class TestCompareContracts:
    def test_no_changes(self, shadow_contract):
        diff = compare_contracts(shadow_contract, shadow_contract)
        assert diff == ContractDiff()
        assert diff.has_changes is False

    def test_changes(self, math_contract, number_model):
        newer = define_contract(
            "math-v2",
            workflows={
                "compute": define_workflow(number_model, number_model),
                "report": define_workflow(int, int),
            },
            activities={"halve": define_activity(number_model, number_model)},
        )
        diff = compare_contracts(math_contract, newer)
        assert diff.has_changes is True
        assert diff.to_dict() == {
            "task_queue_changed": True,
            "added_workflows": ["report"],
            "removed_workflows": [],
            "added_global_activities": ["halve"],
            "removed_global_activities": ["double"],
            "modified_workflows": ["compute"],
        }
