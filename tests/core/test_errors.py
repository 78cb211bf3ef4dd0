"""Tests for taskcontract.core.errors."""

from taskcontract.contract.schema import Issue
from taskcontract.core.errors import (
    ActivityExecutionError,
    ContractDefinitionError,
    ContractError,
    DefinitionNotFoundError,
    ErrorCategory,
    InputValidationError,
    MissingImplementationError,
    OperationKind,
    OrphanImplementationError,
    OutputValidationError,
    RegistrationError,
    RuntimeClientError,
    WorkflowNotFoundError,
    categorize_error,
    is_retryable,
)


class TestContractError:
    def test_defaults(self):
        error = ContractError("boom")
        assert error.message == "boom"
        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert error.cause is None

    def test_cause_chained(self):
        cause = OSError("disk")
        error = ContractError("wrapped", cause=cause)
        assert error.__cause__ is cause

    def test_with_context_fields_and_metadata(self):
        error = ContractError("x").with_context(task_queue="orders", attempt=3)
        assert error.context.task_queue == "orders"
        assert error.context.metadata == {"attempt": 3}
        assert error.to_dict()["context"] == {"task_queue": "orders", "attempt": 3}

    def test_to_dict(self):
        data = ContractError("x", cause="why").to_dict()
        assert data == {
            "error_type": "ContractError",
            "message": "x",
            "category": "INTERNAL",
            "retryable": False,
            "cause": "why",
        }


class TestDefinitionNotFound:
    def test_available_names_sorted(self):
        error = DefinitionNotFoundError("triple", ["zeta", "double"])
        assert error.available_names == ("double", "zeta")
        assert error.category == ErrorCategory.LOOKUP
        assert error.retryable is False
        assert '"triple"' in error.message
        assert "double, zeta" in error.message

    def test_empty_available(self):
        assert "none" in DefinitionNotFoundError("x").message

    def test_workflow_not_found(self):
        error = WorkflowNotFoundError("missing", ["processOrder"])
        assert isinstance(error, DefinitionNotFoundError)
        assert error.kind is OperationKind.WORKFLOW
        assert error.message.startswith("Workflow definition not found")

    def test_to_dict(self):
        data = DefinitionNotFoundError("a", ["b"]).to_dict()
        assert data["name"] == "a"
        assert data["available_names"] == ["b"]


class TestValidationErrors:
    def test_input_message_and_issues(self):
        issues = [Issue(("n",), "Input should be a valid number"), Issue((), "bad")]
        error = InputValidationError("double", issues)
        assert error.operation == "double"
        assert error.issues == tuple(issues)
        assert error.category == ErrorCategory.VALIDATION
        assert error.retryable is False
        assert error.message == (
            'Activity "double" input validation failed: n: Input should be a valid number; bad'
        )

    def test_output_direction(self):
        error = OutputValidationError("status", [Issue((), "x")], kind=OperationKind.QUERY)
        assert error.message.startswith('Query "status" output validation failed')
        assert error.to_dict()["issues"] == [{"path": [], "message": "x"}]


class TestActivityExecutionError:
    def test_to_failure(self):
        error = ActivityExecutionError("DECLINED", "card declined")
        assert error.to_failure() == {"code": "DECLINED", "message": "card declined"}

    def test_to_failure_with_cause(self):
        cause = {"balance": 3}
        error = ActivityExecutionError("INSUFFICIENT_FUNDS", "not enough", cause=cause)
        assert error.to_failure()["cause"] is cause

    def test_retryable_default_and_override(self):
        assert ActivityExecutionError("X", "m").retryable is True
        assert ActivityExecutionError("X", "m", retryable=False).retryable is False

    def test_to_dict(self):
        data = ActivityExecutionError("X", "m", operation="charge").to_dict()
        assert data["code"] == "X"
        assert data["operation"] == "charge"
        assert data["category"] == "EXECUTION"


class TestRegistrationErrors:
    def test_missing(self):
        error = MissingImplementationError(["b", "a"], workflow="processOrder")
        assert isinstance(error, RegistrationError)
        assert error.missing == ("a", "b")
        assert 'workflow "processOrder"' in error.message
        assert error.category == ErrorCategory.CONFIG

    def test_orphan(self):
        error = OrphanImplementationError(["x"], kind=OperationKind.SIGNAL)
        assert error.orphans == ("x",)
        assert "signal" in error.message
        assert "global context" in error.message

    def test_contract_definition_error(self):
        assert ContractDefinitionError("bad").category == ErrorCategory.CONFIG


class TestRuntimeClientError:
    def test_wraps_cause(self):
        cause = ConnectionError("refused")
        error = RuntimeClientError("start", cause)
        assert error.operation == "start"
        assert error.cause is cause
        assert error.category == ErrorCategory.TRANSPORT
        assert "refused" in error.message


class TestUtilities:
    def test_is_retryable(self):
        assert is_retryable(ActivityExecutionError("X", "m")) is True
        assert is_retryable(InputValidationError("x", [])) is False
        assert is_retryable(TimeoutError()) is True
        assert is_retryable(ValueError()) is False

    def test_is_retryable_reads_attribute(self):
        class Flagged(Exception):
            retryable = True

        assert is_retryable(Flagged()) is True

    def test_categorize_error(self):
        assert categorize_error(DefinitionNotFoundError("x")) == ErrorCategory.LOOKUP
        assert categorize_error(ConnectionError()) == ErrorCategory.TRANSPORT
        assert categorize_error(ValueError()) == ErrorCategory.VALIDATION
        assert categorize_error(KeyError()) == ErrorCategory.CONFIG
        assert categorize_error(RuntimeError()) == ErrorCategory.UNKNOWN
