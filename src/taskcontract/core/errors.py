"""
Structured error types for taskcontract.

Provides the error taxonomy that every boundary-crossing call reports through.
A dispatcher sitting between an orchestration runtime and a pool of task
executors can fail in exactly four ways, and the runtime needs to tell them
apart to decide what to do next:

- **DefinitionNotFoundError:** the caller asked for an operation that the
  effective contract does not contain. Always a caller/configuration bug.
- **InputValidationError:** the raw input was rejected by the operation's
  input schema. The implementation never ran.
- **OutputValidationError:** the implementation ran and returned a value that
  violates its own declared output schema. Its side effects already happened.
- **ActivityExecutionError:** the implementation itself failed. This is the
  single channel through which implementation failures reach the runtime,
  whether the implementation raised or returned ``Err``.

Configuration-time problems (``ContractDefinitionError``, ``RegistrationError``)
and client-side transport failures (``RuntimeClientError``) complete the
hierarchy.

Manifesto:
    - **One base class:** Every error extends ``ContractError`` and carries
      category, retryable flag, structured context and the original cause
    - **Kinds, not policy:** Errors report *what* went wrong; retry/backoff
      policy belongs to the orchestration runtime
    - **Diagnosable:** Validation errors carry the operation name and the
      structured issue list; lookup errors carry the available names

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       ContractError                              │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │  DefinitionNotFoundError     InputValidationError               │
        │       │                      OutputValidationError              │
        │  WorkflowNotFoundError       (VALIDATION, never retryable)      │
        │                                                                  │
        │  ActivityExecutionError      ContractDefinitionError            │
        │  (EXECUTION, code/cause)     RegistrationError                  │
        │                                 │                                │
        │  RuntimeClientError          MissingImplementationError         │
        │  (TRANSPORT)                 OrphanImplementationError          │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = DefinitionNotFoundError("triple", ["double"])
    >>> error.available_names
    ('double',)
    >>> error.retryable
    False

    >>> failure = ActivityExecutionError("PAYMENT_DECLINED", "card declined")
    >>> failure.to_failure()
    {'code': 'PAYMENT_DECLINED', 'message': 'card declined'}

Tags:
    error-handling, error-taxonomy, retry-classification, taskcontract

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from taskcontract.contract.schema import Issue


UNKNOWN_CODE = "UNKNOWN"


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Categories are grouped by who has to act:
    - **Caller / configuration (never retryable):** LOOKUP, VALIDATION, CONFIG
    - **Implementation:** EXECUTION (retryability decided by the cause)
    - **Transport:** TRANSPORT (client-side runtime failures)
    - **Internal errors:** INTERNAL, UNKNOWN
    """

    LOOKUP = "LOOKUP"             # Operation / workflow absent from contract
    VALIDATION = "VALIDATION"     # Input or output rejected by a schema
    CONFIG = "CONFIG"             # Contract or registration is malformed
    EXECUTION = "EXECUTION"       # Implementation failed
    TRANSPORT = "TRANSPORT"       # Runtime client call failed
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


class OperationKind(str, Enum):
    """Kinds of named operation a contract can declare."""

    ACTIVITY = "activity"
    WORKFLOW = "workflow"
    SIGNAL = "signal"
    QUERY = "query"
    UPDATE = "update"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Typed fields for the metadata every dispatch error is logged with; any
    additional key-value pairs go into ``metadata``.

    Attributes:
        task_queue: Routing key of the contract the error happened in
        workflow: Workflow context (``None`` for the global context)
        operation: Operation name being dispatched
        kind: Operation kind (activity, signal, ...)
        metadata: Additional key-value pairs
    """

    task_queue: str | None = None
    workflow: str | None = None
    operation: str | None = None
    kind: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["task_queue", "workflow", "operation", "kind"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ContractError(Exception):
    """
    Base exception for all taskcontract errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that a
    bare ``raise SomeError("...")`` already carries sensible metadata.

    Examples:
        >>> error = ContractError("boom")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(task_queue="orders").context.task_queue
        'orders'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if isinstance(cause, BaseException):
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ContractError:
        """
        Add context to this error (fluent API).

        Usage:
            raise InputValidationError(...).with_context(task_queue="orders")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# LOOKUP ERRORS
# =============================================================================


class DefinitionNotFoundError(ContractError):
    """
    The requested operation is absent from the effective contract.

    ``available_names`` is the sorted effective name set, so the caller can
    be fixed without re-running the system.
    """

    default_category = ErrorCategory.LOOKUP
    default_retryable = False

    def __init__(
        self,
        name: str,
        available_names: Iterable[str] = (),
        *,
        kind: OperationKind = OperationKind.ACTIVITY,
        **kwargs: Any,
    ):
        self.name = name
        self.kind = kind
        self.available_names: tuple[str, ...] = tuple(sorted(available_names))
        available = ", ".join(self.available_names) if self.available_names else "none"
        super().__init__(
            f'{kind.value.capitalize()} definition not found for: "{name}". '
            f"Available {kind.value} definitions: {available}",
            **kwargs,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["name"] = self.name
        result["available_names"] = list(self.available_names)
        return result


class WorkflowNotFoundError(DefinitionNotFoundError):
    """Workflow not declared in the contract."""

    def __init__(self, name: str, available_names: Iterable[str] = (), **kwargs: Any):
        super().__init__(name, available_names, kind=OperationKind.WORKFLOW, **kwargs)


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


def _format_issues(issues: Sequence[Issue]) -> str:
    return "; ".join(issue.describe() for issue in issues)


class SchemaValidationError(ContractError):
    """
    Base for schema rejections at a dispatch boundary.

    Never retryable - either the caller or the implementation must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False
    direction = "input"

    def __init__(
        self,
        operation: str,
        issues: Sequence[Issue],
        *,
        kind: OperationKind = OperationKind.ACTIVITY,
        **kwargs: Any,
    ):
        self.operation = operation
        self.kind = kind
        self.issues: tuple[Issue, ...] = tuple(issues)
        super().__init__(
            f'{kind.value.capitalize()} "{operation}" {self.direction} validation failed: '
            f"{_format_issues(self.issues)}",
            **kwargs,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["operation"] = self.operation
        result["kind"] = self.kind.value
        result["issues"] = [{"path": list(i.path), "message": i.message} for i in self.issues]
        return result


class InputValidationError(SchemaValidationError):
    """Raw input rejected; the implementation was never called."""

    direction = "input"


class OutputValidationError(SchemaValidationError):
    """Implementation returned a value violating its declared output schema."""

    direction = "output"


# =============================================================================
# EXECUTION ERRORS
# =============================================================================


class ActivityExecutionError(ContractError):
    """
    Canonical implementation failure.

    Both authoring conventions end up here: an implementation that raises,
    and an implementation that returns ``Err(domain_error)``. The orchestration
    runtime only ever has to understand ``{code, message, cause?}``.

    Examples:
        >>> err = ActivityExecutionError("INSUFFICIENT_FUNDS", "not enough", cause={"balance": 3})
        >>> err.to_failure()["cause"]
        {'balance': 3}
    """

    default_category = ErrorCategory.EXECUTION
    default_retryable = True

    def __init__(
        self,
        code: str,
        message: str,
        cause: Any = None,
        *,
        operation: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, cause=cause, **kwargs)
        self.code = code
        self.operation = operation

    def to_failure(self) -> dict[str, Any]:
        """The canonical shape handed to the orchestration runtime."""
        failure: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.cause is not None:
            failure["cause"] = self.cause
        return failure

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["code"] = self.code
        if self.operation is not None:
            result["operation"] = self.operation
        return result

    def __repr__(self) -> str:
        return f"ActivityExecutionError({self.code!r}, {self.message!r})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ContractDefinitionError(ContractError):
    """Contract is malformed (empty task queue, bad schema slot, ...)."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class RegistrationError(ContractError):
    """
    Registration failed; the process cannot start serving.

    Raised at registration time, before any traffic is dispatched.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingImplementationError(RegistrationError):
    """An effective definition has no bound implementation."""

    def __init__(
        self,
        missing: Iterable[str],
        *,
        kind: OperationKind = OperationKind.ACTIVITY,
        workflow: str | None = None,
        **kwargs: Any,
    ):
        self.missing: tuple[str, ...] = tuple(sorted(missing))
        self.kind = kind
        self.workflow = workflow
        scope = f'workflow "{workflow}"' if workflow else "global context"
        super().__init__(
            f"Missing {kind.value} implementation(s) in {scope}: {', '.join(self.missing)}",
            **kwargs,
        )


class OrphanImplementationError(RegistrationError):
    """Implementations supplied for names the effective contract does not declare."""

    def __init__(
        self,
        orphans: Iterable[str],
        *,
        kind: OperationKind = OperationKind.ACTIVITY,
        workflow: str | None = None,
        **kwargs: Any,
    ):
        self.orphans: tuple[str, ...] = tuple(sorted(orphans))
        self.kind = kind
        self.workflow = workflow
        scope = f'workflow "{workflow}"' if workflow else "global context"
        super().__init__(
            f"Implementation(s) without a {kind.value} definition in {scope}: "
            f"{', '.join(self.orphans)}",
            **kwargs,
        )


# =============================================================================
# CLIENT ERRORS
# =============================================================================


class RuntimeClientError(ContractError):
    """The orchestration runtime client failed while performing ``operation``."""

    default_category = ErrorCategory.TRANSPORT
    default_retryable = False

    def __init__(self, operation: str, cause: Any = None, **kwargs: Any):
        self.operation = operation
        detail = str(cause) if cause is not None else "unknown error"
        super().__init__(f"Runtime client {operation} failed: {detail}", cause=cause, **kwargs)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Any) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, ContractError):
        return error.retryable
    retryable = getattr(error, "retryable", None)
    if isinstance(retryable, bool):
        return retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: Any) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, ContractError):
        return error.category
    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorCategory.TRANSPORT
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.VALIDATION
    if isinstance(error, (KeyError, AttributeError)):
        return ErrorCategory.CONFIG
    return ErrorCategory.UNKNOWN


__all__ = [
    "UNKNOWN_CODE",
    "ErrorCategory",
    "OperationKind",
    "ErrorContext",
    "ContractError",
    # Lookup
    "DefinitionNotFoundError",
    "WorkflowNotFoundError",
    # Validation
    "SchemaValidationError",
    "InputValidationError",
    "OutputValidationError",
    # Execution
    "ActivityExecutionError",
    # Config
    "ContractDefinitionError",
    "RegistrationError",
    "MissingImplementationError",
    "OrphanImplementationError",
    # Client
    "RuntimeClientError",
    # Utilities
    "is_retryable",
    "categorize_error",
]
