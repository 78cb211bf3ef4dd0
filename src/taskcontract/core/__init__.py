"""taskcontract core -- errors, Result/Future, logging and settings.

Architecture::

    errors.py      Structured error hierarchy (ContractError and the four
                   dispatch failure kinds)
    result.py      Result[T, E] envelope (Ok / Err) and Option (Some / Nothing)
    future.py      Single-resolution Future with Result-threading combinators
    logging.py     Structured logging (structlog)
    settings.py    ContractSettings (pydantic-settings, TASKCONTRACT_* env)
"""

from taskcontract.core.errors import (
    ActivityExecutionError,
    ContractDefinitionError,
    ContractError,
    DefinitionNotFoundError,
    ErrorCategory,
    ErrorContext,
    InputValidationError,
    MissingImplementationError,
    OperationKind,
    OrphanImplementationError,
    OutputValidationError,
    RegistrationError,
    RuntimeClientError,
    SchemaValidationError,
    WorkflowNotFoundError,
    categorize_error,
    is_retryable,
)
from taskcontract.core.future import Future, Pending, Settled, UnhandledFailure
from taskcontract.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from taskcontract.core.result import (
    NOTHING,
    Err,
    Ok,
    Option,
    Result,
    Some,
    collect_results,
    partition_results,
    try_result,
)
from taskcontract.core.settings import ContractSettings, OrphanPolicy, clear_settings_cache, get_settings

__all__ = [
    # errors
    "ActivityExecutionError",
    "ContractDefinitionError",
    "ContractError",
    "DefinitionNotFoundError",
    "ErrorCategory",
    "ErrorContext",
    "InputValidationError",
    "MissingImplementationError",
    "OperationKind",
    "OrphanImplementationError",
    "OutputValidationError",
    "RegistrationError",
    "RuntimeClientError",
    "SchemaValidationError",
    "WorkflowNotFoundError",
    "categorize_error",
    "is_retryable",
    # result / future
    "Ok",
    "Err",
    "Result",
    "Some",
    "NOTHING",
    "Option",
    "collect_results",
    "partition_results",
    "try_result",
    "Future",
    "Pending",
    "Settled",
    "UnhandledFailure",
    # logging
    "LogContext",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
    # settings
    "ContractSettings",
    "OrphanPolicy",
    "clear_settings_cache",
    "get_settings",
]
