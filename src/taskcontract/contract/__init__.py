"""Contract model -- schemas, definitions, builders and diagnostics."""

from taskcontract.contract.builder import (
    define_activity,
    define_contract,
    define_query,
    define_signal,
    define_update,
    define_workflow,
)
from taskcontract.contract.debug import (
    ContractDiff,
    compare_contracts,
    contract_to_dict,
    describe_contract,
    validate_contract_naming,
)
from taskcontract.contract.definitions import (
    ActivityDefinition,
    ContractDefinition,
    OperationDefinition,
    QueryDefinition,
    SignalDefinition,
    UpdateDefinition,
    WorkflowDefinition,
)
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
from taskcontract.contract.schema import (
    Accepted,
    FunctionSchema,
    Issue,
    PydanticSchema,
    Rejected,
    Schema,
    ValidationOutcome,
    as_schema,
    rejected,
    validate,
)

__all__ = [
    # schema
    "Accepted",
    "FunctionSchema",
    "Issue",
    "PydanticSchema",
    "Rejected",
    "Schema",
    "ValidationOutcome",
    "as_schema",
    "rejected",
    "validate",
    # definitions
    "ActivityDefinition",
    "ContractDefinition",
    "OperationDefinition",
    "QueryDefinition",
    "SignalDefinition",
    "UpdateDefinition",
    "WorkflowDefinition",
    # builders
    "define_activity",
    "define_contract",
    "define_query",
    "define_signal",
    "define_update",
    "define_workflow",
    # helpers
    "get_all_activity_names",
    "get_contract_stats",
    "get_workflow_activities",
    "get_workflow_activity_names",
    "get_workflow_names",
    "has_global_activity",
    "has_workflow",
    "is_contract",
    "is_workflow_activity",
    "merge_contracts",
    # debug
    "ContractDiff",
    "compare_contracts",
    "contract_to_dict",
    "describe_contract",
    "validate_contract_naming",
]
