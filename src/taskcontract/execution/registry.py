"""Operation Registry: contract + implementations → effective lookup table.

Manifesto:
The dispatcher must resolve ``"chargeCard"`` to exactly one
(definition, implementation) pair, and must never discover at call time
that a declared operation has nobody to run it.  The registry performs
the merge-and-bind once, at registration time, and hands back an
immutable table that every concurrent invocation can share without
locking.

ARCHITECTURE
────────────
::

    build_effective_table(contract, implementations, workflow=...)
      1. effective definitions
           global activities  ◄── overwritten by ──  workflow-local activities
      2. bind each effective name to an implementation
           unbound name        → MissingImplementationError
           unknown impl name   → OrphanImplementationError | warning
      3. freeze
           EffectiveTable(name → BoundOperation)

    register_handler(contract, implementations)   ─ registration boundary
    effective_definitions(contract, kind, workflow)
    effective_activity_definitions(contract, workflow)

Implementations are passed explicitly, either as a mapping or as a
factory receiving the ``dependencies`` object, so adapters such as a
payment gateway or a logger are wired at registration time instead of
through a process-wide singleton.

Tags:
    taskcontract, execution, registry, merge, shadowing, fail-fast

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from taskcontract.contract.definitions import ContractDefinition, OperationDefinition
from taskcontract.contract.helpers import get_workflow_activities
from taskcontract.core.errors import (
    DefinitionNotFoundError,
    MissingImplementationError,
    OperationKind,
    OrphanImplementationError,
    RegistrationError,
)
from taskcontract.core.logging import get_logger
from taskcontract.core.settings import OrphanPolicy, get_settings

logger = get_logger(__name__)

Implementations = Mapping[str, Callable[..., Any]]
ImplementationFactory = Callable[[Any], Implementations]


@dataclass(frozen=True, slots=True)
class BoundOperation:
    """One entry of the effective table."""

    name: str
    kind: OperationKind
    definition: Any
    implementation: Callable[..., Any]


class EffectiveTable(Mapping[str, BoundOperation]):
    """Immutable name → ``BoundOperation`` map for one dispatch context.

    Example:
        >>> table = register_handler(contract, {"double": double})
        >>> table.lookup("double").implementation is double
        True
        >>> table.names()
        ['double']
    """

    __slots__ = ("task_queue", "context", "kind", "_entries")

    def __init__(
        self,
        task_queue: str,
        entries: Mapping[str, BoundOperation],
        *,
        context: str | None = None,
        kind: OperationKind = OperationKind.ACTIVITY,
    ):
        self.task_queue = task_queue
        self.context = context
        self.kind = kind
        self._entries: Mapping[str, BoundOperation] = MappingProxyType(dict(entries))

    def __getitem__(self, name: str) -> BoundOperation:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, name: str) -> BoundOperation:
        """Resolve ``name``.

        Raises:
            DefinitionNotFoundError: ``name`` is not in the effective table;
                ``available_names`` carries the sorted effective names
        """
        try:
            return self._entries[name]
        except KeyError:
            raise DefinitionNotFoundError(
                name, self._entries.keys(), kind=self.kind
            ).with_context(
                task_queue=self.task_queue, workflow=self.context, operation=name, kind=self.kind.value
            ) from None

    def names(self) -> list[str]:
        return sorted(self._entries)

    def __repr__(self) -> str:
        scope = self.context or "global"
        return f"EffectiveTable({self.task_queue}/{scope}, kind={self.kind.value}, names={self.names()})"


def effective_activity_definitions(
    contract: ContractDefinition, workflow: str | None = None
) -> Mapping[str, OperationDefinition]:
    """Global activities, shadowed by the workflow's local ones when ``workflow`` is given."""
    if workflow is None:
        return contract.activities
    return get_workflow_activities(contract, workflow)


def effective_definitions(
    contract: ContractDefinition,
    kind: OperationKind = OperationKind.ACTIVITY,
    workflow: str | None = None,
) -> Mapping[str, Any]:
    """Definitions of ``kind`` visible in the given context."""
    if kind is OperationKind.ACTIVITY:
        return effective_activity_definitions(contract, workflow)
    if kind is OperationKind.WORKFLOW:
        return contract.workflows
    if workflow is None:
        raise RegistrationError(f"{kind.value.capitalize()} tables need a workflow context")
    definition = contract.workflow(workflow)
    return {
        OperationKind.SIGNAL: definition.signals,
        OperationKind.QUERY: definition.queries,
        OperationKind.UPDATE: definition.updates,
    }[kind]


def resolve_implementations(
    implementations: Implementations | ImplementationFactory,
    dependencies: Any,
) -> Implementations:
    if isinstance(implementations, Mapping):
        return implementations
    if callable(implementations):
        resolved = implementations(dependencies)
        if not isinstance(resolved, Mapping):
            raise RegistrationError(
                f"Implementation factory must return a mapping, got {type(resolved).__name__}"
            )
        return resolved
    raise RegistrationError(
        f"Implementations must be a mapping or a factory, got {type(implementations).__name__}"
    )


def build_effective_table(
    contract: ContractDefinition,
    implementations: Implementations | ImplementationFactory,
    *,
    workflow: str | None = None,
    kind: OperationKind = OperationKind.ACTIVITY,
    dependencies: Any = None,
    orphan_policy: OrphanPolicy | str | None = None,
) -> EffectiveTable:
    """Merge, bind and freeze the operation table for one context.

    Args:
        contract: The contract to serve
        implementations: ``name → callable`` mapping, or a factory called
            with ``dependencies`` that returns one
        workflow: Workflow context; ``None`` for the global context
        kind: Which operation kind the table dispatches
        dependencies: Passed to an implementation factory
        orphan_policy: ``error`` or ``warn``; defaults to
            ``ContractSettings.orphan_policy``

    Raises:
        MissingImplementationError: An effective definition has no implementation
        OrphanImplementationError: An implementation has no definition (policy ``error``)
        WorkflowNotFoundError: ``workflow`` is not declared in the contract
    """
    policy = OrphanPolicy(orphan_policy or get_settings().orphan_policy)
    definitions = effective_definitions(contract, kind, workflow)
    supplied = resolve_implementations(implementations, dependencies)
    log = logger.bind(task_queue=contract.task_queue, workflow=workflow, kind=kind.value)

    missing = [name for name in definitions if name not in supplied]
    if missing:
        raise MissingImplementationError(missing, kind=kind, workflow=workflow).with_context(
            task_queue=contract.task_queue, workflow=workflow, kind=kind.value
        )

    orphans = [name for name in supplied if name not in definitions]
    if orphans:
        if policy is OrphanPolicy.ERROR:
            raise OrphanImplementationError(orphans, kind=kind, workflow=workflow).with_context(
                task_queue=contract.task_queue, workflow=workflow, kind=kind.value
            )
        log.warning("registration.orphan_implementations", orphans=sorted(orphans))

    entries: dict[str, BoundOperation] = {}
    for name, definition in definitions.items():
        implementation = supplied[name]
        if not callable(implementation):
            raise RegistrationError(
                f"Implementation for {kind.value} '{name}' is not callable: {implementation!r}"
            ).with_context(task_queue=contract.task_queue, workflow=workflow, operation=name)
        entries[name] = BoundOperation(name, kind, definition, implementation)

    table = EffectiveTable(contract.task_queue, entries, context=workflow, kind=kind)
    log.debug("registration.completed", operations=table.names())
    return table


def register_handler(
    contract: ContractDefinition,
    implementations: Implementations | ImplementationFactory,
    *,
    workflow: str | None = None,
    dependencies: Any = None,
    orphan_policy: OrphanPolicy | str | None = None,
) -> EffectiveTable:
    """Registration boundary: contract + activity implementations → ``EffectiveTable``."""
    return build_effective_table(
        contract,
        implementations,
        workflow=workflow,
        kind=OperationKind.ACTIVITY,
        dependencies=dependencies,
        orphan_policy=orphan_policy,
    )


__all__ = [
    "BoundOperation",
    "EffectiveTable",
    "Implementations",
    "ImplementationFactory",
    "OperationKind",
    "effective_activity_definitions",
    "effective_definitions",
    "resolve_implementations",
    "build_effective_table",
    "register_handler",
]
