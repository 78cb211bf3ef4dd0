"""
Schema validator abstraction.

The dispatcher treats every input and output shape as an opaque validator with
one operation, ``validate(raw) -> Accepted(value) | Rejected(issues)``. The
same schema serves both directions: parsing untyped input into a typed value,
and checking that a typed output still conforms.

Two adapters ship with the package:

- ``PydanticSchema`` wraps anything pydantic can build a ``TypeAdapter`` for
  (models, dataclasses, TypedDicts, builtins, unions, annotated types).
- ``FunctionSchema`` wraps a hand-written ``fn(raw) -> ValidationOutcome``,
  sync or async.

Issue reporting:
    Issues form a flat ordered list of ``Issue(path, message)``. For pydantic
    schemas the order is pydantic's own. Union alternatives are never merged:
    each failing branch is reported as its own issue whose path starts with
    pydantic's branch tag (e.g. ``("int",)`` / ``("str",)``), so callers see
    exactly why every alternative was rejected.

Examples:
    >>> import asyncio
    >>> from pydantic import BaseModel
    >>> class Amount(BaseModel):
    ...     cents: int
    >>> outcome = asyncio.run(validate(PydanticSchema(Amount), {"cents": "x"}))
    >>> outcome.issues[0].path
    ('cents',)
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from pydantic import TypeAdapter, ValidationError
from pydantic.errors import PydanticUserError

from taskcontract.core.errors import ContractDefinitionError

PathItem = str | int


@dataclass(frozen=True, slots=True)
class Issue:
    """A single validation problem at ``path``."""

    path: tuple[PathItem, ...]
    message: str

    def describe(self) -> str:
        if not self.path:
            return self.message
        return f"{'.'.join(str(p) for p in self.path)}: {self.message}"


@dataclass(frozen=True, slots=True)
class Accepted:
    """The raw value conforms; ``value`` is the (possibly coerced) result."""

    value: Any

    @property
    def accepted(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Rejected:
    """The raw value does not conform."""

    issues: tuple[Issue, ...]

    @property
    def accepted(self) -> bool:
        return False


ValidationOutcome = Accepted | Rejected


@runtime_checkable
class Schema(Protocol):
    """Anything that can validate a raw value."""

    def validate(self, raw: Any) -> ValidationOutcome | Awaitable[ValidationOutcome]: ...


async def validate(schema: Schema, raw: Any) -> ValidationOutcome:
    """Run ``schema`` against ``raw``, awaiting asynchronous validators."""
    outcome = schema.validate(raw)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return outcome


def rejected(*issues: Issue | tuple[Sequence[PathItem], str] | str) -> Rejected:
    """
    Build a ``Rejected`` from issues, ``(path, message)`` pairs or bare messages.

    Convenience for ``FunctionSchema`` validators.
    """
    built: list[Issue] = []
    for issue in issues:
        if isinstance(issue, Issue):
            built.append(issue)
        elif isinstance(issue, str):
            built.append(Issue((), issue))
        else:
            path, message = issue
            built.append(Issue(tuple(path), message))
    return Rejected(tuple(built))


class PydanticSchema:
    """Schema backed by a pydantic ``TypeAdapter``.

    On Python < 3.12 pydantic only accepts ``TypedDict`` classes built from
    ``typing_extensions.TypedDict``; one built from ``typing.TypedDict`` is
    refused when the schema is created.
    """

    __slots__ = ("type", "strict", "_adapter")

    def __init__(self, tp: Any, *, strict: bool = False):
        self.type = tp
        self.strict = strict
        self._adapter: TypeAdapter[Any] = TypeAdapter(tp)

    @property
    def name(self) -> str:
        return getattr(self.type, "__name__", None) or repr(self.type)

    def validate(self, raw: Any) -> ValidationOutcome:
        try:
            value = self._adapter.validate_python(raw, strict=self.strict)
        except ValidationError as exc:
            return Rejected(
                tuple(
                    Issue(tuple(error["loc"]), error["msg"])
                    for error in exc.errors(include_url=False)
                )
            )
        return Accepted(value)

    def json_schema(self) -> dict[str, Any]:
        return self._adapter.json_schema()

    def __repr__(self) -> str:
        return f"PydanticSchema({self.name})"


class FunctionSchema:
    """Schema backed by a plain callable returning a ``ValidationOutcome``."""

    __slots__ = ("fn", "name")

    def __init__(
        self,
        fn: Callable[[Any], ValidationOutcome | Awaitable[ValidationOutcome]],
        *,
        name: str | None = None,
    ):
        self.fn = fn
        self.name = name or getattr(fn, "__name__", "function")

    def validate(self, raw: Any) -> ValidationOutcome | Awaitable[ValidationOutcome]:
        return self.fn(raw)

    def __repr__(self) -> str:
        return f"FunctionSchema({self.name})"


def schema_name(schema: Any) -> str:
    """Human-readable name for diagnostics."""
    if schema is None:
        return "none"
    name = getattr(schema, "name", None)
    if isinstance(name, str):
        return name
    return type(schema).__name__


def as_schema(obj: Any) -> Schema:
    """
    Coerce ``obj`` into a ``Schema``.

    Schema instances are returned unchanged; types and type annotations become
    ``PydanticSchema``. Anything else raises ``ContractDefinitionError``.
    """
    if isinstance(obj, (PydanticSchema, FunctionSchema)):
        return obj
    # Pydantic model classes expose a ``validate`` classmethod, so test for
    # classes before the structural protocol check.
    if isinstance(obj, type):
        return _pydantic_schema(obj)
    if isinstance(obj, Schema):
        return obj
    if obj is None or isinstance(obj, (str, bytes, int, float, bool)):
        raise ContractDefinitionError(f"Not a schema or type annotation: {obj!r}")
    return _pydantic_schema(obj)


def _pydantic_schema(tp: Any) -> PydanticSchema:
    try:
        return PydanticSchema(tp)
    except (PydanticUserError, TypeError) as exc:
        raise ContractDefinitionError(
            f"Cannot build a schema for {tp!r}: {exc}", cause=exc
        ) from exc


__all__ = [
    "Issue",
    "Accepted",
    "Rejected",
    "ValidationOutcome",
    "Schema",
    "validate",
    "rejected",
    "PydanticSchema",
    "FunctionSchema",
    "schema_name",
    "as_schema",
]
