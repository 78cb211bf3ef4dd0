"""
Shared pytest fixtures for taskcontract tests.

This module provides:
- Settings cache and structlog isolation between tests
- Sample contracts (a math contract and a contract with shadowed activities)
- Call-counting stubs for "implementation never called" checks

Usage:
    def test_something(math_contract, number_model):
        ...
"""

from __future__ import annotations

import logging
import os
from typing import Any

import pytest
import structlog
from pydantic import BaseModel

from taskcontract import (
    define_activity,
    define_contract,
    define_query,
    define_signal,
    define_update,
    define_workflow,
)
from taskcontract.core.logging import clear_context
from taskcontract.core.settings import clear_settings_cache


class Number(BaseModel):
    n: float


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_globals():
    """Fresh settings and default structlog configuration for every test."""
    root_level = logging.getLogger().level
    clear_settings_cache()
    yield
    clear_settings_cache()
    clear_context()
    structlog.reset_defaults()
    logging.getLogger().setLevel(root_level)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    """Ignore TASKCONTRACT_* variables and any .env file of the host."""
    for key in list(os.environ):
        if key.startswith("TASKCONTRACT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


# =============================================================================
# Contracts
# =============================================================================


@pytest.fixture
def number_model() -> type[Number]:
    return Number


@pytest.fixture
def math_contract():
    """``double`` is global; ``triple`` is local to ``compute``."""
    return define_contract(
        "math",
        workflows={
            "compute": define_workflow(
                Number,
                Number,
                activities={"triple": define_activity(Number, Number)},
            ),
        },
        activities={"double": define_activity(Number, Number)},
    )


@pytest.fixture
def shadow_contract():
    """
    ``ping`` is declared globally (Number -> Number) and shadowed inside
    ``alpha`` (int -> int). ``alpha`` also declares a signal, a query and
    an update; ``beta`` only sees the global activities.
    """
    return define_contract(
        "shadow",
        workflows={
            "alpha": define_workflow(
                Number,
                Number,
                activities={
                    "ping": define_activity(int, int),
                    "only": define_activity(Number, Number),
                },
                signals={"cancel": define_signal(str)},
                queries={"status": define_query(dict, str)},
                updates={"setLimit": define_update(int, int)},
            ),
            "beta": define_workflow(Number, Number),
        },
        activities={
            "ping": define_activity(Number, Number),
            "notify": define_activity(Number),
        },
    )


# =============================================================================
# Stubs
# =============================================================================


class CallCounter:
    """Callable stub recording every argument it receives."""

    def __init__(self, result: Any = None):
        self.calls: list[Any] = []
        self.result = result

    def __call__(self, value: Any) -> Any:
        self.calls.append(value)
        if callable(self.result):
            return self.result(value)
        return self.result

    @property
    def count(self) -> int:
        return len(self.calls)


@pytest.fixture
def counter():
    """Factory for ``CallCounter`` stubs."""
    return CallCounter
