"""
taskcontract - validated dispatch for contract-first workflow orchestration.

A contract names every workflow, activity, signal, query and update a task
queue exposes, together with their input and output schemas. taskcontract
resolves named operations against that contract, validates untrusted input
and output at the boundary, invokes the bound implementation, and normalizes
raised and ``Err``-returned failures into one error shape.

Quick start:
    from taskcontract import define_activity, define_contract, define_workflow
    from taskcontract import Dispatcher, register_handler
"""

__version__ = "0.1.0"

from taskcontract.client import TypedClient, TypedWorkflowHandle, WorkflowStarter
from taskcontract.contract import *  # noqa: F401,F403
from taskcontract.core import *  # noqa: F401,F403
from taskcontract.execution import *  # noqa: F401,F403
