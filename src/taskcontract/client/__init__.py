"""Typed client boundary."""

from taskcontract.client.client import TypedClient, TypedWorkflowHandle, WorkflowStarter

__all__ = ["TypedClient", "TypedWorkflowHandle", "WorkflowStarter"]
