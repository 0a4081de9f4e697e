"""Utility modules for the agent loop."""

from .models import (
    Role,
    Message,
    Action,
    RunAction,
    ReadFileAction,
    PatchAction,
    CommitAction,
    DefineCriteriaAction,
    VerifyCriterionAction,
    UnknownAction,
    ExecutionResult,
    TaskStatus,
    Criterion,
    Task,
    TaskStatistics,
)

__all__ = [
    "Role",
    "Message",
    "Action",
    "RunAction",
    "ReadFileAction",
    "PatchAction",
    "CommitAction",
    "DefineCriteriaAction",
    "VerifyCriterionAction",
    "UnknownAction",
    "ExecutionResult",
    "TaskStatus",
    "Criterion",
    "Task",
    "TaskStatistics",
]
