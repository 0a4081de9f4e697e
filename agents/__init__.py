"""Agent loop components."""

from .orchestrator import Orchestrator, Outcome, SubmissionResult

__all__ = [
    "Orchestrator",
    "Outcome",
    "SubmissionResult",
]
