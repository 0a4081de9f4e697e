"""Data models for the agent loop using dataclasses."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional


class Role(str, Enum):
    """Message role enumeration."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """One entry of the conversation context."""
    role: Role
    content: str

    def __post_init__(self):
        if isinstance(self.role, str):
            self.role = Role(self.role)

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(Role.ASSISTANT, content)

    def to_dict(self) -> Dict[str, str]:
        """Convert to the chat-completions wire format."""
        return {"role": self.role.value, "content": self.content}


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@dataclass
class Action:
    """Base class for actions decoded from a completion."""
    tag: ClassVar[str] = ""
    requires_confirmation: ClassVar[bool] = False

    def describe(self) -> str:
        """Short human-readable description used in confirmation prompts."""
        return self.tag


@dataclass
class RunAction(Action):
    command: str
    tag: ClassVar[str] = "run"
    requires_confirmation: ClassVar[bool] = True

    def describe(self) -> str:
        return f'Run "{self.command}"'


@dataclass
class ReadFileAction(Action):
    path: str
    tag: ClassVar[str] = "read"

    def describe(self) -> str:
        return f'Read file "{self.path}"'


@dataclass
class PatchAction(Action):
    path: str
    content: str
    tag: ClassVar[str] = "patch"
    requires_confirmation: ClassVar[bool] = True

    def describe(self) -> str:
        return f'Patch file "{self.path}"'


@dataclass
class CommitAction(Action):
    message: str
    tag: ClassVar[str] = "commit"

    def describe(self) -> str:
        return f'Commit "{self.message}"'


@dataclass
class DefineCriteriaAction(Action):
    task_id: str
    criteria: List[str] = field(default_factory=list)
    tag: ClassVar[str] = "define_criteria"

    def describe(self) -> str:
        return f"Define {len(self.criteria)} criteria for {self.task_id}"


@dataclass
class VerifyCriterionAction(Action):
    task_id: str
    criterion_index: int
    command: str
    tag: ClassVar[str] = "verify_criterion"
    requires_confirmation: ClassVar[bool] = True

    def describe(self) -> str:
        return f'Verify criterion {self.criterion_index} of {self.task_id} with "{self.command}"'


@dataclass
class UnknownAction:
    """A well-formed action record whose tag is not recognized."""
    tag: str
    record: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ExecutionResult:
    """Outcome of executing one action."""
    success: bool
    output: str = ""
    attempts: int = 1


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

class TaskStatus(str, Enum):
    """Task status enumeration."""
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Criterion:
    """A single verifiable success condition of a task."""
    text: str
    verification_command: Optional[str] = None
    verified: bool = False
    verified_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"text": self.text, "verified": self.verified}
        if self.verification_command:
            data["verification_command"] = self.verification_command
        if self.verified_at:
            data["verified_at"] = self.verified_at
        return data


@dataclass
class Task:
    """One user goal tracked by the ledger."""
    id: str
    description: str
    criteria: List[Criterion] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    completed_at: Optional[str] = None
    failed_at: Optional[str] = None
    result: Optional[str] = None

    def __post_init__(self):
        """Post-initialization processing."""
        if isinstance(self.status, str):
            self.status = TaskStatus(self.status)
        if self.created_at is None:
            self.created_at = datetime.now().isoformat()
        if self.updated_at is None:
            self.updated_at = self.created_at

    def touch(self) -> None:
        self.updated_at = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging and display."""
        data = {
            "id": self.id,
            "description": self.description,
            "status": self.status.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

        # Only include optional fields if they have values
        if self.criteria:
            data["criteria"] = [c.to_dict() for c in self.criteria]
        if self.completed_at:
            data["completed_at"] = self.completed_at
        if self.failed_at:
            data["failed_at"] = self.failed_at
        if self.result:
            data["result"] = self.result

        return data

    def verified_count(self) -> int:
        return len([c for c in self.criteria if c.verified])

    def is_pending(self) -> bool:
        return self.status == TaskStatus.PENDING

    def is_active(self) -> bool:
        return self.status == TaskStatus.ACTIVE

    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def is_failed(self) -> bool:
        return self.status == TaskStatus.FAILED

    def is_finished(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.FAILED)


@dataclass
class TaskStatistics:
    """Task counts per status."""
    total: int = 0
    pending: int = 0
    active: int = 0
    completed: int = 0
    failed: int = 0

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "pending": self.pending,
            "active": self.active,
            "completed": self.completed,
            "failed": self.failed,
        }

    @classmethod
    def from_tasks(cls, tasks: List[Task]) -> "TaskStatistics":
        """Calculate statistics from task list."""
        return cls(
            total=len(tasks),
            pending=len([t for t in tasks if t.is_pending()]),
            active=len([t for t in tasks if t.is_active()]),
            completed=len([t for t in tasks if t.is_completed()]),
            failed=len([t for t in tasks if t.is_failed()]),
        )
