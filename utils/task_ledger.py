"""In-memory task ledger with success-criteria tracking."""

from datetime import datetime
from typing import Dict, List, Optional

from .exceptions import TaskError
from .models import Criterion, Task, TaskStatistics, TaskStatus


class TaskLedger:
    """
    Tracks user goals through pending, active and finished buckets.

    Tasks are never dropped between status changes; they only move from one
    bucket to another. ``current_task`` points at the most recently
    activated task.
    """

    def __init__(self):
        self.pending: List[Task] = []
        self.active: List[Task] = []
        self.finished: List[Task] = []
        self.current_task: Optional[Task] = None
        self._next_task_id = 1

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def all_tasks(self) -> List[Task]:
        return self.pending + self.active + self.finished

    def get_task(self, task_id: str) -> Optional[Task]:
        for task in self.all_tasks():
            if task.id == task_id:
                return task
        return None

    def _require(self, task_id: str) -> Task:
        task = self.get_task(task_id)
        if task is None:
            raise TaskError(task_id, "not found")
        return task

    def _bucket_for(self, status: TaskStatus) -> List[Task]:
        if status == TaskStatus.PENDING:
            return self.pending
        if status == TaskStatus.ACTIVE:
            return self.active
        return self.finished

    def _move(self, task: Task, status: TaskStatus) -> None:
        self._bucket_for(task.status).remove(task)
        task.status = status
        task.touch()
        self._bucket_for(status).append(task)

    def get_statistics(self) -> TaskStatistics:
        return TaskStatistics.from_tasks(self.all_tasks())

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def create_task(self, description: str) -> Task:
        """
        Create a pending task.

        Args:
            description: The user goal in free text

        Returns:
            The new task
        """
        task = Task(id=f"task_{self._next_task_id:03d}", description=description)
        self._next_task_id += 1
        self.pending.append(task)
        return task

    def activate_task(self, task_id: str) -> Task:
        """
        Make a task the current active one.

        A different task that is still active is demoted back to pending.
        """
        task = self._require(task_id)
        if task.is_finished():
            raise TaskError(task_id, f"cannot activate a {task.status.value} task")
        current = self.current_task
        if current is not None and current is not task and current.is_active():
            self._move(current, TaskStatus.PENDING)
        if not task.is_active():
            self._move(task, TaskStatus.ACTIVE)
        self.current_task = task
        return task

    def demote_task(self, task_id: str) -> Task:
        """Return an active task to pending."""
        task = self._require(task_id)
        if task.is_active():
            self._move(task, TaskStatus.PENDING)
        return task

    def complete_task(self, task_id: str, result: Optional[str] = None) -> Task:
        """
        Mark a task completed.

        Raises:
            TaskError: If the task is already finished, or has criteria
                that are not all verified
        """
        task = self._require(task_id)
        if task.is_finished():
            raise TaskError(task_id, f"already {task.status.value}")
        if task.criteria and not self.verify_task_completion(task):
            raise TaskError(
                task_id,
                f"{len(task.criteria) - task.verified_count()} criteria still unverified",
            )
        self._move(task, TaskStatus.COMPLETED)
        task.completed_at = task.updated_at
        task.result = result
        return task

    def fail_task(self, task_id: str, result: Optional[str] = None) -> Task:
        """Mark a task failed."""
        task = self._require(task_id)
        if task.is_finished():
            raise TaskError(task_id, f"already {task.status.value}")
        self._move(task, TaskStatus.FAILED)
        task.failed_at = task.updated_at
        task.result = result
        return task

    # ------------------------------------------------------------------
    # Criteria
    # ------------------------------------------------------------------

    def define_criteria(self, task_id: str, criteria: List[str]) -> bool:
        """
        Append unverified criteria to the current active task.

        Returns:
            False (and changes nothing) if ``task_id`` is not the current
            active task
        """
        task = self.current_task
        if task is None or task.id != task_id or not task.is_active():
            return False
        task.criteria.extend(Criterion(text=text) for text in criteria)
        task.touch()
        return True

    def verify_criterion(self, task_id: str, index: int, command: Optional[str] = None) -> bool:
        """
        Mark one criterion verified.

        Returns:
            False if the task is unknown or finished, or the index is out
            of range
        """
        task = self.get_task(task_id)
        if task is None or task.is_finished():
            return False
        if index < 0 or index >= len(task.criteria):
            return False
        criterion = task.criteria[index]
        criterion.verified = True
        criterion.verification_command = command
        criterion.verified_at = datetime.now().isoformat()
        task.touch()
        return True

    @staticmethod
    def verify_task_completion(task: Task) -> bool:
        """True iff the task has criteria and every one is verified."""
        return bool(task.criteria) and all(c.verified for c in task.criteria)

    def reset(self) -> None:
        """Forget every task. Task ids keep counting up."""
        self.pending.clear()
        self.active.clear()
        self.finished.clear()
        self.current_task = None

    def summary_lines(self) -> List[str]:
        """Human-readable listing used by the /tasks command."""
        stats = self.get_statistics()
        lines = [
            f"Tasks: {stats.active} active, {stats.pending} pending, "
            f"{stats.completed} completed, {stats.failed} failed"
        ]
        groups: Dict[str, List[Task]] = {
            "Active": self.active,
            "Pending": self.pending,
            "Completed": [t for t in self.finished if t.is_completed()],
            "Failed": [t for t in self.finished if t.is_failed()],
        }
        for label, tasks in groups.items():
            if not tasks:
                continue
            lines.append(f"{label}:")
            for task in tasks:
                progress = ""
                if task.criteria:
                    progress = f" [{task.verified_count()}/{len(task.criteria)} criteria verified]"
                lines.append(f"  - {task.id}: {task.description}{progress}")
        return lines
