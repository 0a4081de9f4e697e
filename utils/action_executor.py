"""Execution of decoded actions against the shell, filesystem and git."""

import time
from pathlib import Path
from typing import Callable, Optional, TYPE_CHECKING

from .context_store import ContextStore
from .git_helper import GitHelper
from .models import (
    Action,
    CommitAction,
    DefineCriteriaAction,
    ExecutionResult,
    Message,
    PatchAction,
    ReadFileAction,
    RunAction,
    VerifyCriterionAction,
)
from .shell_executor import ShellExecutor
from .task_ledger import TaskLedger

if TYPE_CHECKING:
    from .logger import AgentLogger

ALTERNATIVE_HINT = "Please suggest an alternative approach or fix the command."
VERIFICATION_FAILURE_MARKERS = ("error", "not found")


class ActionExecutor:
    """
    Executes one action at a time and records the outcome in the context.

    Every operation appends exactly one assistant message describing what
    happened, so the next completion can react to it.
    """

    def __init__(
        self,
        context: ContextStore,
        ledger: TaskLedger,
        shell: ShellExecutor,
        git: GitHelper,
        working_dir: str = ".",
        max_retries: int = 3,
        base_delay: float = 1.0,
        logger: Optional["AgentLogger"] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize action executor.

        Args:
            context: Context receiving result messages
            ledger: Task ledger updated by criteria actions
            shell: Shell collaborator
            git: Git collaborator
            working_dir: Base directory for relative file paths
            max_retries: Total attempts for a failing run action
            base_delay: Seconds multiplied by the attempt number between retries
            logger: Logger instance
            sleep: Delay function (injectable for tests)
        """
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        self.context = context
        self.ledger = ledger
        self.shell = shell
        self.git = git
        self.working_dir = Path(working_dir)
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.logger = logger
        self.sleep = sleep
        self._handlers = {
            RunAction: self._run,
            ReadFileAction: self._read_file,
            PatchAction: self._patch,
            CommitAction: self._commit,
            DefineCriteriaAction: self._define_criteria,
            VerifyCriterionAction: self._verify_criterion,
        }

    def execute(self, action: Action) -> ExecutionResult:
        """
        Execute an action and append its summary to the context.

        Raises:
            TypeError: If the action type has no handler
        """
        handler = self._handlers.get(type(action))
        if handler is None:
            raise TypeError(f"No handler for action {type(action).__name__}")
        result, summary = handler(action)
        self.context.append(Message.assistant(summary))
        if self.logger:
            self.logger.log_action(action.tag, result.success, result.output, attempts=result.attempts)
        return result

    def _resolve(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        if candidate.is_absolute():
            return candidate
        return self.working_dir / candidate

    # ------------------------------------------------------------------
    # Handlers; each returns (result, context summary)
    # ------------------------------------------------------------------

    def _run(self, action: RunAction):
        attempt = 0
        while True:
            attempt += 1
            outcome = self.shell.run(action.command)
            if outcome.success:
                result = ExecutionResult(True, outcome.output, attempts=attempt)
                return result, f"Command executed successfully:\n{outcome.output}"
            if attempt >= self.max_retries:
                break
            delay = attempt * self.base_delay
            if self.logger:
                self.logger.warning(
                    f"Command failed (exit {outcome.exit_code}), retrying "
                    f"({attempt}/{self.max_retries}) in {delay:.1f}s: {action.command}"
                )
            self.sleep(delay)

        result = ExecutionResult(False, outcome.output, attempts=attempt)
        summary = (
            f"Command failed after {attempt} attempt(s): {action.command}\n"
            f"Exit code: {outcome.exit_code}\n"
            f"Error: {outcome.output}\n"
            f"{ALTERNATIVE_HINT}"
        )
        return result, summary

    def _read_file(self, action: ReadFileAction):
        try:
            content = self._resolve(action.path).read_text(encoding="utf-8")
        except (OSError, ValueError) as e:
            # ValueError covers undecodable bytes and NUL characters in the path
            return (
                ExecutionResult(False, str(e)),
                f"Failed to read {action.path}: {e}\n{ALTERNATIVE_HINT}",
            )
        return ExecutionResult(True, content), f"Contents of {action.path}:\n{content}"

    def _patch(self, action: PatchAction):
        target = self._resolve(action.path)
        try:
            # Encode before touching the target so a bad payload never truncates it
            data = action.content.encode("utf-8")
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except (OSError, ValueError) as e:
            return (
                ExecutionResult(False, str(e)),
                f"Failed to patch {action.path}: {e}\n{ALTERNATIVE_HINT}",
            )
        message = f"Patched {action.path}"
        return ExecutionResult(True, message), message

    def _commit(self, action: CommitAction):
        outcome = self.git.commit_all(action.message)
        if not outcome.success:
            return (
                ExecutionResult(False, outcome.output),
                f"Commit failed: {outcome.output}\n{ALTERNATIVE_HINT}",
            )
        return ExecutionResult(True, outcome.output), f"Committed changes: {action.message}"

    def _define_criteria(self, action: DefineCriteriaAction):
        if not self.ledger.define_criteria(action.task_id, action.criteria):
            message = (
                f"Criteria not recorded: {action.task_id} is not the active task. "
                f"Use the active task id from the system message."
            )
            return ExecutionResult(True, message), message

        task = self.ledger.get_task(action.task_id)
        listing = "\n".join(
            f"[{i}] {c.text}" for i, c in enumerate(task.criteria)
        )
        message = f"Success criteria recorded for {task.id}:\n{listing}"
        return ExecutionResult(True, message), message

    def _verify_criterion(self, action: VerifyCriterionAction):
        task = self.ledger.get_task(action.task_id)
        problem = None
        if task is None:
            problem = f"unknown task {action.task_id}"
        elif task.is_finished():
            problem = f"{task.id} is already {task.status.value}"
        elif not 0 <= action.criterion_index < len(task.criteria):
            problem = f"{task.id} has no criterion {action.criterion_index}"
        if problem:
            message = f"Cannot verify criterion: {problem}."
            return ExecutionResult(False, message), message

        criterion = task.criteria[action.criterion_index]
        outcome = self.shell.run(action.command)
        lowered = outcome.output.lower()
        passed = outcome.success and not any(m in lowered for m in VERIFICATION_FAILURE_MARKERS)

        if not passed:
            summary = (
                f"Verification failed for criterion {action.criterion_index} "
                f"({criterion.text}) of {task.id}:\n{outcome.output}\n"
                f"Please suggest an alternative approach."
            )
            return ExecutionResult(False, outcome.output), summary

        self.ledger.verify_criterion(task.id, action.criterion_index, action.command)
        summary = f"Criterion {action.criterion_index} verified for {task.id}: {criterion.text}"
        if self.ledger.verify_task_completion(task):
            self.ledger.complete_task(task.id, result="All success criteria verified")
            summary += f"\nAll criteria verified; {task.id} is complete."
            if self.logger:
                self.logger.info(f"Task {task.id} completed by criteria verification")
        return ExecutionResult(True, outcome.output), summary
