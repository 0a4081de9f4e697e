"""Step loop turning user goals into executed actions."""

import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from utils.action_executor import ActionExecutor
from utils.action_protocol import ActionProtocol, CompletionSignal, detect_completion_signal
from utils.context_store import ContextStore
from utils.environment import EnvironmentInfo, detect_environment
from utils.exceptions import LLMError
from utils.git_helper import GitHelper
from utils.llm_client import LLMClient
from utils.logger import AgentLogger
from utils.models import Action, Message, Task, UnknownAction
from utils.shell_executor import ShellExecutor
from utils.task_ledger import TaskLedger
from utils.token_budget import TokenBudget

from .prompts import build_system_prompt, load_template

GOAL_KEYWORDS = ("create", "delete", "modify", "check")
COMMANDS_HELP = "Commands: /reset /exit /pwd /tasks"


class Outcome(str, Enum):
    """How a submission ended."""
    COMMAND = "command"
    EXIT = "exit"
    COMPLETED = "completed"
    FAILED = "failed"
    CONVERSATION = "conversation"
    DECLINED = "declined"
    UNKNOWN_ACTION = "unknown_action"
    STEP_LIMIT = "step_limit"
    LLM_ERROR = "llm_error"


@dataclass
class SubmissionResult:
    """Result of processing one user submission."""
    outcome: Outcome
    steps: int = 0
    task: Optional[Task] = None


def ask_yes_no(prompt: str) -> bool:
    """Blocking y/n prompt on stdin. Anything but "y" declines."""
    try:
        return input(prompt).strip().lower() == "y"
    except EOFError:
        return False


class Orchestrator:
    """
    Drives the request/parse/execute loop for one user submission at a time.

    The orchestrator owns the conversation context and the task ledger;
    nothing is shared between instances.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        logger: AgentLogger,
        config: Optional[Dict[str, Any]] = None,
        shell: Optional[ShellExecutor] = None,
        git: Optional[GitHelper] = None,
        environment: Optional[EnvironmentInfo] = None,
        budget: Optional[TokenBudget] = None,
        confirm: Callable[[str], bool] = ask_yes_no,
        output: Callable[[str], None] = print,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize orchestrator.

        Args:
            llm_client: Completion client
            logger: Logger instance
            config: Loop settings (see config.AGENT_CONFIG)
            shell: Shell collaborator (default: ShellExecutor in working_dir)
            git: Git collaborator (default: GitHelper in working_dir)
            environment: Platform description for the system prompt
            budget: Token estimator for the context
            confirm: Yes/no prompt for gated actions
            output: Sink for user-facing text
            sleep: Delay function used between retries
        """
        self.config = config or {}
        self.llm_client = llm_client
        self.logger = logger
        self.confirm = confirm
        self.output = output
        self.sleep = sleep

        working_dir = self.config.get("working_dir", ".")
        self.environment = environment or detect_environment(working_dir)
        self.auto_approve = bool(self.config.get("auto_approve", False))
        self.max_steps = self.config.get("max_steps", 10)
        self.min_goal_length = self.config.get("min_goal_length", 20)
        self.llm_max_retries = max(1, self.config.get("llm_max_retries", 3))
        self.model = self.config.get("model")
        self.template = load_template(self.config.get("prompt_template"))
        self.logger.info(
            f"Environment: {self.environment.os_name} ({self.environment.platform}), "
            f"shell {self.environment.shell}, container: {self.environment.in_container}, "
            f"working dir {self.environment.working_dir}"
        )

        self.ledger = TaskLedger()
        self.context = ContextStore(
            build_system_prompt(self.environment, self.ledger, self.template),
            budget=budget or TokenBudget(self.config.get("token_encoding", "cl100k_base")),
            max_tokens=self.config.get("max_tokens", 6000),
            max_messages=self.config.get("max_messages", 20),
            logger=logger,
        )
        self.executor = ActionExecutor(
            context=self.context,
            ledger=self.ledger,
            shell=shell or ShellExecutor(working_dir, timeout=self.config.get("command_timeout")),
            git=git or GitHelper(working_dir),
            working_dir=self.environment.working_dir,
            max_retries=self.config.get("max_retries", 3),
            base_delay=self.config.get("retry_base_delay", 1.0),
            logger=logger,
            sleep=sleep,
        )

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def submit(self, text: str) -> SubmissionResult:
        """
        Process one line of user input to completion.

        Slash-commands are handled locally; anything else goes through the
        step loop until the task finishes or control returns to the user.
        """
        text = text.strip()
        if not text:
            return SubmissionResult(Outcome.COMMAND)
        if text.startswith("/"):
            return self.handle_command(text)

        task = self._open_task(text)
        self.context.append(Message.user(text))
        result = self._run_steps(task)
        self._refresh_system_message()
        self.logger.log_progress(
            result.outcome.value,
            result.steps,
            self.ledger.get_statistics().to_dict(),
        )
        return result

    def handle_command(self, command: str) -> SubmissionResult:
        name = command.split()[0].lower()
        if name == "/exit":
            return SubmissionResult(Outcome.EXIT)
        if name == "/reset":
            self.reset()
            self.output("Context reset.")
        elif name == "/pwd":
            self.output(self.environment.working_dir)
        elif name == "/tasks":
            self.output("\n".join(self.ledger.summary_lines()))
        else:
            self.output(f"Unknown command: {name}. {COMMANDS_HELP}")
        return SubmissionResult(Outcome.COMMAND)

    def reset(self) -> None:
        """Clear the context down to the system message and forget all tasks."""
        self.ledger.reset()
        self.context.reset()
        self._refresh_system_message()
        self.logger.info("Context and task ledger reset")

    def is_goal(self, text: str) -> bool:
        """Whether an input should open a new task."""
        if text.startswith("/"):
            return False
        if len(text) > self.min_goal_length:
            return True
        words = re.findall(r"[a-z]+", text.lower())
        return any(keyword in words for keyword in GOAL_KEYWORDS)

    # ------------------------------------------------------------------
    # Step loop
    # ------------------------------------------------------------------

    def _open_task(self, text: str) -> Optional[Task]:
        if self.is_goal(text):
            task = self.ledger.create_task(text)
            self.ledger.activate_task(task.id)
            self.logger.info(f"Opened {task.id}: {text}")
            return task

        task = self.ledger.current_task
        if task is None or task.is_finished():
            return None
        if task.is_pending():
            self.ledger.activate_task(task.id)
            self.logger.info(f"Resumed {task.id}")
        return task

    def _run_steps(self, task: Optional[Task]) -> SubmissionResult:
        task_id = task.id if task else None

        for step in range(1, self.max_steps + 1):
            self._refresh_system_message()

            started = time.time()
            try:
                reply = self._request_completion(step)
            except LLMError as e:
                self.logger.log_error_with_traceback(
                    "Orchestrator", e, context={"step": step, "task_id": task_id}
                )
                self.output(f"[Error] Completion request failed: {e}")
                self._demote(task)
                return SubmissionResult(Outcome.LLM_ERROR, step, task)
            duration = time.time() - started

            # The raw reply is kept whether or not it carries an action
            self.context.append(Message.assistant(reply))
            self.output(f"\n[Agent] {reply}\n")

            decoded = ActionProtocol.decode(reply)
            self.logger.log_step(step, task_id, reply, duration, action=getattr(decoded, "tag", None))

            if decoded is None:
                outcome = self._conclude(reply, task)
                if outcome is not None:
                    return SubmissionResult(outcome, step, task)
                continue

            if isinstance(decoded, UnknownAction):
                self.logger.warning(f"Unknown action '{decoded.tag}', returning control to the user")
                self.output(f"[Warning] Unknown action '{decoded.tag}'.")
                return SubmissionResult(Outcome.UNKNOWN_ACTION, step, task)

            if decoded.requires_confirmation and not self.auto_approve:
                if not self._confirm(decoded):
                    self.context.append(Message.user(
                        f"I declined this action: {decoded.describe()}. Wait for further instructions."
                    ))
                    self._demote(task)
                    self.logger.info(f"User declined: {decoded.describe()}")
                    self.output("[Declined] Task returned to pending.")
                    return SubmissionResult(Outcome.DECLINED, step, task)

            result = self.executor.execute(decoded)
            self.output(result.output)

            if task is not None and task.is_completed():
                self.output(f"[Done] {task.id} verified complete.")
                return SubmissionResult(Outcome.COMPLETED, step, task)

        self._demote(task)
        self.logger.warning(f"Maximum task steps ({self.max_steps}) reached")
        self.output("[Warning] Maximum task steps reached. Returning to interactive mode.")
        return SubmissionResult(Outcome.STEP_LIMIT, self.max_steps, task)

    def _request_completion(self, step: int) -> str:
        """Request one completion, retrying transient errors with exponential backoff."""
        for attempt in range(self.llm_max_retries):
            try:
                return self.llm_client.complete(self.context.to_payload(), model=self.model)
            except LLMError as e:
                if e.retryable and attempt < self.llm_max_retries - 1:
                    wait_time = 2 ** attempt  # 1s, 2s, 4s, ...
                    self.logger.warning(
                        f"[Step {step}] LLM error (attempt {attempt + 1}/{self.llm_max_retries}), "
                        f"retrying in {wait_time} seconds: {e}"
                    )
                    self.sleep(wait_time)
                    continue
                raise
        raise LLMError("No completion attempts were made", retryable=False)

    def _conclude(self, reply: str, task: Optional[Task]) -> Optional[Outcome]:
        """
        Decide what a prose reply means for the task.

        Returns:
            The outcome to halt with, or None to keep stepping
        """
        if task is None or not task.is_active():
            return Outcome.CONVERSATION

        signal = detect_completion_signal(reply)
        if signal is CompletionSignal.FAILURE:
            self.ledger.fail_task(task.id, result=reply)
            self.logger.info(f"Task {task.id} failed (reported by the model)")
            return Outcome.FAILED

        if signal is CompletionSignal.COMPLETE:
            if not task.criteria or self.ledger.verify_task_completion(task):
                self.ledger.complete_task(task.id, result=reply)
                self.logger.info(f"Task {task.id} completed")
                return Outcome.COMPLETED
            unverified = "\n".join(
                f"[{i}] {c.text}" for i, c in enumerate(task.criteria) if not c.verified
            )
            self.context.append(Message.user(
                f"{task.id} is not finished until every success criterion is verified. "
                f"Unverified criteria:\n{unverified}"
            ))
        return None

    def _confirm(self, action: Action) -> bool:
        return self.confirm(f"⚠ {action.describe()}? (y/n): ")

    def _demote(self, task: Optional[Task]) -> None:
        if task is not None and task.is_active():
            self.ledger.demote_task(task.id)
            self.logger.info(f"Task {task.id} returned to pending")

    def _refresh_system_message(self) -> None:
        content = build_system_prompt(self.environment, self.ledger, self.template)
        if content != self.context.system_message.content:
            self.context.replace_system_message(content)
