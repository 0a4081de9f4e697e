"""
Shared fixtures: scripted completion client, fake shell and git, and a
whitespace token encoder so no test touches the network or a real shell.
"""

from typing import Dict, List, Optional

import pytest

from agents.orchestrator import Orchestrator
from utils.environment import EnvironmentInfo
from utils.llm_client import LLMClient
from utils.logger import AgentLogger
from utils.shell_executor import CommandResult
from utils.token_budget import TokenBudget


def word_encoder(text: str) -> List[str]:
    return text.split()


class ScriptedLLMClient(LLMClient):
    """Returns canned replies in order; exceptions in the script are raised."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls: List[List[Dict[str, str]]] = []

    def complete(self, messages, model=None, **kwargs):
        self.calls.append([dict(m) for m in messages])
        if not self.replies:
            raise AssertionError("Scripted client ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeShell:
    """Shell collaborator returning scripted (exit_code, output) pairs."""

    def __init__(self, results=None, default=(0, "")):
        self.results = list(results or [])
        self.default = default
        self.commands: List[str] = []

    def run(self, command: str) -> CommandResult:
        self.commands.append(command)
        exit_code, output = self.results.pop(0) if self.results else self.default
        return CommandResult(command, exit_code, output)


class FakeGit:
    """Git collaborator recording commit messages."""

    def __init__(self, exit_code: int = 0, output: str = "[main abc123] commit"):
        self.exit_code = exit_code
        self.output = output
        self.messages: List[str] = []

    def commit_all(self, message: str) -> CommandResult:
        self.messages.append(message)
        return CommandResult(f"git commit -m {message}", self.exit_code, self.output)


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def logger(tmp_path):
    return AgentLogger(log_dir=str(tmp_path / "logs"), log_level="DEBUG", console_level="CRITICAL")


@pytest.fixture
def budget():
    return TokenBudget(encoder=word_encoder)


@pytest.fixture
def environment(tmp_path):
    return EnvironmentInfo(
        working_dir=str(tmp_path),
        platform="linux",
        os_name="Linux",
        shell="bash",
    )


@pytest.fixture
def make_orchestrator(logger, budget, environment):
    """Build an orchestrator around scripted collaborators."""

    def _make(
        replies,
        shell: Optional[FakeShell] = None,
        git: Optional[FakeGit] = None,
        answers=None,
        **config_overrides
    ):
        config = {
            "working_dir": environment.working_dir,
            "auto_approve": True,
            "max_steps": 10,
            "max_tokens": 6000,
            "max_messages": 20,
            "max_retries": 3,
            "retry_base_delay": 1.0,
            "llm_max_retries": 3,
            "min_goal_length": 20,
        }
        config.update(config_overrides)
        answers = list(answers or [])
        prompts: List[str] = []
        outputs: List[str] = []
        sleep = RecordingSleep()

        def confirm(prompt: str) -> bool:
            prompts.append(prompt)
            return answers.pop(0) if answers else False

        orchestrator = Orchestrator(
            llm_client=ScriptedLLMClient(replies),
            logger=logger,
            config=config,
            shell=shell or FakeShell(),
            git=git or FakeGit(),
            environment=environment,
            budget=budget,
            confirm=confirm,
            output=outputs.append,
            sleep=sleep,
        )
        orchestrator.confirm_prompts = prompts
        orchestrator.outputs = outputs
        orchestrator.recorded_sleep = sleep
        return orchestrator

    return _make
