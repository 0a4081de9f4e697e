"""Tests for action execution against fake collaborators."""

import pytest

from conftest import FakeGit, FakeShell, RecordingSleep
from utils.action_executor import ActionExecutor
from utils.context_store import ContextStore
from utils.git_helper import GitHelper
from utils.models import (
    CommitAction,
    DefineCriteriaAction,
    PatchAction,
    ReadFileAction,
    Role,
    RunAction,
    VerifyCriterionAction,
)
from utils.shell_executor import ShellExecutor
from utils.task_ledger import TaskLedger


@pytest.fixture
def parts(tmp_path, budget, logger):
    context = ContextStore("system", budget=budget, max_tokens=100_000, max_messages=50)
    ledger = TaskLedger()
    shell = FakeShell()
    git = FakeGit()
    sleep = RecordingSleep()
    executor = ActionExecutor(
        context=context,
        ledger=ledger,
        shell=shell,
        git=git,
        working_dir=str(tmp_path),
        max_retries=3,
        base_delay=1.0,
        logger=logger,
        sleep=sleep,
    )
    return executor, context, ledger, shell, git, sleep


def last_message(context):
    return context.messages[-1]


def test_run_success_appends_summary(parts):
    executor, context, _, shell, _, sleep = parts
    shell.results = [(0, "a.txt\nb.txt\n")]

    result = executor.execute(RunAction("ls"))

    assert result.success
    assert result.output == "a.txt\nb.txt\n"
    assert shell.commands == ["ls"]
    assert sleep.delays == []
    assert last_message(context).role == Role.ASSISTANT
    assert last_message(context).content.startswith("Command executed successfully:")


def test_run_retries_with_linear_backoff_then_reports_failure(parts):
    executor, context, _, shell, _, sleep = parts
    shell.default = (1, "boom")

    result = executor.execute(RunAction("make build"))

    assert not result.success
    assert result.attempts == 3
    assert shell.commands == ["make build"] * 3
    assert sleep.delays == [1.0, 2.0]
    summary = last_message(context).content
    assert "Command failed after 3 attempt(s): make build" in summary
    assert "alternative approach" in summary
    # One summary message for the whole retry sequence
    assert len(context) == 2


def test_run_recovers_on_a_later_attempt(parts):
    executor, _, _, shell, _, sleep = parts
    shell.results = [(1, "flaky"), (0, "ok")]

    result = executor.execute(RunAction("flaky-tool"))

    assert result.success
    assert result.attempts == 2
    assert sleep.delays == [1.0]


def test_read_file(parts, tmp_path):
    executor, context, *_ = parts
    (tmp_path / "notes.txt").write_text("hello", encoding="utf-8")

    result = executor.execute(ReadFileAction("notes.txt"))

    assert result.success
    assert result.output == "hello"
    assert last_message(context).content == "Contents of notes.txt:\nhello"


def test_read_missing_file_fails_without_raising(parts):
    executor, context, *_ = parts

    result = executor.execute(ReadFileAction("missing.txt"))

    assert not result.success
    assert "missing.txt" in result.output
    assert last_message(context).content.startswith("Failed to read missing.txt")


def test_patch_creates_and_overwrites_files(parts, tmp_path):
    executor, context, *_ = parts

    assert executor.execute(PatchAction("src/app.py", "print('v1')\n")).success
    assert executor.execute(PatchAction("src/app.py", "print('v2')\n")).success

    assert (tmp_path / "src" / "app.py").read_text(encoding="utf-8") == "print('v2')\n"
    assert last_message(context).content == "Patched src/app.py"


def test_patch_write_error_is_reported(parts, tmp_path):
    executor, _, *_ = parts
    (tmp_path / "taken").write_text("a file, not a directory", encoding="utf-8")

    result = executor.execute(PatchAction("taken/child.txt", "x"))

    assert not result.success


def test_commit_success_and_failure(parts):
    executor, context, _, _, git, _ = parts

    assert executor.execute(CommitAction("Add hello")).success
    assert git.messages == ["Add hello"]

    git.exit_code = 1
    git.output = "nothing to commit, working tree clean"
    result = executor.execute(CommitAction("Again"))
    assert not result.success
    assert "nothing to commit" in last_message(context).content


def test_define_criteria_for_active_task(parts):
    executor, context, ledger, *_ = parts
    task = ledger.activate_task(ledger.create_task("goal").id)

    result = executor.execute(DefineCriteriaAction(task.id, ["file exists", "prints hi"]))

    assert result.success
    assert [c.text for c in task.criteria] == ["file exists", "prints hi"]
    assert "[1] prints hi" in last_message(context).content


def test_define_criteria_for_other_task_is_acknowledged_noop(parts):
    executor, context, ledger, *_ = parts
    other = ledger.create_task("waiting")
    ledger.activate_task(ledger.create_task("current").id)

    result = executor.execute(DefineCriteriaAction(other.id, ["x"]))

    assert result.success
    assert other.criteria == []
    assert "not the active task" in last_message(context).content


def test_verify_criterion_pass_and_completion(parts):
    executor, _, ledger, shell, *_ = parts
    task = ledger.activate_task(ledger.create_task("goal").id)
    ledger.define_criteria(task.id, ["exists", "runs"])
    shell.results = [(0, "hello.py"), (0, "hi")]

    first = executor.execute(VerifyCriterionAction(task.id, 0, "ls hello.py"))
    assert first.success
    assert task.criteria[0].verified
    assert task.is_active()

    second = executor.execute(VerifyCriterionAction(task.id, 1, "python hello.py"))
    assert second.success
    assert task.is_completed()
    assert shell.commands == ["ls hello.py", "python hello.py"]


@pytest.mark.parametrize("exit_code,output", [
    (1, "hi"),
    (0, "Error: module missing"),
    (0, "bash: hello: command not found"),
])
def test_verify_criterion_failure_heuristic(parts, exit_code, output):
    executor, context, ledger, shell, _, sleep = parts
    task = ledger.activate_task(ledger.create_task("goal").id)
    ledger.define_criteria(task.id, ["runs"])
    shell.results = [(exit_code, output)]

    result = executor.execute(VerifyCriterionAction(task.id, 0, "python hello.py"))

    assert not result.success
    assert not task.criteria[0].verified
    assert task.is_active()
    # Verification never retries
    assert len(shell.commands) == 1
    assert sleep.delays == []
    assert "Verification failed for criterion 0" in last_message(context).content


def test_verify_criterion_on_finished_task_runs_nothing(parts):
    executor, _, ledger, shell, *_ = parts
    task = ledger.activate_task(ledger.create_task("goal").id)
    ledger.define_criteria(task.id, ["a"])
    ledger.fail_task(task.id)

    result = executor.execute(VerifyCriterionAction(task.id, 0, "true"))

    assert not result.success
    assert shell.commands == []
    assert not task.criteria[0].verified


def test_verify_criterion_bad_index(parts):
    executor, _, ledger, shell, *_ = parts
    task = ledger.activate_task(ledger.create_task("goal").id)

    result = executor.execute(VerifyCriterionAction(task.id, 0, "true"))

    assert not result.success
    assert "no criterion 0" in result.output
    assert shell.commands == []


def test_executed_actions_are_logged(parts, tmp_path):
    executor, *_ = parts
    executor.execute(RunAction("true"))

    assert list((tmp_path / "logs").glob("actions_*.jsonl"))


def test_max_retries_must_be_positive(budget, tmp_path):
    with pytest.raises(ValueError):
        ActionExecutor(
            context=ContextStore("s", budget=budget),
            ledger=TaskLedger(),
            shell=FakeShell(),
            git=FakeGit(),
            working_dir=str(tmp_path),
            max_retries=0,
        )


def test_read_path_with_nul_byte_fails_without_raising(parts):
    executor, context, *_ = parts

    result = executor.execute(ReadFileAction("a\x00b"))

    assert not result.success
    assert last_message(context).content.startswith("Failed to read")


def test_patch_with_unencodable_content_leaves_target_untouched(parts, tmp_path):
    executor, context, *_ = parts
    target = tmp_path / "a.txt"
    target.write_text("original", encoding="utf-8")

    result = executor.execute(PatchAction("a.txt", "x\ud800y"))

    assert not result.success
    assert target.read_text(encoding="utf-8") == "original"
    assert last_message(context).content.startswith("Failed to patch a.txt")


def test_shell_rejects_nul_byte_as_failed_command(tmp_path):
    result = ShellExecutor(str(tmp_path)).run("echo a\x00b")

    assert not result.success
    assert result.exit_code == 127


def test_git_rejects_nul_byte_as_failed_command(tmp_path):
    result = GitHelper(str(tmp_path)).commit("bad\x00message")

    assert not result.success
    assert result.exit_code == 127
