"""System prompt construction."""

from pathlib import Path
from typing import Optional

from utils.environment import EnvironmentInfo
from utils.exceptions import ConfigurationError
from utils.task_ledger import TaskLedger

WINDOWS_GUIDANCE = (
    'IMPORTANT: You are on Windows. Use Windows commands: "dir" instead of "ls", '
    '"del" instead of "rm", "copy" instead of "cp", "move" instead of "mv". '
    'Use "cmd.exe" syntax.'
)
UNIX_GUIDANCE = "IMPORTANT: You are on a Unix-like system. Use standard Unix commands."

TEMPLATE_FIELDS = ("working_dir", "os_name", "platform", "shell", "shell_guidance", "task_section")

DEFAULT_TEMPLATE = """
You are an autonomous coding agent that can execute any shell command, read/write files, and commit changes.

You are working in directory: {working_dir}
Operating System: {os_name} ({platform})
Shell: {shell}
{shell_guidance}

TASK EXECUTION RULES:
1. When given a task, complete it fully before stopping.
2. Break complex tasks into steps and execute them one at a time.
3. While a task is in progress, ALWAYS respond with a single JSON action. Do not switch to normal conversation until the task is complete.
4. After each action result, decide whether the task is complete. If not, reply with the next JSON action.
5. For multi-step tasks, first define success criteria for the active task, then verify each one with a command.
6. Only reply in plain text once the task is fully completed and verified, e.g. "Task completed: ...". If it cannot be done, explain why and say the task failed.

ACTION FORMAT (respond with exactly one JSON object):

Run command:     {{ "action": "run", "command": "..." }}
Read file:       {{ "action": "read", "path": "..." }}
Write file:      {{ "action": "patch", "path": "...", "content": "full new content" }}
Commit:          {{ "action": "commit", "message": "..." }}
Define criteria: {{ "action": "define_criteria", "task_id": "...", "criteria": ["...", "..."] }}
Verify one:      {{ "action": "verify_criterion", "task_id": "...", "criterion_index": 0, "command": "..." }}

A verification passes when the command succeeds and its output contains neither "error" nor "not found".

{task_section}

Keep responses concise. The context window is limited; older messages are dropped when the conversation grows too long.
"""


def render_task_section(ledger: TaskLedger) -> str:
    """Describe the current task and its criteria."""
    task = ledger.current_task
    stats = ledger.get_statistics()
    if task is None or not task.is_active():
        lines = ["CURRENT TASK: none. Answer conversationally unless the user asks for work."]
    else:
        lines = [f"CURRENT TASK: {task.id} - {task.description}"]
        if task.criteria:
            lines.append("Success criteria:")
            for index, criterion in enumerate(task.criteria):
                mark = "x" if criterion.verified else " "
                lines.append(f"  [{mark}] {index}: {criterion.text}")
        else:
            lines.append("Success criteria: none defined yet.")
    if stats.pending:
        lines.append(f"Pending tasks waiting for a later request: {stats.pending}")
    return "\n".join(lines)


def load_template(template_path: Optional[str]) -> str:
    """
    Read a prompt template file, falling back to the built-in one.

    Raises:
        ConfigurationError: If the file uses placeholders other than
            TEMPLATE_FIELDS or has unescaped braces
    """
    if not template_path:
        return DEFAULT_TEMPLATE
    try:
        with open(Path(template_path), 'r', encoding='utf-8') as f:
            template = f.read()
    except FileNotFoundError:
        return DEFAULT_TEMPLATE

    try:
        template.format(**{field: "" for field in TEMPLATE_FIELDS})
    except (KeyError, IndexError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid prompt template {template_path}: {type(e).__name__}: {e}. "
            f"Placeholders must be one of {', '.join(TEMPLATE_FIELDS)}; "
            f"write literal braces as {{{{ and }}}}.",
            original_error=e,
        )
    return template


def build_system_prompt(environment: EnvironmentInfo, ledger: TaskLedger, template: str = DEFAULT_TEMPLATE) -> str:
    """Render the system message for the current environment and ledger state."""
    return template.format(
        working_dir=environment.working_dir,
        os_name=environment.os_name,
        platform=environment.platform,
        shell=environment.shell,
        shell_guidance=WINDOWS_GUIDANCE if environment.is_windows else UNIX_GUIDANCE,
        task_section=render_task_section(ledger),
    ).strip()
