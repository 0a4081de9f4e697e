"""Shell command execution."""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class CommandResult:
    """Exit status and combined output of a finished process."""
    command: str
    exit_code: int
    output: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class ShellExecutor:
    """Runs command strings through the platform shell."""

    def __init__(self, working_dir: str = ".", timeout: Optional[float] = None):
        """
        Initialize shell executor.

        Args:
            working_dir: Directory commands run in
            timeout: Seconds before a command is killed (None waits forever)
        """
        self.working_dir = Path(working_dir).resolve()
        self.timeout = timeout

    def run(self, command: str) -> CommandResult:
        """
        Run a command and wait for it to exit.

        stderr is merged into stdout so the caller sees output in the order
        the process produced it.
        """
        try:
            completed = subprocess.run(
                command,
                shell=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                cwd=str(self.working_dir),
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            partial = e.output or ""
            if isinstance(partial, bytes):
                partial = partial.decode("utf-8", errors="replace")
            return CommandResult(
                command=command,
                exit_code=124,
                output=f"{partial}\nCommand timed out after {self.timeout} seconds",
            )
        except (OSError, ValueError) as e:
            # ValueError: NUL byte in the command string
            return CommandResult(command=command, exit_code=127, output=str(e))

        return CommandResult(command=command, exit_code=completed.returncode, output=completed.stdout or "")
