"""Git operations helper for commit actions."""

import subprocess
from pathlib import Path
from typing import List

from .shell_executor import CommandResult


class GitHelper:
    """Helper class for Git operations."""

    def __init__(self, repo_path: str = ".", timeout: float = 60):
        """
        Initialize GitHelper.

        Args:
            repo_path: Path to Git repository
            timeout: Seconds allowed for each git invocation
        """
        self.repo_path = Path(repo_path).resolve()
        self.timeout = timeout

    def _run_git(self, args: List[str]) -> CommandResult:
        command = " ".join(['git'] + args)
        try:
            result = subprocess.run(
                ['git'] + args,
                capture_output=True,
                text=True,
                cwd=str(self.repo_path),
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            return CommandResult(command, 124, f"{command} timed out after {self.timeout} seconds")
        except (OSError, ValueError) as e:
            # git missing from PATH, repo_path gone, or a NUL byte in an argument
            return CommandResult(command, 127, str(e))

        output = (result.stdout or "") + (result.stderr or "")
        return CommandResult(command, result.returncode, output.strip())

    def is_git_repo(self) -> bool:
        """
        Check if the path is a Git repository.

        Returns:
            True if Git repository
        """
        return self._run_git(['rev-parse', '--is-inside-work-tree']).success

    def stage_all(self) -> CommandResult:
        """Stage every change in the working tree, including deletions."""
        return self._run_git(['add', '-A'])

    def commit(self, message: str) -> CommandResult:
        """Commit whatever is staged."""
        return self._run_git(['commit', '-m', message])

    def commit_all(self, message: str) -> CommandResult:
        """
        Stage all changes and commit them.

        Returns:
            Result of the failing step, or of the commit on success
        """
        staged = self.stage_all()
        if not staged.success:
            return staged
        return self.commit(message)
