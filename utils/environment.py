"""Environment detection for the agent loop."""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class EnvironmentInfo:
    """Where the agent runs, as described to the model."""
    working_dir: str
    platform: str
    os_name: str
    shell: str
    in_container: bool = False

    @property
    def is_windows(self) -> bool:
        return self.platform == "win32"


def is_running_in_container() -> bool:
    """
    Check if running in container.

    Returns:
        True if running inside a Docker container, False otherwise.
    """
    if os.path.exists('/.dockerenv'):
        return True
    try:
        with open('/proc/self/cgroup', 'r') as f:
            return 'docker' in f.read()
    except OSError:
        return False


def detect_environment(working_dir: Optional[str] = None) -> EnvironmentInfo:
    """Describe the current platform, shell and working directory."""
    platform = sys.platform
    if platform == "win32":
        os_name = "Windows"
    elif platform == "darwin":
        os_name = "macOS"
    else:
        os_name = "Linux"
    default_shell = "cmd.exe" if platform == "win32" else "bash"
    return EnvironmentInfo(
        working_dir=str(Path(working_dir or os.getcwd()).resolve()),
        platform=platform,
        os_name=os_name,
        shell=os.environ.get("SHELL") or default_shell,
        in_container=is_running_in_container(),
    )
