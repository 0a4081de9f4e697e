"""Logging utilities for the agent loop."""

import json
import logging
import os
import traceback
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional


class AgentLogger:
    """Logger for agent execution."""

    def __init__(
        self,
        log_dir: str = "logs",
        log_level: str = "INFO",
        console_level: Optional[str] = None,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
        sync: bool = False,
        name: str = "shellpilot",
    ):
        """
        Initialize logger.

        Args:
            log_dir: Directory for log files
            log_level: Log level for the log file (DEBUG, INFO, WARNING, ERROR)
            console_level: Log level for the console (defaults to log_level)
            max_bytes: Maximum size of log file before rotation (default: 10MB)
            backup_count: Number of backup files to keep (default: 5)
            sync: Flush and fsync after each JSONL write
            name: Name of the underlying logging.Logger
        """
        self.log_dir = Path(log_dir)
        self.sync = sync
        self.log_dir.mkdir(parents=True, exist_ok=True)

        log_file = self.log_dir / f"execution_{datetime.now().strftime('%Y%m%d')}.log"

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )

        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, (console_level or log_level).upper()))
        console_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
        )

        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)
        # A second AgentLogger with the same name replaces the previous handlers
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        self.logger.addHandler(file_handler)
        self.logger.addHandler(console_handler)

        # Prevent duplicate logs
        self.logger.propagate = False

    def _flush_and_sync(self, file_obj) -> None:
        """Ensure log contents are flushed to disk when sync is enabled."""
        if not self.sync:
            return
        try:
            file_obj.flush()
            os.fsync(file_obj.fileno())
        except OSError:
            # fsync is unsupported on some special filesystems
            pass

    def _append_jsonl(self, prefix: str, entry: Dict[str, Any]) -> None:
        log_file = self.log_dir / f"{prefix}_{datetime.now().strftime('%Y%m%d')}.jsonl"
        with open(log_file, 'a', encoding='utf-8') as f:
            f.write(json.dumps(entry, ensure_ascii=False) + '\n')
            self._flush_and_sync(f)

    def log_step(
        self,
        step: int,
        task_id: Optional[str],
        reply: str,
        duration: float,
        action: Optional[str] = None,
        **kwargs
    ) -> None:
        """
        Log one completion step.

        Args:
            step: Step number within the submission
            task_id: Task the step worked on, if any
            reply: Raw completion text
            duration: Seconds spent waiting for the completion
            action: Tag of the decoded action (None for prose)
            **kwargs: Additional metadata
        """
        self._append_jsonl("execution", {
            'timestamp': datetime.now().isoformat(),
            'step': step,
            'task_id': task_id,
            'action': action,
            'reply_length': len(reply),
            'duration_seconds': round(duration, 3),
            **kwargs
        })

        self.logger.info(
            f"[Step {step}] {action or 'prose'} reply in {duration:.2f}s "
            f"(task: {task_id or '-'}, {len(reply)} chars)"
        )

    def log_action(
        self,
        action: str,
        success: bool,
        output: str,
        attempts: int = 1,
        **kwargs
    ) -> None:
        """
        Log the result of an executed action.

        Args:
            action: Action tag
            success: Whether the action succeeded
            output: Output text of the action
            attempts: Number of attempts made
            **kwargs: Additional metadata
        """
        self._append_jsonl("actions", {
            'timestamp': datetime.now().isoformat(),
            'action': action,
            'success': success,
            'attempts': attempts,
            'output_length': len(output),
            **kwargs
        })

        level = logging.INFO if success else logging.WARNING
        self.logger.log(
            level,
            f"[Action] {action} {'succeeded' if success else 'failed'} "
            f"after {attempts} attempt(s)"
        )

    def log_error_with_traceback(
        self,
        component: str,
        error: Exception,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log error with full traceback and context.

        Args:
            component: Name of the component that failed
            error: Exception that occurred
            context: Additional context information
        """
        self._append_jsonl("errors", {
            'timestamp': datetime.now().isoformat(),
            'component': component,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc(),
            'context': context or {}
        })

        self.logger.error(f"[{component}] Error: {type(error).__name__}: {error}")
        self.logger.debug(f"[{component}] Traceback:\n{traceback.format_exc()}")

    def log_progress(
        self,
        outcome: str,
        steps: int,
        statistics: Dict[str, int],
    ) -> None:
        """
        Log progress summary at the end of a submission.

        Args:
            outcome: How the submission ended
            steps: Number of steps taken
            statistics: Task counts per status
        """
        total = statistics.get('total', 0)
        completed = statistics.get('completed', 0)
        self._append_jsonl("progress", {
            'timestamp': datetime.now().isoformat(),
            'outcome': outcome,
            'steps': steps,
            **statistics,
            'completion_rate': round(completed / total * 100, 2) if total > 0 else 0
        })

        self.logger.info(
            f"[Progress] {outcome} after {steps} step(s): "
            f"{completed}/{total} completed, {statistics.get('failed', 0)} failed, "
            f"{statistics.get('pending', 0)} pending"
        )

    def info(self, message: str) -> None:
        """Log info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log debug message."""
        self.logger.debug(message)
