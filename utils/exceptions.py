"""Custom exceptions for the agent loop."""

from typing import Optional


class AgentError(Exception):
    """Base exception for agent loop errors."""

    def __init__(self, message: str, retryable: bool = False, original_error: Optional[Exception] = None):
        """
        Initialize agent error.

        Args:
            message: Error message
            retryable: Whether the failed operation may be attempted again
            original_error: Original exception that caused this error
        """
        super().__init__(message)
        self.retryable = retryable
        self.original_error = original_error


class ConfigurationError(AgentError):
    """Invalid or missing configuration (API key, backend name, limits)."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message, retryable=False, original_error=original_error)


class LLMError(AgentError):
    """Error raised by the completion service."""

    def __init__(self, message: str, retryable: bool = True, original_error: Optional[Exception] = None):
        super().__init__(message, retryable=retryable, original_error=original_error)


class LLMTimeoutError(LLMError):
    """Completion request timed out."""

    def __init__(self, timeout: Optional[float], original_error: Optional[Exception] = None):
        if timeout:
            message = f"Completion request timed out after {timeout} seconds"
        else:
            message = "Completion request timed out"
        super().__init__(message, retryable=True, original_error=original_error)
        self.timeout = timeout


class LLMRateLimitError(LLMError):
    """Completion service rejected the request with a rate limit."""

    def __init__(self, message: str = "Rate limit exceeded", original_error: Optional[Exception] = None):
        super().__init__(message, retryable=True, original_error=original_error)


class TaskError(AgentError):
    """Invalid task ledger operation (unknown id, illegal transition)."""

    def __init__(self, task_id: str, message: str, original_error: Optional[Exception] = None):
        full_message = f"Task {task_id}: {message}"
        super().__init__(full_message, retryable=False, original_error=original_error)
        self.task_id = task_id
