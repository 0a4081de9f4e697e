"""Abstract base class for completion clients."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class LLMClient(ABC):
    """Abstract base class for completion clients.

    This interface allows switching between completion backends
    (DeepSeek, OpenAI, or a scripted client in tests).
    """

    @abstractmethod
    def complete(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        **kwargs
    ) -> str:
        """
        Request one completion for an ordered message history.

        Args:
            messages: ``{"role", "content"}`` dicts, system message first
            model: Model to use (optional, depends on backend)
            **kwargs: Other options

        Returns:
            Completion text

        Raises:
            LLMError: If the completion request fails
        """
        pass
