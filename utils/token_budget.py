"""Token cost estimation for context messages."""

from typing import Callable, Optional, Sequence

import tiktoken

from .models import Message


class TokenBudget:
    """Estimates how many model tokens a text or message costs."""

    def __init__(
        self,
        encoding_name: str = "cl100k_base",
        encoder: Optional[Callable[[str], Sequence]] = None,
    ):
        """
        Initialize token budget.

        Args:
            encoding_name: tiktoken encoding used when no encoder is given
            encoder: Callable turning text into a token sequence
        """
        self.encoding_name = encoding_name
        self._encoder = encoder

    def _encode(self, text: str) -> Sequence:
        if self._encoder is None:
            # Loading an encoding may fetch its BPE file, so defer until needed
            self._encoder = tiktoken.get_encoding(self.encoding_name).encode
        return self._encoder(text)

    def estimate(self, text: str) -> int:
        """Estimate the token cost of a text."""
        if not text:
            return 0
        return len(self._encode(text))

    def estimate_message(self, message: Message) -> int:
        """Estimate the token cost of a message including its role label."""
        return self.estimate(f"{message.role.value}: {message.content}")
