"""Bounded conversation context with truncation-based compression."""

from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from .models import Message, Role
from .token_budget import TokenBudget

if TYPE_CHECKING:
    from .logger import AgentLogger


class ContextStore:
    """
    Ordered message history sent to the completion service.

    Index 0 always holds the system message. After every mutation the
    history is compressed so that it stays within ``max_messages`` entries
    and ``max_tokens`` estimated tokens (or shrinks to the system message
    plus one other message, whichever comes first).
    """

    def __init__(
        self,
        system_content: str,
        budget: Optional[TokenBudget] = None,
        max_tokens: int = 6000,
        max_messages: int = 20,
        logger: Optional["AgentLogger"] = None,
    ):
        if max_messages < 2:
            raise ValueError(f"max_messages must be at least 2, got {max_messages}")
        if max_tokens < 1:
            raise ValueError(f"max_tokens must be positive, got {max_tokens}")
        self.budget = budget or TokenBudget()
        self.max_tokens = max_tokens
        self.max_messages = max_messages
        self.logger = logger
        self._messages: List[Message] = [Message.system(system_content)]

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def messages(self) -> List[Message]:
        """Snapshot of the current history."""
        return list(self._messages)

    @property
    def system_message(self) -> Message:
        return self._messages[0]

    def append(self, message: Message) -> None:
        """Add a message to the end of the history."""
        if message.role == Role.SYSTEM:
            raise ValueError("Only index 0 may hold a system message; use replace_system_message()")
        self._messages.append(message)
        self.compress()

    def add(self, role: Role, content: str) -> Message:
        message = Message(role, content)
        self.append(message)
        return message

    def reset(self) -> None:
        """Drop everything but the system message."""
        del self._messages[1:]

    def replace_system_message(self, content: str) -> None:
        self._messages[0] = Message.system(content)
        self.compress()

    def total_tokens(self) -> int:
        return sum(self.budget.estimate_message(m) for m in self._messages)

    def usage(self) -> Tuple[int, int]:
        """Message count and token total, taken from one snapshot of the history."""
        snapshot = list(self._messages)
        return len(snapshot), sum(self.budget.estimate_message(m) for m in snapshot)

    def to_payload(self) -> List[Dict[str, str]]:
        """Messages in the chat-completions wire format."""
        return [m.to_dict() for m in self._messages]

    def compress(self) -> bool:
        """
        Truncate the history to fit the configured ceilings.

        Returns:
            True if any message was discarded
        """
        if len(self._messages) <= self.max_messages and self.total_tokens() <= self.max_tokens:
            return False

        before = len(self._messages)
        system = self._messages[0]
        recent = self._messages[1:][-(self.max_messages - 1):]
        self._messages = [system] + recent

        while len(self._messages) > 2 and self.total_tokens() > self.max_tokens:
            del self._messages[1]

        discarded = before - len(self._messages)
        if discarded and self.logger:
            self.logger.info(
                f"Context compressed: discarded {discarded} message(s), "
                f"{len(self._messages)} remain ({self.total_tokens()} tokens)"
            )
        return discarded > 0
