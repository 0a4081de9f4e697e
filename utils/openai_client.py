"""OpenAI-compatible chat completions client (DeepSeek, OpenAI)."""

from typing import Dict, List, Optional, TYPE_CHECKING

import openai
from openai import OpenAI

from .exceptions import ConfigurationError, LLMError, LLMRateLimitError, LLMTimeoutError
from .llm_client import LLMClient

if TYPE_CHECKING:
    from .logger import AgentLogger


class OpenAIChatClient(LLMClient):
    """Client for any endpoint speaking the OpenAI chat-completions API."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        model: str = "deepseek-chat",
        timeout: Optional[float] = None,
        logger: Optional["AgentLogger"] = None,
    ):
        """
        Initialize chat client.

        Args:
            api_key: API key for the endpoint
            base_url: Endpoint base URL (None = official OpenAI endpoint)
            model: Default model name
            timeout: Request timeout in seconds
            logger: Logger instance (optional)
        """
        if not api_key:
            raise ConfigurationError(
                "No API key configured. Set LLM_API_KEY (or DEEPSEEK_API_KEY / OPENAI_API_KEY)."
            )
        self.model = model
        self.timeout = timeout
        self.logger = logger
        # Retries are handled by the orchestrator
        self._client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)

    def complete(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        **kwargs
    ) -> str:
        """Request a single non-streamed completion."""
        model = model or self.model
        if self.logger:
            self.logger.debug(f"Requesting completion from {model} ({len(messages)} messages)")
        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=messages,
                stream=False,
                **kwargs
            )
        except openai.APITimeoutError as e:
            raise LLMTimeoutError(self.timeout, e) from e
        except openai.RateLimitError as e:
            raise LLMRateLimitError(f"Rate limit: {e}", e) from e
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise LLMError(f"Authentication failed: {e}", retryable=False, original_error=e) from e
        except openai.BadRequestError as e:
            raise LLMError(f"Request rejected: {e}", retryable=False, original_error=e) from e
        except openai.APIConnectionError as e:
            raise LLMError(f"Connection error: {e}", retryable=True, original_error=e) from e
        except openai.APIError as e:
            raise LLMError(f"Completion API error: {e}", retryable=True, original_error=e) from e

        if not response.choices:
            raise LLMError("Completion response contained no choices", retryable=True)
        return response.choices[0].message.content or ""
