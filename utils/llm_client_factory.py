"""Factory for creating completion clients."""

from .exceptions import ConfigurationError
from .llm_client import LLMClient
from .openai_client import OpenAIChatClient

DEFAULT_BASE_URLS = {
    "deepseek": "https://api.deepseek.com",
    "openai": None,
}

DEFAULT_MODELS = {
    "deepseek": "deepseek-chat",
    "openai": "gpt-4o-mini",
}


class LLMClientFactory:
    """Factory for creating completion clients."""

    @staticmethod
    def create(backend: str = "deepseek", **kwargs) -> LLMClient:
        """
        Create completion client based on backend.

        Args:
            backend: Backend name
                - "deepseek": DeepSeek chat API (OpenAI-compatible)
                - "openai": OpenAI API or any compatible endpoint via base_url
            **kwargs: api_key, base_url, model, timeout, logger

        Returns:
            LLMClient instance

        Raises:
            ConfigurationError: If unsupported backend is specified
        """
        if backend not in DEFAULT_BASE_URLS:
            raise ConfigurationError(
                f"Unknown backend: {backend}. "
                f"Supported backends: {', '.join(DEFAULT_BASE_URLS)}"
            )
        return OpenAIChatClient(
            api_key=kwargs.get("api_key"),
            base_url=kwargs.get("base_url") or DEFAULT_BASE_URLS[backend],
            model=kwargs.get("model") or DEFAULT_MODELS[backend],
            timeout=kwargs.get("timeout"),
            logger=kwargs.get("logger"),
        )
