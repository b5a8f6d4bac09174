"""
LLM Provider Factory - Creates the configured LLM provider instance.
"""

from typing import Optional
from .base import LLMProvider
from .openai_provider import OpenAIProvider
from .gemini_provider import GeminiProvider

PROVIDERS = {
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
}


def create_llm_provider(
    provider: str = "openai",
    api_key: Optional[str] = "",
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    **kwargs
) -> Optional[LLMProvider]:
    """
    Create an LLM provider instance based on configuration.

    Args:
        provider: Provider name ("openai" or "gemini")
        api_key: API key for the provider
        model: Model name (uses provider default if not specified)
        base_url: Custom base URL (uses provider default if not specified)
        **kwargs: Additional provider parameters (timeout, default_max_tokens, ...)

    Returns:
        LLMProvider instance, or None if api_key is not configured
    """
    if not api_key:
        return None

    provider_cls = PROVIDERS.get(provider)
    if provider_cls is None:
        raise ValueError(f"Unsupported LLM provider: {provider}")

    params = {"api_key": api_key}
    if model:
        params["model"] = model
    if base_url:
        params["base_url"] = base_url
    params.update(kwargs)
    return provider_cls(**params)
