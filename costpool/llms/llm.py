"""LLM selection based on config."""

from typing import Optional

import dspy

from costpool.config import get_config
from costpool.llms.anthropic import create_anthropic_lm
from costpool.llms.openai import create_openai_lm


def get_oracle_lm(provider: Optional[str] = None) -> dspy.LM:
    """
    Get the DSPy LM that answers classification requests.

    Args:
        provider: 'openai' or 'anthropic'; defaults to ORACLE_LLM

    Returns:
        Configured dspy.LM instance
    """
    provider = (provider or get_config().oracle_llm).lower()

    if provider == "openai":
        return create_openai_lm()
    elif provider == "anthropic":
        return create_anthropic_lm()
    else:
        raise ValueError(
            f"Unknown LLM provider: {provider}. Available: openai, anthropic"
        )
