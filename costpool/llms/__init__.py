"""Language model providers for the classification oracle."""

from costpool.llms.llm import get_oracle_lm

__all__ = ["get_oracle_lm"]
