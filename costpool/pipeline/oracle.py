"""Client for the external classification oracle.

One call is made per batch. Transport failures and unusable responses are
returned as an ``Unparseable`` outcome instead of raising, so the caller can
fall back for every row of that batch and move on to the next one.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

from costpool.utils.sanitize import sanitize_for_logging

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```[a-zA-Z0-9_-]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


@dataclass(frozen=True)
class Parsed:
    """Oracle answered with a JSON object keyed by correlation key."""

    mapping: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Unparseable:
    """Oracle call failed or its answer was not a single JSON object."""

    reason: str
    raw_text: Optional[str] = None


OracleOutcome = Union[Parsed, Unparseable]


def strip_code_fences(text: str) -> str:
    """Remove an optional ```json ... ``` wrapper."""
    text = text.strip()
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def parse_oracle_response(raw_text: Optional[str]) -> OracleOutcome:
    """
    Parse raw oracle text into a tagged outcome.

    Args:
        raw_text: Text returned by the language model

    Returns:
        Parsed(mapping) for a single JSON object, Unparseable(reason) otherwise
    """
    if raw_text is None or not str(raw_text).strip():
        return Unparseable(reason="empty response", raw_text=raw_text)

    try:
        data = json.loads(strip_code_fences(str(raw_text)))
    except json.JSONDecodeError as e:
        return Unparseable(reason=f"invalid JSON: {e}", raw_text=raw_text)

    if not isinstance(data, dict):
        return Unparseable(
            reason=f"expected a JSON object, got {type(data).__name__}",
            raw_text=raw_text,
        )
    return Parsed(mapping=data)


class OracleClient:
    """Sends batch requests to a DSPy language model."""

    def __init__(self, lm: Optional[Callable[..., Any]] = None):
        """
        Initialize oracle client.

        Args:
            lm: DSPy language model (if None, uses the configured oracle LM)
        """
        if lm is None:
            from costpool.llms import get_oracle_lm
            lm = get_oracle_lm()
        self.lm = lm

    def complete(self, request_text: str) -> str:
        """
        Perform the external call and return the raw response text.

        Raises:
            Whatever the underlying transport raises
        """
        outputs = self.lm(request_text)
        if not outputs:
            return ""

        first = outputs[0]
        # dspy returns dicts when extra output fields (e.g. logprobs) are requested
        if isinstance(first, dict):
            first = first.get("text") or ""
        return str(first)

    def classify(self, request_text: str) -> OracleOutcome:
        """Call the oracle once and parse its answer; never raises for call or parse failures."""
        try:
            raw_text = self.complete(request_text)
        except Exception as e:
            logger.error(f"Oracle call failed: {type(e).__name__}: {e}")
            return Unparseable(reason=f"oracle call failed: {e}")

        outcome = parse_oracle_response(raw_text)
        if isinstance(outcome, Unparseable):
            logger.warning(
                f"Oracle response unusable ({outcome.reason}). "
                f"Response text: {sanitize_for_logging(raw_text)}"
            )
        return outcome
