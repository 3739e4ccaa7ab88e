"""
core.oracle — Decision oracle: prompt in, structured decision out.

Every agent that needs a model-backed decision goes through a
``DecisionOracle``.  The default implementation, ``LiteLLMOracle``,
talks to Gemini (or any other LiteLLM-supported model) and retries
transient transport errors; everything else surfaces as ``OracleError``.
"""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from litellm import acompletion

from .config import Config, load_config
from .errors import OracleError, OracleParseError
from .log import get_logger

logger = get_logger("oracle")

# ── Transient error detection ─────────────────────────────────────────

_TRANSIENT_ERROR_SIGNALS: list[str] = [
    "connection",
    "timeout",
    "timed out",
    "rate_limit",
    "rate limit",
    "429",
    "502",
    "503",
    "504",
    "overloaded",
    "server error",
    "internal error",
    "peer closed",
    "connection reset",
    "network",
    "service unavailable",
    "bad gateway",
    "gateway timeout",
]


def _is_transient_error(exc: Exception) -> bool:
    """Check if an exception is a transient network/server error worth retrying."""
    msg = str(exc).lower()
    return any(sig in msg for sig in _TRANSIENT_ERROR_SIGNALS)


@runtime_checkable
class DecisionOracle(Protocol):
    """Anything that turns a prompt into raw response text."""

    async def submit(self, prompt: str) -> str: ...

    async def submit_with_files(self, prompt: str, files: Sequence[str]) -> str: ...


class LiteLLMOracle:
    """
    Decision oracle backed by LiteLLM's async completion API.

    - Configurable model / temperature / max_tokens (defaults to Gemini)
    - Exponential-backoff retry on transient transport errors
    - File references are inlined into the prompt as extra context
    """

    def __init__(self, cfg: Optional[Config] = None) -> None:
        self.cfg = cfg or load_config()
        self.model = self.cfg.llm_model
        self.temperature = self.cfg.llm_temperature
        self.max_tokens = self.cfg.llm_max_tokens
        self.max_retries = max(1, self.cfg.llm_max_retries)

    async def submit(self, prompt: str) -> str:
        logger.debug("Submitting prompt to %s (%d chars)", self.model, len(prompt))
        return await self._complete([{"role": "user", "content": prompt}])

    async def submit_with_files(self, prompt: str, files: Sequence[str]) -> str:
        logger.debug("Submitting prompt with %d file(s) to %s", len(files), self.model)
        sections: List[str] = [prompt]
        for ref in files:
            path = Path(ref)
            try:
                content = path.read_text()
            except OSError as exc:
                raise OracleError(f"Cannot read context file {ref}: {exc}") from exc
            sections.append(f"--- Context file: {path.name} ---\n{content}")
        return await self._complete([{"role": "user", "content": "\n\n".join(sections)}])

    async def _complete(self, messages: List[Dict[str, str]]) -> str:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.cfg.api_key:
            kwargs["api_key"] = self.cfg.api_key

        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await acompletion(**kwargs)
                text: str = resp.choices[0].message.content or ""  # type: ignore[union-attr]
                logger.debug("Oracle response received (%d chars)", len(text))
                return text
            except Exception as exc:
                if _is_transient_error(exc) and attempt < self.max_retries:
                    wait = min(2**attempt, 30)
                    logger.warning(
                        "Transient oracle error %r, retrying in %ss (%d/%d)",
                        exc, wait, attempt, self.max_retries,
                    )
                    await asyncio.sleep(wait)
                    continue
                raise OracleError(f"Decision oracle error: {exc}") from exc

        raise OracleError("Decision oracle returned no response")


# ── JSON extraction ───────────────────────────────────────────────────

_FENCE_OPEN = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json … ``` (or bare ```) wrapper, if any."""
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = _FENCE_OPEN.sub("", stripped, count=1)
        stripped = _FENCE_CLOSE.sub("", stripped, count=1)
    return stripped.strip()


def extract_json(text: str) -> Any:
    """Parse oracle output as JSON after stripping a markdown code fence.

    Raises ``OracleParseError`` when the remaining text is not valid JSON.
    """
    candidate = strip_code_fence(text)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise OracleParseError(
            f"Failed to parse JSON from decision oracle: {exc}", raw_text=text[:500]
        ) from exc


def parse_decision(text: str) -> Dict[str, Any]:
    """Like :func:`extract_json`, but the payload must be a JSON object."""
    data = extract_json(text)
    if not isinstance(data, dict):
        raise OracleParseError(
            f"Expected a JSON object from decision oracle, got {type(data).__name__}",
            raw_text=text[:500],
        )
    return data


async def decide(oracle: DecisionOracle, prompt: str) -> Dict[str, Any]:
    """Submit *prompt* and return the parsed structured decision."""
    return parse_decision(await oracle.submit(prompt))
