"""
Summary agent — the text-generation collaborator.

Sends a finished prompt to an LLM via litellm and returns the text. Prompt
construction lives in :mod:`renohub.prompts`; this class only talks to the
provider.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import litellm

from renohub.errors import ConfigurationError, UpstreamError

if TYPE_CHECKING:
    from renohub.config import LLMConfig

logger = logging.getLogger("renohub.agents.summarizer")

NO_SUMMARY = "No summary available."


class SummaryAgent:
    """Generate natural-language updates from a prompt.

    Usage::

        agent = SummaryAgent(config.llm)
        text = await agent.generate(build_prompt("summary", snapshot.to_dict()))
    """

    name = "summarizer"

    def __init__(self, llm_config: LLMConfig) -> None:
        self.llm_config = llm_config

    async def generate(self, prompt: str) -> str:
        """Call the LLM (supports any litellm provider).

        Raises:
            ConfigurationError: No API key is configured.
            UpstreamError: The provider call failed.
        """
        if not self.llm_config.api_key:
            raise ConfigurationError(["GEMINI_API_KEY"])

        try:
            response = await litellm.acompletion(
                model=self.llm_config.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.llm_config.temperature,
                max_tokens=self.llm_config.max_tokens,
                api_key=self.llm_config.api_key,
                api_base=self.llm_config.api_base,
                timeout=self.llm_config.timeout,
            )
        except Exception as e:
            status = getattr(e, "status_code", None)
            raise UpstreamError(
                "llm",
                str(e)[:300],
                upstream_status=status if isinstance(status, int) else None,
            ) from e

        choices = getattr(response, "choices", None) or []
        content = (choices[0].message.content if choices else None) or ""
        logger.debug("[%s] LLM response: %s...", self.name, content[:200])
        return content or NO_SUMMARY
