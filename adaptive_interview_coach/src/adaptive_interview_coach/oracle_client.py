"""
Oracle Client

Thin async wrapper around the hosted language model. One place for
credentials, retries, model options and text extraction.
The session engine depends on the Oracle protocol, not on this class,
so tests can swap in a fake.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

import openai
from openai import AsyncOpenAI
from dotenv import load_dotenv

from adaptive_interview_coach.errors import OracleUnavailable

load_dotenv()

logger = logging.getLogger(__name__)


class Oracle(Protocol):
    async def complete(
        self,
        system: str,
        messages: List[Dict[str, str]],
        max_tokens: int,
    ) -> str: ...


@dataclass(frozen=True)
class OracleConfig:
    api_key: str
    model: str = "gpt-4o-mini"
    max_tokens: int = 1500
    temperature: float = 0.7
    timeout: float = 60.0
    max_retries: int = 2

    @classmethod
    def from_env(cls) -> "OracleConfig":
        """Build config from OPENAI_* / COACH_* environment variables."""
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OPENAI_API_KEY not found in environment variables")
        return cls(
            api_key=api_key,
            model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            max_tokens=int(os.getenv("COACH_MAX_TOKENS", "1500")),
            temperature=float(os.getenv("COACH_TEMPERATURE", "0.7")),
            timeout=float(os.getenv("COACH_ORACLE_TIMEOUT", "60")),
            max_retries=int(os.getenv("COACH_ORACLE_RETRIES", "2")),
        )


def extract_text(completion: Any) -> str:
    """
    Pull the first text-bearing field out of a chat completion.

    Handles plain string content as well as list-of-parts content.
    Returns '' when nothing usable is present.
    """
    choices = getattr(completion, "choices", None) or []
    for choice in choices:
        message = getattr(choice, "message", None)
        content = getattr(message, "content", None)
        if isinstance(content, str) and content.strip():
            return content.strip()
        if isinstance(content, list):
            for part in content:
                if isinstance(part, dict):
                    text = part.get("text")
                else:
                    text = getattr(part, "text", None)
                if isinstance(text, str) and text.strip():
                    return text.strip()
    return ""


class OpenAIOracle:
    """Oracle backed by OpenAI chat completions."""

    RETRYABLE = (openai.RateLimitError, openai.APITimeoutError, openai.APIConnectionError)
    BACKOFF_SECONDS = (0.5, 1.0, 2.0, 4.0)

    def __init__(self, config: Optional[OracleConfig] = None, client: Optional[AsyncOpenAI] = None):
        self.config = config or OracleConfig.from_env()
        self.llm_client = client or AsyncOpenAI(
            api_key=self.config.api_key,
            timeout=self.config.timeout,
            max_retries=0,
        )

    async def complete(
        self,
        system: str,
        messages: List[Dict[str, str]],
        max_tokens: Optional[int] = None,
    ) -> str:
        payload = [{"role": "system", "content": system}] + list(messages)
        budget = max_tokens or self.config.max_tokens

        attempt = 0
        while True:
            try:
                completion = await self.llm_client.chat.completions.create(
                    model=self.config.model,
                    messages=payload,
                    temperature=self.config.temperature,
                    max_tokens=budget,
                )
                break
            except self.RETRYABLE as e:
                if attempt >= self.config.max_retries:
                    logger.warning(f"⚠️ [Oracle] Giving up after {attempt + 1} attempts: {e}")
                    raise OracleUnavailable(str(e)) from e
                delay = self.BACKOFF_SECONDS[min(attempt, len(self.BACKOFF_SECONDS) - 1)]
                logger.info(f"🔁 [Oracle] Retrying in {delay}s ({type(e).__name__})")
                attempt += 1
                await asyncio.sleep(delay)
            except openai.OpenAIError as e:
                logger.warning(f"⚠️ [Oracle] Request failed: {type(e).__name__}: {e}")
                raise OracleUnavailable(str(e)) from e

        text = extract_text(completion)
        if not text:
            logger.warning("⚠️ [Oracle] Completion carried no text")
        return text
