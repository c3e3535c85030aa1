"""
Generative Text Service

Thin async wrapper around the OpenAI chat completions API in forced-JSON
mode. Every call is bounded by a timeout and every failure is mapped onto
the GenerationError hierarchy so callers only handle one family of errors.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from adaptive_sage_tutor.config import AdaptiveConfig
from adaptive_sage_tutor.errors import (
    GenerationError,
    GenerationTimeoutError,
    MalformedResponseError,
)

logger = logging.getLogger(__name__)


class GenerativeTextService(ABC):
    """Contract for the external text-generation service."""

    @abstractmethod
    async def complete(
        self,
        system_directive: str,
        messages: List[Dict[str, str]],
        temperature: float,
        timeout: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Run one completion and return the parsed JSON object.

        Raises:
            GenerationTimeoutError: no answer within `timeout`
            MalformedResponseError: answer is not a JSON object
            GenerationError: any other service failure
        """


def parse_json_object(content: Optional[str]) -> Dict[str, Any]:
    """Parse model output that must be a single JSON object."""
    if not content or not content.strip():
        raise MalformedResponseError("Empty response from generative service")
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Invalid JSON from generative service: {e}") from e
    if not isinstance(parsed, dict):
        raise MalformedResponseError(
            f"Expected a JSON object, got {type(parsed).__name__}"
        )
    return parsed


class OpenAIJSONService(GenerativeTextService):
    """GenerativeTextService backed by openai.AsyncOpenAI."""

    def __init__(self, config: AdaptiveConfig, client: Optional[AsyncOpenAI] = None):
        self.config = config
        self.model = config.model
        if client is None:
            if not config.openai_api_key:
                raise ValueError("OPENAI_API_KEY not found")
            client = AsyncOpenAI(api_key=config.openai_api_key)
        self.client = client

    async def complete(
        self,
        system_directive: str,
        messages: List[Dict[str, str]],
        temperature: float,
        timeout: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        timeout = timeout if timeout is not None else self.config.request_timeout
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "system", "content": system_directive}] + list(messages),
            "response_format": {"type": "json_object"},
            "temperature": temperature,
        }
        if max_tokens is not None:
            request["max_tokens"] = max_tokens

        start_time = time.time()
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(**request),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            elapsed = time.time() - start_time
            logger.warning(f"⏱️ [OpenAIJSONService] TIMEOUT after {elapsed:.2f}s ({timeout}s limit)")
            raise GenerationTimeoutError(f"Generative service timed out after {timeout}s") from e
        except OpenAIError as e:
            elapsed = time.time() - start_time
            logger.error(f"❌ [OpenAIJSONService] API error after {elapsed:.2f}s: {e}")
            raise GenerationError(f"Generative service error: {e}") from e

        elapsed = time.time() - start_time
        usage = getattr(response, "usage", None)
        logger.debug(f"✅ [OpenAIJSONService] Completed in {elapsed:.2f}s (usage: {usage})")

        if not response.choices:
            raise MalformedResponseError("Generative service returned no choices")
        return parse_json_object(response.choices[0].message.content)
