"""
OpenAI LLM client with loose JSON extraction.
"""
import json
import logging
from typing import Any, Optional

from openai import AsyncOpenAI

from ..config import get_config
from ..exceptions import EnhancementError

logger = logging.getLogger(__name__)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if any."""
    out = (text or "").strip()
    if out.startswith("```"):
        out = out[3:]
        if out[:4].lower() == "json":
            out = out[4:]
        if out.endswith("```"):
            out = out[:-3]
    return out.strip()


def parse_json_loose(text: str) -> Optional[Any]:
    """
    Parse JSON from model output that may be fenced or wrapped in prose.

    Tries the text as-is, then without code fences, then the outermost
    {...} block. Returns None if nothing parses.
    """
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        pass

    no_fences = strip_code_fences(text)
    try:
        return json.loads(no_fences)
    except json.JSONDecodeError:
        pass

    first = no_fences.find("{")
    last = no_fences.rfind("}")
    if first != -1 and last > first:
        try:
            return json.loads(no_fences[first : last + 1])
        except json.JSONDecodeError:
            pass
    return None


class LLMClient:
    """
    Async OpenAI chat-completion client.
    Responses are returned as parsed JSON objects.
    """

    def __init__(self, model: Optional[str] = None, client: Optional[AsyncOpenAI] = None):
        config = get_config()
        self.api_key = config.openai.api_key
        self.model = model or config.openai.model
        self.max_tokens = config.openai.max_tokens
        self.temperature = config.openai.temperature
        self.timeout_seconds = config.openai.timeout_seconds

        if client is not None:
            self.client = client
        elif not self.api_key:
            logger.warning("No OpenAI API key configured")
            self.client = None
        else:
            self.client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout_seconds)

    def is_available(self) -> bool:
        """Check if the LLM client is properly configured."""
        return self.client is not None

    async def _call(self, system_prompt: str, user_prompt: str) -> str:
        """Make an API call and return the response text."""
        if not self.client:
            raise EnhancementError("LLM client not configured")

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        if not response.choices:
            raise EnhancementError("Empty completion")
        return (response.choices[0].message.content or "").strip()

    async def call_json(self, system_prompt: str, user_prompt: str) -> dict[str, Any]:
        """
        Make an API call and parse the response as a JSON object.

        Raises:
            EnhancementError: If the completion is empty or not a JSON object
        """
        content = await self._call(system_prompt, user_prompt)
        if not content:
            raise EnhancementError("Empty completion content")

        data = parse_json_loose(content)
        if not isinstance(data, dict):
            logger.error(f"Invalid JSON from LLM: {content[:200]!r}")
            raise EnhancementError("Failed to parse JSON from completion")
        return data
