"""
TASKCHAT - Generator Collaborator

The text generator is external: the engine only sends a composed prompt
and receives free text. Two backends are provided:
- OpenAIGenerator: calls the chat completions API directly
- HttpGenerator: posts the prompt to a separate text-generation service
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from openai import AsyncOpenAI

from taskchat.chat.composer import ComposedPrompt
from taskchat.config import settings

logger = logging.getLogger(__name__)


class GeneratorError(Exception):
    """The generator returned no usable text."""


class TaskGeneratorInterface(ABC):
    @abstractmethod
    async def generate(self, prompt: ComposedPrompt) -> str:
        """Return the assistant's raw reply text."""
        pass


class OpenAIGenerator(TaskGeneratorInterface):

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.model = model or settings.MODEL_NAME
        api_key = api_key or settings.OPENAI_API_KEY
        self._client: Optional[AsyncOpenAI] = AsyncOpenAI(api_key=api_key) if api_key else None
        if self._client is None:
            logger.warning("OPENAI_API_KEY is not set, chat turns will fail until it is configured")

    async def generate(self, prompt: ComposedPrompt) -> str:
        if self._client is None:
            raise GeneratorError("Text generator is not configured")

        response = await self._client.chat.completions.create(
            model=self.model,
            messages=prompt.to_messages(),
            temperature=settings.LLM_TEMPERATURE,
            max_tokens=settings.LLM_MAX_TOKENS,
            timeout=settings.LLM_TIMEOUT,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise GeneratorError("Empty response from text generator")
        logger.debug(f"Generator returned {len(content)} characters")
        return content


class HttpGenerator(TaskGeneratorInterface):

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = (base_url or settings.GENERATOR_SERVICE_URL).rstrip("/")

    async def generate(self, prompt: ComposedPrompt) -> str:
        payload = {
            "system_prompt": prompt.system,
            "message": prompt.user,
            "conversation_history": prompt.history,
        }
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{self.base_url}/generate",
                json=payload,
                timeout=settings.LLM_TIMEOUT,
            )
            response.raise_for_status()
            data = response.json()

        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise GeneratorError("Empty response from text generation service")
        return content


def build_generator() -> TaskGeneratorInterface:
    """Pick the backend configured by GENERATOR_BACKEND."""
    if settings.GENERATOR_BACKEND.lower() == "http":
        return HttpGenerator()
    return OpenAIGenerator()
