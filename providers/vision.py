"""
Vision providers: Google Gemini (default) and OpenAI GPT-4o.

Both receive the room photo inline with an instruction and return plain text.
"""

import asyncio
import base64
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from loguru import logger
from openai import APIError, APIStatusError, OpenAI

from shared.exceptions import ProviderError

from .base import VisionProvider


class GeminiVisionProvider(VisionProvider):
    """Gemini multimodal model via the google-genai SDK."""

    name = "gemini"

    def __init__(self, api_key: str | None, model: str = "gemini-2.5-flash", client: Any = None):
        self.api_key = api_key
        self.model = model
        self._client = client
        self._owns_client = False

    def is_configured(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise ProviderError(self.name, "GEMINI_API_KEY is not configured")
            self._client = genai.Client(api_key=self.api_key)
            self._owns_client = True
        return self._client

    async def describe(self, image_bytes: bytes, mime_type: str, instruction: str) -> str:
        client = self._get_client()

        logger.debug("Calling Gemini", model=self.model, image_size=len(image_bytes))

        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                    instruction,
                ],
            )
        except genai_errors.APIError as e:
            raise ProviderError(
                self.name,
                f"API error: {e.message or e.status}",
                status_code=e.code,
                payload=e.details,
            ) from e

        text = response.text
        if not text:
            raise ProviderError(self.name, "response contained no text")
        return text

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aio.aclose()
            self._client.close()
            self._client = None


class OpenAIVisionProvider(VisionProvider):
    """GPT-4o vision through the OpenAI chat completions API."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4o",
        max_tokens: int = 500,
        temperature: float = 0.4,
        client: Any = None,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client
        self._owns_client = False

    def is_configured(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise ProviderError(self.name, "OPENAI_API_KEY is not configured")
            self._client = OpenAI(api_key=self.api_key)
            self._owns_client = True
        return self._client

    async def describe(self, image_bytes: bytes, mime_type: str, instruction: str) -> str:
        client = self._get_client()
        base64_image = base64.b64encode(image_bytes).decode("utf-8")

        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": instruction},
                    {
                        "type": "image_url",
                        "image_url": {
                            "url": f"data:{mime_type};base64,{base64_image}",
                            "detail": "high",
                        },
                    },
                ],
            }
        ]

        logger.debug("Calling OpenAI", model=self.model, image_size=len(image_bytes))

        try:
            # The SDK client is synchronous
            response = await asyncio.to_thread(
                client.chat.completions.create,
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except APIStatusError as e:
            raise ProviderError(
                self.name, f"API error: {e.message}", status_code=e.status_code, payload=e.body
            ) from e
        except APIError as e:
            raise ProviderError(self.name, f"API error: {e.message}", payload=e.body) from e

        if not response.choices:
            raise ProviderError(self.name, "response contained no choices")
        text = response.choices[0].message.content
        if not text:
            raise ProviderError(self.name, "response contained no text")
        return text

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None
