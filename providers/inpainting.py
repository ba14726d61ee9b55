"""
Inpainting through Stability AI's stable-image edit endpoint.
"""

import mimetypes

import httpx
from loguru import logger

from shared.exceptions import ProviderError

from .base import InpaintingProvider, response_payload


class StabilityInpaintingProvider(InpaintingProvider):
    """Stability AI v2beta inpaint: multipart image + mask + prompt in, image out."""

    name = "stability"
    output_format = "png"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str | None,
        url: str,
    ):
        self.client = client
        self.api_key = api_key
        self.url = url

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def inpaint(
        self, image_bytes: bytes, mime_type: str, mask_bytes: bytes, prompt: str
    ) -> bytes:
        if not self.api_key:
            raise ProviderError(self.name, "STABILITY_API_KEY is not configured")

        extension = mimetypes.guess_extension(mime_type) or ""
        files = {
            "image": (f"room{extension}", image_bytes, mime_type),
            "mask": ("mask.png", mask_bytes, "image/png"),
        }
        data = {"prompt": prompt, "output_format": self.output_format}
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "image/*",
        }

        logger.debug(
            "Calling Stability inpaint",
            image_size=len(image_bytes),
            mask_size=len(mask_bytes),
            prompt_length=len(prompt),
        )

        try:
            response = await self.client.post(self.url, files=files, data=data, headers=headers)
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e

        if response.is_error:
            raise ProviderError(
                self.name,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                payload=response_payload(response),
            )

        content_type = response.headers.get("content-type", "")
        if not content_type.startswith("image/") or not response.content:
            raise ProviderError(
                self.name,
                f"expected an image, got {content_type or 'no content type'}",
                payload=response_payload(response),
            )

        return response.content
