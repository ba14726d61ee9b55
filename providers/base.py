"""
Provider interfaces for the three upstream AI services.

Each provider turns one pipeline input into one output and raises
ProviderError for transport failures, error statuses and unexpected payloads.
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx

# Upstream error bodies can be large; keep logs readable
MAX_PAYLOAD_CHARS = 2000


class VisionProvider(ABC):
    """Writes text about an image, following an instruction."""

    name: str = "vision"

    @abstractmethod
    async def describe(self, image_bytes: bytes, mime_type: str, instruction: str) -> str:
        """Return the provider's text answer for the image and instruction."""
        pass

    def is_configured(self) -> bool:
        return True

    async def aclose(self) -> None:
        """Release any SDK client the provider created."""
        pass


class SegmentationProvider(ABC):
    """Produces a floor mask for an image."""

    name: str = "segmentation"

    @abstractmethod
    async def segment(self, image_bytes: bytes) -> bytes:
        """Return mask image bytes for the image."""
        pass

    def is_configured(self) -> bool:
        return True


class InpaintingProvider(ABC):
    """Repaints the masked region of an image from a prompt."""

    name: str = "inpainting"

    @abstractmethod
    async def inpaint(
        self, image_bytes: bytes, mime_type: str, mask_bytes: bytes, prompt: str
    ) -> bytes:
        """Return the generated image bytes."""
        pass

    def is_configured(self) -> bool:
        return True


def response_payload(response: httpx.Response) -> Any:
    """Best-effort decoding of an upstream error body for logging."""
    try:
        return response.json()
    except ValueError:
        return response.text[:MAX_PAYLOAD_CHARS]
