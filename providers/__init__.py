"""
Clients for the upstream AI providers used by the room generation pipeline.
"""

from typing import Any, NamedTuple

import httpx

from shared.config import ServiceSettings

from .base import InpaintingProvider, SegmentationProvider, VisionProvider
from .inpainting import StabilityInpaintingProvider
from .segmentation import HuggingFaceSegmentationProvider
from .vision import GeminiVisionProvider, OpenAIVisionProvider


class ProviderSet(NamedTuple):
    vision: VisionProvider
    segmentation: SegmentationProvider
    inpainting: InpaintingProvider


def build_providers(
    settings: ServiceSettings, provider_config: dict[str, Any], client: httpx.AsyncClient
) -> ProviderSet:
    """Construct the configured provider clients, sharing one HTTP client."""
    vision_config = provider_config["vision"]
    if settings.vision_provider == "openai":
        openai_config = vision_config["openai"]
        vision = OpenAIVisionProvider(
            api_key=settings.openai_api_key,
            model=openai_config["model"],
            max_tokens=openai_config.get("max_tokens", 500),
            temperature=openai_config.get("temperature", 0.4),
        )
    else:
        vision = GeminiVisionProvider(
            api_key=settings.gemini_api_key,
            model=vision_config["gemini"]["model"],
        )

    segmentation_config = provider_config["segmentation"]
    segmentation = HuggingFaceSegmentationProvider(
        client=client,
        token=settings.huggingface_token,
        url=segmentation_config["url"],
        floor_label=segmentation_config.get("floor_label", "floor"),
    )

    inpainting_config = provider_config["inpainting"]
    inpainting = StabilityInpaintingProvider(
        client=client,
        api_key=settings.stability_api_key,
        url=inpainting_config["url"],
    )

    return ProviderSet(vision=vision, segmentation=segmentation, inpainting=inpainting)


__all__ = [
    "GeminiVisionProvider",
    "HuggingFaceSegmentationProvider",
    "InpaintingProvider",
    "OpenAIVisionProvider",
    "ProviderSet",
    "SegmentationProvider",
    "StabilityInpaintingProvider",
    "VisionProvider",
    "build_providers",
]
