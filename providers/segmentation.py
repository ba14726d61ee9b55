"""
Floor segmentation through the Hugging Face Inference API.

The model endpoint either answers with a mask image directly or with the
image-segmentation JSON shape: a list of ``{"label", "score", "mask"}``
entries where ``mask`` is a base64 PNG. In the second case the entry whose
label matches the configured floor label is used.
"""

import base64
import binascii

import httpx
from loguru import logger

from shared.exceptions import ProviderError

from .base import SegmentationProvider, response_payload


class HuggingFaceSegmentationProvider(SegmentationProvider):
    """SegFormer (or any image-segmentation model) on the HF Inference API."""

    name = "huggingface"

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str | None,
        url: str,
        floor_label: str = "floor",
    ):
        self.client = client
        self.token = token
        self.url = url
        self.floor_label = floor_label

    def is_configured(self) -> bool:
        return bool(self.token)

    async def segment(self, image_bytes: bytes) -> bytes:
        if not self.token:
            raise ProviderError(self.name, "HUGGINGFACE_TOKEN is not configured")

        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/octet-stream",
        }

        try:
            response = await self.client.post(self.url, content=image_bytes, headers=headers)
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
        if content_type.startswith("image/"):
            if not response.content:
                raise ProviderError(self.name, "empty mask image")
            return response.content

        if "json" in content_type:
            return self._floor_mask(response.json())

        raise ProviderError(
            self.name,
            f"unexpected content type {content_type or 'none'}",
            payload=response_payload(response),
        )

    def _floor_mask(self, segments) -> bytes:
        if not isinstance(segments, list):
            raise ProviderError(self.name, "unexpected segmentation payload", payload=segments)

        labels = []
        for segment in segments:
            if not isinstance(segment, dict):
                continue
            label = str(segment.get("label", ""))
            labels.append(label)
            if label.lower() != self.floor_label.lower():
                continue

            try:
                mask = base64.b64decode(segment.get("mask") or "", validate=True)
            except (binascii.Error, ValueError) as e:
                raise ProviderError(self.name, f"invalid mask encoding: {e}") from e
            if not mask:
                raise ProviderError(self.name, "empty floor mask")

            logger.debug("Floor segment selected", label=label, score=segment.get("score"))
            return mask

        raise ProviderError(
            self.name,
            f"no '{self.floor_label}' segment in response",
            payload={"labels": labels},
        )
