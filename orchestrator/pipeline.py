"""
Room generation pipeline.

Three stages run strictly in order, each on its own provider:

1. describe: the vision provider writes an inpainting prompt for the material
2. segment: the segmentation provider returns a floor mask
3. inpaint: the inpainting provider repaints the masked floor

The first failure aborts the run with a PipelineStageError naming the stage.
Nothing is retried and no partial result is returned.
"""

import time
from abc import ABC, abstractmethod
from typing import Any

from providers.base import InpaintingProvider, SegmentationProvider, VisionProvider
from shared.exceptions import PipelineStageError, ProviderError
from shared.logging import get_logger
from shared.schemas import DescriptionResult, GenerationRequest, GenerationResult, MaskResult

from .prompts import build_instruction, clean_description, compose_prompt


class PipelineStage(ABC):
    """A single provider call in the pipeline."""

    name: str = ""

    @abstractmethod
    async def run(self, request: GenerationRequest, *previous: Any) -> Any:
        pass


class DescribeStage(PipelineStage):
    """Ask the vision provider for an inpainting prompt."""

    name = "describe"

    def __init__(self, provider: VisionProvider):
        self.provider = provider

    async def run(self, request: GenerationRequest) -> DescriptionResult:
        text = await self.provider.describe(
            request.image_bytes, request.mime_type, build_instruction(request.material)
        )
        cleaned = clean_description(text or "")
        if not cleaned:
            raise ProviderError(self.provider.name, "empty description")
        return DescriptionResult(text=cleaned)


class SegmentStage(PipelineStage):
    """Get the floor mask for the original photo."""

    name = "segment"

    def __init__(self, provider: SegmentationProvider):
        self.provider = provider

    async def run(self, request: GenerationRequest, description: DescriptionResult) -> MaskResult:
        # The mask depends on the photo only
        mask = await self.provider.segment(request.image_bytes)
        return MaskResult(image_bytes=mask)


class InpaintStage(PipelineStage):
    """Repaint the masked floor from the composed prompt."""

    name = "inpaint"

    def __init__(self, provider: InpaintingProvider):
        self.provider = provider

    async def run(
        self, request: GenerationRequest, description: DescriptionResult, mask: MaskResult
    ) -> GenerationResult:
        prompt = compose_prompt(description.text, request.material)
        image = await self.provider.inpaint(
            request.image_bytes, request.mime_type, mask.image_bytes, prompt
        )
        return GenerationResult(image_bytes=image, prompt_used=prompt, material=request.material)


class RoomGenerationPipeline:
    """Runs describe, segment and inpaint for one uploaded room photo."""

    def __init__(
        self,
        vision: VisionProvider,
        segmentation: SegmentationProvider,
        inpainting: InpaintingProvider,
    ):
        self.describe = DescribeStage(vision)
        self.segment = SegmentStage(segmentation)
        self.inpaint = InpaintStage(inpainting)

    @property
    def stages(self) -> list[PipelineStage]:
        return [self.describe, self.segment, self.inpaint]

    async def run(self, request: GenerationRequest, request_id: str | None = None) -> GenerationResult:
        """
        Generate the room with the requested floor material.

        Args:
            request: Validated upload and material
            request_id: Identifier bound to the log records of this run

        Returns:
            GenerationResult with the PNG bytes and the prompt used

        Raises:
            PipelineStageError: if any stage fails
        """
        log = get_logger(request_id)
        start_time = time.time()

        log.info(
            "Generation started",
            material=request.material,
            mime_type=request.mime_type,
            image_size=len(request.image_bytes),
        )

        description = await self._run_stage(self.describe, log, request)
        log.debug("Optimized prompt received", description=description.text)

        mask = await self._run_stage(self.segment, log, request, description)
        result = await self._run_stage(self.inpaint, log, request, description, mask)

        log.info(
            "Generation completed",
            material=request.material,
            output_size=len(result.image_bytes),
            total_time_ms=int((time.time() - start_time) * 1000),
        )
        return result

    async def _run_stage(self, stage: PipelineStage, log, *args: Any) -> Any:
        stage_start = time.time()
        log.info("Stage started", stage=stage.name)

        try:
            output = await stage.run(*args)
        except Exception as e:
            log.error(
                "Stage failed",
                stage=stage.name,
                error=str(e),
                status_code=getattr(e, "status_code", None),
                upstream_payload=getattr(e, "payload", None),
                processing_time_ms=int((time.time() - stage_start) * 1000),
            )
            raise PipelineStageError(stage.name, e) from e

        log.info(
            "Stage completed",
            stage=stage.name,
            processing_time_ms=int((time.time() - stage_start) * 1000),
        )
        return output
