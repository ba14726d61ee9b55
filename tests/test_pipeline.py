"""RoomGenerationPipeline stage ordering and failure attribution."""

import pytest

from orchestrator.pipeline import RoomGenerationPipeline
from orchestrator.prompts import QUALITY_SUFFIX
from shared.exceptions import PipelineStageError, ProviderError
from shared.schemas import GenerationRequest


@pytest.fixture
def request_(jpeg_bytes):
    return GenerationRequest(image_bytes=jpeg_bytes, mime_type="image/jpeg", material="Oak Wood")


def test_stages_are_ordered(fakes):
    pipeline = fakes.pipeline()

    assert [stage.name for stage in pipeline.stages] == ["describe", "segment", "inpaint"]


@pytest.mark.asyncio
async def test_run_calls_providers_in_sequence(fakes, request_):
    result = await fakes.pipeline().run(request_, request_id="req-1")

    assert fakes.calls == ["describe", "segment", "inpaint"]
    assert result.image_bytes == fakes.output
    assert result.material == "Oak Wood"


@pytest.mark.asyncio
async def test_prompt_combines_description_material_and_suffix(fakes, request_):
    result = await fakes.pipeline().run(request_)

    prompt = fakes.inpainting.requests[0]["prompt"]
    assert prompt == result.prompt_used
    assert "Oak Wood" in prompt
    assert "afternoon sunlight" in prompt
    assert prompt.endswith(QUALITY_SUFFIX)


@pytest.mark.asyncio
async def test_instruction_asks_for_material_specific_prompt(fakes, request_):
    await fakes.pipeline().run(request_)

    _, _, instruction = fakes.vision.requests[0]
    assert "Oak Wood" in instruction
    assert "lighting" in instruction


@pytest.mark.asyncio
async def test_default_material_is_marble(fakes, jpeg_bytes):
    request = GenerationRequest(image_bytes=jpeg_bytes, mime_type="image/jpeg")

    result = await fakes.pipeline().run(request)

    assert request.material == "Marble"
    assert "Marble" in result.prompt_used


@pytest.mark.asyncio
async def test_describe_failure_stops_pipeline(fakes, request_):
    fakes.vision.error = ProviderError("gemini", "API error", status_code=500)

    with pytest.raises(PipelineStageError) as exc_info:
        await fakes.pipeline().run(request_)

    assert exc_info.value.stage == "describe"
    assert fakes.calls == ["describe"]


@pytest.mark.asyncio
async def test_segment_failure_stops_pipeline(fakes, request_):
    fakes.segmentation.error = ProviderError("huggingface", "HTTP 503", status_code=503, payload={"error": "loading"})

    with pytest.raises(PipelineStageError) as exc_info:
        await fakes.pipeline().run(request_)

    assert exc_info.value.stage == "segment"
    assert exc_info.value.upstream_payload == {"error": "loading"}
    assert fakes.calls == ["describe", "segment"]


@pytest.mark.asyncio
async def test_inpaint_failure_is_attributed_to_inpaint(fakes, request_):
    fakes.inpainting.error = ProviderError("stability", "HTTP 402", status_code=402)

    with pytest.raises(PipelineStageError) as exc_info:
        await fakes.pipeline().run(request_)

    assert exc_info.value.stage == "inpaint"
    assert isinstance(exc_info.value.cause, ProviderError)


@pytest.mark.asyncio
async def test_unexpected_exception_is_wrapped(fakes, request_):
    fakes.segmentation.error = RuntimeError("socket closed")

    with pytest.raises(PipelineStageError) as exc_info:
        await fakes.pipeline().run(request_)

    assert exc_info.value.stage == "segment"
    assert "socket closed" in str(exc_info.value)


@pytest.mark.asyncio
async def test_empty_description_fails_describe_stage(fakes, request_):
    fakes.vision.text = '  ""  '

    with pytest.raises(PipelineStageError) as exc_info:
        await fakes.pipeline().run(request_)

    assert exc_info.value.stage == "describe"
    assert fakes.calls == ["describe"]


@pytest.mark.asyncio
async def test_description_is_cleaned_before_use(fakes, request_):
    fakes.vision.text = '```\n"Warm oak planks catching the lamp light"\n```'

    result = await fakes.pipeline().run(request_)

    assert "```" not in result.prompt_used
    assert '"' not in result.prompt_used
    assert "Warm oak planks catching the lamp light." in result.prompt_used
