"""
Upload validation and image encoding helpers.
"""

import base64
import io

from fastapi import UploadFile
from PIL import Image

from shared.exceptions import UploadValidationError
from shared.schemas import GenerationRequest


async def read_upload(
    upload: UploadFile | None, material: str | None, max_size_bytes: int
) -> GenerationRequest:
    """
    Validate an uploaded room photo and read it into memory.

    Checks run before any provider is called: the file must be present,
    declared as ``image/*``, no larger than ``max_size_bytes`` and decodable
    by Pillow.

    Raises:
        UploadValidationError: if any check fails
    """
    if upload is None:
        raise UploadValidationError("No image uploaded")

    content_type = (upload.content_type or "").lower()
    if not content_type.startswith("image/"):
        raise UploadValidationError("Only image uploads are allowed")

    # Reject early when the multipart parser already knows the size
    if upload.size is not None and upload.size > max_size_bytes:
        raise UploadValidationError(_too_large_message(upload.size, max_size_bytes))

    data = await upload.read()
    if not data:
        raise UploadValidationError("Uploaded image is empty")
    if len(data) > max_size_bytes:
        raise UploadValidationError(_too_large_message(len(data), max_size_bytes))

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
            # Providers get the detected format, not the declared one
            mime_type = Image.MIME.get(img.format, content_type)
    except Exception as e:
        raise UploadValidationError(f"Uploaded file is not a valid image: {e}") from e

    return GenerationRequest(image_bytes=data, mime_type=mime_type, material=material)


def _too_large_message(size: int, max_size_bytes: int) -> str:
    return (
        f"Image too large: {size} bytes "
        f"(max: {max_size_bytes // (1024 * 1024)} MB)"
    )


def to_data_uri(image_bytes: bytes, mime_type: str = "image/png") -> str:
    """Encode image bytes as a ``data:`` URI."""
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"
