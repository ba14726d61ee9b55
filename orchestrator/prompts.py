"""
Prompt text for the room generation pipeline.

The vision provider is asked to write the inpainting prompt itself; the
pipeline only cleans that text up and appends a fixed quality suffix.
"""

import re

QUALITY_SUFFIX = "Photorealistic, high gloss, 8k resolution."

INSTRUCTION_TEMPLATE = (
    "You are an expert interior designer writing prompts for an AI inpainting model. "
    "Look at this room photo and write a single inpainting prompt for replacing the "
    "floor with {material}. Describe the new {material} floor and how the room's "
    "lighting interacts with it: reflections, highlights and shadows cast by the "
    "existing light sources and furniture. Keep the room's style, perspective and "
    "everything except the floor unchanged. Return only the prompt text, with no "
    "introduction, explanation, quotes or formatting."
)

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")
_QUOTES = "\"'“”‘’"


def build_instruction(material: str) -> str:
    """Instruction sent to the vision provider alongside the room photo."""
    return INSTRUCTION_TEMPLATE.format(material=material)


def clean_description(text: str) -> str:
    """Strip code fences, a leading "Prompt:" label and wrapping quotes."""
    cleaned = _CODE_FENCE.sub("", text.strip()).strip()
    if cleaned.lower().startswith("prompt:"):
        cleaned = cleaned[len("prompt:"):].strip()
    if len(cleaned) >= 2 and cleaned[0] in _QUOTES and cleaned[-1] in _QUOTES:
        cleaned = cleaned[1:-1].strip()
    return cleaned


def compose_prompt(description: str, material: str) -> str:
    """Final inpainting prompt: description, material if missing, quality suffix."""
    description = description.strip()
    if description and description[-1] not in ".!?":
        description += "."

    parts = []
    if material.lower() not in description.lower():
        parts.append(f"Replace the floor with {material}.")
    if description:
        parts.append(description)
    parts.append(QUALITY_SUFFIX)
    return " ".join(parts)
