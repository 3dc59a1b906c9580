"""
Style presets for character and video generation.
Users pick a style, we send the matching description and animation prompt.
"""

from typing import Optional

from .errors import ValidationError

DEFAULT_STYLE = "normal"

# Used when no style and no prompt were sent in video-only mode
FALLBACK_ANIMATION_PROMPT = "The person waves at the camera"

PRESETS = {
    "normal": {
        "id": "normal",
        "name": "Normal Character",
        "description": "Realistic style with natural movements",
        "character_description": "2d cartoon avatar with realistic proportions",
        "animation_prompt": "The person waves at the camera with a friendly smile",
    },
    "chibi": {
        "id": "chibi",
        "name": "Chibi Character",
        "description": "Cute super deformation style with big head",
        "character_description": "2d chibi avatar with realistic proportions",
        "animation_prompt": "The person waves at the camera in a cute and energetic way",
    },
}


def get_preset(style: str) -> dict:
    """Get a style preset by ID. Raises ValidationError if unknown."""
    preset = PRESETS.get(style)
    if preset is None:
        raise ValidationError(f"Unknown character style: {style}")
    return preset


def list_presets() -> list[dict]:
    """Return all presets, safe to send to the browser."""
    return [
        {"id": p["id"], "name": p["name"], "description": p["description"]}
        for p in PRESETS.values()
    ]


def resolve_texts(
    style: Optional[str],
    character_description: Optional[str],
    animation_prompt: Optional[str],
) -> tuple[str, str]:
    """
    Pick the character description and animation prompt for a request.
    Explicit text wins over the style preset.
    """
    if not style:
        preset = PRESETS[DEFAULT_STYLE]
        default_prompt = FALLBACK_ANIMATION_PROMPT
    else:
        preset = get_preset(style)
        default_prompt = preset["animation_prompt"]

    description = (character_description or "").strip() or preset["character_description"]
    prompt = (animation_prompt or "").strip() or default_prompt
    return description, prompt
