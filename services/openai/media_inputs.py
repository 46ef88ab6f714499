"""Utilities to build multimodal input payloads for the Responses API."""

from typing import Any, Dict, List, Sequence

from models.image_part import ImagePart

CODE_EXECUTION_TOOL: Dict[str, Any] = {"type": "code_interpreter", "container": {"type": "auto"}}


def build_user_content(prompt: str, images: Sequence[ImagePart]) -> List[Dict[str, Any]]:
    """Put the instruction first, followed by every image as its own part."""
    content: List[Dict[str, Any]] = [{"type": "input_text", "text": prompt}]
    for image in images:
        content.append({"type": "input_image", "image_url": image.to_data_url()})
    return content


def build_inputs(prompt: str, images: Sequence[ImagePart]) -> List[Dict[str, Any]]:
    """Build the Responses API input array for one instruction over many images."""
    if not images:
        raise ValueError("At least one image is required.")
    return [
        {
            "type": "message",
            "role": "user",
            "content": build_user_content(prompt, images),
        }
    ]


def build_tools(enable_code_execution: bool) -> List[Dict[str, Any]]:
    """Return the tool list; the code interpreter helps with counting and measuring."""
    return [dict(CODE_EXECUTION_TOOL)] if enable_code_execution else []
