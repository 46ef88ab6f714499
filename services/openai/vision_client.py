"""Description: Multimodal inference calls through OpenAI's Responses API."""

import logging
import time
from typing import Any, Sequence

import openai
from openai import AsyncOpenAI

from models.image_part import ImagePart
from services.openai.media_inputs import build_inputs, build_tools
from services.openai.response_parser import extract_text, extract_usage
from utils.errors import InferenceError

LOGGER = logging.getLogger(__name__)


class VisionModelClient:
    """Send one instruction plus images to a named model and return its text."""

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        timeout: float = 60.0,
        enable_code_execution: bool = True,
    ) -> None:
        """Initialize the client wrapper with a shared OpenAI async client."""
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.timeout = timeout
        self.enable_code_execution = enable_code_execution

    async def generate(self, model: str, prompt: str, images: Sequence[ImagePart]) -> str:
        """Run `prompt` over `images` on `model` and return the raw output text.

        Raises:
            InferenceError: On timeouts, connection problems, or API errors.
        """
        start_time = time.time()
        response = await self._create_response(model, build_inputs(prompt, images))
        usage = extract_usage(response)
        LOGGER.info(
            "Model %s answered in %.3fs (input_tokens=%s, output_tokens=%s)",
            model,
            time.time() - start_time,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return extract_text(response)

    async def _create_response(self, model: str, inputs: list) -> Any:
        """Send the multimodal request to the OpenAI Responses API."""
        kwargs: dict = {"model": model, "input": inputs, "timeout": self.timeout}
        tools = build_tools(self.enable_code_execution)
        if tools:
            kwargs["tools"] = tools
        try:
            return await self.client.responses.create(**kwargs)
        except openai.APITimeoutError as exc:
            LOGGER.error("OpenAI call to %s timed out after %ss", model, self.timeout)
            raise InferenceError(f"Inference call to {model} timed out", timeout=True) from exc
        except openai.APIError as exc:
            LOGGER.error("Error during OpenAI Responses API call to %s: %s", model, exc)
            raise InferenceError(f"Inference call to {model} failed: {exc}") from exc
