import json
from types import SimpleNamespace

import httpx

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


class FakeResponses:
    """Stand-in for `AsyncOpenAI().responses` keyed by model id."""

    def __init__(self, outputs):
        self.outputs = outputs
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        output = self.outputs[kwargs["model"]]
        if isinstance(output, Exception):
            raise output
        return SimpleNamespace(
            output_text=output,
            usage=SimpleNamespace(input_tokens=10, output_tokens=5),
        )


class FakeOpenAI:
    def __init__(self, outputs):
        self.responses = FakeResponses(outputs)

    @property
    def models_called(self):
        return [call["model"] for call in self.responses.calls]


def image_handler(request: httpx.Request) -> httpx.Response:
    if "missing" in request.url.path:
        return httpx.Response(404)
    if "untyped" in request.url.path:
        return httpx.Response(200, content=JPEG_BYTES)
    return httpx.Response(200, content=JPEG_BYTES, headers={"content-type": "image/jpeg"})


def part_finding(score=72, **overrides):
    finding = {
        "part_name": "Summit Bumper",
        "manufacturer_guess": "ARB",
        "category": "Bumpers",
        "function": "Front impact protection",
        "compatibility": ["2016-2023 Toyota Tacoma"],
        "confidence_score": score,
        "seo_optimized_alt_text": "ARB Summit front bumper on a Toyota Tacoma",
    }
    finding.update(overrides)
    return json.dumps(finding)
