import asyncio

import httpx
import pytest

from services.storage_service import StorageService
from utils.errors import StorageError, ValidationError

BASE = "https://project.supabase.co"


def _slot(handler, *, file_name="items/front.jpg", content_type="image/jpeg", base_url=BASE, key="service-key"):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            storage = StorageService(client, base_url, key, "vehicle_images")
            return await storage.request_upload_slot(file_name, content_type)

    return asyncio.run(go())


def test_signed_url_is_built_from_provider_response():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        return httpx.Response(
            200, json={"url": "/object/upload/sign/vehicle_images/items/front.jpg?token=abc123"}
        )

    slot = _slot(handler)

    assert seen["url"] == f"{BASE}/storage/v1/object/upload/sign/vehicle_images/items/front.jpg"
    assert seen["headers"]["authorization"] == "Bearer service-key"
    assert seen["headers"]["x-upsert"] == "true"
    assert slot.signed_url == f"{BASE}/storage/v1/object/upload/sign/vehicle_images/items/front.jpg?token=abc123"
    assert slot.path == "items/front.jpg"
    assert slot.token == "abc123"


def test_provider_rejection_raises_storage_error_with_message():
    def handler(request):
        return httpx.Response(400, json={"statusCode": "403", "message": "new row violates row-level security"})

    with pytest.raises(StorageError, match="row-level security") as exc_info:
        _slot(handler)

    assert exc_info.value.status_code == 400


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"file_name": ""}, "fileName"),
        ({"content_type": ""}, "contentType"),
    ],
)
def test_missing_fields_are_validation_errors(kwargs, message):
    def handler(request):
        raise AssertionError("storage must not be called")

    with pytest.raises(ValidationError, match=message):
        _slot(handler, **kwargs)


def test_unconfigured_storage_raises_storage_error():
    def handler(request):
        raise AssertionError("storage must not be called")

    with pytest.raises(StorageError, match="not configured"):
        _slot(handler, base_url=None)
