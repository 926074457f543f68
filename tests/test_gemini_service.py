import asyncio
import base64
from io import BytesIO
from types import SimpleNamespace

import pytest
from PIL import Image

from stylist import gemini_service
from stylist.errors import QUOTA_ERROR_MESSAGE, GenerationError, ImageProcessingError, ValidationError
from stylist.masking import MaskCanvas, Stroke


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return self.response


class FakeClient:
    def __init__(self, models):
        self.aio = SimpleNamespace(models=models)


def image_response(data=b"generated", mime_type="image/png"):
    parts = [
        SimpleNamespace(inline_data=None, text="Here is your image"),
        SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type)),
    ]
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])


@pytest.fixture
def fake_models(monkeypatch):
    models = FakeModels(response=image_response())
    keys = []

    def create_client(api_key):
        keys.append(api_key)
        return FakeClient(models)

    monkeypatch.setattr(gemini_service, "create_client", create_client)
    models.keys = keys
    return models


def run(coro):
    return asyncio.run(coro)


def test_returns_first_inline_image_as_data_url(fake_models, jpeg_file, png_file):
    result = run(gemini_service.generate_styled_image("key-123", jpeg_file, png_file, "Wear the shirt"))

    assert result == "data:image/png;base64," + base64.b64encode(b"generated").decode()
    assert fake_models.keys == ["key-123"]
    call = fake_models.calls[0]
    assert call["model"] == gemini_service.GEMINI_IMAGE_MODEL
    contents = call["contents"]
    assert len(contents) == 3
    assert contents[0].inline_data.mime_type == "image/jpeg"
    assert contents[1].inline_data.mime_type == "image/png"
    assert "mask" not in contents[2].text
    assert contents[2].text.endswith("User's instruction: Wear the shirt")
    modalities = [str(m) for m in call["config"].response_modalities]
    assert any("IMAGE" in m for m in modalities)
    assert any("TEXT" in m for m in modalities)


def test_mask_is_sent_after_product_with_masked_prompt(fake_models, jpeg_file, png_file):
    canvas = MaskCanvas(32, 16)
    canvas.apply_stroke(Stroke(brush_size=10, points=[(0, 8), (32, 8)]))
    mask_url = canvas.to_data_url()

    run(gemini_service.generate_styled_image("key", jpeg_file, png_file, "Tuck it in", mask_url))

    contents = fake_models.calls[0]["contents"]
    assert len(contents) == 4
    assert contents[2].inline_data.mime_type == "image/png"
    assert contents[2].inline_data.data == canvas.to_png()
    assert "black and white mask" in contents[3].text


def test_images_are_resized_before_upload(fake_models, image_bytes, png_file, monkeypatch):
    from stylist.images import ImageFile

    monkeypatch.setattr(gemini_service, "MAX_IMAGE_SIZE_PX", 100)
    big = ImageFile(data=image_bytes((400, 200)), filename="big.png", mime_type="image/png")
    run(gemini_service.generate_styled_image("key", big, png_file, "Style it"))

    sent = fake_models.calls[0]["contents"][0].inline_data.data
    assert Image.open(BytesIO(sent)).size == (100, 50)


def test_server_key_is_used_when_none_given(fake_models, jpeg_file, png_file, monkeypatch):
    monkeypatch.setattr(gemini_service, "GEMINI_API_KEY", "server-key")
    run(gemini_service.generate_styled_image(None, jpeg_file, png_file, "Style it"))
    assert fake_models.keys == ["server-key"]


def test_missing_key_is_a_validation_error(fake_models, jpeg_file, png_file, monkeypatch):
    monkeypatch.setattr(gemini_service, "GEMINI_API_KEY", "")
    with pytest.raises(ValidationError):
        run(gemini_service.generate_styled_image("", jpeg_file, png_file, "Style it"))
    assert fake_models.calls == []


def test_api_errors_are_classified(fake_models, jpeg_file, png_file):
    fake_models.error = RuntimeError("429 RESOURCE_EXHAUSTED")
    with pytest.raises(GenerationError) as excinfo:
        run(gemini_service.generate_styled_image("key", jpeg_file, png_file, "Style it"))
    assert str(excinfo.value) == QUOTA_ERROR_MESSAGE


def test_response_without_image(fake_models, jpeg_file, png_file):
    fake_models.response = SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=[SimpleNamespace(inline_data=None)]))],
        prompt_feedback=SimpleNamespace(block_reason="SAFETY"),
    )
    with pytest.raises(GenerationError) as excinfo:
        run(gemini_service.generate_styled_image("key", jpeg_file, png_file, "Style it"))
    assert str(excinfo.value) == "An error occurred: No image was found in the AI response. Reason: SAFETY"


def test_extract_handles_empty_candidates():
    with pytest.raises(gemini_service.NoImageInResponseError):
        gemini_service.extract_image_data_url(SimpleNamespace(candidates=[], prompt_feedback=None))


def test_malformed_mask_is_a_validation_error(fake_models, jpeg_file, png_file):
    with pytest.raises(ValidationError):
        run(gemini_service.generate_styled_image("key", jpeg_file, png_file, "Style it", "data:image/png;base64,@@@"))
    assert fake_models.calls == []


def test_undecodable_mask_is_an_image_error(fake_models, jpeg_file, png_file):
    mask = "data:image/png;base64," + base64.b64encode(b"not a png").decode()
    with pytest.raises(ImageProcessingError):
        run(gemini_service.generate_styled_image("key", jpeg_file, png_file, "Style it", mask))
    assert fake_models.calls == []
