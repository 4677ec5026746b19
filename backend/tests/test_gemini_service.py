"""
Layer 2: Gemini service unit tests

These tests validate request building and the provider call, using
httpx.MockTransport instead of the real Gemini API.
"""
import json

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from core.errors import MissingParameterError, ProviderCallFailedError, TextInsteadOfImageError
from models.gemini_edit import EditRequest
from services.gemini_service import GeminiService, build_edit_prompt, split_image_data


def make_service(handler, api_key="test-key"):
    return GeminiService(
        api_key=api_key,
        model="test-model",
        base_url="https://gemini.test/v1beta/",
        timeout=5,
        transport=httpx.MockTransport(handler)
    )


@pytest.mark.unit
class TestSplitImageData:
    """Tests for data URL splitting and MIME detection"""

    def test_png_data_url(self, png_data_url, sample_base64):
        assert split_image_data(png_data_url) == (sample_base64, "image/png")

    def test_jpeg_data_url(self, jpeg_data_url, sample_base64):
        assert split_image_data(jpeg_data_url) == (sample_base64, "image/jpeg")

    def test_other_mime_defaults_to_jpeg(self, sample_base64):
        base64_data, mime_type = split_image_data(f"data:image/webp;base64,{sample_base64}")

        assert base64_data == sample_base64
        assert mime_type == "image/jpeg"

    def test_bare_base64(self, sample_base64):
        """Test a string without a comma is used as the payload"""
        assert split_image_data(sample_base64) == (sample_base64, "image/jpeg")

    def test_build_edit_prompt_embeds_instruction(self):
        prompt = build_edit_prompt("make the sky purple")

        assert "apply the following visual change: make the sky purple." in prompt
        assert prompt.startswith("Using the attached image as inspiration")
        assert prompt.endswith("The output MUST be a single, finished image, and nothing else.")

    def test_default_timeout_is_sixty_seconds(self):
        service = GeminiService(api_key="test-key")

        assert service.timeout == 60


@pytest.mark.unit
@pytest.mark.asyncio
class TestGeminiServiceEditImage:
    """Tests for the full edit flow against a mocked transport"""

    async def test_edit_image_success(self, png_data_url, sample_base64, gemini_image_reply):
        """Test the request shape and the normalized result"""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["headers"] = request.headers
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=gemini_image_reply)

        service = make_service(handler)
        result = await service.edit_image(EditRequest(image_data=png_data_url, prompt="add a hat"))

        assert result.success is True
        assert result.edited_image_data_url == f"data:image/png;base64,{sample_base64}"
        assert result.warning is None

        assert captured["url"] == "https://gemini.test/v1beta/models/test-model:generateContent"
        assert captured["headers"]["x-goog-api-key"] == "test-key"

        parts = captured["body"]["contents"][0]["parts"]
        assert parts[0]["text"] == build_edit_prompt("add a hat")
        assert parts[1]["inlineData"] == {"mimeType": "image/png", "data": sample_base64}
        assert captured["body"]["generationConfig"]["responseModalities"] == ["IMAGE", "TEXT"]

    async def test_default_timeout_reaches_request(self, png_data_url, gemini_image_reply):
        """Test the 60 second bound is applied to the outbound request"""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["timeout"] = request.extensions["timeout"]
            return httpx.Response(200, json=gemini_image_reply)

        service = GeminiService(api_key="test-key", transport=httpx.MockTransport(handler))
        await service.edit_image(EditRequest(image_data=png_data_url, prompt="add a hat"))

        assert captured["timeout"] == {"connect": 60, "read": 60, "write": 60, "pool": 60}

    async def test_edit_image_text_reply(self, jpeg_data_url, gemini_text_reply):
        """Test a prose-only reply surfaces as TextInsteadOfImageError"""
        service = make_service(lambda request: httpx.Response(200, json=gemini_text_reply))

        with pytest.raises(TextInsteadOfImageError):
            await service.edit_image(EditRequest(image_data=jpeg_data_url, prompt="add a hat"))

    @pytest.mark.parametrize("image_data,prompt", [
        (None, "add a hat"),
        ("", "add a hat"),
        ("data:image/png;base64,abc", None),
        ("data:image/png;base64,abc", ""),
        (None, None),
    ])
    async def test_missing_parameters_skip_provider(self, image_data, prompt):
        """Test missing fields fail before any provider call"""
        service = GeminiService(api_key="test-key")

        with patch.object(service, "generate_content", new_callable=AsyncMock) as mock_generate:
            with pytest.raises(MissingParameterError) as exc_info:
                await service.edit_image(EditRequest(image_data=image_data, prompt=prompt))

            mock_generate.assert_not_called()

        assert exc_info.value.status_code == 400


@pytest.mark.unit
@pytest.mark.asyncio
class TestGeminiServiceProviderErrors:
    """Tests for transport and API failures"""

    async def test_missing_api_key(self, sample_base64):
        def handler(request):
            pytest.fail("No request should be sent without an API key")

        service = make_service(handler, api_key="")

        with pytest.raises(ProviderCallFailedError) as exc_info:
            await service.generate_content("prompt", sample_base64, "image/png")

        assert "not configured" in exc_info.value.details

    async def test_http_error_uses_provider_message(self, sample_base64):
        """Test the provider's error message is carried as details"""
        service = make_service(lambda request: httpx.Response(
            400, json={"error": {"code": 400, "message": "API key not valid"}}
        ))

        with pytest.raises(ProviderCallFailedError) as exc_info:
            await service.generate_content("prompt", sample_base64, "image/png")

        assert exc_info.value.details == "API key not valid"

    async def test_http_error_without_body(self, sample_base64):
        service = make_service(lambda request: httpx.Response(503))

        with pytest.raises(ProviderCallFailedError) as exc_info:
            await service.generate_content("prompt", sample_base64, "image/png")

        assert exc_info.value.details == "API request failed: 503"

    async def test_timeout(self, sample_base64):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        service = make_service(handler)

        with pytest.raises(ProviderCallFailedError) as exc_info:
            await service.generate_content("prompt", sample_base64, "image/png")

        assert "timeout" in exc_info.value.details.lower()

    async def test_connection_error(self, sample_base64):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = make_service(handler)

        with pytest.raises(ProviderCallFailedError) as exc_info:
            await service.generate_content("prompt", sample_base64, "image/png")

        assert "connection refused" in exc_info.value.details

    async def test_invalid_json(self, sample_base64):
        service = make_service(lambda request: httpx.Response(200, content=b"<html>oops</html>"))

        with pytest.raises(ProviderCallFailedError):
            await service.generate_content("prompt", sample_base64, "image/png")