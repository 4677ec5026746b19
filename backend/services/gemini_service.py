import json
import httpx
from typing import Tuple, Optional, Dict, Any

from config.settings import settings
from core.errors import MissingParameterError, ProviderCallFailedError
from models.gemini_edit import EditRequest, ModelResponse, NormalizedResult
from services.response_normalizer import normalize_response

EDIT_PROMPT_TEMPLATE = (
    "Using the attached image as inspiration, GENERATE A NEW, complete image. "
    "In this new image, apply the following visual change: {prompt}. "
    "The output MUST be a single, finished image, and nothing else."
)

def split_image_data(image_data: str) -> Tuple[str, str]:
    """Return (base64 payload, mime type) for a data URL or bare base64 string"""
    segments = image_data.split(',')
    base64_data = segments[1] if len(segments) > 1 else image_data
    mime_type = 'image/png' if image_data.startswith('data:image/png') else 'image/jpeg'
    return base64_data, mime_type

def build_edit_prompt(prompt: str) -> str:
    return EDIT_PROMPT_TEMPLATE.format(prompt=prompt)

class GeminiService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_API_BASE).rstrip('/')
        self.timeout = timeout or settings.GEMINI_TIMEOUT_SECONDS
        self.transport = transport

    async def edit_image(self, edit_request: EditRequest) -> NormalizedResult:
        """Edit an image with Gemini and normalize whatever comes back into a data URL"""
        if not edit_request.image_data or not edit_request.prompt:
            raise MissingParameterError()

        base64_data, mime_type = split_image_data(edit_request.image_data)
        enhanced_prompt = build_edit_prompt(edit_request.prompt)

        payload = await self.generate_content(enhanced_prompt, base64_data, mime_type)
        return normalize_response(ModelResponse.from_api(payload))

    async def generate_content(self, instruction: str, base64_data: str, mime_type: str) -> Dict[str, Any]:
        """Send one generateContent request; raises ProviderCallFailedError on any failure"""
        if not self.api_key:
            raise ProviderCallFailedError("Gemini API key not configured")

        payload = {
            "contents": [{
                "parts": [
                    {"text": instruction},
                    {
                        "inlineData": {
                            "mimeType": mime_type,
                            "data": base64_data
                        }
                    }
                ]
            }],
            "generationConfig": {
                "responseModalities": ["IMAGE", "TEXT"]
            }
        }

        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json"
        }

        url = f"{self.base_url}/models/{self.model}:generateContent"
        print(f"🔍 Calling Gemini model {self.model} (image {mime_type}, {len(base64_data)} base64 chars)")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException:
            raise ProviderCallFailedError(f"Request timeout - Gemini did not answer within {self.timeout:g} seconds")
        except httpx.HTTPError as error:
            raise ProviderCallFailedError(f"Error calling Gemini API: {str(error)}")

        if response.status_code != 200:
            error_message = f"API request failed: {response.status_code}"
            try:
                error_data = response.json() if response.content else {}
                error_message = error_data.get('error', {}).get('message') or error_message
            except (ValueError, AttributeError):
                pass
            print(f"❌ Gemini API error: {error_message}")
            raise ProviderCallFailedError(error_message)

        try:
            data = response.json()
        except ValueError:
            raise ProviderCallFailedError("Gemini returned a response that is not valid JSON")
        if not isinstance(data, dict):
            raise ProviderCallFailedError("Gemini returned an unexpected response shape")

        print(f"✅ Gemini response: {_summarize(data)}")
        return data

def _summarize(data: Dict[str, Any], limit: int = 500) -> str:
    summary = json.dumps(data)
    if len(summary) > limit:
        return f"{summary[:limit]}... ({len(summary)} chars)"
    return summary
