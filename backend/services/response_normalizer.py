"""
Normalization of Gemini image-edit replies.

The provider does not always answer the same way: sometimes it returns a
proper image part, sometimes the image bytes are embedded in a text part
(bare, as a data URL, or inside a fenced JSON block), and sometimes nothing
usable at all. Structured image parts always win; text is only mined when
no image part exists, through an ordered chain of extraction strategies.
"""
import json
import re
from typing import Callable, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from core.errors import (
    BlockedByProviderError,
    EmptyCandidateError,
    EmptyOutputError,
    NoUsableOutputError,
    TextInsteadOfImageError,
)
from models.gemini_edit import ImagePart, ModelResponse, NormalizedResult, TextPart

JSON_BLOCK_PATTERN = re.compile(r"```json\s*(\{[\s\S]*?\})\s*```")
BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/=]+$")
DATA_URL_PREFIX = "data:image/"

# Returned by a strategy that recognised its format but found no payload; ends the chain
NO_PAYLOAD = ""


class ExtractionPolicy(BaseModel):
    """Tunable knobs of the text fallback path"""
    model_config = ConfigDict(frozen=True)

    payload_fields: Tuple[str, ...] = ("text", "image", "data", "base64")
    base64_pattern: re.Pattern = BASE64_PATTERN
    min_payload_length: int = 100  # payloads must be strictly longer than this
    excerpt_length: int = 100
    fallback_mime_type: str = "image/jpeg"
    fallback_warning: str = "Warning: Model returned image as text. Consider refining prompt."


DEFAULT_POLICY = ExtractionPolicy()


def looks_like_base64(value: str, policy: ExtractionPolicy = DEFAULT_POLICY) -> bool:
    """True for strings of the base64 alphabet longer than the minimum payload length"""
    return len(value) > policy.min_payload_length and bool(policy.base64_pattern.fullmatch(value))


def _payload_after_comma(data_url: str) -> Optional[str]:
    segments = data_url.split(",")
    if len(segments) > 1 and segments[1]:
        return segments[1]
    return None


def extract_from_json_block(text: str, policy: ExtractionPolicy = DEFAULT_POLICY) -> Optional[str]:
    """Pull a payload out of a ```json fenced block, checking fields in priority order"""
    match = JSON_BLOCK_PATTERN.search(text)
    if not match:
        return None

    try:
        document = json.loads(match.group(1))
    except json.JSONDecodeError:
        # Malformed JSON counts as no JSON at all
        return None

    if not isinstance(document, dict):
        return None

    for field in policy.payload_fields:
        value = document.get(field)
        if not value or not isinstance(value, str):
            continue

        if value.startswith(DATA_URL_PREFIX):
            return _payload_after_comma(value) or NO_PAYLOAD
        if looks_like_base64(value, policy):
            return value

    return None


def extract_from_data_url(text: str, policy: ExtractionPolicy = DEFAULT_POLICY) -> Optional[str]:
    """Take the payload of a text that is itself an image data URL"""
    if text.startswith(DATA_URL_PREFIX):
        return _payload_after_comma(text)
    return None


def extract_raw_base64(text: str, policy: ExtractionPolicy = DEFAULT_POLICY) -> Optional[str]:
    """Accept the whole text when it is plausible bare base64"""
    candidate = text.strip()
    if looks_like_base64(candidate, policy):
        return candidate
    return None


ExtractionStrategy = Callable[[str, ExtractionPolicy], Optional[str]]

EXTRACTION_STRATEGIES: Tuple[ExtractionStrategy, ...] = (
    extract_from_json_block,
    extract_from_data_url,
    extract_raw_base64,
)


def extract_base64_from_text(
    text: str,
    policy: ExtractionPolicy = DEFAULT_POLICY,
    strategies: Tuple[ExtractionStrategy, ...] = EXTRACTION_STRATEGIES,
) -> Optional[str]:
    """Apply the extraction strategies in order and return the first payload found"""
    for strategy in strategies:
        payload = strategy(text, policy)
        if payload is not None:
            return payload or None
    return None


def build_data_url(mime_type: str, payload: str) -> str:
    return f"data:{mime_type};base64,{payload}"


def normalize_response(
    response: ModelResponse,
    policy: ExtractionPolicy = DEFAULT_POLICY,
) -> NormalizedResult:
    """
    Turn a Gemini reply into a displayable image.

    Args:
        response: Parsed provider reply
        policy: Extraction policy for the text fallback

    Returns:
        NormalizedResult with a data URL, and a warning when the text fallback was used

    Raises:
        BlockedByProviderError: No candidates and the prompt was blocked
        EmptyOutputError: No candidates and no block reason
        EmptyCandidateError: First candidate has no parts
        TextInsteadOfImageError: Only text came back and no image could be mined from it
        NoUsableOutputError: Neither an image nor a text part exists
    """
    if not response.candidates:
        if response.block_reason:
            print(f"❌ Generation blocked by safety filters: {response.block_reason}")
            raise BlockedByProviderError(response.block_reason)
        raise EmptyOutputError()

    parts = response.candidates[0].parts
    if not parts:
        raise EmptyCandidateError()

    image_part = next((part for part in parts if isinstance(part, ImagePart)), None)
    if image_part is not None:
        return NormalizedResult(
            success=True,
            edited_image_data_url=build_data_url(image_part.mime_type, image_part.data)
        )

    text_part = next((part for part in parts if isinstance(part, TextPart)), None)
    if text_part is not None:
        text_content = text_part.text.strip()
        payload = extract_base64_from_text(text_content, policy)

        if payload and len(payload) > policy.min_payload_length:
            print("⚠️ Gemini returned the image inside a text part, using fallback extraction")
            return NormalizedResult(
                success=True,
                edited_image_data_url=build_data_url(policy.fallback_mime_type, payload),
                warning=policy.fallback_warning
            )

        raise TextInsteadOfImageError(text_content[:policy.excerpt_length])

    raise NoUsableOutputError()
