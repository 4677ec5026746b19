from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Union, Dict, Any

class EditRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Optional here so the handler can answer with a 400 instead of a 422
    image_data: Optional[str] = Field(None, alias="imageData")  # data URL or bare base64
    prompt: Optional[str] = None

class EditResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    edited_image: str = Field(..., alias="editedImage")
    message: Optional[str] = Field(None, alias="_message")

class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None

class ImagePart(BaseModel):
    mime_type: str
    data: str

class TextPart(BaseModel):
    text: str

class OtherPart(BaseModel):
    """Any part that carries neither image data nor text (function calls, empty text, ...)"""
    kind: str

ResponsePart = Union[ImagePart, TextPart, OtherPart]

class Candidate(BaseModel):
    parts: List[ResponsePart] = []
    finish_reason: Optional[str] = None

class ModelResponse(BaseModel):
    """Parsed reply of a Gemini generateContent call"""
    candidates: List[Candidate] = []
    block_reason: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "ModelResponse":
        """Build from the raw JSON body, accepting camelCase and snake_case keys"""
        candidates = []
        for candidate_data in payload.get("candidates") or []:
            content = candidate_data.get("content") or {}
            parts = [_parse_part(part_data) for part_data in content.get("parts") or []]

            candidates.append(Candidate(
                parts=parts,
                finish_reason=candidate_data.get("finishReason") or candidate_data.get("finish_reason")
            ))

        feedback = payload.get("promptFeedback") or payload.get("prompt_feedback") or {}
        block_reason = feedback.get("blockReason") or feedback.get("block_reason")

        return cls(candidates=candidates, block_reason=block_reason)

def _parse_part(part_data: Dict[str, Any]) -> ResponsePart:
    inline_data = part_data.get("inlineData") or part_data.get("inline_data")
    if inline_data:
        return ImagePart(
            mime_type=inline_data.get("mimeType") or inline_data.get("mime_type") or "image/png",
            data=inline_data.get("data") or ""
        )

    text = part_data.get("text")
    if isinstance(text, str) and text:
        return TextPart(text=text)

    return OtherPart(kind=next(iter(part_data), "unknown"))

class NormalizedResult(BaseModel):
    success: bool
    edited_image_data_url: str
    warning: Optional[str] = None
