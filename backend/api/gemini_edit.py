from fastapi import APIRouter
from typing import Optional
from fastapi.responses import JSONResponse

from core.errors import ImageEditError
from models.gemini_edit import EditRequest, EditResponse, ErrorResponse
from services.gemini_service import GeminiService

router = APIRouter(prefix="/gemini/edit", tags=["gemini-edit"])

def get_gemini_service():
    return GeminiService()

def error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))

@router.post(
    "",
    response_model=EditResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def edit_image(edit_request: EditRequest):
    """Apply a text instruction to an image with Gemini and return the edited image as a data URL"""
    try:
        gemini_service = get_gemini_service()
        result = await gemini_service.edit_image(edit_request)

        return EditResponse(
            success=True,
            edited_image=result.edited_image_data_url,
            message=result.warning
        )

    except ImageEditError as e:
        if e.status_code < 500:
            return error_response(e.status_code, e.message)

        details = f"{e.message}: {e.details}" if e.details else e.message
        print(f"❌ Gemini API error: {details}")
        return error_response(e.status_code, "Failed to process image with Gemini", details)

    except Exception as e:
        print(f"❌ Unexpected error while editing image: {str(e)}")
        return error_response(500, "Failed to process image with Gemini", str(e) or "Failed to process image")

@router.get("/health")
async def check_gemini_config():
    """Check if Gemini is properly configured"""
    gemini_service = get_gemini_service()
    has_key = bool(gemini_service.api_key)

    return {
        "configured": has_key,
        "model": gemini_service.model,
        "message": "Gemini API key configured" if has_key else "Gemini API key not set"
    }
