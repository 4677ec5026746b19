"""
Shared pytest fixtures and configuration for all tests
"""
import pytest
import sys
from pathlib import Path

# Add backend to Python path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# 150 characters of the base64 alphabet
SAMPLE_BASE64 = ("iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg" * 2)[:150]

@pytest.fixture
def sample_base64():
    """Provide a base64 payload long enough to pass the plausibility check"""
    return SAMPLE_BASE64

@pytest.fixture
def png_data_url(sample_base64):
    return f"data:image/png;base64,{sample_base64}"

@pytest.fixture
def jpeg_data_url(sample_base64):
    return f"data:image/jpeg;base64,{sample_base64}"

@pytest.fixture
def gemini_image_reply(sample_base64):
    """Raw Gemini reply carrying a proper image part"""
    return {
        "candidates": [{
            "content": {
                "parts": [
                    {"inlineData": {"mimeType": "image/png", "data": sample_base64}}
                ]
            },
            "finishReason": "STOP"
        }]
    }

@pytest.fixture
def gemini_text_reply():
    """Raw Gemini reply carrying only prose"""
    return {
        "candidates": [{
            "content": {
                "parts": [
                    {"text": "I can't edit images, but here is a description instead."}
                ]
            },
            "finishReason": "STOP"
        }]
    }
