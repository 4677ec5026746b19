"""Error types raised while editing an image with Gemini."""
from typing import Optional


class ImageEditError(Exception):
    """
    Base error for the image edit flow.

    Every subclass carries a human-readable message and, where available,
    a technical detail string. None of them are retried.
    """

    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class MissingParameterError(ImageEditError):
    status_code = 400

    def __init__(self):
        super().__init__("Missing required parameters")


class BlockedByProviderError(ImageEditError):
    """Gemini refused to generate output (safety filters)."""

    def __init__(self, reason: str):
        super().__init__(f"Generation failed: Model output was blocked. Reason: {reason}")
        self.reason = reason


class EmptyOutputError(ImageEditError):
    def __init__(self):
        super().__init__("Generation failed: Model output was empty.")


class EmptyCandidateError(ImageEditError):
    def __init__(self):
        super().__init__(
            "Generation failed: Candidate parts array is empty. "
            "The model may have generated text instead of an image."
        )


class TextInsteadOfImageError(ImageEditError):
    def __init__(self, excerpt: str):
        super().__init__(
            f'Model generated text instead of image: "{excerpt}...". Please adjust the prompt.'
        )
        self.excerpt = excerpt


class NoUsableOutputError(ImageEditError):
    def __init__(self):
        super().__init__(
            "No usable output (image or text) found in the model response. "
            "Try making the prompt simpler or shorter."
        )


class ProviderCallFailedError(ImageEditError):
    """Transport, timeout or API-level failure talking to Gemini."""

    def __init__(self, details: str):
        super().__init__("Gemini API call failed", details)
