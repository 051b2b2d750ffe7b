"""
Exception types raised by the audit pipeline.

Routes translate these into HTTP error responses; services catch the
upstream-dependency ones and substitute fallbacks where a fallback exists.
"""


class ConfigurationError(RuntimeError):
    """A required setting (API key, endpoint) is missing."""


class InvalidAIResponseError(ValueError):
    """The model answered, but not with a JSON object we can use."""

    def __init__(self, message: str = "AI response is not valid JSON"):
        super().__init__(message)


class AIAnalysisError(RuntimeError):
    """Every model attempt failed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"AI analysis failed: {reason}")


class ScreenshotError(RuntimeError):
    """Browser navigation or capture failed."""


class ImageProcessingError(ValueError):
    """An uploaded image could not be decoded or re-encoded."""


class EmailDeliveryError(RuntimeError):
    """The transactional email API rejected or failed the send."""
