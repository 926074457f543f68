"""Exceptions and the user-facing classification of generation failures."""


class StylistError(Exception):
    """Base class for every error raised by the stylist."""


class ValidationError(StylistError):
    """Required input is missing or malformed."""


class ImageProcessingError(StylistError):
    """An uploaded image could not be decoded, resized or encoded."""


class NoImageInResponseError(StylistError):
    def __init__(self, message: str = "No image was found in the AI response."):
        super().__init__(message)


class GenerationError(StylistError):
    """A generation call failed; the message is safe to show to the user."""


DEFAULT_ERROR_MESSAGE = "Could not generate the image. Please try again."

AUTH_ERROR_MESSAGE = (
    "Authentication error: the configured API key is not valid. "
    "Please check your API key."
)
QUOTA_ERROR_MESSAGE = (
    "API usage limit exceeded (Error 429). Please check your plan and billing "
    "details, or try again later."
)
BAD_REQUEST_ERROR_MESSAGE = (
    "Invalid request (Error 400). The image format or content may not be "
    "supported. Please check the input images and try again."
)
SERVER_ERROR_MESSAGE = (
    "The AI server returned an error (Error 50x). The service may be down or "
    "overloaded. Please try again in a few minutes."
)
TIMEOUT_ERROR_MESSAGE = (
    "The request timed out. Please check your network connection and try again."
)

# Checked in order; the first rule with a matching needle wins.
_ERROR_RULES = (
    (("API key not valid", "API_KEY_INVALID"), AUTH_ERROR_MESSAGE),
    (("429", "RESOURCE_EXHAUSTED", "quota"), QUOTA_ERROR_MESSAGE),
    (("400",), BAD_REQUEST_ERROR_MESSAGE),
    (("500", "503"), SERVER_ERROR_MESSAGE),
    (("deadline",), TIMEOUT_ERROR_MESSAGE),
)


def classify_error(error: BaseException) -> str:
    """Map an exception raised during generation to a user-facing message."""
    error_string = f"{type(error).__name__}: {error}"
    for needles, message in _ERROR_RULES:
        if any(needle in error_string for needle in needles):
            return message
    if isinstance(error, Exception) and str(error):
        return f"An error occurred: {error}"
    return DEFAULT_ERROR_MESSAGE
