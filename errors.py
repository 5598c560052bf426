"""Exceptions raised by the model gateway and the session controller."""


class GatewayError(Exception):
    """Base class for failures detected by the model gateway itself."""
    pass


class NoCandidateError(GatewayError):
    """Raised when the model response contains no candidate at all."""
    pass


class NoImageError(GatewayError):
    """Raised when a candidate was returned but none of its parts carries image data."""

    def __init__(self, message: str = "Model response did not contain an image.", model_text: str = ""):
        if model_text:
            message = f"{message} Model said: {model_text}"
        super().__init__(message)
        self.model_text = model_text


class MalformedInputError(GatewayError, ValueError):
    """Raised when a source image is not a well-formed image data URI."""
    pass


class MissingApiKeyError(GatewayError):
    """Raised when no API key is configured and no client was supplied."""
    pass


class EmptyPromptError(ValueError):
    """Raised when a prompt or edit instruction is blank after trimming."""
    pass


class SubmissionInFlightError(RuntimeError):
    """Raised when a submission arrives while another one is still outstanding."""
    pass
