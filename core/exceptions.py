"""
Error taxonomy for upload parsing, sessions and the text backends.

Each exception carries the HTTP status it is reported with; the handlers in
``main.py`` turn them into ``{"error": message}`` responses.
"""


class ChatPDFError(Exception):
    """Base class for every error the API reports on purpose."""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ChatPDFError):
    """A required field is missing or invalid (no file part, no message text)."""

    status_code = 400


class MalformedBody(ChatPDFError):
    status_code = 400

    def __init__(self, message: str = "Invalid multipart form data"):
        super().__init__(message)


class MissingBoundary(ChatPDFError):
    status_code = 400

    def __init__(self, message: str = "No boundary found in content-type"):
        super().__init__(message)


class ExtractionError(ChatPDFError):
    """The document has no usable text or the extractor failed."""

    status_code = 400


class SessionNotFound(ChatPDFError):
    status_code = 404

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__("Chat session not found")


class GenerationError(ChatPDFError):
    """The text generation backend failed or timed out."""

    status_code = 500
