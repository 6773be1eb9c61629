# text_intelligence/errors.py
"""Error taxonomy shared by the normalizer, the fetcher and the HTTP layer."""
from typing import Any, Dict

VALIDATION_ERROR = "validation_error"
PROCESSING_ERROR = "processing_error"

INVALID_TEXT = "INVALID_TEXT"
INVALID_URL = "INVALID_URL"
EMPTY_TEXT = "EMPTY_TEXT"
TEXT_TOO_LONG = "TEXT_TOO_LONG"
INVALID_REQUEST = "INVALID_REQUEST"
TEXT_PROCESSING_FAILED = "TEXT_PROCESSING_FAILED"
RATE_LIMITED = "RATE_LIMITED"


class ContractError(Exception):
    """A terminal failure rendered to the client as an error envelope."""

    def __init__(self, status_code: int, type: str, code: str, message: str,
                 details: Dict[str, Any] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.type = type
        self.code = code
        self.message = message
        self.details = details or {}

    @classmethod
    def validation(cls, code: str, message: str, **details) -> "ContractError":
        return cls(400, VALIDATION_ERROR, code, message, details)

    def envelope(self) -> Dict[str, Any]:
        return {
            "error": {
                "type": self.type,
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


# --- Analysis collaborator failures ---

class AnalysisError(Exception):
    """Base class for failures reported by the text analysis service."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidInputError(AnalysisError):
    """The service rejected the text or the options."""


class TextTooLongError(AnalysisError):
    """The text exceeds what the service accepts."""


class UpstreamError(AnalysisError):
    """The service failed, timed out or could not be reached."""


def from_analysis_error(err: AnalysisError) -> ContractError:
    """Maps a structured analysis failure onto the client-facing taxonomy."""
    details = {"upstream_status": err.status_code} if err.status_code else {}
    if isinstance(err, TextTooLongError):
        code = TEXT_TOO_LONG
    elif isinstance(err, InvalidInputError):
        code = INVALID_TEXT
    else:
        code = TEXT_PROCESSING_FAILED
    return ContractError(400, PROCESSING_ERROR, code, err.message or "Failed to process text", details)
