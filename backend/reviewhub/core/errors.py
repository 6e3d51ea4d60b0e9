"""Error taxonomy shared by the survey flow and the auto-reply engine.

Each error carries the HTTP status the API layer answers with; the handlers
in ``reviewhub.main`` turn them into JSON bodies.
"""
from typing import Dict, Optional


class ReviewHubError(Exception):
    status_code = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "retryable": self.retryable}


class ValidationError(ReviewHubError):
    """Missing or malformed answers. The respondent corrects and resubmits."""
    status_code = 422
    retryable = True

    def __init__(self, errors: Dict[str, str], message: str = "Please answer all required questions"):
        super().__init__(message)
        self.errors = errors

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class NotFoundError(ReviewHubError):
    """Survey, store or review missing (or survey inactive)."""
    status_code = 404


class PersistenceError(ReviewHubError):
    """A write failed. Safe to resubmit."""
    status_code = 503
    retryable = True


class ConfigurationMissing(ReviewHubError):
    """No AI settings stored for the user/store; batch runs abort."""
    status_code = 404


class ExternalServiceError(ReviewHubError):
    """Reply generation provider failed or timed out."""
    status_code = 502
    retryable = True

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class DispatchError(ReviewHubError):
    """A single navigation attempt failed. Never escapes the dispatcher."""
