"""SparkQuote error handling.

Custom exceptions and error codes for the clarification/estimation protocol.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors (1xxx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FIELD = "INVALID_FIELD"
    UNANSWERED_QUESTION = "UNANSWERED_QUESTION"

    # Session Errors (2xxx)
    SESSION_INVALID_STATE = "SESSION_INVALID_STATE"

    # Upstream Format Errors (3xxx)
    UPSTREAM_FORMAT_ERROR = "UPSTREAM_FORMAT_ERROR"

    # Upstream Transport Errors (4xxx)
    LLM_ERROR = "LLM_ERROR"
    LLM_RATE_LIMIT = "LLM_RATE_LIMIT"
    LLM_CONTEXT_TOO_LONG = "LLM_CONTEXT_TOO_LONG"

    # Internal Errors (5xxx)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class SparkQuoteError(Exception):
    """Base exception for SparkQuote errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize SparkQuoteError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def to_response(self) -> Dict[str, Any]:
        """Convert error to the public API error payload.

        Details stay internal; callers only see the code and message.
        """
        return {"error": self.message, "code": self.code}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(SparkQuoteError):
    """Caller-supplied input violates a precondition."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: str = ErrorCode.VALIDATION_ERROR,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )
        self.field = field

    def to_response(self) -> Dict[str, Any]:
        response = super().to_response()
        if self.field:
            response["field"] = self.field
        return response


class SessionStateError(SparkQuoteError):
    """A session operation was attempted in the wrong state."""

    def __init__(self, message: str, state: str):
        super().__init__(
            code=ErrorCode.SESSION_INVALID_STATE,
            message=message,
            details={"state": state}
        )
        self.state = state


class UpstreamError(SparkQuoteError):
    """Base class for failures of the text-generation service."""

    public_message = "AI estimation failed. Please try again later."

    def __init__(self, code: str, reason: str, details: Optional[Dict] = None):
        super().__init__(
            code=code,
            message=self.public_message,
            details={**(details or {}), "reason": reason}
        )
        self.reason = reason


class UpstreamFormatError(UpstreamError):
    """The service responded but the payload failed schema validation."""

    public_message = "The AI returned an unexpected response. Please try again."

    def __init__(self, reason: str, raw_content: Optional[str] = None):
        details = {"raw_content": raw_content[:500]} if raw_content else None
        super().__init__(
            code=ErrorCode.UPSTREAM_FORMAT_ERROR,
            reason=reason,
            details=details
        )


class UpstreamTransportError(UpstreamError):
    """The call to the service itself failed (network, timeout, status)."""

    def __init__(
        self,
        reason: str,
        code: str = ErrorCode.LLM_ERROR,
        details: Optional[Dict] = None
    ):
        super().__init__(code=code, reason=reason, details=details)
