"""
SnipBin Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions, one per failure class of the
       retrieval and creation pipeline.
How:   Each exception carries a message, an optional context dict and the
       HTTP status it maps to. The error handlers registered in
       `snipbin.api.error_handlers` read `status_code` and hand the error to
       the sink of the request's output surface (JSON, HTML or plain text).
Who:   Raised by services and routes; caught by the global handlers.

Exception Hierarchy:
    SnipBinError (base)               → 500
    ├── BadIdentifierError            → 400 (wrong length, not reserved)
    ├── ValidationFailedError         → 400 (request field violations)
    ├── NotFoundError                 → 404 (no document for the id)
    ├── DecodeFailedError             → 500 (unparsable or oversized body)
    ├── RenderFailedError             → 500 (template, highlighter, markdown)
    ├── RateLimitExceededError        → 429
    └── InternalError                 → 500 (anything unclassified)
        └── DatabaseError             → 500 (storage failure other than absence)
"""

from typing import Any, Dict, Optional

ERR_TOO_MANY_PARTS = "ratelimiter string invalid: too many parts"


class SnipBinError(Exception):
    """
    Base exception for all SnipBin application errors.

    Attributes:
        message:  User-facing error description (safe to return in a response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BadIdentifierError(SnipBinError):
    """
    Raised when a document identifier is malformed.

    When:  The id is not exactly the configured length and is not a reserved id.
    HTTP:  400 Bad Request
    """

    status_code = 400

    def __init__(self, document_id: str, expected_length: int):
        super().__init__(
            message=f"id is of length {len(document_id)}, should be {expected_length}",
            context={"document_id": document_id, "expected_length": expected_length},
        )
        self.document_id = document_id


class ValidationFailedError(SnipBinError):
    """
    Raised when a decoded request body violates its field rules.

    Every violated field is reported at once; `errors` maps field name to the
    rule message and the exception message joins them as
    `"content: cannot be blank; password: ..."`.
    HTTP:  400 Bad Request
    """

    status_code = 400

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        message = "; ".join(f"{field}: {msg}" for field, msg in sorted(self.errors.items()))
        super().__init__(message=f"{message}.", context={"fields": sorted(self.errors)})


class NotFoundError(SnipBinError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; the document store converts
    that into this exception so the handlers can answer 404.
    HTTP:  404 Not Found
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource_id = resource_id


class DecodeFailedError(SnipBinError):
    """
    Raised when a request body cannot be decoded.

    When:  Malformed JSON, JSON values that are not strings, broken multipart
           payloads, bodies larger than the configured buffer limit.
    HTTP:  500 Internal Server Error
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Could not decode request body",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RenderFailedError(SnipBinError):
    """
    Raised when a page cannot be produced.

    When:  Template lookup or rendering fails, the highlighter or the
           Markdown renderer raises.
    HTTP:  500 Internal Server Error
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Could not render the requested page",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(SnipBinError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:  429 Too Many Requests (with Retry-After)
    """

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class InternalError(SnipBinError):
    """Any failure that has no more specific class. HTTP 500."""

    status_code = 500


class DatabaseError(InternalError):
    """
    Raised when database operations fail unexpectedly.

    When:  Connection lost mid-query, timeouts, exhausted insert retries.
    HTTP:  500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. Details
        (statement, driver error) go to the server log through `context`.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
