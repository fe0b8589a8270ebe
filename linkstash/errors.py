"""Error taxonomy for Linkstash."""

from typing import Any, Dict, Optional


class LinkstashError(Exception):
    """Base error carrying an HTTP-equivalent status and details."""

    status_code = 500

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Structured error body."""
        body: Dict[str, Any] = {"error": self.message}
        body.update(self.details)
        return body


class RequestValidationError(LinkstashError):
    """Missing or malformed caller input."""

    status_code = 400


class AuthorizationError(LinkstashError):
    """Missing or incorrect shared secret."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class NotFoundError(LinkstashError):
    status_code = 404

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class UpstreamError(LinkstashError):
    """Scrape service unreachable, failed, or returned a bad shape."""

    status_code = 502


class StorageError(LinkstashError):
    """Failure reported by the storage backend."""

    status_code = 500


class DuplicateLinkError(StorageError):
    """Insert collided with an existing normalized URL."""

    def __init__(self, normalized_url: str) -> None:
        super().__init__(
            "Link already exists for normalized URL",
            details={"normalized_url": normalized_url},
        )
        self.normalized_url = normalized_url


class IngestDeadlineError(LinkstashError):
    """Batch did not finish within its deadline."""

    status_code = 504
