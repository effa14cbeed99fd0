"""
Shared error types for core services.
"""


class ValidationIssue(ValueError):
    def __init__(
        self,
        message: str,
        field: str = "unknown",
        error_type: str = "invalid",
    ):
        super().__init__(message)
        self.field = field
        self.error_type = error_type


class NotFoundIssue(LookupError):
    """Raised when a period, template, collaboration or membership is absent."""

    def __init__(self, message: str, resource: str = "unknown", resource_id: str | None = None):
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class PermissionDeniedIssue(PermissionError):
    """Raised when the actor lacks rights for a write; checked before writing."""

    def __init__(self, message: str, reason: str = "forbidden"):
        super().__init__(message)
        self.reason = reason
