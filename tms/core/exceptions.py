"""
Application exception hierarchy.

Services raise these; ``create_app`` registers one error handler per
type so every blueprint gets the same status code for the same failure.

Usage:
    from tms.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Project", resource_id=42)
    raise ValidationError("name is required")
"""


class NotFoundError(Exception):
    """Raised when a requested row does not exist. Maps to HTTP 404.

    Args:
        resource: Human-readable model name (e.g. "Project", "Test case").
        resource_id: The key that was looked up. Logged, not returned.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class ValidationError(Exception):
    """Raised when input is well-formed JSON but missing or malformed fields.

    Maps to HTTP 400.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class IntegrationError(Exception):
    """Raised when a call to Rodik fails. Maps to HTTP 500.

    Args:
        message: What the gateway reported.
        status_code: Upstream HTTP status, None for network-level failures.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
