"""AgentDesk exception hierarchy.

All exceptions inherit from AgentDeskError and carry a three-part structure:
message (what happened), detail (technical context), suggestion (what to do next).

Lookups that find nothing return None instead of raising; these exceptions cover
the faults callers must translate into a user-visible response.
"""


class AgentDeskError(Exception):
    """Base exception for all AgentDesk errors."""

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.detail:
            parts.append(f"Detail: {self.detail}")
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return " | ".join(parts)


class ValidationError(AgentDeskError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str = "Validation error",
        detail: str | None = None,
        suggestion: str | None = "Check input format and required fields",
    ) -> None:
        super().__init__(message, detail, suggestion)


class InvalidDateError(ValidationError):
    """Raised when a date-range bound is not a valid calendar date."""

    def __init__(
        self,
        message: str = "Invalid date",
        detail: str | None = None,
        suggestion: str | None = "Use ISO calendar dates, e.g. 2024-05-31",
    ) -> None:
        super().__init__(message, detail, suggestion)


class AuthenticationError(AgentDeskError):
    """Raised when credentials or an access token are rejected."""

    def __init__(
        self,
        message: str = "The provided credentials are incorrect.",
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message, detail, suggestion)


class AccessDeniedError(AgentDeskError):
    """Raised when an authenticated user may not use the requested entry point."""

    def __init__(
        self,
        message: str = "User cannot access. Contact system administrator.",
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message, detail, suggestion)
