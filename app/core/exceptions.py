"""Custom exception classes for the application."""

from typing import Any


class ExpertPlannerError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Authentication Errors
class AuthenticationError(ExpertPlannerError):
    """Authentication failed."""

    pass


class InvalidCredentialsError(AuthenticationError):
    """Invalid username or password."""

    def __init__(self) -> None:
        super().__init__("Invalid username or password")


class InvalidTokenError(AuthenticationError):
    """Invalid or expired token."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class ExpertNotFoundError(AuthenticationError):
    """Expert not found."""

    def __init__(self, expert_id: int | None = None) -> None:
        message = f"Expert not found: {expert_id}" if expert_id else "Expert not found"
        super().__init__(message)


class ExpertAlreadyExistsError(ExpertPlannerError):
    """Expert with this username already exists."""

    def __init__(self, username: str) -> None:
        super().__init__(f"Expert with username {username} already exists")


# Data Errors
class ProfileNotFoundError(ExpertPlannerError):
    """Expert profile not configured."""

    def __init__(self, expert_id: int) -> None:
        super().__init__(f"Profile not found for expert: {expert_id}")


class TopicNotFoundError(ExpertPlannerError):
    """Topic not found."""

    def __init__(self, topic_id: int) -> None:
        super().__init__(f"Topic not found: {topic_id}")


class ContentIdeaNotFoundError(ExpertPlannerError):
    """Content idea not found."""

    def __init__(self, idea_id: int) -> None:
        super().__init__(f"Content idea not found: {idea_id}")


# External API Errors
class ExternalAPIError(ExpertPlannerError):
    """Error calling external API."""

    def __init__(self, api_name: str, message: str) -> None:
        self.api_name = api_name
        super().__init__(f"{api_name} API error: {message}")


class RateLimitExceededError(ExternalAPIError):
    """Rate limit exceeded for external API."""

    def __init__(self, api_name: str) -> None:
        super().__init__(api_name, "Rate limit exceeded")


class APIKeyMissingError(ExternalAPIError):
    """API key not configured."""

    def __init__(self, api_name: str) -> None:
        super().__init__(api_name, "API key not configured")


# Generation Errors
class GenerationError(ExpertPlannerError):
    """Content generation failed."""

    pass


class FallbackExhaustedError(GenerationError):
    """Both primary and fallback generation paths failed."""

    def __init__(self, operation_type: str, primary_error: str, fallback_error: str) -> None:
        super().__init__(
            f"All generation methods failed for {operation_type}. "
            f"Primary: {primary_error}, Fallback: {fallback_error}",
            details={
                "operation_type": operation_type,
                "primary_error": primary_error,
                "fallback_error": fallback_error,
            },
        )


class BudgetExceededError(ExpertPlannerError):
    """Request rejected by the cost optimizer."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Request not approved: {reason}", details={"reason": reason})


# Validation Errors
class ValidationError(ExpertPlannerError):
    """Data validation failed."""

    pass
