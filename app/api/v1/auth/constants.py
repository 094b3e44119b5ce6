"""Constants for authentication routes."""

USERNAME_TAKEN_DETAIL = "Expert with this username already exists"
INVALID_CREDENTIALS_DETAIL = "Invalid username or password"
INACTIVE_EXPERT_DETAIL = "Expert account is deactivated"
INVALID_REFRESH_TOKEN_DETAIL = "Invalid refresh token"
EXPERT_UNAVAILABLE_DETAIL = "Expert not found or deactivated"
