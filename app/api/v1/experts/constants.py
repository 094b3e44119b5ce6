"""Constants for expert and profile routes."""

PROFILE_EXISTS_DETAIL = "Expert profile already exists"
