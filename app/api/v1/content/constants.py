"""Constants for content routes."""

CONTENT_IDEA_NOT_FOUND_DETAIL = "Content idea not found"
SCHEDULED_CONTENT_NOT_FOUND_DETAIL = "Scheduled content not found"
