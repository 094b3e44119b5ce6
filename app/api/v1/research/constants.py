"""Constants for research routes."""

DEFAULT_HISTORY_LIMIT = 10
MAX_HISTORY_LIMIT = 50
HISTORY_PREVIEW_CHARS = 200
HISTORY_PREVIEW_SOURCES = 3

LOW_HIT_RATE_PERCENT = 30
HIGH_HIT_RATE_PERCENT = 70
LOW_AVERAGE_QUALITY = 70
BUSY_EXPERT_ENTRIES = 50
