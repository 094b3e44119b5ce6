"""Reusable API dependencies shared across v1 routes."""

from app.api.v1.dependencies.expert_access import (
    ensure_expert_access,
    get_expert_profile,
    get_expert_topic,
)
from app.api.v1.dependencies.research import SearchClientDep, SourceValidatorDep
from app.api.v1.dependencies.service_errors import raise_service_error

__all__ = [
    "SearchClientDep",
    "SourceValidatorDep",
    "ensure_expert_access",
    "get_expert_profile",
    "get_expert_topic",
    "raise_service_error",
]
