"""Domain models for API usage accounting."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class UsageStatus(StrEnum):
    """Outcome of a single resolution attempt."""

    CACHE_HIT = "cache_hit"
    SUCCESS = "success"
    AI_ERROR = "ai_error"
    QUOTA_EXCEEDED = "quota_exceeded"


@dataclass(frozen=True)
class UsageRecord:
    """Append-only usage row for an identified caller."""

    user_id: str
    ai_provider: str
    tokens_used: int
    cost_cents: int
    status: UsageStatus
    response_time_ms: int
    error_message: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class UsageSummary:
    """Aggregated usage for a caller in the current period."""

    user_id: str
    usage_quota: int
    current_usage: int
    total_requests: int = 0
    total_tokens: int = 0
    total_cost_cents: int = 0
    last_request: datetime | None = None

    @property
    def quota_exhausted(self) -> bool:
        """Whether the caller has reached the quota."""
        return self.current_usage >= self.usage_quota
