"""Usage ledger contracts."""

from typing import Protocol

from nutrition_resolver.domain.usage import UsageRecord, UsageSummary


class UsageRepository(Protocol):
    """Persistence interface for API usage accounting."""

    def append(self, record: UsageRecord) -> None:
        """Append a usage row."""

    def get_summary(self, user_id: str) -> UsageSummary | None:
        """Return the current-period usage summary for a caller."""

    def list_recent(self, limit: int) -> list[UsageRecord]:
        """Return the most recent usage rows."""
