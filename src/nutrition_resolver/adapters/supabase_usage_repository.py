"""Supabase repository for API usage accounting."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from nutrition_resolver.adapters.supabase_queries import execute
from nutrition_resolver.domain.usage import UsageRecord, UsageStatus, UsageSummary
from nutrition_resolver.services.usage import UsageRepository

_REQUEST_TYPE = "nutrition"


@dataclass
class SupabaseUsageRepository(UsageRepository):
    """Supabase implementation of the usage ledger."""

    client: Client
    default_usage_quota: int = 1000

    def append(self, record: UsageRecord) -> None:
        """Insert a usage row."""
        execute(
            self.client.table("api_usage").insert(
                {
                    "user_id": record.user_id,
                    "ai_provider": record.ai_provider,
                    "tokens_used": record.tokens_used,
                    "cost_cents": record.cost_cents,
                    "request_type": _REQUEST_TYPE,
                    "status": record.status.value,
                    "error_message": record.error_message,
                    "response_time_ms": record.response_time_ms,
                }
            ),
            "usage insert",
        )

    def get_summary(self, user_id: str) -> UsageSummary | None:
        """Return the caller's row from the usage summary view."""
        rows = execute(
            self.client.table("user_usage_summary")
            .select("*")
            .eq("user_id", user_id)
            .limit(1),
            "usage summary",
        )
        if not rows:
            return None
        row = rows[0]
        quota = row.get("usage_quota")
        return UsageSummary(
            user_id=user_id,
            usage_quota=self.default_usage_quota if quota is None else int(quota),
            current_usage=int(row.get("current_usage") or 0),
            total_requests=int(row.get("total_requests") or 0),
            total_tokens=int(row.get("total_tokens") or 0),
            total_cost_cents=int(row.get("total_cost_cents") or 0),
            last_request=_parse_datetime(row.get("last_request")),
        )

    def list_recent(self, limit: int) -> list[UsageRecord]:
        """Return the most recent usage rows."""
        rows = execute(
            self.client.table("api_usage")
            .select(
                "user_id, ai_provider, tokens_used, cost_cents, status, "
                "error_message, response_time_ms, created_at"
            )
            .order("created_at", desc=True)
            .limit(limit),
            "usage listing",
        )
        return [
            UsageRecord(
                user_id=str(row.get("user_id", "")),
                ai_provider=str(row.get("ai_provider", "")),
                tokens_used=int(row.get("tokens_used") or 0),
                cost_cents=int(row.get("cost_cents") or 0),
                status=UsageStatus(row.get("status")),
                response_time_ms=int(row.get("response_time_ms") or 0),
                error_message=row.get("error_message"),
                created_at=_parse_datetime(row.get("created_at")),
            )
            for row in rows
        ]


def _parse_datetime(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None
