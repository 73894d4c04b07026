"""Execution helper for Supabase queries."""

from typing import Protocol

import httpx
from postgrest.exceptions import APIError

from nutrition_resolver.errors import StorageError


class _Executable(Protocol):
    def execute(self) -> object: ...


def execute(query: _Executable, action: str) -> list[dict[str, object]]:
    """Run a query and return its rows, mapping client failures to StorageError."""
    try:
        response = query.execute()
    except (APIError, httpx.HTTPError) as exc:
        raise StorageError(f"Supabase {action} failed: {exc}") from exc
    return getattr(response, "data", None) or []
