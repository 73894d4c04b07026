"""HTTP helpers shared by httpx-backed provider clients."""

import math

import httpx

from nutrition_resolver.errors import ProviderHttpError, ProviderParseError


async def post_json(  # noqa: PLR0913
    http_client: httpx.AsyncClient,
    *,
    provider: str,
    url: str,
    headers: dict[str, str],
    payload: dict[str, object],
    timeout: float,
) -> dict[str, object]:
    """POST a JSON payload and return the decoded JSON envelope."""
    try:
        response = await http_client.post(
            url, headers=headers, json=payload, timeout=timeout
        )
    except httpx.HTTPError as exc:
        raise ProviderHttpError(f"{provider} request failed: {exc}") from exc
    if response.is_error:
        raise ProviderHttpError(
            f"{provider} API error: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )
    try:
        envelope = response.json()
    except ValueError as exc:
        raise ProviderParseError(f"{provider} returned a non-JSON body") from exc
    if not isinstance(envelope, dict):
        raise ProviderParseError(f"{provider} returned an unexpected envelope")
    return envelope


def token_count(*values: object) -> int:
    """Sum reported token counts, ignoring missing or non-numeric values."""
    total = 0
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int | float):
            continue
        if math.isfinite(value) and value > 0:
            total += int(value)
    return total
