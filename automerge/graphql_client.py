"""GitHub GraphQL API client with retry logic.

This module provides an asynchronous GraphQL client for the GitHub API with
exponential backoff retry handling for transient transport failures. Merge
semantics are not interpreted here; failures surface as
:class:`~automerge.errors.TransportError` for callers to classify.
"""

from __future__ import annotations

import asyncio
import json
import logging
import typing as typ

import httpx

from .errors import GraphQLResponseError, NotFoundError, TransportError

if typ.TYPE_CHECKING:
    import types

__all__ = ["GRAPHQL_ENDPOINT", "GraphQLClient", "JsonObject", "JsonValue"]

GRAPHQL_ENDPOINT = "https://api.github.com/graphql"
MERGE_INFO_PREVIEW_MEDIA_TYPE = "application/vnd.github.merge-info-preview+json"
DEFAULT_MEDIA_TYPE = "application/vnd.github+json"
NOT_FOUND_ERROR_TYPE = "NOT_FOUND"

# Type alias for JSON-compatible values (parsed from json.loads)
JsonValue: typ.TypeAlias = (
    "str | int | float | bool | None | list[JsonValue] | dict[str, JsonValue]"
)
JsonObject: typ.TypeAlias = "dict[str, JsonValue]"

logger = logging.getLogger(__name__)


class _RetryableResponseError(Exception):
    """Signal that an attempt failed in a way worth retrying."""


def _is_rate_limited(response: httpx.Response) -> bool:
    """Check if response indicates rate limiting."""
    if response.status_code not in (403, 429):
        return False
    if "retry-after" in response.headers:
        return True
    return response.headers.get("x-ratelimit-remaining") == "0"


def _check_response(response: httpx.Response) -> httpx.Response:
    """Raise for failing responses, flagging the ones worth retrying."""
    if _is_rate_limited(response):
        msg = f"GitHub API rate limited ({response.status_code}): {response.text}"
        raise _RetryableResponseError(msg)

    if 400 <= response.status_code < 500:
        msg = f"GitHub API error {response.status_code}: {response.text}"
        raise TransportError(msg, status_code=response.status_code)

    if response.status_code >= 500:
        msg = f"GitHub API error {response.status_code}: {response.text}"
        raise _RetryableResponseError(msg)

    return response


def _is_not_found(error: object) -> bool:
    """Return True for a GraphQL error reporting a missing resource."""
    return isinstance(error, dict) and error.get("type") == NOT_FOUND_ERROR_TYPE


def _parse_graphql_response(response: httpx.Response) -> JsonObject:
    """Parse and validate a GraphQL response, returning the data payload."""
    try:
        payload = response.json()
    except json.JSONDecodeError as exc:
        msg = f"GitHub API response was not valid JSON: {exc}"
        raise TransportError(msg, status_code=response.status_code) from exc

    if not isinstance(payload, dict):
        msg = "GitHub API response was not a JSON object."
        raise TransportError(msg, status_code=response.status_code)

    errors = payload.get("errors")
    if errors:
        errors = errors if isinstance(errors, list) else [errors]
        if all(_is_not_found(error) for error in errors):
            raise NotFoundError(errors, data=payload.get("data"))
        raise GraphQLResponseError(errors, data=payload.get("data"))

    data = payload.get("data")
    if data is None:
        msg = "GitHub API returned no data."
        raise TransportError(msg, status_code=response.status_code)
    if not isinstance(data, dict):
        msg = "GitHub API returned invalid data payload."
        raise TransportError(msg, status_code=response.status_code)
    return data


class GraphQLClient:
    """Execute GraphQL documents against the GitHub API.

    Parameters
    ----------
    token
        GitHub token used for bearer authentication.
    endpoint
        GraphQL endpoint URL.
    merge_info_preview
        When True, request the merge-info preview media type so that
        ``mergeStateStatus`` is available.
    max_retries
        Number of retries for connection errors, rate limits and 5xx
        responses.
    backoff_seconds
        Base delay; attempt ``n`` waits ``backoff_seconds * 2 ** n``.
    http_client
        Optional preconfigured :class:`httpx.AsyncClient`. The client is
        closed by :meth:`aclose` only when it was created here.
    """

    def __init__(
        self,
        token: str,
        *,
        endpoint: str = GRAPHQL_ENDPOINT,
        merge_info_preview: bool = False,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": (
                MERGE_INFO_PREVIEW_MEDIA_TYPE
                if merge_info_preview
                else DEFAULT_MEDIA_TYPE
            ),
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=30)

    async def __aenter__(self) -> typ.Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _attempt(self, query: str, variables: JsonObject) -> httpx.Response:
        try:
            response = await self._client.post(
                self._endpoint,
                json={"query": query, "variables": variables},
                headers=self._headers,
            )
        except httpx.TransportError as exc:
            msg = f"connection error: {exc}"
            raise _RetryableResponseError(msg) from exc
        return _check_response(response)

    async def execute(
        self, query: str, variables: JsonObject | None = None
    ) -> JsonObject:
        """Execute a GraphQL request with retry logic and return the data payload.

        Raises
        ------
        TransportError
            If the request fails permanently or retries are exhausted.
        NotFoundError
            If every GraphQL error reports a missing resource.
        GraphQLResponseError
            If the response carries any other GraphQL errors.
        """
        variables = variables or {}
        for attempt in range(self._max_retries + 1):
            try:
                response = await self._attempt(query, variables)
            except _RetryableResponseError as exc:
                if attempt >= self._max_retries:
                    msg = f"GitHub API request failed after retries: {exc}"
                    raise TransportError(msg) from exc
                delay = self._backoff_seconds * (2**attempt)
                logger.debug(
                    "GitHub API request failed (%s); retrying in %ss", exc, delay
                )
                await asyncio.sleep(delay)
                continue
            return _parse_graphql_response(response)

        # Unreachable: the final attempt either returns or raises
        raise AssertionError  # pragma: no cover
