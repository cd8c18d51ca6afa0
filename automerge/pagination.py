"""Lazy traversal of cursor-paginated GraphQL connections."""

from __future__ import annotations

import typing as typ

from .errors import NotFoundError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .graphql_client import JsonObject
    from .models import PageConnection

__all__ = ["MAX_PAGE_SIZE", "GraphQLExecutor", "iterate_connection"]

MAX_PAGE_SIZE = 100


class GraphQLExecutor(typ.Protocol):
    """Anything able to execute a GraphQL document and return its data."""

    async def execute(
        self, query: str, variables: JsonObject | None = None
    ) -> JsonObject:
        """Execute ``query`` with ``variables``."""
        ...


async def iterate_connection(
    client: GraphQLExecutor,
    query: str,
    variables: JsonObject,
    extract: cabc.Callable[[JsonObject], PageConnection | None],
    *,
    page_size: int = MAX_PAGE_SIZE,
) -> cabc.AsyncIterator[JsonObject]:
    """Yield the nodes of a paginated connection one at a time.

    Pages are fetched on demand: the next request is only issued once the
    consumer has drained the current page. The generator is single use; a new
    traversal needs a new call.

    Parameters
    ----------
    client
        GraphQL executor used for each page request.
    query
        GraphQL document accepting ``$pageSize`` and ``$endCursor``.
    variables
        Bind parameters shared by every page request.
    extract
        Maps a response to its :class:`~automerge.models.PageConnection`, or
        returns None when the queried resource no longer exists, which ends
        the traversal without error. A ``NOT_FOUND`` GraphQL error ends it
        the same way.
    page_size
        Number of nodes requested per page.

    Yields
    ------
    JsonObject
        Connection nodes in the remote connection's order.
    """
    cursor: str | None = None
    has_next_page = True

    while has_next_page:
        try:
            response = await client.execute(
                query, {**variables, "endCursor": cursor, "pageSize": page_size}
            )
        except NotFoundError:
            return
        connection = extract(response)
        if connection is None:
            return

        cursor = connection.page_info.end_cursor
        has_next_page = connection.page_info.has_next_page

        for node in connection.nodes:
            yield node
