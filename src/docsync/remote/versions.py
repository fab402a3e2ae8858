from __future__ import annotations

import logging

import httpx

from docsync.errors import APIError, RemoteFetchError
from docsync.remote.client import ApiContext, DocsClientProtocol

logger = logging.getLogger(__name__)


def resolve_project_version(client: DocsClientProtocol, ctx: ApiContext) -> ApiContext:
    """Validate an explicit version against the remote store.

    Without an explicit version the context is returned unchanged and the
    store's main version applies.
    """
    if not ctx.version:
        logger.debug("no version selected, using the main project version")
        return ctx
    try:
        doc = client.get_version(ctx, ctx.version)
    except (APIError, httpx.HTTPError) as e:
        raise RemoteFetchError(f"failed to look up version `{ctx.version}`: {e}") from e
    resolved = str(doc.get("version") or ctx.version)
    logger.debug("selected version: %s", resolved)
    return ctx.with_version(resolved)
