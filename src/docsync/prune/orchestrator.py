from __future__ import annotations

import logging
from typing import Sequence

import httpx

from docsync.errors import APIError, DeletionFailed
from docsync.prune.diff import PruneCandidate
from docsync.remote.client import ApiContext, DocsClientProtocol

logger = logging.getLogger(__name__)


def dry_run_line(slug: str) -> str:
    return f"🎭 dry run! This will delete `{slug}`."


def deleted_line(slug: str) -> str:
    return f"🗑️  successfully deleted `{slug}`."


def already_deleted_line(slug: str) -> str:
    return f"🗑️  `{slug}` was already deleted."


def simulate_deletions(candidates: Sequence[PruneCandidate]) -> list[str]:
    return [dry_run_line(c.slug) for c in candidates]


def execute_deletions(
    client: DocsClientProtocol,
    ctx: ApiContext,
    candidates: Sequence[PruneCandidate],
) -> list[str]:
    """Delete candidates one at a time, in the order given.

    Stops at the first failure and raises DeletionFailed; deletes already
    issued stay deleted. A 404 counts as already deleted.
    """
    lines: list[str] = []
    done: list[str] = []
    for c in candidates:
        try:
            client.delete_doc(ctx, c.slug)
        except APIError as e:
            if e.status_code == 404:
                logger.warning("doc %s not found on delete, treating as already deleted", c.slug)
                lines.append(already_deleted_line(c.slug))
                done.append(c.slug)
                continue
            raise DeletionFailed(c.slug, e, deleted=done) from e
        except httpx.HTTPError as e:
            raise DeletionFailed(c.slug, e, deleted=done) from e
        logger.info("deleted %s", c.slug)
        lines.append(deleted_line(c.slug))
        done.append(c.slug)
    return lines
