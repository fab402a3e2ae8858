from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from docsync.config import configure_logging, load_settings
from docsync.errors import CategoryExists, ConfigInvalid, DocsyncError
from docsync.remote.client import ApiContext, DocsClientProtocol, HttpDocsClient
from docsync.remote.tree import fetch_categories
from docsync.remote.versions import resolve_project_version

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE_OR_ERROR = 1
EXIT_INVALID = 2

CATEGORY_TYPES = ("guide", "reference")


def find_duplicate(categories: list[dict[str, Any]], *, title: str, kind: str) -> dict[str, Any] | None:
    """First category whose title matches case-insensitively and whose type matches exactly."""
    wanted = title.strip().lower()
    for c in categories:
        if str(c.get("title", "")).strip().lower() == wanted and c.get("type") == kind:
            return c
    return None


def create_category(
    client: DocsClientProtocol,
    ctx: ApiContext,
    *,
    title: str,
    kind: str,
    prevent_duplicates: bool = False,
) -> str:
    if kind not in CATEGORY_TYPES:
        raise ConfigInvalid(f"category type must be one of: {', '.join(CATEGORY_TYPES)} (got {kind!r})")
    if not title.strip():
        raise ConfigInvalid("category title must not be empty")

    if prevent_duplicates:
        existing = find_duplicate(fetch_categories(client, ctx), title=title, kind=kind)
        if existing is not None:
            raise CategoryExists(
                f"The '{existing.get('title')}' category with a type of '{existing.get('type')}' "
                f"already exists with an id of '{existing.get('id')}'. A new category was not created."
            )

    created = client.create_category(ctx, title=title, kind=kind)
    logger.info("created category slug=%s id=%s", created.get("slug"), created.get("id"))
    return (
        f"🌱 successfully created '{created.get('title')}' with a type of '{created.get('type')}' "
        f"and an id of '{created.get('id')}'"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docsync-categories-create", description="Create a category in a project version.")
    parser.add_argument("title", help="Title of the category.")
    parser.add_argument("--categoryType", "--category-type", dest="category_type", required=True, choices=CATEGORY_TYPES)
    parser.add_argument(
        "--preventDuplicates",
        "--prevent-duplicates",
        dest="prevent_duplicates",
        action="store_true",
        help="Fail instead of creating when a category with the same title and type exists.",
    )
    parser.add_argument("--key", default=None, help="Project API key (default: env DOCSYNC_API_KEY).")
    parser.add_argument("--version", default=None, help="Project version (default: env DOCSYNC_VERSION or the main version).")
    parser.add_argument("--base-url", default=None, help="API host (default: env DOCSYNC_BASE_URL).")
    parser.add_argument("--config", default=None, help="YAML config file (default: env DOCSYNC_CONFIG).")
    parser.add_argument("--log-level", default=None)
    return parser


def main(argv: list[str] | None = None, *, client: DocsClientProtocol | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        settings = load_settings(
            key=args.key,
            version=args.version,
            base_url=args.base_url,
            config_path=Path(args.config) if args.config else None,
        )
        remote = client or HttpDocsClient()
        ctx = resolve_project_version(remote, ApiContext.from_settings(settings))
        print(
            create_category(
                remote,
                ctx,
                title=args.title,
                kind=args.category_type,
                prevent_duplicates=args.prevent_duplicates,
            )
        )
        return EXIT_OK
    except ConfigInvalid as e:
        print(f"INVALID: {e}", file=sys.stderr)
        return EXIT_INVALID
    except DocsyncError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE_OR_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
