from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable

from docsync.config import configure_logging, load_settings
from docsync.core.version import get_version
from docsync.errors import ConfigInvalid, DeletionFailed, DocsyncError, PruneAborted
from docsync.prune.engine import prune_docs
from docsync.prune.gate import PruneMode, confirmer_for_mode
from docsync.remote.client import ApiContext, DocsClientProtocol, HttpDocsClient

EXIT_OK = 0
EXIT_USAGE_OR_ERROR = 1
EXIT_INVALID = 2


def _mode(args: argparse.Namespace) -> PruneMode:
    if args.dry_run:
        return PruneMode.DRY_RUN
    if args.confirm:
        return PruneMode.AUTO_CONFIRM
    return PruneMode.INTERACTIVE


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="docsync-prune",
        description="Delete remote docs that no longer have a matching file in FOLDER.",
    )
    p.add_argument("folder", help="Local folder of Markdown files (searched recursively).")
    p.add_argument("--key", default=None, help="Project API key (default: env DOCSYNC_API_KEY).")
    p.add_argument("--version", default=None, help="Project version (default: env DOCSYNC_VERSION or the main version).")
    p.add_argument("--confirm", action="store_true", help="Skip the confirmation prompt.")
    p.add_argument(
        "--dry-run",
        "--dryRun",
        dest="dry_run",
        action="store_true",
        help="Report what would be deleted without deleting anything.",
    )
    p.add_argument(
        "--category-type",
        dest="kinds",
        action="append",
        default=None,
        help="Only prune docs in categories of this type (repeatable, e.g. guide).",
    )
    p.add_argument("--base-url", default=None, help="API host (default: env DOCSYNC_BASE_URL).")
    p.add_argument("--config", default=None, help="YAML config file (default: env DOCSYNC_CONFIG).")
    p.add_argument("--log-level", default=None, help="Logging level (default: env DOCSYNC_LOG_LEVEL or WARNING).")
    p.add_argument("-V", "--version-info", action="version", version=f"%(prog)s {get_version()}")
    return p


def main(
    argv: list[str] | None = None,
    *,
    client: DocsClientProtocol | None = None,
    input_fn: Callable[[str], str] = input,
) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        settings = load_settings(
            key=args.key,
            version=args.version,
            base_url=args.base_url,
            config_path=Path(args.config) if args.config else None,
        )
        ctx = ApiContext.from_settings(settings)
        mode = _mode(args)
        outcome = prune_docs(
            client or HttpDocsClient(),
            ctx,
            Path(args.folder),
            mode=mode,
            confirmer=confirmer_for_mode(mode, folder=args.folder, version=ctx.version, input_fn=input_fn),
            kinds=args.kinds,
        )
        print(outcome.report)
        return EXIT_OK
    except ConfigInvalid as e:
        print(f"INVALID: {e}", file=sys.stderr)
        return EXIT_INVALID
    except PruneAborted as e:
        print(str(e), file=sys.stderr)
        return EXIT_USAGE_OR_ERROR
    except DeletionFailed as e:
        if e.deleted:
            print("deleted before the failure: " + ", ".join(f"`{s}`" for s in e.deleted), file=sys.stderr)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE_OR_ERROR
    except DocsyncError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE_OR_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
