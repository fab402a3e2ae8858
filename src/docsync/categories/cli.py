from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from docsync.config import configure_logging, load_settings
from docsync.errors import ConfigInvalid, DocsyncError
from docsync.remote.client import ApiContext, DocsClientProtocol, HttpDocsClient
from docsync.remote.tree import fetch_categories
from docsync.remote.versions import resolve_project_version

EXIT_OK = 0
EXIT_USAGE_OR_ERROR = 1
EXIT_INVALID = 2


def _print_json(obj) -> None:
    print(json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False))


def main(argv: list[str] | None = None, *, client: DocsClientProtocol | None = None) -> int:
    parser = argparse.ArgumentParser(prog="docsync-categories", description="List every category of a project version.")
    parser.add_argument("--key", default=None, help="Project API key (default: env DOCSYNC_API_KEY).")
    parser.add_argument("--version", default=None, help="Project version (default: env DOCSYNC_VERSION or the main version).")
    parser.add_argument("--base-url", default=None, help="API host (default: env DOCSYNC_BASE_URL).")
    parser.add_argument("--config", default=None, help="YAML config file (default: env DOCSYNC_CONFIG).")
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args(argv)
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
        _print_json(fetch_categories(remote, ctx))
        return EXIT_OK
    except ConfigInvalid as e:
        print(f"INVALID: {e}", file=sys.stderr)
        return EXIT_INVALID
    except DocsyncError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE_OR_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
