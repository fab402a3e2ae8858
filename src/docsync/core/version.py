from __future__ import annotations

from importlib import metadata

__version__ = "0.1.0"

DIST_NAME = "docsync"


def get_version() -> str:
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return __version__


def user_agent() -> str:
    return f"{DIST_NAME}/{get_version()}"
