from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Iterable

import yaml

from docsync.errors import ConfigInvalid

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".markdown", ".md")
IGNORED_DIRS = frozenset({".git"})

_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)


def read_front_matter(path: Path) -> dict[str, Any]:
    """Return the YAML front matter of a file, or {} when it has none."""
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ConfigInvalid(f"{path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise ConfigInvalid(f"cannot read {path}: {e}") from e
    m = _FRONT_MATTER_RE.match(text)
    if not m:
        return {}
    try:
        data = yaml.safe_load(m.group(1))
    except yaml.YAMLError as e:
        raise ConfigInvalid(f"invalid front matter in {path}: {e}") from e
    return data if isinstance(data, dict) else {}


def slug_for_file(path: Path) -> str:
    declared = read_front_matter(path).get("slug")
    if declared is not None and str(declared).strip():
        return str(declared).strip()
    return path.stem.lower()


def _raise_unreadable(err: OSError) -> None:
    raise ConfigInvalid(f"cannot read directory {err.filename}: {err.strerror or err}") from err


def iter_content_files(root: Path, *, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> list[Path]:
    """Every supported file under `root`; an unreadable directory is an error, never skipped."""
    exts = {e.lower() for e in extensions}
    out: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_unreadable):
        dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
        for name in sorted(filenames):
            p = Path(dirpath) / name
            if p.suffix.lower() in exts and p.is_file():
                out.append(p)
    return sorted(out)


def build_local_index(root: Path, *, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> frozenset[str]:
    """Slugs of every supported content file under `root`."""
    root = Path(root)
    if not root.exists():
        raise ConfigInvalid(f"no such file or directory: {root}")
    if not root.is_dir():
        raise ConfigInvalid(f"not a directory: {root}")

    files = iter_content_files(root, extensions=extensions)
    logger.debug("number of files: %d", len(files))
    slugs = frozenset(slug_for_file(p) for p in files)
    logger.info("local index: files=%d slugs=%d root=%s", len(files), len(slugs), root)
    return slugs
