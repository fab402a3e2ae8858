from __future__ import annotations

import enum
import sys
from dataclasses import dataclass, field
from typing import Callable, Protocol, Sequence, TextIO

from docsync.errors import PruneAborted
from docsync.prune.diff import PruneCandidate

ABORT_MESSAGE = "Aborting, no changes were made."

_YES = frozenset({"y", "yes"})


class PruneMode(str, enum.Enum):
    INTERACTIVE = "interactive"
    AUTO_CONFIRM = "auto-confirm"
    DRY_RUN = "dry-run"


class Confirmer(Protocol):
    def confirm(self, candidates: Sequence[PruneCandidate]) -> bool: ...


class AutoConfirmer:
    """Never prompts. Used for --confirm and --dry-run."""

    def confirm(self, candidates: Sequence[PruneCandidate]) -> bool:
        return True


@dataclass
class InteractiveConfirmer:
    folder: str
    version: str | None = None
    input_fn: Callable[[str], str] = input
    out: TextIO = field(default_factory=lambda: sys.stderr)

    def prompt_text(self, candidates: Sequence[PruneCandidate]) -> str:
        version = f"version {self.version}" if self.version else "the main version"
        lines = [
            f"This will delete {len(candidates)} doc(s) from your project ({version}) "
            f"that are not also in {self.folder}:"
        ]
        lines.extend(f"  - {c.slug}" for c in candidates)
        return "\n".join(lines)

    def confirm(self, candidates: Sequence[PruneCandidate]) -> bool:
        self.out.write(self.prompt_text(candidates) + "\n")
        self.out.flush()
        try:
            answer = self.input_fn("Are you sure? [y/N] ")
        except EOFError:
            return False
        return str(answer).strip().lower() in _YES


def confirmer_for_mode(
    mode: PruneMode,
    *,
    folder: str,
    version: str | None = None,
    input_fn: Callable[[str], str] = input,
) -> Confirmer:
    if mode is PruneMode.INTERACTIVE:
        return InteractiveConfirmer(folder=folder, version=version, input_fn=input_fn)
    return AutoConfirmer()


def require_confirmation(candidates: Sequence[PruneCandidate], confirmer: Confirmer) -> None:
    """Raise PruneAborted unless the confirmer accepts. Runs before any delete call."""
    if not confirmer.confirm(candidates):
        raise PruneAborted(ABORT_MESSAGE)
