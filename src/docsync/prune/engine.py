from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from docsync.errors import ConfigInvalid, DocsyncError, PruneAborted
from docsync.local.index import DEFAULT_EXTENSIONS, build_local_index
from docsync.prune.diff import PruneCandidate, compute_prune_candidates
from docsync.prune.gate import Confirmer, PruneMode, confirmer_for_mode, require_confirmation
from docsync.prune.orchestrator import execute_deletions, simulate_deletions
from docsync.remote.client import ApiContext, DocsClientProtocol
from docsync.remote.tree import RemoteTree, fetch_remote_tree
from docsync.remote.versions import resolve_project_version

logger = logging.getLogger(__name__)

NOTHING_TO_PRUNE = "✅ nothing to prune: every remote doc has a local counterpart."


class PruneState(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    DIFFING = "diffing"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    DELETING = "deleting"
    SIMULATING = "simulating"
    REPORTING = "reporting"
    DONE = "done"
    ABORTED = "aborted"
    FAILED = "failed"


TERMINAL_STATES = frozenset({PruneState.DONE, PruneState.ABORTED, PruneState.FAILED})


@dataclass(frozen=True)
class PruneOutcome:
    mode: PruneMode
    candidates: list[PruneCandidate]
    lines: list[str]
    states: list[PruneState]

    @property
    def empty(self) -> bool:
        return not self.candidates

    @property
    def report(self) -> str:
        if self.empty:
            return NOTHING_TO_PRUNE
        return "\n".join(self.lines)


@dataclass
class PruneEngine:
    """Reconcile one remote version against a local folder.

    Idle -> Fetching -> Diffing -> {Done(empty) | AwaitingConfirmation}
      -> {Aborted | Deleting | Simulating} -> Reporting -> Done.
    Any error ends in Failed (or Aborted on decline) and is re-raised.
    """

    client: DocsClientProtocol
    ctx: ApiContext
    mode: PruneMode = PruneMode.INTERACTIVE
    confirmer: Confirmer | None = None
    kinds: Iterable[str] | None = None
    extensions: Iterable[str] = DEFAULT_EXTENSIONS
    states: list[PruneState] = field(default_factory=lambda: [PruneState.IDLE])

    @property
    def state(self) -> PruneState:
        return self.states[-1]

    def _enter(self, state: PruneState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"prune run already finished in state {self.state.value}")
        if state in self.states:
            raise RuntimeError(f"state {state.value} re-entered")
        logger.debug("prune state: %s -> %s", self.state.value, state.value)
        self.states.append(state)

    def run(self, folder: Path) -> PruneOutcome:
        try:
            return self._run(Path(folder))
        except PruneAborted:
            self._enter(PruneState.ABORTED)
            raise
        except (ConfigInvalid, DocsyncError):
            self._enter(PruneState.FAILED)
            raise

    def _run(self, folder: Path) -> PruneOutcome:
        # Folder validation happens before any network access.
        local_slugs = build_local_index(folder, extensions=self.extensions)

        self._enter(PruneState.FETCHING)
        ctx = resolve_project_version(self.client, self.ctx)
        tree: RemoteTree = fetch_remote_tree(self.client, ctx, kinds=self.kinds)

        self._enter(PruneState.DIFFING)
        candidates = compute_prune_candidates(tree, local_slugs)
        logger.info("prune candidates: %d of %d remote docs", len(candidates), len(tree.nodes))
        if not candidates:
            self._enter(PruneState.DONE)
            return PruneOutcome(mode=self.mode, candidates=[], lines=[], states=list(self.states))

        self._enter(PruneState.AWAITING_CONFIRMATION)
        confirmer = self.confirmer or confirmer_for_mode(self.mode, folder=str(folder), version=ctx.version)
        require_confirmation(candidates, confirmer)

        if self.mode is PruneMode.DRY_RUN:
            self._enter(PruneState.SIMULATING)
            lines = simulate_deletions(candidates)
        else:
            self._enter(PruneState.DELETING)
            lines = execute_deletions(self.client, ctx, candidates)

        self._enter(PruneState.REPORTING)
        self._enter(PruneState.DONE)
        return PruneOutcome(mode=self.mode, candidates=candidates, lines=lines, states=list(self.states))


def prune_docs(
    client: DocsClientProtocol,
    ctx: ApiContext,
    folder: Path,
    *,
    mode: PruneMode = PruneMode.INTERACTIVE,
    confirmer: Confirmer | None = None,
    kinds: Iterable[str] | None = None,
) -> PruneOutcome:
    engine = PruneEngine(client=client, ctx=ctx, mode=mode, confirmer=confirmer, kinds=kinds)
    return engine.run(folder)
