from __future__ import annotations

import os
from pathlib import Path
from typing import Sequence

import pytest

from docsync.errors import ConfigInvalid, DeletionFailed, PruneAborted, RemoteFetchError
from docsync.prune.diff import PruneCandidate
from docsync.prune.engine import NOTHING_TO_PRUNE, PruneEngine, PruneState, prune_docs
from docsync.prune.gate import PruneMode
from docsync.remote.client import ApiContext, FakeDocsClient

CTX = ApiContext(base_url="https://docs.example.test", api_key="API_KEY", version="1.0.0")

MISSING = "this-doc-should-be-missing-in-folder"
MISSING_CHILD = "this-child-is-also-missing"


class RecordingConfirmer:
    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.seen: list[list[str]] = []

    def confirm(self, candidates: Sequence[PruneCandidate]) -> bool:
        self.seen.append([c.slug for c in candidates])
        return self.answer


def _folder(tmp_path: Path) -> Path:
    folder = tmp_path / "delete-docs"
    folder.mkdir()
    (folder / "some-doc.md").write_text("---\ntitle: Some doc\n---\n\nbody\n", encoding="utf-8")
    return folder


def _client(**kw) -> FakeDocsClient:
    return FakeDocsClient(
        categories=[{"slug": "category1", "type": "guide"}],
        docs={
            "category1": [
                {"slug": MISSING, "children": [{"slug": MISSING_CHILD}]},
                {"slug": "some-doc"},
            ]
        },
        **kw,
    )


def test_live_run_deletes_child_before_parent(tmp_path: Path) -> None:
    client = _client()
    out = prune_docs(client, CTX, _folder(tmp_path), mode=PruneMode.AUTO_CONFIRM)

    assert client.delete_calls == [MISSING_CHILD, MISSING]
    assert out.report == (
        f"🗑️  successfully deleted `{MISSING_CHILD}`.\n🗑️  successfully deleted `{MISSING}`."
    )
    assert out.states == [
        PruneState.IDLE,
        PruneState.FETCHING,
        PruneState.DIFFING,
        PruneState.AWAITING_CONFIRMATION,
        PruneState.DELETING,
        PruneState.REPORTING,
        PruneState.DONE,
    ]


def test_dry_run_reports_every_candidate_without_deleting(tmp_path: Path) -> None:
    live_client = _client()
    dry_client = _client()
    folder = _folder(tmp_path)

    live = prune_docs(live_client, CTX, folder, mode=PruneMode.AUTO_CONFIRM)
    dry = prune_docs(dry_client, CTX, folder, mode=PruneMode.DRY_RUN)

    assert dry_client.delete_calls == []
    assert dry.candidates == live.candidates
    assert dry.report == (
        f"🎭 dry run! This will delete `{MISSING_CHILD}`.\n🎭 dry run! This will delete `{MISSING}`."
    )
    assert PruneState.SIMULATING in dry.states
    assert PruneState.DELETING not in dry.states


def test_dry_run_never_prompts(tmp_path: Path, monkeypatch) -> None:
    def no_input(prompt: str = "") -> str:
        raise AssertionError("dry run must not prompt")

    monkeypatch.setattr("builtins.input", no_input)
    out = prune_docs(_client(), CTX, _folder(tmp_path), mode=PruneMode.DRY_RUN)
    assert len(out.lines) == 2


def test_injected_confirmer_takes_precedence_over_mode(tmp_path: Path) -> None:
    client = _client()
    confirmer = RecordingConfirmer(answer=False)

    with pytest.raises(PruneAborted):
        prune_docs(client, CTX, _folder(tmp_path), mode=PruneMode.AUTO_CONFIRM, confirmer=confirmer)

    assert confirmer.seen == [[MISSING_CHILD, MISSING]]
    assert client.delete_calls == []


def test_interactive_accept_deletes(tmp_path: Path) -> None:
    client = _client()
    confirmer = RecordingConfirmer(answer=True)
    prune_docs(client, CTX, _folder(tmp_path), mode=PruneMode.INTERACTIVE, confirmer=confirmer)
    assert confirmer.seen == [[MISSING_CHILD, MISSING]]
    assert client.delete_calls == [MISSING_CHILD, MISSING]


def test_decline_aborts_with_zero_deletes(tmp_path: Path) -> None:
    client = _client()
    engine = PruneEngine(client=client, ctx=CTX, mode=PruneMode.INTERACTIVE, confirmer=RecordingConfirmer(False))

    with pytest.raises(PruneAborted, match="Aborting, no changes were made."):
        engine.run(_folder(tmp_path))

    assert client.delete_calls == []
    assert engine.state is PruneState.ABORTED


def test_full_overlap_short_circuits_before_gate(tmp_path: Path) -> None:
    folder = _folder(tmp_path)
    for slug in (MISSING, MISSING_CHILD):
        (folder / f"{slug}.md").write_text("hi\n", encoding="utf-8")
    client = _client()
    confirmer = RecordingConfirmer(answer=False)

    out = prune_docs(client, CTX, folder, mode=PruneMode.INTERACTIVE, confirmer=confirmer)

    assert out.empty
    assert out.report == NOTHING_TO_PRUNE
    assert confirmer.seen == []
    assert client.delete_calls == []
    assert out.states[-2:] == [PruneState.DIFFING, PruneState.DONE]


def test_missing_folder_fails_before_any_remote_call(tmp_path: Path) -> None:
    client = _client()
    engine = PruneEngine(client=client, ctx=CTX, mode=PruneMode.AUTO_CONFIRM)

    with pytest.raises(ConfigInvalid):
        engine.run(tmp_path / "not-a-folder")

    assert client.calls == []
    assert engine.states == [PruneState.IDLE, PruneState.FAILED]


def test_fetch_failure_stops_before_diffing(tmp_path: Path) -> None:
    client = _client(fail_fetch=True)
    engine = PruneEngine(client=client, ctx=CTX, mode=PruneMode.AUTO_CONFIRM)

    with pytest.raises(RemoteFetchError):
        engine.run(_folder(tmp_path))

    assert PruneState.DIFFING not in engine.states
    assert client.delete_calls == []
    assert engine.state is PruneState.FAILED


def test_unknown_version_stops_before_category_fetch(tmp_path: Path) -> None:
    client = _client(versions=("2.0.0",))
    with pytest.raises(RemoteFetchError, match="version"):
        prune_docs(client, CTX, _folder(tmp_path), mode=PruneMode.AUTO_CONFIRM)
    assert client.calls == [("version", "1.0.0")]


def test_deletion_failure_is_fail_fast(tmp_path: Path) -> None:
    client = FakeDocsClient(
        categories=[{"slug": "category1", "type": "guide"}],
        docs={"category1": [{"slug": "first"}, {"slug": "second"}, {"slug": "third"}]},
        fail_delete=frozenset({"second"}),
    )
    with pytest.raises(DeletionFailed) as exc:
        prune_docs(client, CTX, _folder(tmp_path), mode=PruneMode.AUTO_CONFIRM)

    assert exc.value.slug == "second"
    assert exc.value.deleted == ["first"]
    assert client.delete_calls == ["first", "second"]


def test_not_found_on_delete_counts_as_already_deleted(tmp_path: Path) -> None:
    client = _client(missing_on_delete=frozenset({MISSING_CHILD}))
    out = prune_docs(client, CTX, _folder(tmp_path), mode=PruneMode.AUTO_CONFIRM)
    assert out.lines == [
        f"🗑️  `{MISSING_CHILD}` was already deleted.",
        f"🗑️  successfully deleted `{MISSING}`.",
    ]


def test_main_version_skips_version_lookup(tmp_path: Path) -> None:
    client = _client()
    prune_docs(client, CTX.with_version(None), _folder(tmp_path), mode=PruneMode.DRY_RUN)
    assert not any(c[0] == "version" for c in client.calls)


def test_unreadable_subfolder_never_leads_to_deletes(tmp_path: Path, monkeypatch) -> None:
    folder = tmp_path / "docs"
    (folder / "guides").mkdir(parents=True)
    (folder / "keep.md").write_text("hi\n", encoding="utf-8")
    (folder / "guides" / "important.md").write_text("hi\n", encoding="utf-8")
    client = FakeDocsClient(
        categories=[{"slug": "category1", "type": "guide"}],
        docs={"category1": [{"slug": "keep"}, {"slug": "important"}]},
    )
    real_scandir = os.scandir

    def scandir(path=".", *args):
        if Path(path) == folder / "guides":
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path, *args)

    monkeypatch.setattr(os, "scandir", scandir)
    engine = PruneEngine(client=client, ctx=CTX, mode=PruneMode.AUTO_CONFIRM)

    with pytest.raises(ConfigInvalid):
        engine.run(folder)

    assert client.calls == []
    assert engine.state is PruneState.FAILED
