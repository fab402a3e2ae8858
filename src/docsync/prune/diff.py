from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Iterator

from docsync.remote.tree import RemoteTree


@dataclass(frozen=True)
class PruneCandidate:
    slug: str
    depth: int
    parent_slug: str | None
    category_slug: str


def iter_postorder(tree: RemoteTree) -> Iterator[int]:
    """Node indexes in postorder: categories in order, children left to right before their parent."""
    for roots in tree.roots:
        stack: list[tuple[int, bool]] = [(i, False) for i in reversed(roots)]
        while stack:
            idx, expanded = stack.pop()
            if expanded:
                yield idx
                continue
            stack.append((idx, True))
            stack.extend((c, False) for c in reversed(tree.nodes[idx].children))


def compute_prune_candidates(tree: RemoteTree, local_slugs: AbstractSet[str]) -> list[PruneCandidate]:
    # Every node is checked on its own; a present parent does not shield an absent child.
    out: list[PruneCandidate] = []
    for idx in iter_postorder(tree):
        node = tree.nodes[idx]
        if node.slug in local_slugs:
            continue
        out.append(
            PruneCandidate(
                slug=node.slug,
                depth=node.depth,
                parent_slug=tree.nodes[node.parent].slug if node.parent is not None else None,
                category_slug=tree.categories[node.category].slug,
            )
        )
    return out
