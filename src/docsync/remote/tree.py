from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

import httpx

from docsync.errors import APIError, RemoteFetchError
from docsync.remote.client import ApiContext, CategoryPage, DocsClientProtocol

logger = logging.getLogger(__name__)

CATEGORIES_PER_PAGE = 20


@dataclass(frozen=True)
class Category:
    slug: str
    kind: str


@dataclass
class DocNode:
    slug: str
    category: int
    parent: int | None
    depth: int
    children: list[int] = field(default_factory=list)


@dataclass
class RemoteTree:
    """Remote hierarchy stored as an arena.

    `nodes` holds every document; `parent` and `children` are indexes into it.
    `roots[i]` lists the top-level documents of `categories[i]` in remote order.
    """

    categories: list[Category] = field(default_factory=list)
    nodes: list[DocNode] = field(default_factory=list)
    roots: list[list[int]] = field(default_factory=list)

    def add_category(self, category: Category) -> int:
        self.categories.append(category)
        self.roots.append([])
        return len(self.categories) - 1

    def add_doc(self, slug: str, *, category: int, parent: int | None) -> int:
        depth = 0 if parent is None else self.nodes[parent].depth + 1
        idx = len(self.nodes)
        self.nodes.append(DocNode(slug=slug, category=category, parent=parent, depth=depth))
        if parent is None:
            self.roots[category].append(idx)
        else:
            self.nodes[parent].children.append(idx)
        return idx

    def slugs(self) -> list[str]:
        return [n.slug for n in self.nodes]


def iter_category_pages(
    client: DocsClientProtocol, ctx: ApiContext, *, per_page: int = CATEGORIES_PER_PAGE
) -> Iterator[CategoryPage]:
    """Yield category pages in increasing page order.

    The page count comes from the first page's total-count header; without
    one, the first page is the only page. Each call starts again from page 1.
    """
    first = client.list_categories_page(ctx, page=1, per_page=per_page)
    yield first
    if first.total_count is None:
        return
    pages = math.ceil(first.total_count / per_page)
    logger.info("categories: total=%d pages=%d", first.total_count, pages)
    for page in range(2, pages + 1):
        yield client.list_categories_page(ctx, page=page, per_page=per_page)


def _parse_category(raw: Any) -> Category:
    if not isinstance(raw, dict) or not isinstance(raw.get("slug"), str) or not raw["slug"]:
        raise RemoteFetchError(f"malformed category entry: {raw!r}")
    return Category(slug=raw["slug"], kind=str(raw.get("type") or raw.get("kind") or ""))


def fetch_categories(client: DocsClientProtocol, ctx: ApiContext) -> list[dict[str, Any]]:
    """Raw category payloads across every page, in response order."""
    out: list[dict[str, Any]] = []
    try:
        for page in iter_category_pages(client, ctx):
            out.extend(page.items)
    except (APIError, httpx.HTTPError) as e:
        raise RemoteFetchError(f"failed to list categories: {e}") from e
    return out


def _add_docs(tree: RemoteTree, category: int, payload: list[Any]) -> None:
    stack: list[tuple[list[Any], int | None]] = [(payload, None)]
    while stack:
        items, parent = stack.pop()
        for raw in items:
            if not isinstance(raw, dict) or not isinstance(raw.get("slug"), str) or not raw["slug"]:
                raise RemoteFetchError(f"malformed doc entry in `{tree.categories[category].slug}`: {raw!r}")
            idx = tree.add_doc(raw["slug"], category=category, parent=parent)
            children = raw.get("children") or []
            if not isinstance(children, list):
                raise RemoteFetchError(f"`children` of `{raw['slug']}` must be a list")
            if children:
                stack.append((children, idx))


def fetch_remote_tree(
    client: DocsClientProtocol,
    ctx: ApiContext,
    *,
    kinds: Iterable[str] | None = None,
) -> RemoteTree:
    """Fetch every category and its nested docs into a fully materialized tree.

    Any failure raises RemoteFetchError; a partial tree is never returned.
    """
    wanted = {k.strip().lower() for k in kinds} if kinds else None
    tree = RemoteTree()
    for raw in fetch_categories(client, ctx):
        cat = _parse_category(raw)
        if wanted is not None and cat.kind.lower() not in wanted:
            logger.debug("skipping category %s (kind=%s)", cat.slug, cat.kind)
            continue
        tree.add_category(cat)

    for ci, cat in enumerate(tree.categories):
        try:
            payload = client.list_category_docs(ctx, cat.slug)
        except (APIError, httpx.HTTPError) as e:
            raise RemoteFetchError(f"failed to list docs for category `{cat.slug}`: {e}") from e
        _add_docs(tree, ci, payload)

    logger.info("remote tree: categories=%d docs=%d", len(tree.categories), len(tree.nodes))
    return tree
