from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from docsync.config import Settings
from docsync.core.version import user_agent
from docsync.errors import APIError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
VERSION_HEADER = "x-readme-version"
TOTAL_COUNT_HEADER = "x-total-count"


@dataclass(frozen=True)
class ApiContext:
    """Connection context shared read-only by every call in a run."""

    base_url: str
    api_key: str
    version: str | None = None
    timeout_seconds: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ApiContext":
        return cls(
            base_url=settings.base_url,
            api_key=settings.api_key,
            version=settings.version,
            timeout_seconds=settings.timeout_seconds,
        )

    def with_version(self, version: str | None) -> "ApiContext":
        return replace(self, version=version)

    def headers(self, *, versioned: bool = True) -> dict[str, str]:
        h = {"accept": "application/json", "user-agent": user_agent()}
        if versioned and self.version:
            h[VERSION_HEADER] = self.version
        return h


@dataclass(frozen=True)
class CategoryPage:
    items: list[dict[str, Any]]
    total_count: int | None


class DocsClientProtocol(Protocol):
    def get_version(self, ctx: ApiContext, version: str) -> dict[str, Any]: ...

    def list_categories_page(self, ctx: ApiContext, *, page: int, per_page: int) -> CategoryPage: ...

    def list_category_docs(self, ctx: ApiContext, category_slug: str) -> list[dict[str, Any]]: ...

    def delete_doc(self, ctx: ApiContext, slug: str) -> None: ...

    def create_category(self, ctx: ApiContext, *, title: str, kind: str) -> dict[str, Any]: ...


def _error_message(r: httpx.Response) -> str:
    try:
        doc = r.json()
    except ValueError:
        doc = None
    if isinstance(doc, dict):
        for k in ("message", "error", "description"):
            v = doc.get(k)
            if isinstance(v, str) and v.strip():
                return v.strip()
    return r.text[:500] or r.reason_phrase


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _parse_total_count(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return max(0, int(str(raw).strip()))
    except ValueError:
        return None


class HttpDocsClient:
    """Remote document store client over httpx.

    Expected API (all paths under /api/v1, basic auth with the API key as the
    user and an empty password):
      GET    /version/{version}
      GET    /categories?perPage=N&page=P     (x-total-count response header)
      GET    /categories/{slug}/docs
      DELETE /docs/{slug}
      POST   /categories                       (JSON body: title, type)

    No retries: a failed call surfaces immediately.
    """

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        self._transport = transport

    def _request(
        self,
        ctx: ApiContext,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        versioned: bool = True,
    ) -> httpx.Response:
        url = f"{API_PREFIX}{path}"
        logger.debug("%s %s params=%s version=%s", method, url, params, ctx.version if versioned else None)
        with httpx.Client(
            base_url=ctx.base_url,
            timeout=ctx.timeout_seconds,
            transport=self._transport,
            auth=(ctx.api_key, ""),
        ) as client:
            r = client.request(method, url, params=params, json=body, headers=ctx.headers(versioned=versioned))
        if r.status_code >= 400:
            raise APIError(r.status_code, _error_message(r), path=url)
        return r

    @staticmethod
    def _json(r: httpx.Response) -> Any:
        try:
            return r.json()
        except ValueError as e:
            raise APIError(r.status_code, f"response is not JSON: {r.text[:200]!r}", path=r.request.url.path) from e

    def get_version(self, ctx: ApiContext, version: str) -> dict[str, Any]:
        doc = self._json(self._request(ctx, "GET", f"/version/{_segment(version)}", versioned=False))
        if not isinstance(doc, dict):
            raise APIError(200, "version response must be a JSON object", path=f"{API_PREFIX}/version/{version}")
        return doc

    def list_categories_page(self, ctx: ApiContext, *, page: int, per_page: int) -> CategoryPage:
        r = self._request(ctx, "GET", "/categories", params={"perPage": per_page, "page": page})
        doc = self._json(r)
        if not isinstance(doc, list):
            raise APIError(r.status_code, "categories response must be a JSON array", path=f"{API_PREFIX}/categories")
        return CategoryPage(items=doc, total_count=_parse_total_count(r.headers.get(TOTAL_COUNT_HEADER)))

    def list_category_docs(self, ctx: ApiContext, category_slug: str) -> list[dict[str, Any]]:
        path = f"/categories/{_segment(category_slug)}/docs"
        r = self._request(ctx, "GET", path)
        doc = self._json(r)
        if not isinstance(doc, list):
            raise APIError(r.status_code, "docs response must be a JSON array", path=f"{API_PREFIX}{path}")
        return doc

    def delete_doc(self, ctx: ApiContext, slug: str) -> None:
        self._request(ctx, "DELETE", f"/docs/{_segment(slug)}")

    def create_category(self, ctx: ApiContext, *, title: str, kind: str) -> dict[str, Any]:
        r = self._request(ctx, "POST", "/categories", body={"title": title, "type": kind})
        doc = self._json(r)
        if not isinstance(doc, dict):
            raise APIError(r.status_code, "category response must be a JSON object", path=f"{API_PREFIX}/categories")
        return doc


@dataclass
class FakeDocsClient:
    """Deterministic in-memory client for tests and offline demos.

    `docs` maps category slug -> nested doc payloads (the same shape the
    remote store returns). Every call is appended to `calls`.
    """

    categories: list[dict[str, Any]] = field(default_factory=list)
    docs: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    versions: tuple[str, ...] = ("1.0.0",)
    fail_fetch: bool = False
    fail_delete: frozenset[str] = frozenset()
    missing_on_delete: frozenset[str] = frozenset()
    calls: list[tuple[str, ...]] = field(default_factory=list)

    @property
    def delete_calls(self) -> list[str]:
        return [c[1] for c in self.calls if c[0] == "delete"]

    def get_version(self, ctx: ApiContext, version: str) -> dict[str, Any]:
        self.calls.append(("version", version))
        if version not in self.versions:
            raise APIError(404, f"The version couldn't be found: {version}", path=f"{API_PREFIX}/version/{version}")
        return {"version": version}

    def list_categories_page(self, ctx: ApiContext, *, page: int, per_page: int) -> CategoryPage:
        self.calls.append(("categories", str(page)))
        if self.fail_fetch:
            raise APIError(500, "categories unavailable", path=f"{API_PREFIX}/categories")
        start = (page - 1) * per_page
        items = copy.deepcopy(self.categories[start : start + per_page])
        return CategoryPage(items=items, total_count=len(self.categories))

    def list_category_docs(self, ctx: ApiContext, category_slug: str) -> list[dict[str, Any]]:
        self.calls.append(("docs", category_slug))
        if self.fail_fetch:
            raise APIError(500, "docs unavailable", path=f"{API_PREFIX}/categories/{category_slug}/docs")
        return copy.deepcopy(self.docs.get(category_slug, []))

    def delete_doc(self, ctx: ApiContext, slug: str) -> None:
        self.calls.append(("delete", slug))
        if slug in self.fail_delete:
            raise APIError(500, "delete failed", path=f"{API_PREFIX}/docs/{slug}")
        if slug in self.missing_on_delete:
            raise APIError(404, f"The doc with the slug '{slug}' couldn't be found", path=f"{API_PREFIX}/docs/{slug}")

    def create_category(self, ctx: ApiContext, *, title: str, kind: str) -> dict[str, Any]:
        self.calls.append(("create", title, kind))
        slug = "-".join(title.lower().split())
        created = {"title": title, "slug": slug, "type": kind, "id": str(len(self.categories) + 1)}
        self.categories.append(created)
        return dict(created)
