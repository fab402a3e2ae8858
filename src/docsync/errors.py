from __future__ import annotations


class ConfigInvalid(ValueError):
    """Validation failure raised before any remote call (exit=2)."""


class DocsyncError(RuntimeError):
    """Runtime failure talking to the remote store (exit=1)."""


class APIError(DocsyncError):
    def __init__(self, status_code: int, message: str, *, path: str | None = None) -> None:
        self.status_code = int(status_code)
        self.message = str(message)
        self.path = path
        where = f" ({path})" if path else ""
        super().__init__(f"HTTP {self.status_code}{where}: {self.message}")


class RemoteFetchError(DocsyncError):
    """Version lookup, category listing or docs listing failed; no partial tree is used."""


class PruneAborted(DocsyncError):
    pass


class DeletionFailed(DocsyncError):
    def __init__(self, slug: str, cause: Exception, *, deleted: list[str] | None = None) -> None:
        self.slug = slug
        self.cause = cause
        self.deleted = list(deleted or [])
        super().__init__(f"failed to delete `{slug}`: {cause}")


class CategoryExists(DocsyncError):
    """A category with the same title and type is already present; nothing was created."""
