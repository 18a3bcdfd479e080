"""API routers."""

from folio.api.routers import bookmarks, metrics, totals

__all__ = ["bookmarks", "metrics", "totals"]
