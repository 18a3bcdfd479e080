"""Optional HTTP surface."""

from folio.api.app import create_app

__all__ = ["create_app"]
