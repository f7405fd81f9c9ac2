"""HTTP surface for fieldguard forms."""

from fieldguard.api.app import app

__all__ = ["app"]
