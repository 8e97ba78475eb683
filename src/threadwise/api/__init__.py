"""HTTP API."""

from threadwise.api.app import create_app

__all__ = ["create_app"]
