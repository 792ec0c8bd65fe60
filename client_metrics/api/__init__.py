"""Development collector API for the client metrics engine."""

from .server import BatchStore, create_app  # noqa: F401  (re-export for convenience)
