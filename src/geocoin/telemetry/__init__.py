"""Logging setup shared by the CLI and embedding applications."""

from .logging import configure_logging

__all__ = ["configure_logging"]
