"""smartpull: pull from a remote with a fast-forward, rebase, merge cascade."""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
