"""Module entrypoint for ``python -m smartpull``."""

from __future__ import annotations

from smartpull.cli.main import main

if __name__ == "__main__":
    raise SystemExit(main())
