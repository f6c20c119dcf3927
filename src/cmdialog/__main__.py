"""cmdialog CLI entry point."""

from __future__ import annotations

from cmdialog.cli import app

if __name__ == "__main__":
    app()
