"""Run the QR token command line interface."""
from __future__ import annotations

from .cli import run


def main() -> int:
    return run()


if __name__ == "__main__":  # pragma: no cover - manual launch only
    raise SystemExit(main())
