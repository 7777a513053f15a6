"""
Extent document CLI for CineDB.

This tool inspects saved extent documents:
- summary: Print per-type record counts as JSON
- check: Reload the document into a scratch model and verify that every
  link is held on both sides

Usage:
    python -m cinema.cinedb.tools.extent_cli summary data/cinema-extents.json
    python -m cinema.cinedb.tools.extent_cli check data/cinema-extents.json

Invariants:
    - check exits non-zero on any load error or broken link
    - Neither command writes to the document
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from ..config import get_settings
from ..errors import PersistenceError
from ..extent import ModelContext
from ..links import model_fingerprint, symmetry_problems
from ..observability import setup_logging
from ..persistence import PersistenceGateway

logger = logging.getLogger(__name__)


class ExtentCLI:
    """Commands over one extent document.

    Example:
        >>> cli = ExtentCLI()
        >>> cli.summary("data/cinema-extents.json")["total"]
        42
    """

    def __init__(self, settings: Any = None) -> None:
        self.settings = settings or get_settings()

    def summary(self, path: str) -> dict[str, Any]:
        """Describe a document without loading it into a model.

        Raises:
            PersistenceError: If the file is missing or malformed
        """
        document = PersistenceGateway(ModelContext(self.settings), self.settings).read(path)
        if document is None:
            raise PersistenceError(f"No extent document at {path}", path=path)
        return {
            "path": path,
            "saved_at": document.saved_at.isoformat(),
            "fingerprint": document.fingerprint,
            "fingerprint_matches": document.fingerprint == model_fingerprint(),
            "extents": document.counts(),
            "total": document.record_count(),
        }

    def check(self, path: str) -> list[str]:
        """Load into a scratch model and list integrity problems.

        Returns:
            Problems found; empty if the document is consistent
        """
        context = ModelContext(self.settings)
        try:
            if not PersistenceGateway(context, self.settings).load(path):
                return [f"No extent document at {path}"]
        except PersistenceError as e:
            return [e.message]
        return symmetry_problems(context)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the extent tool."""
    parser = argparse.ArgumentParser(description="CineDB extent document tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    summary_parser = subparsers.add_parser("summary", help="Print record counts as JSON")
    summary_parser.add_argument("path", help="Path to the extent document")

    check_parser = subparsers.add_parser("check", help="Reload and verify link symmetry")
    check_parser.add_argument("path", help="Path to the extent document")

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings)
    cli = ExtentCLI(settings)

    if args.command == "summary":
        try:
            print(json.dumps(cli.summary(args.path), indent=2))
        except PersistenceError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
        return 0

    problems = cli.check(args.path)
    if problems:
        print(f"Extent check FAILED with {len(problems)} problem(s):")
        for problem in problems:
            print(f"  - {problem}")
        return 1
    print("Extent document is consistent")
    return 0


if __name__ == "__main__":
    sys.exit(main())
