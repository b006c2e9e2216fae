#!/usr/bin/env python3
"""jsonweave unified CLI.

This CLI intentionally delegates argument parsing to the individual tool modules.
That keeps each tool usable both as:
- `jsonweave <tool> ...`
- `python -m jsonweave.tools.<tool> ...`

Commands:
- edit          Build a patch for insert / duplicate / remove / rename, or a new-node seed value
- paste         Build a patch for pasting clipboard text at a selection
- apply         Apply a patch to a document
- validate      Schema-validate a patch document

Global flags (before the command):
- -v, --verbose  Debug logging on stderr

Example:
  jsonweave edit insert doc.json --selection '{"beforePath": ["b"]}' --entries '[{"key": "x", "value": 1}]'
"""

from __future__ import annotations

import logging
import sys
from typing import List, Optional

from jsonweave.tools import clipboard, operations, pointer, validate


def _help() -> str:
    return (
        "jsonweave CLI\n\n"
        "Usage:\n"
        "  jsonweave [-v] <command> [args...]\n\n"
        "Commands:\n"
        "  edit          insert | duplicate | remove | rename | new-value\n"
        "  paste         Paste clipboard text at a selection\n"
        "  apply         Apply a JSON Patch to a document\n"
        "  validate      Validate a JSON Patch document\n"
        "  version       Show current version\n"
    )


def _print_version() -> int:
    try:
        from importlib.metadata import PackageNotFoundError, version

        v = version("jsonweave")
    except PackageNotFoundError:
        v = "unknown"
    print(v)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    if argv and argv[0] in {"-v", "--verbose"}:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
        argv = argv[1:]

    if not argv or argv[0] in {"-h", "--help", "help"}:
        sys.stdout.write(_help())
        return 0

    cmd, rest = argv[0], argv[1:]
    if cmd in {"--version", "-V", "version"}:
        return _print_version()
    if cmd == "edit":
        return operations.main(rest)
    if cmd == "paste":
        return clipboard.main(rest)
    if cmd == "apply":
        return pointer.main(rest)
    if cmd == "validate":
        return validate.main(rest)

    sys.stderr.write(f"Unknown command: {cmd}\n\n")
    sys.stderr.write(_help())
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
