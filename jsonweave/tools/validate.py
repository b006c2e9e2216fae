"""Schema validation for JSON Patch documents.

Why:
- Patches cross a process boundary (files, editors, the CLI) and should be
  rejected with a precise location before anything is applied.
- Issues are reported with JSON Pointers into the patch itself.

The schema (``jsonweave/schema/json-patch.schema.json``) covers the RFC 6902
operations this project emits: add, remove, replace, move, copy.

CLI:
  jsonweave validate patch.json [--json-errors]

Exit codes:
  0 OK
  2 schema validation failed
  3 IO/JSON parse error
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import importlib.resources as importlib_resources

import jsonschema

from jsonweave.tools.pointer import join_pointer


@dataclass
class PatchValidationError(Exception):
    message: str
    issues: List[Dict[str, Any]] = field(default_factory=list)

    def __str__(self) -> str:
        if not self.issues:
            return self.message
        first = self.issues[0]
        return f"{self.message}: {first['pointer'] or '/'}: {first['message']}"


def load_schema_text() -> str:
    with importlib_resources.files("jsonweave.schema").joinpath("json-patch.schema.json").open("r", encoding="utf-8") as f:
        return f.read()


@lru_cache(maxsize=1)
def load_schema() -> Dict[str, Any]:
    return json.loads(load_schema_text())


def validate(patch: Any, schema: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    validator = jsonschema.Draft202012Validator(schema if schema is not None else load_schema())
    errors: List[Dict[str, Any]] = []
    # array indices sort numerically and before member names
    for err in sorted(validator.iter_errors(patch), key=lambda e: [(isinstance(p, str), p) for p in e.absolute_path]):
        pointer = join_pointer(list(err.absolute_path))
        errors.append(
            {
                "pointer": pointer,
                "message": err.message,
                "validator": err.validator,
                "expected": err.validator_value,
            }
        )
    return errors


def check(patch: Any) -> None:
    """Raise ``PatchValidationError`` if ``patch`` is not a valid patch document."""
    issues = validate(patch)
    if issues:
        raise PatchValidationError("Invalid JSON Patch", issues)


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="jsonweave validate")
    ap.add_argument("path", help="Path to a JSON Patch document")
    ap.add_argument("--json-errors", action="store_true", help="Emit validation errors as JSON on stderr")
    args = ap.parse_args(argv)

    try:
        patch = json.loads(Path(args.path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        print(f"Failed to read/parse JSON: {e}", file=sys.stderr)
        return 3

    errors = validate(patch)
    if errors:
        if args.json_errors:
            print(json.dumps(errors, indent=2, ensure_ascii=False), file=sys.stderr)
        else:
            for e in errors:
                print(f"{e['pointer']}: {e['message']}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
