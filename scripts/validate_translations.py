#!/usr/bin/env python3
"""Check that every translation catalogue matches the base locale."""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from forfettario.backend.app.localization import find_catalogue_issues  # noqa: E402


def main() -> int:
    issues = find_catalogue_issues()
    if not issues:
        print("Translation catalogues OK")
        return 0
    for issue in issues:
        print(f"  - {issue}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
