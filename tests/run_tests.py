"""Run the diagramlayout unit tests (``python tests/run_tests.py [pattern]``)."""
from __future__ import annotations

import sys
import unittest
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent


def main(argv: list[str]) -> int:
    pattern = argv[0] if argv else "test_*.py"
    sys.path.insert(0, str(TESTS_DIR.parent / "src"))
    suite = unittest.defaultTestLoader.discover(start_dir=str(TESTS_DIR), pattern=pattern)
    result = unittest.TextTestRunner(verbosity=2).run(suite)
    return 0 if result.wasSuccessful() else 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
