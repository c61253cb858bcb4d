from __future__ import annotations

import sys
from pathlib import Path

# Ensure src/ is on PYTHONPATH so "valuation_validation" can be imported
PROJECT_ROOT = Path(__file__).resolve().parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from valuation_validation.cli import main  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(main())
