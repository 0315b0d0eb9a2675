#!/usr/bin/env python3
"""Dump EtherCAT datagrams from a capture file as CSV."""

from __future__ import annotations

import sys
from pathlib import Path

# Allow running this script directly before packaging/install.
REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from ethercat_trace.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
