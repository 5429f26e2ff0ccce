#!/usr/bin/env python3
"""Tunnel trajectory cleaning runner.

Usage:
    python scripts/run_tunnel_pipeline.py session1.csv -c scripts/user_config.py -o session1_clean.csv
    python scripts/run_tunnel_pipeline.py session1.csv --frame-rate 200 --max-frame-gap autodetect
    python scripts/run_tunnel_pipeline.py export.csv --wide -c scripts/user_config.py

Note: User config in scripts/user_config.py, expert defaults in
tunnelpath.schemas.param. Same as the ``tunnelpath`` console script.
"""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root / "src"))

from tunnelpath.cli.run_tunnel import main


if __name__ == "__main__":
    sys.exit(main())
