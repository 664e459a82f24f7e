#!/usr/bin/env python
"""
Glimpse CLI entry point.

Usage:
    python cli.py                    # Watch and review with the saved provider
    python cli.py --setup            # Choose provider and model
    python cli.py --no-files         # Review staged changes only
    python cli.py --config path.yaml # Use an explicit config file
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from glimpse.cli.app import main

if __name__ == "__main__":
    main()
