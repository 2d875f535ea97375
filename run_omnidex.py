#!/usr/bin/env python
"""
Run script for Omnidex.
Use: python run_omnidex.py scan /path/to/assets --dry-run
Or: python -m omnidex --help
"""
import sys

from omnidex.cli import main


if __name__ == "__main__":
    sys.exit(main())
