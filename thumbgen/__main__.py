"""
Main entry point for running the package as a module.

Usage:
    python -m thumbgen run -c config.json
    python -m thumbgen check -c config.json
    python -m thumbgen cache -c config.json
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
