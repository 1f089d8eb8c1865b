"""
Run the token bag front end.

Usage:
    python -m tokenbag.interface            # interactive prompt
    python -m tokenbag.interface --headless # JSON lines on stdin/stdout
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
