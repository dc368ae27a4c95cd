"""
Conductor package __main__ entry point.

Allows running with: python -m conductor
"""

import sys

from conductor.app.runner import main

if __name__ == "__main__":
    sys.exit(main())
