"""Entry point for ``python -m envfetch``."""

import sys

from envfetch.cli import main

if __name__ == "__main__":
    sys.exit(main())
