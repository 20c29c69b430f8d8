"""Allow ``python -m ark``."""

import sys

from ark.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
