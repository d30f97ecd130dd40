"""Allow running as ``python -m kemono_discord``."""

import sys

from kemono_discord.cli import main

if __name__ == "__main__":
    sys.exit(main())
