"""Allow ``python -m claude_battery``."""

import sys

from claude_battery.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
