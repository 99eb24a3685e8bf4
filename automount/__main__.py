"""Allow running as ``python -m automount``."""

import sys

from automount.cli import main

sys.exit(main())
