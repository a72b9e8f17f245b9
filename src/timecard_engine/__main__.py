"""Entry point for ``python -m timecard_engine``."""

import sys

from timecard_engine.cli import main

sys.exit(main())
