"""Allow running as ``python -m hapcheck``."""

import sys

from hapcheck.cli import main

sys.exit(main())
