"""Allow ``python -m revstamp``."""

from __future__ import annotations

import sys

from revstamp.cli import main

sys.exit(main())
