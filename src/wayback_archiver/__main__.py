"""Allow ``python -m wayback_archiver``."""

from __future__ import annotations

import sys

from wayback_archiver.cli import main

sys.exit(main())
