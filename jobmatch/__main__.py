"""Allow running the CLI with ``python -m jobmatch``."""

import sys

from jobmatch.main import main

sys.exit(main())
