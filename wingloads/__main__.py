"""Allow running the validation case with ``python -m wingloads``."""

import sys

from .main import main


sys.exit(main())
