"""Allow ``python -m gsettings_codegen``."""

import sys

from .cli import main

sys.exit(main())
