#!/usr/bin/env python3
"""
recipe-dumper main entry point

Allows running the dumper with ``python -m recipe_dumper``.
"""

import sys

from recipe_dumper.main import main


if __name__ == "__main__":
    sys.exit(main())
