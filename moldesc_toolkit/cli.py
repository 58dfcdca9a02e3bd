"""Console-script entrypoints.

The wrappers delegate to the `main()` of the corresponding tool module so argument parsing
lives in one place; `python -m moldesc_toolkit.tools.descriptors_cli` behaves the same.
"""

from __future__ import annotations

import sys


def descriptors() -> None:
    from moldesc_toolkit.tools.descriptors_cli import main

    sys.exit(main())
