"""MolDesc Toolkit (importable package).

Annotates SD-file structures with RDKit molecular descriptors.

- `moldesc_toolkit.core`: registry metadata, errors, logging, config, IO, run metadata
- `moldesc_toolkit.descriptors`: records, calculators, catalog, pipeline and the file job
- `moldesc_toolkit.tools`: command-line interfaces
"""

from __future__ import annotations

__version__ = "0.1.0"
