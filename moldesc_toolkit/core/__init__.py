# ruff: noqa: F401

"""Shared utilities for MolDesc Toolkit.

Registry metadata, errors, logging, configuration, structure/table IO, run metadata and
printing live here; the descriptor machinery itself is in `moldesc_toolkit.descriptors`.
"""

from __future__ import annotations

from .config import PipelineConfig, load_descriptor_config
from .errors import (
    CalculationError,
    DescriptorConfigError,
    ErrorCode,
    MolDescError,
    OutputError,
    RepresentationError,
)
from .io import SDFSink, SDFSource, detect_table_format, looks_like_sdf, write_table
from .logging import reset_logging, setup_logging
from .metadata import metadata_sidecar_path, sha256_file, write_run_metadata
from .printing import print_catalog, print_counts, print_section
from .registry import DESCRIPTOR_SPECS, DescriptorSpec, Representation, ValueKind
