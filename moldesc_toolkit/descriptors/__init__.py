"""MolDesc Toolkit - Descriptor Module.

Molecule records with cached hydrogenation forms, calculators, the descriptor catalog and
the ordered (optionally parallel) pipeline that ties them together.

Design notes
------------
- Calculators never share counters with workers; execution counts and the error count
  are merged in the calling thread.
- The catalog is an immutable value. Swap an engine with `with_algorithm`.
"""

from __future__ import annotations

from .algorithms import ALGORITHMS
from .calculators import (
    Calculator,
    ExecutionStats,
    collect_execution_stats,
    select_write_rule,
    write_integer_vector,
    write_real_vector,
    write_scalar_integer,
    write_scalar_real,
)
from .catalog import ALL, DescriptorCatalog
from .job import RunSummary, output_representation, run_descriptor_job
from .pipeline import CalculationFailure, Pipeline, PipelineRun, select_and_run
from .record import MoleculeRecord

__all__ = [
    # records
    "MoleculeRecord",
    # calculators
    "Calculator",
    "ExecutionStats",
    "collect_execution_stats",
    "select_write_rule",
    "write_scalar_integer",
    "write_scalar_real",
    "write_integer_vector",
    "write_real_vector",
    # catalog
    "ALGORITHMS",
    "ALL",
    "DescriptorCatalog",
    # pipeline
    "CalculationFailure",
    "Pipeline",
    "PipelineRun",
    "select_and_run",
    # job
    "RunSummary",
    "output_representation",
    "run_descriptor_job",
]
