"""File-level descriptor job.

Reads an SD-file, runs the selected calculators over every structure, writes the
annotated structures (in the requested hydrogenation form) to a new SD-file and reports
what happened:

- the summary line "Processed N molecules, E errors.",
- per-descriptor execution counts and the usage cost (molecules x descriptors),
- optionally a descriptor table (CSV/TSV/Parquet) and a metadata JSON sidecar.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from moldesc_toolkit.core.errors import MolDescError
from moldesc_toolkit.core.io import SDFSink, SDFSource, write_table
from moldesc_toolkit.core.metadata import write_run_metadata
from moldesc_toolkit.core.registry import Representation

from .catalog import CustomNames, DescriptorCatalog
from .pipeline import Pipeline

logger = logging.getLogger(__name__)

TOOL_NAME = "moldesc-descriptors"


@dataclass
class RunSummary:
    processed: int
    errors: int
    skipped: int
    written: int
    descriptors: List[str]
    property_names: List[str]
    execution_stats: Dict[str, int] = field(default_factory=dict)
    cost: int = 0
    output_path: Optional[str] = None
    table_path: Optional[str] = None
    metadata_path: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def output_representation(add_hs: Optional[bool]) -> Representation:
    """`--addhs true` writes explicit hydrogens, `false` implicit, unset leaves the input as is."""

    if add_hs is None:
        return Representation.ORIGINAL
    return Representation.EXPLICIT_HYDROGENS if add_hs else Representation.IMPLICIT_HYDROGENS


def run_descriptor_job(
    input_path: str | Path,
    output_path: str | Path,
    descriptors: List[str],
    *,
    catalog: Optional[DescriptorCatalog] = None,
    custom_names: Optional[CustomNames] = None,
    add_hs: Optional[bool] = None,
    table_path: Optional[str | Path] = None,
    write_metadata: bool = True,
    **pipeline_options: Any,
) -> RunSummary:
    catalog = catalog or DescriptorCatalog.default()
    out_rep = output_representation(add_hs)

    # Fails on bad configuration before the input is opened.
    pipeline = Pipeline.from_keys(
        descriptors,
        catalog=catalog,
        custom_names=custom_names,
        warm=None if out_rep == Representation.ORIGINAL else out_rep,
        **pipeline_options,
    )
    property_names = pipeline.property_names
    logger.info("Calculating %s for %s", ", ".join(pipeline.keys), input_path)

    rows: Optional[List[Dict[str, Any]]] = [] if table_path else None

    with SDFSource(input_path) as source, SDFSink(output_path) as sink:
        run = pipeline.run(source)
        for record in run:
            try:
                sink.write(record.get_representation(out_rep))
            except MolDescError as e:
                run.record_error(record.ordinal, e.message)
                continue
            if rows is not None:
                row: Dict[str, Any] = {"Name": record.name}
                for name in property_names:
                    row[name] = record.get_property(name)
                rows.append(row)

    summary = RunSummary(
        processed=run.processed,
        errors=run.error_count,
        skipped=source.skipped,
        written=sink.written,
        descriptors=pipeline.keys,
        property_names=property_names,
        execution_stats=pipeline.execution_stats(),
        cost=run.processed * len(pipeline.calculators),
        output_path=str(output_path),
    )
    logger.info("Processed %s molecules, %s errors.", summary.processed, summary.errors)

    if rows is not None:
        write_table(pd.DataFrame(rows, columns=["Name"] + property_names), str(table_path))
        summary.table_path = str(table_path)
        logger.info("Descriptor table written to %s", table_path)

    if write_metadata:
        sidecar = write_run_metadata(
            tool=TOOL_NAME,
            output_path=output_path,
            input_path=input_path,
            parameters={
                "descriptors": pipeline.keys,
                "output_representation": out_rep.value,
                "n_jobs": pipeline.n_jobs,
                "chunk_size": pipeline.chunk_size,
            },
            usage={
                "processed": summary.processed,
                "errors": summary.errors,
                "skipped": summary.skipped,
                "written": summary.written,
                "cost": summary.cost,
                "execution_stats": summary.execution_stats,
                "property_names": property_names,
            },
            artifacts={"table": summary.table_path},
        )
        summary.metadata_path = str(sidecar)

    return summary
