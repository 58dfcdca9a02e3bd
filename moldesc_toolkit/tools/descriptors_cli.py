#!/usr/bin/env python
"""
moldesc-descriptors: Calculate molecular descriptors for an SD-file.

Every structure of the input is annotated with the selected descriptor properties and
written to the output SD-file, in input order.

Examples
--------
# A few descriptors
moldesc-descriptors -i input.sdf -o output/annotated.sdf --tpsa --hbd --hba

# Everything, written with explicit hydrogens, 4 worker processes
moldesc-descriptors -i input.sdf -o annotated.sdf --all --addhs true --n-jobs 4

# Descriptors and custom property names from a config file, plus a CSV table
moldesc-descriptors -i input.sdf -o annotated.sdf --config descriptors.yaml --table descriptors.csv

# List available descriptors
moldesc-descriptors --list
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from moldesc_toolkit.core.config import PipelineConfig, load_descriptor_config
from moldesc_toolkit.core.errors import DescriptorConfigError
from moldesc_toolkit.core.io import looks_like_sdf
from moldesc_toolkit.core.logging import setup_logging
from moldesc_toolkit.core.printing import print_catalog, print_counts, print_section
from moldesc_toolkit.descriptors.catalog import ALL, DescriptorCatalog
from moldesc_toolkit.descriptors.job import run_descriptor_job

logger = logging.getLogger(__name__)

TRUE_VALUES = ("true", "yes", "y", "1")
FALSE_VALUES = ("false", "no", "n", "0")


def parse_bool(value: str) -> bool:
    v = str(value).strip().lower()
    if v in TRUE_VALUES:
        return True
    if v in FALSE_VALUES:
        return False
    raise argparse.ArgumentTypeError(f"Expected true or false, got {value!r}")


def build_parser(catalog: DescriptorCatalog) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moldesc-descriptors",
        description="Calculate molecular descriptors for an SD-file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    # Input/output
    parser.add_argument("-i", "--input", help="Input SD-file (.sdf or .sdf.gz)")
    parser.add_argument("-o", "--output", help="Output SD-file")
    parser.add_argument(
        "--addhs",
        type=parse_bool,
        default=None,
        metavar="true|false",
        help="Write explicit (true) or implicit (false) hydrogens (default: as read)",
    )

    # Descriptor selection
    sel = parser.add_argument_group("descriptors")
    sel.add_argument("-a", "--all", action="store_true", help="Calculate all descriptors")
    for spec in catalog.specs():
        sel.add_argument(
            f"--{spec.cli_flag}",
            dest="selected",
            action="append_const",
            const=spec.key,
            help=f"{spec.name} ({', '.join(spec.property_names)})",
        )
    parser.add_argument("--config", help="JSON/YAML config (descriptors, property_names, n_jobs, chunk_size)")

    # Performance
    parser.add_argument(
        "-j", "--n-jobs",
        type=int,
        default=None,
        help="Number of parallel jobs (default: 1, use -1 for all CPUs)",
    )
    parser.add_argument("--chunk-size", type=int, default=None, help="Molecules per parallel work unit (default: 64)")
    parser.add_argument("--progress", action="store_true", default=None, help="Show progress bar")

    # Extra outputs
    parser.add_argument("--table", help="Also write a descriptor table (.csv, .tsv or .parquet)")
    parser.add_argument("--no-metadata", action="store_true", help="Do not write the metadata JSON sidecar")
    parser.add_argument("--log-file", help="Also write log messages to this file")

    parser.add_argument("--list", action="store_true", help="List available descriptors and exit")
    return parser


def _selected_keys(args: argparse.Namespace) -> List[str]:
    keys = [ALL] if args.all else []
    return keys + list(args.selected or [])


def main(argv: Optional[List[str]] = None) -> int:
    catalog = DescriptorCatalog.default()
    parser = build_parser(catalog)

    argv = sys.argv[1:] if argv is None else list(argv)
    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)

    if args.list:
        print_catalog(catalog.describe())
        return 0

    if not args.input or not args.output:
        parser.error("--input and --output are required")

    setup_logging(args.log_file)

    if not looks_like_sdf(args.input):
        logger.warning("Input file %s does not look like an SD-file", args.input)

    try:
        config = load_descriptor_config(args.config) if args.config else PipelineConfig()
        config = config.merged(
            descriptors=_selected_keys(args),
            n_jobs=args.n_jobs,
            chunk_size=args.chunk_size,
            progress=args.progress,
        )
        summary = run_descriptor_job(
            args.input,
            args.output,
            list(config.descriptors),
            catalog=catalog,
            custom_names=config.property_names,
            add_hs=args.addhs,
            table_path=args.table,
            write_metadata=not args.no_metadata,
            **config.pipeline_options(),
        )
    except DescriptorConfigError as e:
        raise SystemExit(f"ERROR: {e}")

    print(f"Processed {summary.processed} molecules, {summary.errors} errors.")
    print_section("Execution counts")
    print_counts(summary.execution_stats)
    print(f"Cost: {summary.cost}")
    if summary.skipped:
        print(f"Skipped {summary.skipped} unreadable structures")
    if summary.metadata_path:
        print(f"Metadata: {summary.metadata_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
