"""Descriptor pipeline.

Drives molecules through a list of calculators:

- every calculator is tried on every molecule, in list order; a failure is counted and
  logged (molecule ordinal + descriptor key) and the next calculator runs,
- molecules come out in input order, even when they are processed in parallel,
- the error count and execution counts are reductions over per-chunk outcomes, merged in
  the calling thread; workers never share counters.

Parallel mode partitions the input into chunks and hands them to joblib workers
(processes by default, threads with `backend="threads"`). Results are collected in
submission order and concatenated, which keeps the output ordered. Work inside one
molecule is always sequential, so later calculators reuse representations derived by
earlier ones.

Example:

    run = Pipeline.from_keys(["TPSA", "HBondDonorCount"]).run(mols)
    for record in run:
        writer.write(record.mol)
    print(run.processed, run.error_count)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import islice
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from joblib import Parallel, delayed, effective_n_jobs
from tqdm import tqdm

from moldesc_toolkit.core.errors import DescriptorConfigError, ErrorCode

from .calculators import Calculator, ExecutionStats, collect_execution_stats
from .catalog import CustomNames, DescriptorCatalog
from .record import MoleculeRecord

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64


@dataclass(frozen=True)
class CalculationFailure:
    ordinal: Optional[int]
    key: str
    message: str


@dataclass
class ChunkResult:
    records: List[MoleculeRecord]
    failures: List[CalculationFailure] = field(default_factory=list)
    successes: List[int] = field(default_factory=list)


def apply_calculators(record: MoleculeRecord, calculators: Sequence[Calculator]) -> Tuple[List[CalculationFailure], List[bool]]:
    """Apply every calculator to one record; failures are collected, never raised."""

    failures: List[CalculationFailure] = []
    ok: List[bool] = []
    for calc in calculators:
        try:
            calc.apply(record)
        except Exception as e:
            logger.debug("Molecule %s, %s failed", record.ordinal, calc.key, exc_info=True)
            failures.append(CalculationFailure(record.ordinal, calc.key, str(e)))
            ok.append(False)
        else:
            ok.append(True)
    return failures, ok


def process_chunk(records: Sequence[MoleculeRecord], calculators: Sequence[Calculator]) -> ChunkResult:
    result = ChunkResult(records=list(records), successes=[0] * len(calculators))
    for record in result.records:
        failures, ok = apply_calculators(record, calculators)
        result.failures.extend(failures)
        for i, success in enumerate(ok):
            if success:
                result.successes[i] += 1
    return result


def _as_records(molecules: Iterable[Any]) -> Iterator[MoleculeRecord]:
    for i, m in enumerate(molecules, 1):
        if isinstance(m, MoleculeRecord):
            if m.ordinal is None:
                m.ordinal = i
            yield m
        else:
            yield MoleculeRecord(m, ordinal=i)


def _chunks(items: Iterable[MoleculeRecord], size: int) -> Iterator[List[MoleculeRecord]]:
    it = iter(items)
    while True:
        chunk = list(islice(it, size))
        if not chunk:
            return
        yield chunk


class PipelineRun:
    """Single-pass iterator over annotated records, plus the run's tallies.

    `error_count` is final once the iterator is exhausted.
    """

    def __init__(self, pipeline: "Pipeline", molecules: Iterable[Any]):
        self.pipeline = pipeline
        self.processed = 0
        self.outcomes: List[CalculationFailure] = []
        self.output_errors = 0
        self.execution_stats = ExecutionStats()
        self.finished = False
        self._iter = self._generate(molecules)

    def __iter__(self) -> "PipelineRun":
        return self

    def __next__(self) -> MoleculeRecord:
        return next(self._iter)

    @property
    def calculation_errors(self) -> int:
        return len(self.outcomes)

    @property
    def error_count(self) -> int:
        if not self.finished:
            raise RuntimeError("error_count is only final after the run has been fully consumed")
        return self.calculation_errors + self.output_errors

    def record_error(self, ordinal: Optional[int], message: str) -> None:
        """Count a failure outside the calculators (e.g. writing the molecule)."""

        self.output_errors += 1
        logger.info("Failed to write molecule %s: %s", ordinal, message)

    def _reduce(self, result: ChunkResult) -> List[MoleculeRecord]:
        calculators = self.pipeline.calculators
        for failure in result.failures:
            logger.info("Failed to process molecule %s with %s: %s", failure.ordinal, failure.key, failure.message)
        self.outcomes.extend(result.failures)
        for calc, count in zip(calculators, result.successes):
            if count:
                calc.increment_execution_count(count)
                self.execution_stats.increment(calc.stats_key, count)
        self.processed += len(result.records)
        return result.records

    def _generate(self, molecules: Iterable[Any]) -> Iterator[MoleculeRecord]:
        p = self.pipeline
        records: Iterable[MoleculeRecord] = _as_records(molecules)
        if p.warm is not None:
            records = (_warm(r, p.warm) for r in records)

        bar = tqdm(desc="Calculating descriptors", unit="mol", disable=not p.progress)
        try:
            if effective_n_jobs(p.n_jobs) == 1:
                for record in records:
                    for out in self._reduce(process_chunk([record], p.calculators)):
                        bar.update(1)
                        yield out
            else:
                batch_size = effective_n_jobs(p.n_jobs) * 2
                chunks = _chunks(records, p.chunk_size)
                with Parallel(n_jobs=p.n_jobs, prefer=p.backend) as parallel:
                    while True:
                        batch = list(islice(chunks, batch_size))
                        if not batch:
                            break
                        results = parallel(delayed(process_chunk)(chunk, p.calculators) for chunk in batch)
                        for result in results:
                            for out in self._reduce(result):
                                bar.update(1)
                                yield out
        finally:
            bar.close()
        self.finished = True
        logger.debug("Pipeline finished: %s molecules, %s calculation errors", self.processed, self.calculation_errors)


def _warm(record: MoleculeRecord, representation: Any) -> MoleculeRecord:
    # A failed warm-up is reported by the first calculator needing that form.
    try:
        record.get_representation(representation)
    except Exception:
        logger.debug("Could not pre-build %s for molecule %s", representation, record.ordinal, exc_info=True)
    return record


class Pipeline:
    def __init__(
        self,
        calculators: Sequence[Calculator],
        *,
        n_jobs: int = 1,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        backend: Optional[str] = "processes",
        progress: bool = False,
        warm: Optional[Any] = None,
    ):
        if not calculators:
            raise DescriptorConfigError("No descriptors specified", code=ErrorCode.NO_DESCRIPTORS)
        if chunk_size < 1:
            raise DescriptorConfigError("chunk_size must be >= 1", code=ErrorCode.INVALID_CONFIG)
        if n_jobs == 0:
            raise DescriptorConfigError("n_jobs must not be 0", code=ErrorCode.INVALID_CONFIG)
        self.calculators = list(calculators)
        self.n_jobs = n_jobs
        self.chunk_size = chunk_size
        self.backend = backend
        self.progress = progress
        self.warm = warm

    @classmethod
    def from_keys(
        cls,
        keys: Iterable[str],
        *,
        catalog: Optional[DescriptorCatalog] = None,
        custom_names: Optional[CustomNames] = None,
        **options: Any,
    ) -> "Pipeline":
        catalog = catalog or DescriptorCatalog.default()
        return cls(catalog.instantiate(keys, custom_names), **options)

    @property
    def keys(self) -> List[str]:
        return [c.key for c in self.calculators]

    @property
    def property_names(self) -> List[str]:
        return [n for c in self.calculators for n in c.property_names]

    def execution_stats(self) -> Dict[str, int]:
        return collect_execution_stats(self.calculators)

    def run(self, molecules: Iterable[Any]) -> PipelineRun:
        return PipelineRun(self, molecules)


def select_and_run(
    descriptor_keys: Iterable[str],
    input_records: Iterable[Any],
    *,
    catalog: Optional[DescriptorCatalog] = None,
    custom_names: Optional[CustomNames] = None,
    **options: Any,
) -> Tuple[List[MoleculeRecord], int]:
    """Instantiate calculators for `descriptor_keys` and run them over `input_records`.

    Configuration errors are raised before any input is consumed.
    """

    pipeline = Pipeline.from_keys(descriptor_keys, catalog=catalog, custom_names=custom_names, **options)
    run = pipeline.run(input_records)
    records = list(run)
    return records, run.error_count
