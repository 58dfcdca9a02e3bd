"""Descriptor calculators.

A calculator binds one catalog entry (representation + property names) to an algorithm and
applies it to a `MoleculeRecord`. How a result is turned into properties depends only on
the shape of the result, so that logic lives in four small write rules:

- scalar integer: one property, always written
- scalar real: one property, written only if finite
- integer vector: N properties, positionally mapped, all written
- real vector: N properties, positionally mapped, each written only if finite

Write rules are pure: they return the (name, value) pairs to write. The calculator computes
all of them before touching the record, so a failure never leaves partial results behind.
"""

from __future__ import annotations

import math
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from moldesc_toolkit.core.errors import CalculationError, MolDescError
from moldesc_toolkit.core.registry import DescriptorSpec, Representation

from .record import MoleculeRecord

Writes = List[Tuple[str, Any]]
WriteRule = Callable[[Sequence[str], Any], Writes]


class ExecutionStats:
    """Per-descriptor success counters, keyed by '<namespace>.<key>'."""

    def __init__(self, counts: Optional[Dict[str, int]] = None):
        self._counts: Dict[str, int] = dict(counts or {})
        self._lock = threading.Lock()

    def increment(self, key: str, count: int = 1) -> int:
        if count < 0:
            raise ValueError("Execution counts never decrease")
        with self._lock:
            value = self._counts.get(key, 0) + int(count)
            self._counts[key] = value
            return value

    def merge(self, other: "ExecutionStats | Dict[str, int]") -> None:
        items = other.as_dict() if isinstance(other, ExecutionStats) else dict(other)
        for key, count in items.items():
            self.increment(key, count)

    def get(self, key: str) -> int:
        with self._lock:
            return self._counts.get(key, 0)

    def as_dict(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self) -> str:
        return f"ExecutionStats({self.as_dict()!r})"

    def __getstate__(self) -> Dict[str, Any]:
        return {"counts": self.as_dict()}

    def __setstate__(self, state: Dict[str, Any]) -> None:
        self._counts = dict(state["counts"])
        self._lock = threading.Lock()


def is_finite(value: Any) -> bool:
    try:
        return value is not None and math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def _as_sequence(result: Any, names: Sequence[str]) -> List[Any]:
    values = list(result)
    if len(values) != len(names):
        raise ValueError(f"Expected {len(names)} values, got {len(values)}")
    return values


def write_scalar_integer(names: Sequence[str], result: Any) -> Writes:
    if result is None:
        return []
    return [(names[0], int(result))]


def write_scalar_real(names: Sequence[str], result: Any) -> Writes:
    if not is_finite(result):
        return []
    return [(names[0], float(result))]


def write_integer_vector(names: Sequence[str], result: Any) -> Writes:
    if result is None:
        return []
    return [(name, int(v)) for name, v in zip(names, _as_sequence(result, names))]


def write_real_vector(names: Sequence[str], result: Any) -> Writes:
    if result is None:
        return []
    return [(name, float(v)) for name, v in zip(names, _as_sequence(result, names)) if is_finite(v)]


def select_write_rule(spec: DescriptorSpec) -> WriteRule:
    """Pick the write rule for a catalog entry from its declared value kinds."""

    if spec.is_vector:
        return write_integer_vector if spec.is_integer else write_real_vector
    return write_scalar_integer if spec.is_integer else write_scalar_real


class Calculator:
    """One descriptor bound to its algorithm and output property names."""

    def __init__(
        self,
        spec: DescriptorSpec,
        algorithm: Callable[[Any], Any],
        property_names: Optional[Sequence[str]] = None,
        execution_stats: Optional[ExecutionStats] = None,
    ):
        names = tuple(property_names) if property_names is not None else tuple(spec.property_names)
        if len(names) != spec.arity:
            raise ValueError(f"{spec.key} produces {spec.arity} properties, got {len(names)} names")
        self.spec = spec
        self.algorithm = algorithm
        self.property_names = names
        self.write_rule = select_write_rule(spec)
        self.execution_stats = execution_stats if execution_stats is not None else ExecutionStats()

    def __repr__(self) -> str:
        return f"Calculator({self.key!r}, properties={list(self.property_names)!r})"

    @property
    def key(self) -> str:
        return self.spec.key

    @property
    def representation(self) -> Representation:
        return self.spec.representation

    @property
    def stats_key(self) -> str:
        return self.spec.stats_key

    def compute(self, record: MoleculeRecord) -> Writes:
        """Run the algorithm on the required representation and return the writes."""

        mol = record.get_representation(self.representation)
        result = self.algorithm(mol)
        return self.write_rule(self.property_names, result)

    def apply(self, record: MoleculeRecord) -> int:
        """Compute and write the properties, without touching the execution count.

        Returns the number of properties written. Any failure is raised as
        `CalculationError` and nothing is written.
        """

        try:
            writes = self.compute(record)
        except MolDescError:
            raise
        except Exception as e:
            raise CalculationError(
                f"{self.key} failed: {e}",
                details={"descriptor": self.key, "ordinal": record.ordinal, "error": str(e)},
            ) from e

        for name, value in writes:
            record.set_property(name, value)
        return len(writes)

    def calculate(self, record: MoleculeRecord) -> int:
        """Apply to one record and count the successful execution."""

        written = self.apply(record)
        self.increment_execution_count(1)
        return written

    def increment_execution_count(self, count: int = 1) -> int:
        return self.execution_stats.increment(self.stats_key, count)


def collect_execution_stats(calculators: Iterable[Calculator]) -> Dict[str, int]:
    """Combined execution counts of several calculators."""

    out = ExecutionStats()
    for calc in calculators:
        out.merge(calc.execution_stats)
    return out.as_dict()
