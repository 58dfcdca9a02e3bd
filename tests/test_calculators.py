"""
Tests for moldesc_toolkit.descriptors.calculators.

Run with: pytest tests/test_calculators.py -v
"""

import math
import pickle
import threading

import pytest

rdkit = pytest.importorskip("rdkit")

from rdkit import Chem

from moldesc_toolkit.core.errors import CalculationError
from moldesc_toolkit.core.registry import DESCRIPTOR_SPECS, DescriptorSpec, Representation, ValueKind
from moldesc_toolkit.descriptors.calculators import (
    Calculator,
    ExecutionStats,
    collect_execution_stats,
    select_write_rule,
    write_integer_vector,
    write_real_vector,
    write_scalar_integer,
    write_scalar_real,
)
from moldesc_toolkit.descriptors.record import MoleculeRecord

REAL_VECTOR_SPEC = DescriptorSpec(
    key="Triple",
    name="Triple",
    description="Three reals.",
    representation=Representation.ORIGINAL,
    property_names=("A", "B", "C"),
    kinds=(ValueKind.REAL_VECTOR,) * 3,
    cli_flag="triple",
)


def _record(smiles="CCO"):
    return MoleculeRecord(Chem.MolFromSmiles(smiles), ordinal=1)


class TestWriteRules:
    def test_scalar_integer_always_written(self):
        assert write_scalar_integer(["HBD"], 0) == [("HBD", 0)]

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), -math.inf, None])
    def test_scalar_real_drops_non_finite(self, value):
        assert write_scalar_real(["TPSA"], value) == []

    def test_scalar_real_written(self):
        assert write_scalar_real(["TPSA"], 20.23) == [("TPSA", 20.23)]

    def test_real_vector_filters_each_element(self):
        writes = write_real_vector(["A", "B", "C"], [1.0, float("nan"), 3.0])
        assert writes == [("A", 1.0), ("C", 3.0)]

    def test_integer_vector_maps_positionally(self):
        writes = write_integer_vector(["R", "RA", "S", "SA"], [1, 1, 1, 1])
        assert [n for n, _ in writes] == ["R", "RA", "S", "SA"]

    def test_vector_length_mismatch(self):
        with pytest.raises(ValueError):
            write_integer_vector(["A", "B"], [1, 2, 3])

    def test_rule_selected_from_kinds(self):
        assert select_write_rule(DESCRIPTOR_SPECS["HBondDonorCount"]) is write_scalar_integer
        assert select_write_rule(DESCRIPTOR_SPECS["TPSA"]) is write_scalar_real
        assert select_write_rule(DESCRIPTOR_SPECS["SmallRingCount"]) is write_integer_vector
        assert select_write_rule(DESCRIPTOR_SPECS["ALogP"]) is write_real_vector

    def test_single_element_vector_keeps_vector_rule(self):
        spec = DescriptorSpec(
            key="Single",
            name="Single",
            description="One integer in a list.",
            representation=Representation.ORIGINAL,
            property_names=("S",),
            kinds=(ValueKind.INTEGER_VECTOR,),
            cli_flag="single",
        )
        rule = select_write_rule(spec)
        assert rule is write_integer_vector
        assert rule(spec.property_names, [3]) == [("S", 3)]


class TestCalculator:
    def test_calculate_writes_and_counts(self):
        calc = Calculator(DESCRIPTOR_SPECS["TPSA"], lambda mol: 20.23)
        rec = _record()
        assert calc.calculate(rec) == 1
        assert rec.get_property("TPSA") == pytest.approx(20.23)
        assert calc.execution_stats.get("RDKit.TPSA") == 1

    def test_nan_is_success_without_property(self):
        calc = Calculator(DESCRIPTOR_SPECS["TPSA"], lambda mol: float("nan"))
        rec = _record()
        assert calc.calculate(rec) == 0
        assert not rec.has_property("TPSA")
        assert calc.execution_stats.get("RDKit.TPSA") == 1

    def test_failure_raises_and_does_not_count(self):
        def boom(mol):
            raise RuntimeError("engine exploded")

        calc = Calculator(DESCRIPTOR_SPECS["TPSA"], boom)
        rec = _record()
        with pytest.raises(CalculationError) as exc:
            calc.calculate(rec)
        assert exc.value.details["descriptor"] == "TPSA"
        assert isinstance(exc.value.__cause__, RuntimeError)
        assert calc.execution_stats.get("RDKit.TPSA") == 0
        assert not rec.has_property("TPSA")

    def test_no_partial_writes_on_length_mismatch(self):
        calc = Calculator(REAL_VECTOR_SPEC, lambda mol: [1.0, 2.0])
        rec = _record()
        with pytest.raises(CalculationError):
            calc.calculate(rec)
        assert rec.annotated_properties() == {}

    def test_required_representation_is_used(self):
        seen = []

        def count_atoms(mol):
            seen.append(mol.GetNumAtoms())
            return 0.0

        calc = Calculator(DESCRIPTOR_SPECS["XLogP"], count_atoms)
        rec = _record()
        calc.calculate(rec)
        assert seen == [9]
        assert rec.has_representation(Representation.EXPLICIT_HYDROGENS)

    def test_custom_property_names(self):
        calc = Calculator(DESCRIPTOR_SPECS["TPSA"], lambda mol: 1.5, property_names=["TPSA_RDKit"])
        rec = _record()
        calc.calculate(rec)
        assert rec.get_property("TPSA_RDKit") == pytest.approx(1.5)
        assert not rec.has_property("TPSA")

    def test_property_name_arity_checked(self):
        with pytest.raises(ValueError):
            Calculator(DESCRIPTOR_SPECS["WienerNumbers"], lambda mol: [0.0, 0.0], property_names=["W"])

    def test_apply_does_not_count(self):
        calc = Calculator(DESCRIPTOR_SPECS["HBondDonorCount"], lambda mol: 1)
        calc.apply(_record())
        assert calc.execution_stats.get("RDKit.HBondDonorCount") == 0


class TestExecutionStats:
    def test_never_decreases(self):
        stats = ExecutionStats()
        with pytest.raises(ValueError):
            stats.increment("RDKit.TPSA", -1)

    def test_concurrent_increments(self):
        stats = ExecutionStats()

        def work():
            for _ in range(1000):
                stats.increment("RDKit.TPSA")

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert stats.get("RDKit.TPSA") == 4000

    def test_merge_and_pickle(self):
        stats = ExecutionStats({"RDKit.TPSA": 2})
        stats.merge({"RDKit.TPSA": 1, "RDKit.HBondDonorCount": 3})
        restored = pickle.loads(pickle.dumps(stats))
        assert restored.as_dict() == {"RDKit.TPSA": 3, "RDKit.HBondDonorCount": 3}
        restored.increment("RDKit.TPSA")
        assert restored.get("RDKit.TPSA") == 4

    def test_collect_execution_stats(self):
        a = Calculator(DESCRIPTOR_SPECS["TPSA"], lambda mol: 1.0)
        b = Calculator(DESCRIPTOR_SPECS["HBondDonorCount"], lambda mol: 1)
        rec = _record()
        a.calculate(rec)
        a.calculate(rec)
        b.calculate(rec)
        assert collect_execution_stats([a, b]) == {"RDKit.TPSA": 2, "RDKit.HBondDonorCount": 1}
