"""Molecule record with cached hydrogenation forms.

A `MoleculeRecord` wraps one input structure and lets calculators use it in different
`Representation`s. The input structure is never modified except for property annotation;
derived forms are independent copies, created on first request and cached for the lifetime
of the record.

Properties set through the record go to the input structure and to every derived form that
exists at that moment. A form derived later does not receive properties written earlier
through the record: those are stripped from the fresh copy. Properties that came with the
input (e.g. SD fields) are kept, because RDKit copies them along with the structure.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

from rdkit import Chem

from moldesc_toolkit.core.errors import RepresentationError
from moldesc_toolkit.core.registry import Representation

# Binary serialization keeps every property (the default pickle drops them).
_PICKLE_PROPS = Chem.PropertyPickleOptions.AllProps


def with_explicit_hydrogens(mol: Chem.Mol) -> Chem.Mol:
    """Copy of `mol` with implicit hydrogens converted to explicit atoms."""

    return Chem.AddHs(mol, addCoords=mol.GetNumConformers() > 0)


def with_implicit_hydrogens(mol: Chem.Mol) -> Chem.Mol:
    """Copy of `mol` with explicit hydrogens collapsed into their heavy atoms."""

    return Chem.RemoveHs(mol)


def create_representation(mol: Chem.Mol, key: Representation) -> Chem.Mol:
    """Derive a hydrogenation form; the original is never derived."""

    if key == Representation.EXPLICIT_HYDROGENS:
        return with_explicit_hydrogens(mol)
    if key == Representation.IMPLICIT_HYDROGENS:
        return with_implicit_hydrogens(mol)
    raise ValueError(f"Can't handle representation {key!r}")


def set_mol_property(mol: Chem.Mol, name: str, value: Any) -> None:
    """Typed RDKit property write."""

    if isinstance(value, bool):
        mol.SetBoolProp(name, value)
    elif isinstance(value, int):
        mol.SetIntProp(name, value)
    elif isinstance(value, float):
        mol.SetDoubleProp(name, value)
    else:
        mol.SetProp(name, str(value))


class MoleculeRecord:
    def __init__(self, mol: Chem.Mol, ordinal: Optional[int] = None):
        if mol is None:
            raise ValueError("MoleculeRecord requires a molecule")
        self._mol = mol
        self.ordinal = ordinal
        self._representations: Dict[Representation, Chem.Mol] = {}
        self._annotated: Set[str] = set()

    def __repr__(self) -> str:
        return f"MoleculeRecord(ordinal={self.ordinal}, name={self.name!r})"

    @property
    def mol(self) -> Chem.Mol:
        return self._mol

    @property
    def name(self) -> str:
        return self._mol.GetProp("_Name") if self._mol.HasProp("_Name") else ""

    def get_representation(self, key: Representation) -> Chem.Mol:
        """Get the requested form, deriving and caching it if needed."""

        key = Representation(key)
        if key == Representation.ORIGINAL:
            return self._mol

        cached = self._representations.get(key)
        if cached is not None:
            return cached

        try:
            derived = create_representation(self._mol, key)
        except Exception as e:
            raise RepresentationError(
                f"Failed to create {key.value} representation: {e}",
                details={"representation": key.value, "ordinal": self.ordinal},
            ) from e

        for name in self._annotated:
            if derived.HasProp(name):
                derived.ClearProp(name)
        self._representations[key] = derived
        return derived

    def has_representation(self, key: Representation) -> bool:
        key = Representation(key)
        return key == Representation.ORIGINAL or key in self._representations

    def materialized(self) -> List[Representation]:
        return [Representation.ORIGINAL] + list(self._representations.keys())

    def set_property(self, name: str, value: Any) -> None:
        """Set a property on the input structure and on every derived form created so far."""

        set_mol_property(self._mol, name, value)
        for m in self._representations.values():
            set_mol_property(m, name, value)
        self._annotated.add(name)

    def get_property(self, name: str, default: Any = None) -> Any:
        return self.properties().get(name, default)

    def has_property(self, name: str) -> bool:
        return bool(self._mol.HasProp(name))

    def properties(self) -> Dict[str, Any]:
        return dict(self._mol.GetPropsAsDict(includePrivate=False, includeComputed=False))

    def annotated_properties(self) -> Dict[str, Any]:
        """Properties written through this record (descriptor results)."""

        props = self.properties()
        return {k: props[k] for k in sorted(self._annotated) if k in props}

    def __getstate__(self) -> Dict[str, Any]:
        return {
            "mol": self._mol.ToBinary(_PICKLE_PROPS),
            "ordinal": self.ordinal,
            "representations": {k.value: m.ToBinary(_PICKLE_PROPS) for k, m in self._representations.items()},
            "annotated": sorted(self._annotated),
        }

    def __setstate__(self, state: Dict[str, Any]) -> None:
        self._mol = Chem.Mol(state["mol"])
        self.ordinal = state["ordinal"]
        self._representations = {Representation(k): Chem.Mol(b) for k, b in state["representations"].items()}
        self._annotated = set(state["annotated"])
