"""Descriptor registry.

The registry is the canonical source of descriptor metadata used by:
- the descriptor catalog (binding each entry to an RDKit algorithm)
- the CLI (one selection flag per entry, `--list`)
- run metadata and table exports (the ordered output property names)

Entries are plain data. Algorithms are bound in `moldesc_toolkit.descriptors.catalog`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Sequence

from .errors import DescriptorConfigError, ErrorCode


class Representation(str, Enum):
    """Hydrogenation forms a molecule can be used in."""

    ORIGINAL = "Original"
    EXPLICIT_HYDROGENS = "ExplicitHydrogens"
    IMPLICIT_HYDROGENS = "ImplicitHydrogens"


class ValueKind(str, Enum):
    INTEGER = "integer"
    REAL = "real"
    INTEGER_VECTOR = "integer-vector"
    REAL_VECTOR = "real-vector"


INTEGER_KINDS = (ValueKind.INTEGER, ValueKind.INTEGER_VECTOR)
VECTOR_KINDS = (ValueKind.INTEGER_VECTOR, ValueKind.REAL_VECTOR)

STATS_NAMESPACE = "RDKit"


@dataclass(frozen=True)
class DescriptorSpec:
    key: str
    name: str
    description: str
    representation: Representation
    property_names: Sequence[str]
    kinds: Sequence[ValueKind]
    cli_flag: str

    def __post_init__(self) -> None:
        def invalid(msg: str) -> DescriptorConfigError:
            return DescriptorConfigError(
                f"Descriptor {self.key}: {msg}", code=ErrorCode.INVALID_CONFIG, details={"key": self.key}
            )

        try:
            object.__setattr__(self, "representation", Representation(self.representation))
            object.__setattr__(self, "kinds", tuple(ValueKind(k) for k in self.kinds))
        except ValueError as e:
            raise invalid(str(e)) from None
        object.__setattr__(self, "property_names", tuple(self.property_names))

        if not self.property_names:
            raise invalid("declares no properties")
        if len(self.property_names) != len(self.kinds):
            raise invalid(f"{len(self.property_names)} property names but {len(self.kinds)} kinds")
        if len(set(self.kinds)) != 1:
            raise invalid(f"mixed value kinds {[k.value for k in self.kinds]}")
        if self.kinds[0] not in VECTOR_KINDS and len(self.kinds) != 1:
            raise invalid(f"scalar kind {self.kinds[0].value} with {len(self.kinds)} properties")

    @property
    def arity(self) -> int:
        return len(self.property_names)

    @property
    def is_vector(self) -> bool:
        return self.kinds[0] in VECTOR_KINDS

    @property
    def is_integer(self) -> bool:
        return all(k in INTEGER_KINDS for k in self.kinds)

    @property
    def stats_key(self) -> str:
        return f"{STATS_NAMESPACE}.{self.key}"


DESCRIPTOR_SPECS: Dict[str, DescriptorSpec] = {
    "ALogP": DescriptorSpec(
        key="ALogP",
        name="ALogP and molar refractivity",
        description="""Atom-contribution LogP (Ghose-Crippen style), its square, and
molar refractivity. Computed on the explicit-hydrogen form.""",
        representation=Representation.EXPLICIT_HYDROGENS,
        property_names=("ALogP", "ALogP2", "AMR"),
        kinds=(ValueKind.REAL_VECTOR, ValueKind.REAL_VECTOR, ValueKind.REAL_VECTOR),
        cli_flag="alogp",
    ),
    "XLogP": DescriptorSpec(
        key="XLogP",
        name="XLogP",
        description="Octanol/water partition coefficient (atom-typed model).",
        representation=Representation.EXPLICIT_HYDROGENS,
        property_names=("XLogP",),
        kinds=(ValueKind.REAL,),
        cli_flag="xlogp",
    ),
    "JPLogP": DescriptorSpec(
        key="JPLogP",
        name="JPLogP",
        description="Octanol/water partition coefficient (group-contribution model).",
        representation=Representation.EXPLICIT_HYDROGENS,
        property_names=("JPLogP",),
        kinds=(ValueKind.REAL,),
        cli_flag="jplogp",
    ),
    "HBondDonorCount": DescriptorSpec(
        key="HBondDonorCount",
        name="H-bond donors",
        description="Hydrogen bond donor count.",
        representation=Representation.ORIGINAL,
        property_names=("HBD",),
        kinds=(ValueKind.INTEGER,),
        cli_flag="hbd",
    ),
    "HBondAcceptorCount": DescriptorSpec(
        key="HBondAcceptorCount",
        name="H-bond acceptors",
        description="Hydrogen bond acceptor count.",
        representation=Representation.ORIGINAL,
        property_names=("HBA",),
        kinds=(ValueKind.INTEGER,),
        cli_flag="hba",
    ),
    "WienerNumbers": DescriptorSpec(
        key="WienerNumbers",
        name="Wiener numbers",
        description="""Wiener path number (half the sum of all topological distances
between heavy atoms) and Wiener polarity number (heavy-atom pairs
three bonds apart).""",
        representation=Representation.ORIGINAL,
        property_names=("WienerPath", "WienerPolarity"),
        kinds=(ValueKind.REAL_VECTOR, ValueKind.REAL_VECTOR),
        cli_flag="wiener",
    ),
    "TPSA": DescriptorSpec(
        key="TPSA",
        name="Topological polar surface area",
        description="Topological polar surface area (P. Ertl).",
        representation=Representation.ORIGINAL,
        property_names=("TPSA",),
        kinds=(ValueKind.REAL,),
        cli_flag="tpsa",
    ),
    "FractionalCSP3": DescriptorSpec(
        key="FractionalCSP3",
        name="Fraction sp3 carbons",
        description="Fraction of sp3 hybridised carbon atoms.",
        representation=Representation.ORIGINAL,
        property_names=("FCSP3",),
        kinds=(ValueKind.REAL,),
        cli_flag="fcsp3",
    ),
    "RotatableBondCount": DescriptorSpec(
        key="RotatableBondCount",
        name="Rotatable bonds",
        description="Number of rotatable bonds.",
        representation=Representation.ORIGINAL,
        property_names=("ROTB",),
        kinds=(ValueKind.INTEGER,),
        cli_flag="rotb",
    ),
    "SmallRingCount": DescriptorSpec(
        key="SmallRingCount",
        name="Ring counts",
        description="""Number of 3-9 membered rings, aromatic rings, ring systems
(fused ring blocks) and ring systems containing an aromatic ring.""",
        representation=Representation.ORIGINAL,
        property_names=("RingCount", "RingCountAromatic", "RingSystems", "RingSystemsAromatic"),
        kinds=(
            ValueKind.INTEGER_VECTOR,
            ValueKind.INTEGER_VECTOR,
            ValueKind.INTEGER_VECTOR,
            ValueKind.INTEGER_VECTOR,
        ),
        cli_flag="rings",
    ),
}

