"""RDKit descriptor algorithms.

Each function takes one RDKit molecule (already in the representation its catalog entry
asks for) and returns a scalar or an ordered list of values. They raise on failure; the
calculator wrapping them takes care of isolation, finite-value filtering and property
names.

Notes:
- RDKit ships neither XLogP nor JPLogP. Both keys are bound to the Wildman-Crippen
  atom-contribution LogP so the catalog stays complete; a different engine can be bound
  with `DescriptorCatalog.with_algorithm`.
- Wiener numbers and ring systems are derived from RDKit's distance matrix and ring
  perception.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Set

import numpy as np
from rdkit import Chem
from rdkit.Chem import Crippen, rdMolDescriptors

Algorithm = Callable[[Chem.Mol], object]

SMALL_RING_MIN = 3
SMALL_RING_MAX = 9


def calc_alogp(mol: Chem.Mol) -> List[float]:
    """[ALogP, ALogP^2, molar refractivity]."""

    logp = float(Crippen.MolLogP(mol))
    mr = float(Crippen.MolMR(mol))
    return [logp, logp * logp, mr]


def calc_crippen_logp(mol: Chem.Mol) -> float:
    return float(Crippen.MolLogP(mol))


def calc_hbd(mol: Chem.Mol) -> int:
    return int(rdMolDescriptors.CalcNumHBD(mol))


def calc_hba(mol: Chem.Mol) -> int:
    return int(rdMolDescriptors.CalcNumHBA(mol))


def calc_tpsa(mol: Chem.Mol) -> float:
    return float(rdMolDescriptors.CalcTPSA(mol))


def calc_fcsp3(mol: Chem.Mol) -> float:
    return float(rdMolDescriptors.CalcFractionCSP3(mol))


def calc_rotb(mol: Chem.Mol) -> int:
    return int(rdMolDescriptors.CalcNumRotatableBonds(mol))


def calc_wiener(mol: Chem.Mol) -> List[float]:
    """[Wiener path number, Wiener polarity number] over heavy atoms."""

    heavy = Chem.RemoveHs(mol)
    n = heavy.GetNumAtoms()
    if n < 2:
        return [0.0, 0.0]

    dm = np.asarray(Chem.GetDistanceMatrix(heavy))
    # Disconnected pairs carry a huge sentinel distance; no real path exceeds n - 1.
    connected = dm < n
    path = float(dm[connected].sum()) / 2.0
    polarity = float(np.count_nonzero(dm == 3)) / 2.0
    return [path, polarity]


def _merge_ring_systems(rings: Sequence[Set[int]]) -> List[Set[int]]:
    """Group rings into fused systems (rings sharing at least one bond)."""

    systems: List[Set[int]] = []
    for ring in rings:
        merged = set(ring)
        rest: List[Set[int]] = []
        for system in systems:
            if len(system & merged) > 1:
                merged |= system
            else:
                rest.append(system)
        systems = rest + [merged]
    return systems


def calc_small_rings(mol: Chem.Mol) -> List[int]:
    """[rings of size 3-9, aromatic rings, ring systems, aromatic ring systems]."""

    ri = mol.GetRingInfo()
    atom_rings = ri.AtomRings()
    bond_rings = ri.BondRings()

    rings: List[Set[int]] = []
    aromatic: List[Set[int]] = []
    for atoms, bonds in zip(atom_rings, bond_rings):
        if not SMALL_RING_MIN <= len(atoms) <= SMALL_RING_MAX:
            continue
        rings.append(set(atoms))
        if all(mol.GetBondWithIdx(b).GetIsAromatic() for b in bonds):
            aromatic.append(set(atoms))

    systems = _merge_ring_systems(rings)
    aromatic_systems = [s for s in systems if any(r <= s for r in aromatic)]
    return [len(rings), len(aromatic), len(systems), len(aromatic_systems)]


ALGORITHMS: Dict[str, Algorithm] = {
    "ALogP": calc_alogp,
    "XLogP": calc_crippen_logp,
    "JPLogP": calc_crippen_logp,
    "HBondDonorCount": calc_hbd,
    "HBondAcceptorCount": calc_hba,
    "WienerNumbers": calc_wiener,
    "TPSA": calc_tpsa,
    "FractionalCSP3": calc_fcsp3,
    "RotatableBondCount": calc_rotb,
    "SmallRingCount": calc_small_rings,
}
