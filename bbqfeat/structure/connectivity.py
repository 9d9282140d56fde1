"""Peptide-bond connectivity between sequence neighbours."""

from __future__ import annotations

from typing import List, Optional

from ..constants import PEPTIDE_BOND_MAX
from ..geometry import bond_length, is_missing
from .model import Chain, Residue


def sequence_consecutive(prev: Residue, curr: Residue) -> bool:
    """Residue numbering allows a peptide link (same number only for insertion codes)."""
    step = curr.number - prev.number
    if step == 1:
        return True
    return step == 0 and prev.insertion_code != curr.insertion_code


def is_connected(prev: Optional[Residue], curr: Optional[Residue]) -> bool:
    """Whether ``prev`` and ``curr`` are linked by a peptide bond."""
    if prev is None or curr is None:
        return False
    if not sequence_consecutive(prev, curr):
        return False
    peptide = bond_length(prev.atom("C"), curr.atom("N"))
    if is_missing(peptide):
        # Without C/N there is no evidence of a break beyond numbering.
        return True
    return peptide <= PEPTIDE_BOND_MAX


def chain_links(chain: Chain) -> List[bool]:
    """links[i] is True when residue i-1 is peptide-bonded to residue i (links[0] is False)."""
    residues = chain.residues
    return [False] + [is_connected(residues[i - 1], residues[i]) for i in range(1, len(residues))]
