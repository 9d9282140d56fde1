"""
Structural Model Adapter.

Normalizes a :class:`ParsedStructure` into the immutable
:class:`~bbqfeat.structure.model.Structure` used by the featurizer:

1. Checks each chain's polymer type against the supported set
2. Resolves alternate locations (highest occupancy, first listed on ties)
3. Canonicalizes residue names and drops unsupported residue types
4. Orders residues by (number, insertion code)
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Union

from ..config import FeaturizerConfig
from ..errors import EmptyStructure, UnsupportedChemistry
from .model import Atom, Chain, Residue, ResidueId, Structure
from .parsed import ParsedAtom, ParsedChain, ParsedResidue, ParsedStructure
from .validator import ResidueNameValidator, SequenceValidator

logger = logging.getLogger(__name__)


def select_altlocs(atoms: List[ParsedAtom]) -> Dict[str, ParsedAtom]:
    """
    Keep one record per atom name.

    The highest-occupancy variant wins; on equal occupancy the first listed
    record is kept. The returned dict preserves first-appearance order of
    atom names.
    """
    chosen: Dict[str, ParsedAtom] = {}
    for atom in atoms:
        current = chosen.get(atom.atom_name)
        if current is None or atom.occupancy > current.occupancy:
            chosen[atom.atom_name] = atom
    return chosen


def _to_atom(parsed: ParsedAtom) -> Atom:
    x, y, z = parsed.coords
    return Atom(
        name=parsed.atom_name,
        coords=(float(x), float(y), float(z)),
        element=parsed.element,
        occupancy=float(parsed.occupancy),
        altloc=parsed.altloc,
    )


class StructureAdapter:
    """Converts parsed structures into Structures under one configuration."""

    def __init__(
        self,
        config: Optional[FeaturizerConfig] = None,
        validator: Optional[SequenceValidator] = None,
    ):
        self.config = config or FeaturizerConfig()
        self.validator = validator or ResidueNameValidator(self.config.supported_residue_types)

    def adapt(self, raw: Union[ParsedStructure, Structure]) -> Structure:
        if isinstance(raw, Structure):
            return raw

        supported_polymers = self.config.supported_polymer_types
        for chain in raw.chains:
            polymer_type = self._polymer_type(chain)
            if polymer_type is not None and polymer_type not in supported_polymers:
                raise UnsupportedChemistry(
                    f"{raw.source_id}: chain {chain.chain_id!r} is {polymer_type}, "
                    f"supported: {sorted(supported_polymers)}"
                )

        chains: List[Chain] = []
        dropped = 0
        for chain in raw.chains:
            residues, n_dropped = self._adapt_residues(raw.source_id, chain)
            dropped += n_dropped
            if not residues:
                logger.warning(f"{raw.source_id}: chain {chain.chain_id!r} has no usable residues")
                continue
            chains.append(Chain(
                chain_id=chain.chain_id,
                residues=tuple(residues),
                polymer_type=(
                    self._polymer_type(chain)
                    or self.validator.infer_polymer_type(r.res_type for r in residues)
                    or "unknown"
                ),
            ))

        if dropped:
            logger.info(f"{raw.source_id}: dropped {dropped} unsupported residue(s)")

        if not chains:
            raise EmptyStructure(f"{raw.source_id}: no usable chains after filtering")

        return Structure(
            source_id=raw.source_id,
            chains=tuple(chains),
            dropped_residues=dropped,
            ligands_removed=raw.ligands_removed,
        )

    def _polymer_type(self, chain: ParsedChain) -> Optional[str]:
        if chain.polymer_type is not None:
            return chain.polymer_type.strip().lower()
        return self.validator.infer_polymer_type(r.res_name for r in chain.residues)

    def _adapt_residues(self, source_id: str, chain: ParsedChain):
        residues: List[Residue] = []
        dropped = 0
        # Unobserved residues before a dropped residue move to the next kept one.
        pending_gap = 0
        # Stable sort: residues with equal ids keep file order.
        ordered = sorted(
            chain.residues, key=lambda r: (r.res_num, r.insertion_code or '')
        )
        for parsed in ordered:
            residue = self._adapt_residue(parsed, pending_gap + parsed.gap_before)
            if residue is None:
                dropped += 1
                pending_gap += parsed.gap_before
                logger.debug(
                    f"{source_id}: dropping residue {parsed.res_name} "
                    f"{chain.chain_id}{parsed.res_num}{parsed.insertion_code}"
                )
                continue
            pending_gap = 0
            residues.append(residue)
        return residues, dropped

    def _adapt_residue(self, parsed: ParsedResidue, gap_before: int = 0) -> Optional[Residue]:
        res_type = self.validator.canonicalize(parsed.res_name)
        if not self.validator.is_supported(res_type):
            return None
        atoms = select_altlocs(parsed.atoms)
        if not atoms:
            return None
        return Residue(
            res_id=ResidueId(parsed.res_num, parsed.insertion_code or ''),
            res_type=res_type,
            atoms={name: _to_atom(a) for name, a in atoms.items()},
            hetero=parsed.hetero,
            gap_before=gap_before,
        )


def adapt(
    raw: Union[ParsedStructure, Structure],
    config: Optional[FeaturizerConfig] = None,
    validator: Optional[SequenceValidator] = None,
) -> Structure:
    """Adapt a parsed structure; an already adapted Structure is returned unchanged."""
    if isinstance(raw, Structure):
        return raw
    return StructureAdapter(config, validator).adapt(raw)
