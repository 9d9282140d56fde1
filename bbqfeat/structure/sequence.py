"""
Entity-sequence bookkeeping.

Observed residues are placed on the deposited polymer sequence (SEQRES in
PDB files, ``_pdbx_poly_seq_scheme`` in mmCIF files) so that residues which
were never observed can be counted as gaps before the next observed one.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from Bio.Align import PairwiseAligner

from ..constants import AMINO_ACID_3TO1, RESIDUE_NAME_MAPPING
from .parsed import ParsedChain


def one_letter(res_name: str) -> str:
    """'ALA' -> 'A', 'MSE' -> 'M'; anything else -> 'X'."""
    res_name = res_name.strip().upper()
    return AMINO_ACID_3TO1.get(RESIDUE_NAME_MAPPING.get(res_name, res_name), 'X')


def _aligner() -> PairwiseAligner:
    aligner = PairwiseAligner()
    aligner.mode = 'global'
    aligner.match_score = 2.0
    aligner.mismatch_score = -1.0
    # Target is the deposited sequence, query the observed residues.
    # Unobserved stretches are gaps in the query; termini are free.
    aligner.query_internal_open_gap_score = -2.0
    aligner.query_internal_extend_gap_score = -0.1
    aligner.query_end_gap_score = 0.0
    aligner.target_gap_score = -10.0
    return aligner


def align_to_sequence(
    observed: Sequence[str], reference: Sequence[str]
) -> List[Optional[int]]:
    """
    Index of each observed residue in the reference sequence.

    Args:
        observed: Residue names in chain order
        reference: Deposited residue names of the same chain

    Returns:
        One entry per observed residue; None where it could not be placed.
    """
    positions: List[Optional[int]] = [None] * len(observed)
    if not observed or not reference:
        return positions

    target = ''.join(one_letter(name) for name in reference)
    query = ''.join(one_letter(name) for name in observed)
    alignment = _aligner().align(target, query)[0]
    for (t_start, t_end), (q_start, q_end) in zip(*alignment.aligned):
        for k in range(int(q_end) - int(q_start)):
            positions[int(q_start) + k] = int(t_start) + k
    return positions


def gaps_from_positions(positions: Sequence[Optional[int]]) -> List[int]:
    """
    Unobserved reference positions before each residue.

    Residues without a position get 0 and do not move the running position.

    >>> gaps_from_positions([0, 1, 4, None, 5])
    [0, 0, 2, 0, 0]
    """
    gaps: List[int] = []
    previous = -1
    for position in positions:
        if position is None:
            gaps.append(0)
            continue
        gaps.append(max(position - previous - 1, 0))
        previous = max(previous, position)
    return gaps


def annotate_gaps(chain: ParsedChain, positions: Sequence[Optional[int]]) -> None:
    """Store per-residue gap counts on ``chain`` (residues in chain order)."""
    for residue, gap in zip(chain.residues, gaps_from_positions(positions)):
        residue.gap_before = gap
