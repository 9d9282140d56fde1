from .detector import (
    InteractionKind,
    InteractionRecord,
    Thresholds,
    candidate_residue_pairs,
    detect,
)
from .hbond import HBondCandidate, backbone_energy, best_hbond, dssp_energy

__all__ = [
    "InteractionKind",
    "InteractionRecord",
    "Thresholds",
    "candidate_residue_pairs",
    "detect",
    "HBondCandidate",
    "backbone_energy",
    "best_hbond",
    "dssp_energy",
]
