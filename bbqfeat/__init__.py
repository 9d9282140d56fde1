"""bbqfeat - Backbone geometry and residue-pair feature extraction for protein structures."""

# --- Structure ---
from .structure import (
    Atom,
    Chain,
    Residue,
    ResidueId,
    Structure,
    ParsedStructure,
    StructureSource,
    SequenceValidator,
    ResidueNameValidator,
    adapt,
)

# --- Featurization ---
from .geometry import MISSING, bond_angle, bond_length, dihedral, is_missing
from .spatial import SpatialIndex
from .interaction import InteractionKind, InteractionRecord, Thresholds, detect
from .features import FeatureRecord, PartnerDescriptor, PAD_PARTNER, assemble, records_to_tensors

# --- IO / pipeline ---
from .io import MMCIFSource, PDBSource, StructureInput, write_records
from .pipeline import BatchSummary, StructureResult, featurize_batch, featurize_structure

# --- Infrastructure ---
from .config import FeaturizerConfig
from .errors import (
    BbqfeatError,
    InputError,
    ConfigError,
    AdaptationError,
    EmptyStructure,
    UnsupportedChemistry,
    IndexBuildError,
    AssemblyError,
    InconsistentWindowConfig,
)
from . import constants

__version__ = "0.1.0"

__all__ = [
    "Atom", "Chain", "Residue", "ResidueId", "Structure",
    "ParsedStructure", "StructureSource", "SequenceValidator", "ResidueNameValidator", "adapt",
    "MISSING", "bond_angle", "bond_length", "dihedral", "is_missing",
    "SpatialIndex", "InteractionKind", "InteractionRecord", "Thresholds", "detect",
    "FeatureRecord", "PartnerDescriptor", "PAD_PARTNER", "assemble", "records_to_tensors",
    "MMCIFSource", "PDBSource", "StructureInput", "write_records",
    "BatchSummary", "StructureResult", "featurize_batch", "featurize_structure",
    "FeaturizerConfig",
    "BbqfeatError", "InputError", "ConfigError", "AdaptationError",
    "EmptyStructure", "UnsupportedChemistry", "IndexBuildError", "AssemblyError",
    "InconsistentWindowConfig",
    "constants",
]
