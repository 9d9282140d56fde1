from .residue_geometry import (
    DIHEDRAL_DESCRIPTOR_INDICES,
    NUM_RESIDUE_DESCRIPTORS,
    RESIDUE_DESCRIPTOR_NAMES,
    ResidueGeometry,
    compute_chain_geometry,
    compute_residue_geometry,
    compute_structure_geometry,
)
from .assembler import (
    FEATURE_FIELD_NAMES,
    PAD_PARTNER,
    PARTNER_FIELD_NAMES,
    FeatureAssembler,
    FeatureRecord,
    PartnerDescriptor,
    assemble,
    context_window,
    residue_token,
)
from .tensors import PARTNER_TENSOR_FIELDS, rbf_encode, records_to_tensors

__all__ = [
    "DIHEDRAL_DESCRIPTOR_INDICES",
    "NUM_RESIDUE_DESCRIPTORS",
    "RESIDUE_DESCRIPTOR_NAMES",
    "ResidueGeometry",
    "compute_chain_geometry",
    "compute_residue_geometry",
    "compute_structure_geometry",
    "FEATURE_FIELD_NAMES",
    "PAD_PARTNER",
    "PARTNER_FIELD_NAMES",
    "FeatureAssembler",
    "FeatureRecord",
    "PartnerDescriptor",
    "assemble",
    "context_window",
    "residue_token",
    "PARTNER_TENSOR_FIELDS",
    "rbf_encode",
    "records_to_tensors",
]
