"""
Amino Acid and Residue Constants.

Contains amino acid mappings, residue tokens, residue-name normalization and
the donor/acceptor atom tables used by the residue-pair interaction detector.
"""

# =============================================================================
# Amino Acid Mappings
# =============================================================================

# Standard 20 amino acids: 3-letter to 1-letter
AMINO_ACID_3TO1 = {
    'ALA': 'A', 'ARG': 'R', 'ASN': 'N', 'ASP': 'D', 'CYS': 'C',
    'GLN': 'Q', 'GLU': 'E', 'GLY': 'G', 'HIS': 'H', 'ILE': 'I',
    'LEU': 'L', 'LYS': 'K', 'MET': 'M', 'PHE': 'F', 'PRO': 'P',
    'SER': 'S', 'THR': 'T', 'TRP': 'W', 'TYR': 'Y', 'VAL': 'V',
}

# Reverse mapping: 1-letter to 3-letter
AMINO_ACID_1TO3 = {v: k for k, v in AMINO_ACID_3TO1.items()}

# List of standard 3-letter codes
AMINO_ACID_LETTERS = list(AMINO_ACID_3TO1.keys())

# Default set of residue types accepted by the structure adapter
STANDARD_RESIDUE_TYPES = frozenset(AMINO_ACID_LETTERS)

# =============================================================================
# Residue Token Mapping
# =============================================================================

RESIDUE_TOKEN = {
    'ALA': 0,  'ARG': 1,  'ASN': 2,  'ASP': 3,  'CYS': 4,
    'GLN': 5,  'GLU': 6,  'GLY': 7,  'HIS': 8,  'ILE': 9,
    'LEU': 10, 'LYS': 11, 'MET': 12, 'PHE': 13, 'PRO': 14,
    'SER': 15, 'THR': 16, 'TRP': 17, 'TYR': 18, 'VAL': 19,
    'UNK': 20, 'XXX': 20,
}

# Token for residue types outside the table (accepted non-standard types)
UNK_RESIDUE_TOKEN = 20

# Token written into sequence-context windows past a chain end
PAD_TOKEN = -1

# =============================================================================
# Backbone Atom Names
# =============================================================================

BACKBONE_ATOMS = ['N', 'CA', 'C', 'O']
BACKBONE_ATOM_SET = frozenset(BACKBONE_ATOMS)

# Atoms that mark a HETATM group as an in-chain residue
POLYMER_BACKBONE_ATOMS = ('N', 'CA', 'C')

# =============================================================================
# Side-chain Dihedral Definitions
# =============================================================================

# Gamma atom closing chi1 (N-CA-CB-XG). GLY and ALA have no chi1.
CHI1_GAMMA_ATOMS = {
    'ARG': 'CG', 'ASN': 'CG', 'ASP': 'CG', 'CYS': 'SG', 'GLN': 'CG',
    'GLU': 'CG', 'HIS': 'CG', 'ILE': 'CG1', 'LEU': 'CG', 'LYS': 'CG',
    'MET': 'CG', 'PHE': 'CG', 'PRO': 'CG', 'SER': 'OG', 'THR': 'OG1',
    'TRP': 'CG', 'TYR': 'CG', 'VAL': 'CG1',
}

# =============================================================================
# Residue Name Normalization Mapping
# =============================================================================

# Protonation states and common modified residues mapped to their parent
# amino acid (heavy-atom names of the parent are preserved).
RESIDUE_NAME_MAPPING = {
    # Histidine protonation states
    'HID': 'HIS', 'HIE': 'HIS', 'HIP': 'HIS',
    'HSD': 'HIS', 'HSE': 'HIS', 'HSP': 'HIS', 'HIN': 'HIS',

    # Cysteine protonation/bonding states
    'CYX': 'CYS', 'CYM': 'CYS', 'CYN': 'CYS',

    # Acid/base protonation states
    'ASH': 'ASP', 'GLH': 'GLU', 'LYN': 'LYS', 'ARN': 'ARG', 'TYM': 'TYR',

    # Modified amino acids common in deposited structures
    'MSE': 'MET',  # Selenomethionine
    'SEP': 'SER',  # Phosphoserine
    'TPO': 'THR',  # Phosphothreonine
    'PTR': 'TYR',  # Phosphotyrosine
    'HYP': 'PRO',  # Hydroxyproline
    'MLY': 'LYS',  # N-dimethyllysine
    'M3L': 'LYS',  # N-trimethyllysine
    'ALY': 'LYS',  # N-acetyllysine
    'CSO': 'CYS',  # S-hydroxycysteine
    'CSS': 'CYS',  # S-mercaptocysteine
    'CME': 'CYS',  # S-methylcysteine
    'OCS': 'CYS',  # Cysteinesulfonic acid
    'MEN': 'ASN',  # N-methylasparagine
    'FME': 'MET',  # N-formylmethionine
}

# Nucleic acid residues (used to infer a chain's polymer type)
DNA_RESIDUES = {'DA', 'DT', 'DG', 'DC', 'DI', 'DU'}
RNA_RESIDUES = {'A', 'U', 'G', 'C', 'I', 'PSU', 'H2U', '1MA', '2MG', '4SU', '5MC', '5MU', 'M2G', 'OMC', 'OMG'}
NUCLEIC_ACID_RESIDUES = DNA_RESIDUES | RNA_RESIDUES

# Water residue names removed by structure sources
WATER_RESIDUES = {'HOH', 'WAT', 'DOD', 'H2O'}

# Common metal ion residue names in PDB files
METAL_RESIDUES = {'ZN', 'CA', 'MG', 'MN', 'FE', 'CU', 'NI', 'CO', 'NA', 'K'}

# =============================================================================
# H-Bond Donor Atoms (heavy atoms bonded to H that can donate)
# =============================================================================
HBOND_DONOR_ATOMS = {
    # Backbone N is donor for all residues except PRO
    # (handled programmatically: if atom_name == 'N' and res_name != 'PRO')
    ('ARG', 'NE'), ('ARG', 'NH1'), ('ARG', 'NH2'),
    ('ASN', 'ND2'),
    ('GLN', 'NE2'),
    ('HIS', 'ND1'), ('HIS', 'NE2'),
    ('LYS', 'NZ'),
    ('SER', 'OG'),
    ('THR', 'OG1'),
    ('TRP', 'NE1'),
    ('TYR', 'OH'),
    ('CYS', 'SG'),
}

# =============================================================================
# H-Bond Acceptor Atoms (atoms with lone pairs that can accept H-bond)
# =============================================================================
HBOND_ACCEPTOR_ATOMS = {
    # Backbone O is acceptor for all residues
    # (handled programmatically: if atom_name == 'O')
    ('ASN', 'OD1'),
    ('ASP', 'OD1'), ('ASP', 'OD2'),
    ('GLN', 'OE1'),
    ('GLU', 'OE1'), ('GLU', 'OE2'),
    ('HIS', 'ND1'), ('HIS', 'NE2'),
    ('MET', 'SD'),
    ('SER', 'OG'),
    ('THR', 'OG1'),
    ('TYR', 'OH'),
}

# Heavy atom bonded to each donor; defines the antecedent-D...A angle used
# when the donor hydrogen cannot be placed.
DONOR_ANTECEDENTS = {
    'N': 'CA',
    ('ARG', 'NE'): 'CD', ('ARG', 'NH1'): 'CZ', ('ARG', 'NH2'): 'CZ',
    ('ASN', 'ND2'): 'CG',
    ('GLN', 'NE2'): 'CD',
    ('HIS', 'ND1'): 'CG', ('HIS', 'NE2'): 'CD2',
    ('LYS', 'NZ'): 'CE',
    ('SER', 'OG'): 'CB',
    ('THR', 'OG1'): 'CB',
    ('TRP', 'NE1'): 'CD1',
    ('TYR', 'OH'): 'CZ',
    ('CYS', 'SG'): 'CB',
}
