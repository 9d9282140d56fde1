"""Runtime/default constants for configuration, geometry and output layout."""

# Interaction thresholds (Angstrom / degrees)
DEFAULT_CONTACT_RADIUS = 4.0
DEFAULT_HBOND_DISTANCE_MAX = 3.5
DEFAULT_HBOND_ANGLE_MIN = 120.0
# Antecedent-D...A angle used when no donor hydrogen can be placed
DEFAULT_HBOND_ANTECEDENT_ANGLE_MIN = 90.0

# Partner window
DEFAULT_MAX_PARTNERS = 16
DEFAULT_SEQUENCE_WINDOW = 0
PADDING_POLICIES = ("pad-sentinel", "report-count")
DEFAULT_PADDING_POLICY = "pad-sentinel"

# Polymer types
POLYPEPTIDE = "polypeptide"
POLYDEOXYRIBONUCLEOTIDE = "polydeoxyribonucleotide"
POLYRIBONUCLEOTIDE = "polyribonucleotide"
DEFAULT_SUPPORTED_POLYMER_TYPES = (POLYPEPTIDE,)

# Geometry
GEOMETRY_EPSILON = 1e-6
# Longest C(i)-N(i+1) distance still treated as a peptide bond
PEPTIDE_BOND_MAX = 2.0
# Slack added to KD-tree radius queries before the exact distance filter
SPATIAL_QUERY_SLACK = 1e-6

# DSSP electrostatic H-bond model (Kabsch & Sander 1983)
DSSP_Q1Q2 = 0.084
DSSP_F = 332.0
DSSP_NH_LENGTH = 1.0
# Energies below this cap are clipped (kcal/mol)
DSSP_MIN_ENERGY = -9.9

# Output layout
FILL_VALUE = 0.0
TSV_MISSING_TOKEN = "NA"
OUTPUT_FORMATS = ("pt", "tsv")
DEFAULT_OUTPUT_FORMAT = "pt"
DEFAULT_RBF_BINS = 16
DEFAULT_RBF_D_MAX = 20.0

# Structure file lookup
STRUCTURE_FILE_PATTERNS = (
    "{code}.cif", "{code}.cif.gz",
    "{code}.pdb", "{code}.pdb.gz",
    "pdb{code}.ent", "pdb{code}.ent.gz",
)
