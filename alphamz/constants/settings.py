"""Numerical constants shared across modules."""

# mass of an electron in Da
ELECTRON_MASS = 0.00054857990946

# added to the last mobility of a bin to make bin membership robust against round-off
MOBILITY_EPSILON = 0.00001

# mobility spacing a single TIMS bin should approximately cover
TIMS_TARGET_BIN_SIZE = 0.0008

# fraction of the total isotope probability covered by the enumerated isotopologues
ISOTOPE_PROB_TO_COVER = 0.99999

# isotopologues closer than this are always merged (Da)
ISOTOPE_FINE_MERGE_WIDTH = 1e-6

# weight of the library based score when combining multi-resolution scores
DEFAULT_LIBRARY_WEIGHT = 2.0

# absolute m/z widths used for multi-resolution isotope prediction
DEFAULT_RESOLUTION_WIDTHS = [0.0001, 0.001, 0.01, 0.1]
