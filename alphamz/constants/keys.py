class ConstantsClass(type):
    """A metaclass for read-only classes of constants."""

    def __setattr__(self, name, value):
        raise TypeError("Constants class cannot be modified")

    def get_values(cls):
        """Get all user-defined string values of the class."""
        return [
            value
            for key, value in cls.__dict__.items()
            if not key.startswith("__") and isinstance(value, str)
        ]


class ConfigKeys(metaclass=ConstantsClass):
    """String constants for accessing the config."""

    GENERAL = "general"
    THREAD_COUNT = "thread_count"

    PEAK_DETECTION = "peak_detection"
    DETECTOR_KIND = "kind"

    MOBILOGRAM_BINNING = "mobilogram_binning"
    BIN_WIDTH = "bin_width"
    MOBILITY_TYPE = "mobility_type"

    ISOTOPE_REFINEMENT = "isotope_refinement"


class DetectorKind(metaclass=ConstantsClass):
    """String constants for the available peak detection algorithms."""

    ZSCORE = "zscore"
    GAUSSIAN_FIT = "gaussian_fit"
    LOCAL_MAXIMA = "local_maxima"


class MobilityType(metaclass=ConstantsClass):
    """String constants for ion mobility instrument types."""

    NONE = "none"
    TIMS = "tims"
    DRIFT_TUBE = "drift_tube"
    TRAVELING_WAVE = "traveling_wave"
    FAIMS = "faims"


class Polarity(metaclass=ConstantsClass):
    """String constants for the ion polarity."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class IsotopePatternStatus(metaclass=ConstantsClass):
    """String constants describing where an isotope pattern comes from."""

    PREDICTED = "predicted"
    DETECTED = "detected"


class UnmatchedSignalPolicy(metaclass=ConstantsClass):
    """String constants for handling signals without a counterpart during spectral matching."""

    # drop all signals without a counterpart
    REMOVE_ALL = "remove_all"
    # keep all signals, a missing counterpart is treated as zero intensity
    KEEP_ALL_AND_MATCH_TO_ZERO = "keep_all_and_match_to_zero"
    # keep unmatched library (predicted) signals, drop unmatched experimental signals
    KEEP_LIBRARY_SIGNALS = "keep_library_signals"
    # keep unmatched experimental signals, drop unmatched library signals
    KEEP_EXPERIMENTAL_SIGNALS = "keep_experimental_signals"


class AnnotationState(metaclass=ConstantsClass):
    """String constants for the refinement state of a compound annotation."""

    UNSCORED = "unscored"
    SCORED = "scored"
    RETAINED = "retained"
    DISCARDED = "discarded"


class AnnotationReportCols(metaclass=ConstantsClass):
    """String constants for the columns of the refinement report."""

    ROW_ID = "row_id"
    COMPOUND_NAME = "compound_name"
    ION_TYPE = "ion_type"
    FORMULA = "formula"
    SCORE = "score"
    BEST_RESOLUTION = "best_resolution"
    STATE = "state"
    RETAINED = "retained"
