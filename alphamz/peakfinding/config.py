"""Configuration Module for Peak Detection.

Every detector kind has its own parameter object. The `kind` class attribute tags the parameter object
with the algorithm it configures and is used by :func:`alphamz.peakfinding.detector.detect` for dispatching.
"""

import logging

import numba as nb

from alphamz.constants.keys import ConfigKeys, DetectorKind
from alphamz.exceptions import InvalidParameterError
from alphamz.jitclasses.jit_config import JITConfig, ParameterConfig

logger = logging.getLogger()


@nb.experimental.jitclass()
class ZScoreConfigJIT:
    lag: nb.int64
    threshold: nb.float64
    min_points_for_peak: nb.int64
    use_median: nb.boolean
    influence: nb.float64
    noise_level: nb.float64

    def __init__(
        self,
        lag: nb.int64,
        threshold: nb.float64,
        min_points_for_peak: nb.int64,
        use_median: nb.boolean,
        influence: nb.float64,
        noise_level: nb.float64,
    ) -> None:
        """Numba JIT compatible config object for z-score peak detection.
        Will be emitted when `ZScoreConfig.to_jitclass()` is called.

        Please refer to :class:`.alphamz.peakfinding.config.ZScoreConfig` for documentation.
        """

        self.lag = lag
        self.threshold = threshold
        self.min_points_for_peak = min_points_for_peak
        self.use_median = use_median
        self.influence = influence
        self.noise_level = noise_level


class ZScoreConfig(JITConfig):
    """Config object for the adaptive z-score peak detector."""

    kind = DetectorKind.ZSCORE
    _jit_container_type = ZScoreConfigJIT

    def __init__(self):
        """Create default config for z-score peak detection"""
        super().__init__()

        self.lag = 7
        self.threshold = 3.5
        self.min_points_for_peak = 2
        self.use_median = False
        self.influence = 0.5
        self.noise_level = 0.0

    @property
    def lag(self) -> int:
        """Size of the moving window used to calculate the local center and spread.
        Default: `lag = 7`"""
        return self._lag

    @lag.setter
    def lag(self, value):
        self._lag = value

    @property
    def threshold(self) -> float:
        """The z-score above which a sample is considered to be part of a peak.
        Default: `threshold = 3.5`"""
        return self._threshold

    @threshold.setter
    def threshold(self, value):
        self._threshold = value

    @property
    def min_points_for_peak(self) -> int:
        """Minimum number of consecutive samples above the threshold constituting a peak.
        Default: `min_points_for_peak = 2`"""
        return self._min_points_for_peak

    @min_points_for_peak.setter
    def min_points_for_peak(self, value):
        self._min_points_for_peak = value

    @property
    def use_median(self) -> bool:
        """Use the median instead of the mean as local center.
        Default: `use_median = False`"""
        return self._use_median

    @use_median.setter
    def use_median(self, value):
        self._use_median = value

    @property
    def influence(self) -> float:
        """Influence (between 0 and 1) of samples within a peak on the moving window.
        Default: `influence = 0.5`"""
        return self._influence

    @influence.setter
    def influence(self, value):
        self._influence = value

    @property
    def noise_level(self) -> float:
        """Intensities below this value are treated as noise as long as no peak is open.
        Default: `noise_level = 0.0`"""
        return self._noise_level

    @noise_level.setter
    def noise_level(self, value):
        self._noise_level = value

    def validate(self):
        """Validate all properties of the config object.
        Should be called whenever a property is changed."""

        if self.lag < 2:
            raise InvalidParameterError(f"The lag size: {self.lag} is smaller than 2")
        if self.min_points_for_peak < 1:
            raise InvalidParameterError(
                f"The min_points_for_peak value: {self.min_points_for_peak} is smaller than 1"
            )
        if not 0 <= self.influence <= 1:
            raise InvalidParameterError(
                f"The influence: {self.influence} is not between 0 and 1"
            )
        if not isinstance(self.use_median, bool):
            raise InvalidParameterError("use_median must be a boolean")


class GaussianFitConfig(ParameterConfig):
    """Config object for refining peaks by fitting a gaussian function."""

    kind = DetectorKind.GAUSSIAN_FIT

    def __init__(self):
        """Create default config for gaussian fit peak detection"""
        self.half_window = 2
        self.max_iterations = 1000
        self.max_mz_deviation = 1.0

    @property
    def half_window(self) -> int:
        """Number of neighboring data points on each side of a peak used for fitting.
        Peaks without a full window are passed through unchanged.
        Default: `half_window = 2`"""
        return self._half_window

    @half_window.setter
    def half_window(self, value):
        self._half_window = value

    @property
    def max_iterations(self) -> int:
        """Maximum number of function evaluations of the least squares fit.
        Default: `max_iterations = 1000`"""
        return self._max_iterations

    @max_iterations.setter
    def max_iterations(self, value):
        self._max_iterations = value

    @property
    def max_mz_deviation(self) -> float:
        """Fitted peaks further away from the original m/z are discarded.
        Default: `max_mz_deviation = 1.0`"""
        return self._max_mz_deviation

    @max_mz_deviation.setter
    def max_mz_deviation(self, value):
        self._max_mz_deviation = value

    def validate(self):
        # a gaussian has three parameters, at least three points are needed
        if self.half_window < 1:
            raise InvalidParameterError(
                f"The half_window: {self.half_window} is smaller than 1"
            )
        if self.max_iterations < 1:
            raise InvalidParameterError(
                f"The max_iterations: {self.max_iterations} is smaller than 1"
            )
        if self.max_mz_deviation <= 0:
            raise InvalidParameterError(
                f"The max_mz_deviation: {self.max_mz_deviation} must be positive"
            )


class LocalMaximaConfig(ParameterConfig):
    """Config object for the local maxima (centroid) peak detector."""

    kind = DetectorKind.LOCAL_MAXIMA

    def __init__(self):
        """Create default config for local maxima peak detection"""
        self.noise_level = 0.0

    @property
    def noise_level(self) -> float:
        """Local maxima below this intensity are ignored.
        Default: `noise_level = 0.0`"""
        return self._noise_level

    @noise_level.setter
    def noise_level(self, value):
        self._noise_level = value

    def validate(self):
        if self.noise_level < 0:
            raise InvalidParameterError(
                f"The noise_level: {self.noise_level} is negative"
            )


DETECTOR_CONFIGS = {
    DetectorKind.ZSCORE: ZScoreConfig,
    DetectorKind.GAUSSIAN_FIT: GaussianFitConfig,
    DetectorKind.LOCAL_MAXIMA: LocalMaximaConfig,
}


def detector_config_from_config(
    config: dict,
) -> ZScoreConfig | GaussianFitConfig | LocalMaximaConfig:
    """Create the parameter object of the detector selected in an alphamz config.

    Parameters
    ----------

    config : dict
        Full alphamz config, the `peak_detection` section is used.

    Returns
    -------
    ZScoreConfig | GaussianFitConfig | LocalMaximaConfig
        Validated parameter object of the selected detector kind.

    """
    section = config[ConfigKeys.PEAK_DETECTION]
    kind = section[ConfigKeys.DETECTOR_KIND]
    if kind not in DETECTOR_CONFIGS:
        raise InvalidParameterError(
            f"Unknown peak detector '{kind}'",
            detail_msg=f"Available detectors: {', '.join(DETECTOR_CONFIGS)}",
        )

    logger.info(f"Using peak detector '{kind}'")
    return DETECTOR_CONFIGS[kind].from_config(section.get(kind))
