from alphamz.constants.settings import DEFAULT_LIBRARY_WEIGHT, DEFAULT_RESOLUTION_WIDTHS
from alphamz.exceptions import InvalidParameterError
from alphamz.isotopes.resolution import Resolution
from alphamz.jitclasses.jit_config import ParameterConfig
from alphamz.scoring.tolerance import MZTolerance


class IsotopeRefinerConfig(ParameterConfig):
    """Config object for refining compound annotations by isotope pattern similarity."""

    def __init__(self):
        self.mz_tolerance = 0.005
        self.ppm_tolerance = 10.0
        self.min_intensity = 1.0
        self.min_isotope_score = 0.5
        self.multi_resolution = False
        self.library_weight = DEFAULT_LIBRARY_WEIGHT
        self.resolutions = [{"width": width} for width in DEFAULT_RESOLUTION_WIDTHS]

    @property
    def mz_tolerance(self) -> float:
        """Absolute m/z tolerance for matching predicted and measured signals.
        Default: `mz_tolerance = 0.005`"""
        return self._mz_tolerance

    @mz_tolerance.setter
    def mz_tolerance(self, value):
        self._mz_tolerance = value

    @property
    def ppm_tolerance(self) -> float:
        """Relative m/z tolerance in ppm, the larger of both tolerances is used.
        Default: `ppm_tolerance = 10.0`"""
        return self._ppm_tolerance

    @ppm_tolerance.setter
    def ppm_tolerance(self, value):
        self._ppm_tolerance = value

    @property
    def min_intensity(self) -> float:
        """Predicted isotope signals below this intensity in percent of the most intense signal are removed.
        Default: `min_intensity = 1.0`"""
        return self._min_intensity

    @min_intensity.setter
    def min_intensity(self, value):
        self._min_intensity = value

    @property
    def min_isotope_score(self) -> float:
        """Annotations with a lower isotope pattern score are removed.
        Default: `min_isotope_score = 0.5`"""
        return self._min_isotope_score

    @min_isotope_score.setter
    def min_isotope_score(self, value):
        self._min_isotope_score = value

    @property
    def multi_resolution(self) -> bool:
        """Score the isotope pattern at all `resolutions` and keep the best score.
        Default: `multi_resolution = False`"""
        return self._multi_resolution

    @multi_resolution.setter
    def multi_resolution(self, value):
        self._multi_resolution = value

    @property
    def library_weight(self) -> float:
        """Weight of the library signal score relative to the score matching all signals.
        Default: `library_weight = 2.0`"""
        return self._library_weight

    @library_weight.setter
    def library_weight(self, value):
        self._library_weight = value

    @property
    def resolutions(self) -> list[dict]:
        """Resolutions used for multi-resolution scoring, each given as `{width: ...}` or `{resolving_power: ...}`.
        Default: widths of 0.0001, 0.001, 0.01 and 0.1"""
        return self._resolutions

    @resolutions.setter
    def resolutions(self, value):
        self._resolutions = value

    @property
    def tolerance(self) -> MZTolerance:
        return MZTolerance(self.mz_tolerance, self.ppm_tolerance)

    def get_resolutions(self) -> list[Resolution]:
        return [Resolution.from_config(entry) for entry in self.resolutions]

    def validate(self):
        """Validate all properties of the config object.
        Should be called whenever a property is changed."""

        if self.mz_tolerance < 0 or self.ppm_tolerance < 0:
            raise InvalidParameterError(
                f"Tolerances must not be negative: {self.mz_tolerance} m/z, {self.ppm_tolerance} ppm"
            )
        if not 0 <= self.min_intensity <= 100:
            raise InvalidParameterError(
                f"The min_intensity: {self.min_intensity} is not between 0 and 100"
            )
        if self.library_weight < 0:
            raise InvalidParameterError(
                f"The library_weight: {self.library_weight} is negative"
            )
        if self.multi_resolution and len(self.resolutions) == 0:
            raise InvalidParameterError(
                "At least one resolution is required for multi-resolution scoring"
            )
        try:
            self.get_resolutions()
        except (ValueError, TypeError) as e:
            raise InvalidParameterError(
                f"Invalid resolutions: {self.resolutions}", detail_msg=str(e)
            ) from e
