import numpy as np
import pandas as pd

from alphamz.constants.keys import IsotopePatternStatus
from alphamz.data.spectrum import Spectrum


class IsotopePattern(Spectrum):
    """Isotope signals of one charge state, normalized to a maximum intensity of 100."""

    def __init__(
        self,
        mz_values,
        intensity_values,
        charge: int,
        status: str = IsotopePatternStatus.PREDICTED,
        description: str = "",
    ):
        """Isotope signals of one charge state.

        Parameters
        ----------

        mz_values : array-like
            m/z values in non-decreasing order.

        intensity_values : array-like
            Intensities, rescaled so that the most intense signal is 100.

        charge : int
            Signed charge the pattern was predicted or detected for.

        status : str
            One of :class:`alphamz.constants.keys.IsotopePatternStatus`.

        description : str
            Free text, usually the ionized formula.

        """
        intensity_values = np.array(intensity_values, dtype=np.float64)
        if len(intensity_values) > 0:
            max_intensity = np.max(intensity_values)
            if max_intensity > 0:
                intensity_values = intensity_values / max_intensity * 100

        super().__init__(mz_values, intensity_values)

        if status not in IsotopePatternStatus.get_values():
            raise ValueError(f"Unknown isotope pattern status '{status}'")

        self.charge = int(charge)
        self.status = status
        self.description = description

    @property
    def abs_charge(self) -> int:
        return abs(self.charge)

    def to_df(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "mz": self.mz_values.copy(),
                "intensity": self.intensity_values.copy(),
                "charge": self.charge,
            }
        )

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__}, {self.description}, charge={self.charge}, "
            f"status={self.status}, n_signals={len(self)}>"
        )


class MultiChargeStateIsotopePattern:
    """Isotope patterns of the same compound detected in several charge states."""

    def __init__(self, patterns: list[IsotopePattern]):
        if len(patterns) == 0:
            raise ValueError("A multi charge state pattern needs at least one pattern")
        self._patterns = list(patterns)

    @property
    def patterns(self) -> list[IsotopePattern]:
        return list(self._patterns)

    @property
    def charges(self) -> list[int]:
        return [pattern.charge for pattern in self._patterns]

    def get_pattern(self, abs_charge: int) -> IsotopePattern | None:
        """First sub-pattern with the given absolute charge."""
        for pattern in self._patterns:
            if pattern.abs_charge == abs_charge:
                return pattern
        return None

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self):
        return iter(self._patterns)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}, charges={self.charges}>"
