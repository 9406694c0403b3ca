"""Spectrum containers.

Spectra are produced by the (external) raw data layer and consumed by the peak detectors.
Peak lists are produced by the peak detectors and consumed by the isotope pattern scoring.
"""

import logging

import numpy as np
import pandas as pd

from alphamz.utils import search_sorted_closest

logger = logging.getLogger()


def _as_readonly_array(values) -> np.ndarray:
    array = np.array(values, dtype=np.float64)
    if array.ndim != 1:
        raise ValueError(f"Expected a one-dimensional array, got shape {array.shape}")
    array.flags.writeable = False
    return array


class Spectrum:
    """Immutable sequence of (m/z, intensity) pairs sorted by m/z."""

    def __init__(self, mz_values, intensity_values):
        """Immutable sequence of (m/z, intensity) pairs sorted by m/z.

        Parameters
        ----------

        mz_values : array-like
            m/z values of shape `(n_points,)`, must be non-decreasing. Values do not need to be unique.

        intensity_values : array-like
            Intensity values of shape `(n_points,)`.

        """
        mz_values = _as_readonly_array(mz_values)
        intensity_values = _as_readonly_array(intensity_values)

        if mz_values.shape != intensity_values.shape:
            raise ValueError(
                f"m/z and intensity arrays differ in shape: {mz_values.shape} != {intensity_values.shape}"
            )

        if len(mz_values) > 1 and np.any(np.diff(mz_values) < 0):
            raise ValueError("m/z values must be sorted in non-decreasing order")

        self._mz_values = mz_values
        self._intensity_values = intensity_values

    @property
    def mz_values(self) -> np.ndarray:
        """Read-only m/z values of shape `(n_points,)`."""
        return self._mz_values

    @property
    def intensity_values(self) -> np.ndarray:
        """Read-only intensity values of shape `(n_points,)`."""
        return self._intensity_values

    def __len__(self) -> int:
        return len(self._mz_values)

    @property
    def number_of_data_points(self) -> int:
        return len(self)

    def get_mz_value(self, index: int) -> float:
        return float(self._mz_values[index])

    def get_intensity_value(self, index: int) -> float:
        return float(self._intensity_values[index])

    def binary_search(self, mz: float) -> int:
        """Index of the data point with the m/z closest to `mz`, -1 for an empty spectrum."""
        if len(self) == 0:
            return -1
        return search_sorted_closest(self._mz_values, mz)

    @property
    def base_peak_index(self) -> int:
        """Index of the most intense data point, -1 for an empty spectrum."""
        if len(self) == 0:
            return -1
        return int(np.argmax(self._intensity_values))

    @property
    def tic(self) -> float:
        """Total ion current."""
        return float(np.sum(self._intensity_values))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}, n_points={len(self)}>"


class PeakList(Spectrum):
    """Detected peaks as (m/z, intensity) pairs.

    Peak lists are owned by the caller and hold no reference to the spectrum they were detected in.
    """

    @classmethod
    def empty(cls) -> "PeakList":
        return cls(np.zeros(0), np.zeros(0))

    @classmethod
    def from_indices(cls, spectrum: Spectrum, indices: np.ndarray) -> "PeakList":
        """Create a peak list from the indices of data points in a spectrum."""
        return cls(spectrum.mz_values[indices], spectrum.intensity_values[indices])

    def to_df(self) -> pd.DataFrame:
        """Peak list as dataframe with the columns `mz` and `intensity`."""
        return pd.DataFrame(
            {
                "mz": self.mz_values.copy(),
                "intensity": self.intensity_values.copy(),
            }
        )


class Scan(Spectrum):
    """Spectrum acquired in a single scan, optionally carrying the mass list of a previous peak detection."""

    def __init__(
        self,
        mz_values,
        intensity_values,
        scan_number: int = 0,
        ms_level: int = 1,
        mass_list: PeakList | None = None,
    ):
        """Spectrum acquired in a single scan.

        Parameters
        ----------

        mz_values : array-like
            m/z values of shape `(n_points,)`, must be non-decreasing.

        intensity_values : array-like
            Intensity values of shape `(n_points,)`.

        scan_number : int
            Scan number within the raw file.

        ms_level : int
            MS level of the scan.

        mass_list : PeakList, optional
            Peaks detected in this scan by a previous detection run.

        """
        super().__init__(mz_values, intensity_values)
        self.scan_number = scan_number
        self.ms_level = ms_level
        self.mass_list = mass_list

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__}, scan_number={self.scan_number}, "
            f"ms_level={self.ms_level}, n_points={len(self)}>"
        )
