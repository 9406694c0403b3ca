"""Binning of ion mobility traces.

Raw mobilograms of an ion are recorded at the mobility values of the instrument's scans. Summing many raw traces
into a common grid of bins yields a single denoised mobilogram. The bins are derived once per raw file from the
distinct mobility values of representative traces, grouping `bin_width` consecutive values into one bin.

Example
-------

.. code-block:: python

    binner = MobilogramBinner(representative_traces, bin_width=2, mobility_type=MobilityType.TIMS)
    binner.set_mobilograms(ion_traces)
    summed = binner.to_summed_mobilogram()

"""

# native imports
import logging

# third party imports
import numba as nb
import numpy as np
import pandas as pd

# alphamz imports
from alphamz.constants.keys import ConfigKeys, MobilityType
from alphamz.constants.settings import MOBILITY_EPSILON, TIMS_TARGET_BIN_SIZE
from alphamz.exceptions import InvalidParameterError
from alphamz.utils import USE_NUMBA_CACHING

logger = logging.getLogger()


class Mobilogram:
    """Intensities recorded along the ion mobility dimension."""

    def __init__(self, mobilities, intensities):
        self.mobilities = np.array(mobilities, dtype=np.float64)
        self.intensities = np.array(intensities, dtype=np.float64)

        if self.mobilities.ndim != 1 or self.mobilities.shape != self.intensities.shape:
            raise ValueError(
                f"mobilities and intensities must be one-dimensional arrays of the same shape, "
                f"got {self.mobilities.shape} and {self.intensities.shape}"
            )

    def __len__(self) -> int:
        return len(self.mobilities)

    @property
    def total_intensity(self) -> float:
        return float(np.sum(self.intensities))

    def to_df(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"mobility": self.mobilities, "intensity": self.intensities}
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}, n_points={len(self)}>"


class BinnedMobilogram(Mobilogram):
    """Mobilogram summed into bins, remembering the bin width it was created with."""

    def __init__(self, mobilities, intensities, bin_width: int):
        super().__init__(mobilities, intensities)
        self.bin_width = bin_width

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}, n_bins={len(self)}, bin_width={self.bin_width}>"


def get_recommended_bin_width(mobility_type: str, mobilities: np.ndarray) -> int:
    """Recommend a bin width for a mobility type.

    TIMS instruments record mobilities on a fine, nearly equidistant grid. Bins should span roughly
    `TIMS_TARGET_BIN_SIZE`. All other instrument types use one bin per recorded mobility.

    Parameters
    ----------

    mobility_type : str
        One of :class:`alphamz.constants.keys.MobilityType`.

    mobilities : np.ndarray
        Mobility values of the scans of one frame.

    Returns
    -------
    int
        Recommended bin width, at least 1.

    """
    if mobility_type != MobilityType.TIMS:
        return 1

    mobilities = np.sort(np.unique(np.asarray(mobilities, dtype=np.float64)))
    if len(mobilities) < 2:
        return 1

    middle = len(mobilities) // 2
    delta = mobilities[middle] - mobilities[middle - 1]
    if delta <= 0:
        return 1

    return max(1, int(TIMS_TARGET_BIN_SIZE / delta))


@nb.njit(cache=USE_NUMBA_CACHING)
def build_bins(
    distinct_mobilities: np.ndarray, bin_width: int, epsilon: float
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Group sorted distinct mobilities into bins.

    Parameters
    ----------

    distinct_mobilities : np.ndarray
        Sorted, distinct mobility values.

    bin_width : int
        Number of distinct values per bin. The last bin may contain fewer values.

    epsilon : float
        Margin added to the upper edge of a bin.

    Returns
    -------
    np.ndarray
        Bin centers, the mean of the member values.

    np.ndarray
        Exclusive lower edges.

    np.ndarray
        Inclusive upper edges.

    """
    n_values = len(distinct_mobilities)
    n_bins = (n_values + bin_width - 1) // bin_width

    centers = np.zeros(n_bins, dtype=np.float64)
    lower_edges = np.zeros(n_bins, dtype=np.float64)
    upper_edges = np.zeros(n_bins, dtype=np.float64)

    for i in range(n_bins):
        start = i * bin_width
        stop = min(start + bin_width, n_values)
        centers[i] = np.mean(distinct_mobilities[start:stop])
        upper_edges[i] = distinct_mobilities[stop - 1] + epsilon
        if i == 0:
            # mobility 0 is a valid value for drift tubes
            lower_edges[i] = -epsilon
        else:
            lower_edges[i] = upper_edges[i - 1]

    return centers, lower_edges, upper_edges


@nb.njit(cache=USE_NUMBA_CACHING, nogil=True)
def accumulate_trace(
    mobilities: np.ndarray,
    intensities: np.ndarray,
    lower_edges: np.ndarray,
    upper_edges: np.ndarray,
    ascending: bool,
    summed: np.ndarray,
) -> int:
    """Add the intensities of a monotonic trace to the bins it falls into.

    The bins are traversed with a cursor moving in the direction of the trace, so every bin is visited at most once.

    Returns
    -------
    int
        Number of samples assigned to a bin.

    """
    n_bins = len(upper_edges)
    n_assigned = 0

    if ascending:
        cursor = 0
        for i in range(len(mobilities)):
            value = mobilities[i]
            while cursor < n_bins and value > upper_edges[cursor]:
                cursor += 1
            if cursor == n_bins:
                break
            if value > lower_edges[cursor]:
                summed[cursor] += intensities[i]
                n_assigned += 1
    else:
        cursor = n_bins - 1
        for i in range(len(mobilities)):
            value = mobilities[i]
            while cursor >= 0 and value <= lower_edges[cursor]:
                cursor -= 1
            if cursor < 0:
                break
            if value <= upper_edges[cursor]:
                summed[cursor] += intensities[i]
                n_assigned += 1

    return n_assigned


class MobilogramBinner:
    def __init__(
        self,
        representative_traces: list[Mobilogram],
        bin_width: int = 1,
        mobility_type: str = MobilityType.TIMS,
    ):
        """Sum mobility traces into a common grid of bins.

        Parameters
        ----------

        representative_traces : list[Mobilogram]
            Traces covering the mobility values recorded in the raw file, used to set up the bins.

        bin_width : int
            Number of distinct mobility values summed into one bin, must be at least 1.

        mobility_type : str
            One of :class:`alphamz.constants.keys.MobilityType`. Determines the acquisition order of single-point traces.

        """
        if not isinstance(bin_width, int | np.integer) or bin_width < 1:
            raise InvalidParameterError(
                f"The bin_width: {bin_width} must be an integer of at least 1"
            )
        if mobility_type not in MobilityType.get_values():
            raise InvalidParameterError(f"Unknown mobility type '{mobility_type}'")

        self.bin_width = int(bin_width)
        self.mobility_type = mobility_type

        if len(representative_traces) > 0:
            distinct_mobilities = np.unique(
                np.concatenate([trace.mobilities for trace in representative_traces])
            )
        else:
            distinct_mobilities = np.zeros(0, dtype=np.float64)

        self.centers, self.lower_edges, self.upper_edges = build_bins(
            distinct_mobilities, self.bin_width, MOBILITY_EPSILON
        )
        self._summed = np.zeros(len(self.centers), dtype=np.float64)

        if len(distinct_mobilities) > 1:
            approximate_bin_size = (
                np.mean(np.diff(distinct_mobilities)) * self.bin_width
            )
            logger.info(
                f"Mobilogram binning with {len(self.centers):,} bins, bin_width {self.bin_width}, "
                f"approximate_bin_size {approximate_bin_size:.5f}"
            )

    @classmethod
    def from_config(
        cls, representative_traces: list[Mobilogram], config: dict
    ) -> "MobilogramBinner":
        """Create a binner from the `mobilogram_binning` section of an alphamz config."""
        section = config[ConfigKeys.MOBILOGRAM_BINNING]
        return cls(
            representative_traces,
            bin_width=section[ConfigKeys.BIN_WIDTH],
            mobility_type=section[ConfigKeys.MOBILITY_TYPE],
        )

    @property
    def n_bins(self) -> int:
        return len(self.centers)

    def _is_ascending(self, mobilities: np.ndarray) -> bool:
        if len(mobilities) > 1:
            return bool(mobilities[-1] >= mobilities[0])
        # TIMS frames are acquired from high to low mobility
        return self.mobility_type != MobilityType.TIMS

    def _accumulate(self, mobilities: np.ndarray, intensities: np.ndarray):
        n_assigned = accumulate_trace(
            mobilities,
            intensities,
            self.lower_edges,
            self.upper_edges,
            self._is_ascending(mobilities),
            self._summed,
        )
        if n_assigned != len(mobilities):
            logger.warning(
                f"Assigned {n_assigned} of {len(mobilities)} mobility samples to bins"
            )

    def set_mobilograms(self, traces: list[Mobilogram]):
        """Sum raw traces into the bins, replacing any previously summed intensities."""
        self._summed = np.zeros(self.n_bins, dtype=np.float64)
        for trace in traces:
            self._accumulate(trace.mobilities, trace.intensities)

    def set_summed_mobilogram(self, mobilogram: BinnedMobilogram):
        """Re-bin a previously binned mobilogram, replacing any previously summed intensities.

        Raises
        ------
        InvalidParameterError
            If the mobilogram was binned with a larger bin width than this binner uses.

        """
        if mobilogram.bin_width > self.bin_width:
            raise InvalidParameterError(
                f"Can not re-bin a mobilogram binned with bin_width {mobilogram.bin_width} "
                f"at the finer bin_width {self.bin_width}"
            )
        self._summed = np.zeros(self.n_bins, dtype=np.float64)
        self._accumulate(mobilogram.mobilities, mobilogram.intensities)

    def to_summed_mobilogram(self) -> BinnedMobilogram:
        """Summed mobilogram with leading and trailing empty bins removed.

        At most one empty bin is kept on each side of the outermost non-empty bins.
        """
        non_zero = np.flatnonzero(self._summed)
        if len(non_zero) == 0:
            return BinnedMobilogram(np.zeros(0), np.zeros(0), self.bin_width)

        start = max(0, non_zero[0] - 1)
        stop = min(self.n_bins, non_zero[-1] + 2)

        return BinnedMobilogram(
            self.centers[start:stop].copy(),
            self._summed[start:stop].copy(),
            self.bin_width,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}, n_bins={self.n_bins}, bin_width={self.bin_width}>"
