# native imports
import logging

# third party imports
import numba as nb
import numpy as np

# alphamz imports
from alphamz.data.spectrum import PeakList, Spectrum
from alphamz.exceptions import InvalidParameterError
from alphamz.peakfinding.config import ZScoreConfig
from alphamz.utils import USE_NUMBA_CACHING

logger = logging.getLogger()


@nb.njit(inline="always", cache=USE_NUMBA_CACHING)
def _run_apex(intensity: np.ndarray, start: int, stop: int) -> int:
    """Index of the first maximum of `intensity[start:stop]`."""
    apex = start
    for j in range(start + 1, stop):
        if intensity[j] > intensity[apex]:
            apex = j
    return apex


@nb.njit(cache=USE_NUMBA_CACHING, nogil=True)
def zscore_peak_indices(intensity: np.ndarray, config) -> np.ndarray:
    """Detect peaks as runs of samples deviating from a moving window of filtered intensities.

    Samples inside a run only partially enter the filtered signal, weighted by `config.influence`,
    so the local center and spread adapt slowly while a peak is traversed.

    Parameters
    ----------

    intensity : np.ndarray
        Intensity values of shape `(n_points,)` with `n_points >= config.lag`.

    config : ZScoreConfigJIT
        Numba jitclass config.

    Returns
    -------
    np.ndarray
        Sorted indices of the peak apices, dtype int64.

    """
    n_points = len(intensity)
    lag = config.lag

    filtered = intensity.copy()
    peak_indices = np.zeros(n_points, dtype=np.int64)
    n_peaks = 0

    run_start = 0
    run_length = 0

    for i in range(lag, n_points):
        raw = intensity[i]

        if raw < config.noise_level and run_length == 0:
            filtered[i] = raw
            continue

        window = filtered[i - lag : i]
        if config.use_median:
            center = np.median(window)
        else:
            center = np.mean(window)
        spread = np.std(window)

        # a flat window has no spread, any sample above it is a deviation
        if spread > 0:
            exceeded = (raw - center) / spread > config.threshold
        else:
            exceeded = raw > center

        if exceeded:
            if run_length == 0:
                run_start = i
            run_length += 1
            filtered[i] = (
                config.influence * raw + (1 - config.influence) * filtered[i - 1]
            )
        else:
            filtered[i] = raw
            if run_length >= config.min_points_for_peak:
                peak_indices[n_peaks] = _run_apex(intensity, run_start, i)
                n_peaks += 1
            run_length = 0

    # a run still open at the end of the spectrum never closes and is not a peak
    return peak_indices[:n_peaks]


def detect_zscore(spectrum: Spectrum, config: ZScoreConfig) -> PeakList:
    """Detect peaks with the adaptive z-score algorithm.

    Parameters
    ----------

    spectrum : Spectrum
        Profile spectrum.

    config : ZScoreConfig
        Parameters of the detector.

    Returns
    -------
    PeakList
        Detected peaks in m/z order.

    Raises
    ------
    InvalidParameterError
        If the parameters are invalid or the spectrum is shorter than the lag.

    """
    jit_config = config.to_jitclass()

    if len(spectrum) < config.lag:
        raise InvalidParameterError(
            f"The spectrum contains {len(spectrum)} data points which is less than the lag size: {config.lag}"
        )

    peak_indices = zscore_peak_indices(
        np.array(spectrum.intensity_values, dtype=np.float64), jit_config
    )
    logger.debug(f"z-score detection found {len(peak_indices)} peaks in {spectrum}")

    return PeakList.from_indices(spectrum, peak_indices)
