import logging

import numba as nb
import numpy as np

from alphamz.data.spectrum import PeakList, Spectrum
from alphamz.peakfinding.config import LocalMaximaConfig
from alphamz.utils import USE_NUMBA_CACHING

logger = logging.getLogger()


@nb.njit(cache=USE_NUMBA_CACHING, nogil=True)
def local_maxima_indices(intensity: np.ndarray, noise_level: float) -> np.ndarray:
    """Indices of samples strictly above their left and not below their right neighbor.

    The first and last sample have only one neighbor and are never reported.
    """
    n_points = len(intensity)
    indices = np.zeros(n_points, dtype=np.int64)
    n_maxima = 0

    for i in range(1, n_points - 1):
        value = intensity[i]
        if value < noise_level:
            continue
        if value > intensity[i - 1] and value >= intensity[i + 1]:
            indices[n_maxima] = i
            n_maxima += 1

    return indices[:n_maxima]


def detect_local_maxima(spectrum: Spectrum, config: LocalMaximaConfig) -> PeakList:
    config.validate()
    indices = local_maxima_indices(
        np.array(spectrum.intensity_values, dtype=np.float64),
        float(config.noise_level),
    )
    return PeakList.from_indices(spectrum, indices)
