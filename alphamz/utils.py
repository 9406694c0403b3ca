import logging
import os

import numpy as np

logger = logging.getLogger()


USE_NUMBA_CACHING = os.environ.get("USE_NUMBA_CACHING", "0") == "1"


def search_sorted_closest(values: np.ndarray, target: float) -> int:
    """Find the index of the value closest to `target` in a sorted array.

    Ties are resolved towards the lower index.

    Parameters
    ----------

    values : np.ndarray
        Sorted one-dimensional array, must not be empty.

    target : float
        Value to search for.

    Returns
    -------
    int
        Index of the closest value.

    """
    right = int(np.searchsorted(values, target, side="left"))
    if right == 0:
        return 0
    if right == len(values):
        return len(values) - 1
    left = right - 1
    if target - values[left] <= values[right] - target:
        return left
    return right
