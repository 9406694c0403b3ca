"""Cosine similarity of library (predicted) and measured signals.

Signals are first aligned within an m/z tolerance. Library signals are processed from the most to the least
intense signal, each claiming the most intense unclaimed measured signal within tolerance. The handling of
signals without a counterpart is selected by an :class:`alphamz.constants.keys.UnmatchedSignalPolicy`.
Intensities are weighted by `mz ** mz_factor * intensity ** intensity_factor` before computing the cosine.

Example
-------

.. code-block:: python

    result = score(
        predicted_pattern,
        measured_peaks,
        MZTolerance(0.005, 10),
        weights=Weights.SQRT,
        unmatched_policy=UnmatchedSignalPolicy.KEEP_LIBRARY_SIGNALS,
    )
    if result is not None:
        print(result.score)

"""

# native imports
import logging
from dataclasses import dataclass

# third party imports
import numba as nb
import numpy as np

# alphamz imports
from alphamz.constants.keys import ConstantsClass, UnmatchedSignalPolicy
from alphamz.data.spectrum import Spectrum
from alphamz.scoring.tolerance import MZTolerance
from alphamz.utils import USE_NUMBA_CACHING

logger = logging.getLogger()


@dataclass(frozen=True)
class SignalWeights:
    """Signal weighting `mz ** mz_factor * intensity ** intensity_factor`."""

    name: str
    mz_factor: float
    intensity_factor: float

    def apply(self, mz_values: np.ndarray, intensity_values: np.ndarray) -> np.ndarray:
        weighted = np.power(intensity_values, self.intensity_factor)
        if self.mz_factor != 0:
            weighted = weighted * np.power(mz_values, self.mz_factor)
        # zero intensities stay zero for any factor
        weighted[intensity_values <= 0] = 0
        return weighted


class Weights(metaclass=ConstantsClass):
    """Common signal weightings of spectral libraries."""

    SQRT = SignalWeights("sqrt", 0.0, 0.5)
    NONE = SignalWeights("none", 0.0, 1.0)
    MASSBANK = SignalWeights("massbank", 2.0, 0.5)
    NIST11 = SignalWeights("nist11", 1.3, 0.53)
    NIST_GC = SignalWeights("nist_gc", 3.0, 0.6)


@dataclass(frozen=True)
class SimilarityResult:
    """Cosine similarity in [0, 1] and the number of aligned signal pairs."""

    score: float
    overlap: int


@nb.njit(cache=USE_NUMBA_CACHING, nogil=True)
def align_signals(
    library_mz: np.ndarray,
    library_intensity: np.ndarray,
    measured_mz: np.ndarray,
    measured_intensity: np.ndarray,
    mz_tolerance: float,
    ppm_tolerance: float,
) -> np.ndarray:
    """Assign measured signals to library signals.

    Parameters
    ----------

    library_mz : np.ndarray
        m/z values of the library signals.

    library_intensity : np.ndarray
        Intensities of the library signals.

    measured_mz : np.ndarray
        m/z values of the measured signals, sorted ascending.

    measured_intensity : np.ndarray
        Intensities of the measured signals.

    mz_tolerance : float
        Absolute tolerance.

    ppm_tolerance : float
        Relative tolerance, the larger of both tolerances is used.

    Returns
    -------
    np.ndarray
        Index of the measured signal matched to each library signal, -1 if unmatched.

    """
    matches = np.full(len(library_mz), -1, dtype=np.int64)
    claimed = np.zeros(len(measured_mz), dtype=np.bool_)

    order = np.argsort(-library_intensity, kind="mergesort")

    for k in order:
        mz = library_mz[k]
        tolerance = max(mz_tolerance, abs(mz) * ppm_tolerance * 1e-6)
        start = np.searchsorted(measured_mz, mz - tolerance, side="left")
        stop = np.searchsorted(measured_mz, mz + tolerance, side="right")

        best = -1
        for j in range(start, stop):
            if claimed[j]:
                continue
            if best == -1 or measured_intensity[j] > measured_intensity[best]:
                best = j

        if best >= 0:
            claimed[best] = True
            matches[k] = best

    return matches


def align(
    library: Spectrum, measured: Spectrum, tolerance: MZTolerance
) -> np.ndarray:
    """Index of the measured signal matched to each library signal, -1 if unmatched."""
    return align_signals(
        np.array(library.mz_values, dtype=np.float64),
        np.array(library.intensity_values, dtype=np.float64),
        np.array(measured.mz_values, dtype=np.float64),
        np.array(measured.intensity_values, dtype=np.float64),
        float(tolerance.mz_tolerance),
        float(tolerance.ppm_tolerance),
    )


def _paired_vectors(
    library: Spectrum, measured: Spectrum, matches: np.ndarray, unmatched_policy: str
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """m/z and intensity vectors of library and measured side, aligned pairwise."""
    library_mz = library.mz_values
    library_intensity = library.intensity_values
    measured_mz = measured.mz_values
    measured_intensity = measured.intensity_values

    is_matched = matches >= 0
    matched_library = np.flatnonzero(is_matched)
    matched_measured = matches[is_matched]

    lib_mz = [library_mz[matched_library]]
    lib_int = [library_intensity[matched_library]]
    meas_mz = [measured_mz[matched_measured]]
    meas_int = [measured_intensity[matched_measured]]

    if unmatched_policy in (
        UnmatchedSignalPolicy.KEEP_LIBRARY_SIGNALS,
        UnmatchedSignalPolicy.KEEP_ALL_AND_MATCH_TO_ZERO,
    ):
        unmatched_library = np.flatnonzero(~is_matched)
        lib_mz.append(library_mz[unmatched_library])
        lib_int.append(library_intensity[unmatched_library])
        meas_mz.append(library_mz[unmatched_library])
        meas_int.append(np.zeros(len(unmatched_library)))

    if unmatched_policy in (
        UnmatchedSignalPolicy.KEEP_EXPERIMENTAL_SIGNALS,
        UnmatchedSignalPolicy.KEEP_ALL_AND_MATCH_TO_ZERO,
    ):
        is_claimed = np.zeros(len(measured_mz), dtype=bool)
        is_claimed[matched_measured] = True
        unmatched_measured = np.flatnonzero(~is_claimed)
        lib_mz.append(measured_mz[unmatched_measured])
        lib_int.append(np.zeros(len(unmatched_measured)))
        meas_mz.append(measured_mz[unmatched_measured])
        meas_int.append(measured_intensity[unmatched_measured])

    return (
        np.concatenate(lib_mz),
        np.concatenate(lib_int),
        np.concatenate(meas_mz),
        np.concatenate(meas_int),
    )


def score(
    library: Spectrum,
    measured: Spectrum,
    tolerance: MZTolerance,
    weights: SignalWeights = Weights.SQRT,
    unmatched_policy: str = UnmatchedSignalPolicy.KEEP_LIBRARY_SIGNALS,
    min_matched_signals: int = 1,
) -> SimilarityResult | None:
    """Weighted cosine similarity of library and measured signals.

    Parameters
    ----------

    library : Spectrum
        Library signals, usually a predicted isotope pattern.

    measured : Spectrum
        Measured signals.

    tolerance : MZTolerance
        Tolerance for aligning signals.

    weights : SignalWeights, optional
        Signal weighting. By default `Weights.SQRT`.

    unmatched_policy : str, optional
        One of :class:`alphamz.constants.keys.UnmatchedSignalPolicy`. By default `KEEP_LIBRARY_SIGNALS`.

    min_matched_signals : int, optional
        Minimum number of aligned pairs. By default 1.

    Returns
    -------
    SimilarityResult | None
        None if fewer than `min_matched_signals` signals are aligned or a weighted vector is all zero.

    """
    if unmatched_policy not in UnmatchedSignalPolicy.get_values():
        raise ValueError(f"Unknown unmatched signal policy '{unmatched_policy}'")
    if min_matched_signals < 1:
        raise ValueError(
            f"min_matched_signals must be at least 1, got {min_matched_signals}"
        )

    if len(library) == 0 or len(measured) == 0:
        return None

    matches = align(library, measured, tolerance)
    overlap = int(np.sum(matches >= 0))
    if overlap < min_matched_signals:
        return None

    lib_mz, lib_int, meas_mz, meas_int = _paired_vectors(
        library, measured, matches, unmatched_policy
    )

    lib_weighted = weights.apply(lib_mz, lib_int)
    meas_weighted = weights.apply(meas_mz, meas_int)

    norm = np.linalg.norm(lib_weighted) * np.linalg.norm(meas_weighted)
    if norm == 0:
        return None

    cosine = float(np.dot(lib_weighted, meas_weighted) / norm)
    return SimilarityResult(score=min(1.0, max(0.0, cosine)), overlap=overlap)
