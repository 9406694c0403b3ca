# native imports
import logging

# third party imports
import numpy as np
from scipy.optimize import curve_fit

# alphamz imports
from alphamz.data.spectrum import PeakList, Scan, Spectrum
from alphamz.exceptions import MissingPrerequisiteDataError
from alphamz.peakfinding.config import GaussianFitConfig

logger = logging.getLogger()


def gaussian(x, norm, mean, sigma):
    return norm * np.exp(-((x - mean) ** 2) / (2 * sigma**2))


def fit_gaussian(
    mz_values: np.ndarray, intensity_values: np.ndarray, max_iterations: int = 1000
) -> tuple[float, float] | None:
    """Fit a gaussian function to a small window of a profile spectrum.

    The fit is performed relative to the m/z of the most intense point to keep the problem well conditioned.

    Parameters
    ----------

    mz_values : np.ndarray
        m/z values of the window.

    intensity_values : np.ndarray
        Intensity values of the window.

    max_iterations : int
        Maximum number of function evaluations.

    Returns
    -------
    tuple[float, float] | None
        Fitted mean and norm or None if the fit failed.

    """
    apex = int(np.argmax(intensity_values))
    origin = mz_values[apex]
    x = mz_values - origin

    total = np.sum(intensity_values)
    if total > 0:
        sigma_guess = np.sqrt(np.sum(intensity_values * x**2) / total)
    else:
        sigma_guess = 0.0
    if not sigma_guess > 0:
        sigma_guess = (x[-1] - x[0]) / 4

    p0 = (intensity_values[apex], 0.0, sigma_guess)

    try:
        popt, _ = curve_fit(gaussian, x, intensity_values, p0=p0, maxfev=max_iterations)
    except (RuntimeError, ValueError) as e:
        logger.debug(f"Gaussian fit failed at m/z {origin:.5f}: {e}")
        return None

    norm, mean, _ = popt
    if not (np.isfinite(norm) and np.isfinite(mean)):
        return None

    return float(mean + origin), float(norm)


def detect_gaussian_fit(
    spectrum: Spectrum,
    config: GaussianFitConfig,
    peak_list: PeakList | None = None,
) -> PeakList:
    """Refine the peaks of a coarse peak list by fitting gaussian functions to the profile spectrum.

    Parameters
    ----------

    spectrum : Spectrum
        Profile spectrum. If no `peak_list` is passed, the spectrum must be a :class:`Scan` with a mass list.

    config : GaussianFitConfig
        Parameters of the detector.

    peak_list : PeakList, optional
        Coarse peaks to refine.

    Returns
    -------
    PeakList
        Refined peaks in m/z order.

    Raises
    ------
    MissingPrerequisiteDataError
        If no coarse peak list is available.

    """
    config.validate()

    if peak_list is None and isinstance(spectrum, Scan):
        peak_list = spectrum.mass_list

    if peak_list is None:
        raise MissingPrerequisiteDataError(
            f"No mass list available for {spectrum}, gaussian fit requires a previous peak detection"
        )

    n_window = 2 * config.half_window + 1
    mz_values = spectrum.mz_values
    intensity_values = spectrum.intensity_values

    refined_mz = []
    refined_intensity = []
    n_skipped = 0

    for peak_mz, peak_intensity in zip(
        peak_list.mz_values, peak_list.intensity_values, strict=True
    ):
        index = spectrum.binary_search(peak_mz)
        if index < 0:
            continue

        start = max(0, index - config.half_window)
        stop = min(len(spectrum), index + config.half_window + 1)

        if stop - start < n_window:
            refined_mz.append(peak_mz)
            refined_intensity.append(peak_intensity)
            continue

        fit = fit_gaussian(
            mz_values[start:stop], intensity_values[start:stop], config.max_iterations
        )
        if fit is None:
            n_skipped += 1
            continue

        mean, norm = fit
        if abs(mean - peak_mz) > config.max_mz_deviation:
            n_skipped += 1
            continue

        refined_mz.append(mean)
        refined_intensity.append(norm)

    if n_skipped > 0:
        logger.debug(f"Gaussian fit skipped {n_skipped} of {len(peak_list)} peaks")

    refined_mz = np.array(refined_mz, dtype=np.float64)
    refined_intensity = np.array(refined_intensity, dtype=np.float64)
    order = np.argsort(refined_mz, kind="stable")

    return PeakList(refined_mz[order], refined_intensity[order])
