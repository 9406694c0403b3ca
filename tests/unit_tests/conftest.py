import os
import tempfile

import numpy as np
import pytest

from alphamz.constants.keys import IsotopePatternStatus
from alphamz.data.spectrum import PeakList, Scan, Spectrum
from alphamz.isotopes.formula import MolecularFormula
from alphamz.isotopes.ion_type import IonType
from alphamz.isotopes.pattern import IsotopePattern
from alphamz.isotopes.prediction import IsotopePatternPredictor
from alphamz.mobility.binning import Mobilogram


def mock_peak_spectrum(
    peak: list[float] | None = None,
    floor: float = 10.0,
    n_floor: int = 20,
) -> Spectrum:
    """Create a profile spectrum with a single peak on a flat floor

    Parameters
    ----------

    peak : list[float], optional
        Intensities of the peak samples

    floor : float
        Intensity of the flat floor

    n_floor : int
        Number of floor samples on each side of the peak

    Returns
    -------

    spectrum : Spectrum
        Spectrum with equidistant m/z values starting at 100
    """
    if peak is None:
        peak = [50.0, 200.0, 500.0, 200.0, 50.0]

    intensity = np.concatenate(
        [np.full(n_floor, floor), np.array(peak), np.full(n_floor, floor)]
    )
    mz = 100 + np.arange(len(intensity)) * 0.01
    return Spectrum(mz, intensity)


def mock_gaussian_spectrum(
    mean: float = 100.503,
    sigma: float = 0.02,
    norm: float = 1000.0,
    start: float = 100.0,
    stop: float = 101.0,
    step: float = 0.01,
) -> Spectrum:
    """Create a profile spectrum sampled from an analytic gaussian function"""
    mz = start + np.arange(int(round((stop - start) / step))) * step
    intensity = norm * np.exp(-((mz - mean) ** 2) / (2 * sigma**2))
    return Spectrum(mz, intensity)


def mock_mobilogram(mobilities, intensities=None) -> Mobilogram:
    mobilities = np.asarray(mobilities, dtype=np.float64)
    if intensities is None:
        intensities = np.arange(1, len(mobilities) + 1, dtype=np.float64)
    return Mobilogram(mobilities, intensities)


def mock_detected_pattern(
    formula: str = "C6H12O6",
    ion: str = "[M+H]+",
    merge_width: float = 0.005,
    min_intensity: float = 1.0,
) -> IsotopePattern:
    """Create a measured isotope pattern identical to the prediction of a formula and ion type"""
    ion_type = IonType.parse(ion)
    ion_formula = ion_type.ionize(MolecularFormula.parse(formula))
    predicted = IsotopePatternPredictor().predict(
        ion_formula, min_intensity, merge_width, ion_type.charge
    )
    return IsotopePattern(
        predicted.mz_values,
        predicted.intensity_values,
        ion_type.charge,
        status=IsotopePatternStatus.DETECTED,
    )


def mock_scan(mass_list: PeakList | None = None) -> Scan:
    mz = 100 + np.arange(50) * 0.01
    intensity = np.full(50, 10.0)
    return Scan(mz, intensity, scan_number=1, ms_level=1, mass_list=mass_list)


@pytest.fixture
def peak_spectrum():
    return mock_peak_spectrum()


@pytest.fixture
def gaussian_spectrum():
    return mock_gaussian_spectrum()


@pytest.fixture
def tims_traces():
    """Two TIMS traces recorded from high to low mobility"""
    mobilities = np.linspace(1.5, 0.6, 10)
    return [
        mock_mobilogram(mobilities),
        mock_mobilogram(mobilities[2:8], np.full(6, 5.0)),
    ]


def random_tempfolder():
    """Create a randomly named temp folder in the system temp folder

    Returns
    -------
    path : str
        Path to the created temp folder

    """
    tempdir = tempfile.gettempdir()
    # 6 alphanumeric characters
    random_foldername = "alphamz_" + "".join(
        np.random.choice(list("abcdefghijklmnopqrstuvwxyz0123456789"), 6)
    )
    path = os.path.join(tempdir, random_foldername)
    os.makedirs(path, exist_ok=True)
    print(f"Created temp folder: {path}")
    return path
