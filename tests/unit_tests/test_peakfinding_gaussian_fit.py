import numpy as np
import pytest
from conftest import mock_gaussian_spectrum

from alphamz.data.spectrum import PeakList, Scan, Spectrum
from alphamz.exceptions import InvalidParameterError, MissingPrerequisiteDataError
from alphamz.peakfinding.config import GaussianFitConfig, LocalMaximaConfig
from alphamz.peakfinding.gaussian_fit import detect_gaussian_fit, fit_gaussian, gaussian
from alphamz.peakfinding.local_maxima import detect_local_maxima, local_maxima_indices


def coarse_peaks(spectrum: Spectrum) -> PeakList:
    config = LocalMaximaConfig()
    config.update({"noise_level": 1.0})
    return detect_local_maxima(spectrum, config)


def test_local_maxima_indices():
    # Given: a plateau, a strict maximum and a maximum below the noise level
    intensity = np.array([0, 5, 5, 1, 8, 2, 3, 1, 0], dtype=np.float64)

    # When
    indices = local_maxima_indices(intensity, 2.5)

    # Then: the plateau reports its first sample, the border samples are never reported
    assert np.array_equal(indices, np.array([1, 4, 6]))


def test_gaussian_fit_recovers_mean(gaussian_spectrum):
    # Given: a coarse peak at the sample closest to the true mean
    peak_list = coarse_peaks(gaussian_spectrum)
    assert len(peak_list) == 1
    assert peak_list.get_mz_value(0) == pytest.approx(100.50)

    # When
    refined = detect_gaussian_fit(gaussian_spectrum, GaussianFitConfig(), peak_list)

    # Then: the fitted mean and norm match the analytic function
    assert len(refined) == 1
    assert refined.get_mz_value(0) == pytest.approx(100.503, abs=1e-6)
    assert refined.get_intensity_value(0) == pytest.approx(1000.0, rel=1e-4)


def test_fit_gaussian_on_exact_data():
    # Given
    mz = np.linspace(499.98, 500.02, 5)
    intensity = gaussian(mz, 250.0, 500.004, 0.015)

    # When
    mean, norm = fit_gaussian(mz, intensity)

    # Then
    assert mean == pytest.approx(500.004, abs=1e-6)
    assert norm == pytest.approx(250.0, rel=1e-4)


def test_sparse_peak_passes_through():
    # Given: a spectrum with too few points for a full fitting window
    spectrum = Spectrum([100.0, 100.01, 100.02], [1.0, 5.0, 1.0])
    peak_list = PeakList([100.01], [5.0])

    # When
    refined = detect_gaussian_fit(spectrum, GaussianFitConfig(), peak_list)

    # Then: the peak is returned unchanged
    assert np.array_equal(refined.mz_values, peak_list.mz_values)
    assert np.array_equal(refined.intensity_values, peak_list.intensity_values)


def test_peak_at_spectrum_border_passes_through():
    # Given: a peak one sample away from the first data point
    spectrum = mock_gaussian_spectrum(mean=100.01, start=100.0, stop=100.1)
    peak_list = PeakList([100.01], [1000.0])

    # When
    refined = detect_gaussian_fit(spectrum, GaussianFitConfig(), peak_list)

    # Then
    assert refined.get_mz_value(0) == 100.01
    assert refined.get_intensity_value(0) == 1000.0


def test_mass_list_of_scan_is_used(gaussian_spectrum):
    # Given: a scan carrying the coarse peaks as mass list
    scan = Scan(
        gaussian_spectrum.mz_values,
        gaussian_spectrum.intensity_values,
        mass_list=coarse_peaks(gaussian_spectrum),
    )

    # When
    refined = detect_gaussian_fit(scan, GaussianFitConfig())

    # Then
    assert refined.get_mz_value(0) == pytest.approx(100.503, abs=1e-6)


def test_missing_mass_list_raises(gaussian_spectrum):
    with pytest.raises(MissingPrerequisiteDataError):
        detect_gaussian_fit(gaussian_spectrum, GaussianFitConfig())

    with pytest.raises(MissingPrerequisiteDataError):
        detect_gaussian_fit(
            Scan(gaussian_spectrum.mz_values, gaussian_spectrum.intensity_values),
            GaussianFitConfig(),
        )


def test_invalid_gaussian_fit_config(gaussian_spectrum):
    config = GaussianFitConfig()
    config.update({"half_window": 0})

    with pytest.raises(InvalidParameterError):
        detect_gaussian_fit(gaussian_spectrum, config, PeakList.empty())
