import logging

import numpy as np
import pytest
from conftest import mock_mobilogram

from alphamz.config import load_default_config
from alphamz.constants.keys import MobilityType
from alphamz.exceptions import InvalidParameterError
from alphamz.mobility.binning import (
    BinnedMobilogram,
    MobilogramBinner,
    build_bins,
    get_recommended_bin_width,
)


def test_build_bins():
    # Given
    distinct_mobilities = np.array([0.0, 1.0, 2.0, 3.0, 4.0])

    # When
    centers, lower_edges, upper_edges = build_bins(distinct_mobilities, 2, 1e-5)

    # Then: the last bin holds the remaining value
    assert np.allclose(centers, [0.5, 2.5, 4.0])
    assert np.allclose(lower_edges, [-1e-5, 1.00001, 3.00001])
    assert np.allclose(upper_edges, [1.00001, 3.00001, 4.00001])


def test_tims_trace_is_binned(tims_traces):
    # Given: traces recorded from high to low mobility
    binner = MobilogramBinner(tims_traces, bin_width=1, mobility_type=MobilityType.TIMS)

    # When
    binner.set_mobilograms(tims_traces[:1])
    summed = binner.to_summed_mobilogram()

    # Then: bins are ordered by ascending mobility and every sample is assigned
    assert np.allclose(summed.mobilities, np.linspace(0.6, 1.5, 10))
    assert np.allclose(summed.intensities, np.arange(10, 0, -1))
    assert summed.bin_width == 1


def test_traces_are_summed(tims_traces):
    binner = MobilogramBinner(tims_traces, bin_width=1)

    binner.set_mobilograms(tims_traces)
    summed = binner.to_summed_mobilogram()

    assert summed.total_intensity == pytest.approx(
        sum(trace.total_intensity for trace in tims_traces)
    )


def test_set_mobilograms_replaces_previous_sum(tims_traces):
    binner = MobilogramBinner(tims_traces, bin_width=1)

    binner.set_mobilograms(tims_traces)
    binner.set_mobilograms(tims_traces[1:])

    assert binner.to_summed_mobilogram().total_intensity == pytest.approx(30.0)


def test_rebinning_at_same_width_is_idempotent(tims_traces):
    # Given
    binner = MobilogramBinner(tims_traces, bin_width=2)
    binner.set_mobilograms(tims_traces)
    summed = binner.to_summed_mobilogram()

    # When
    binner.set_summed_mobilogram(summed)
    rebinned = binner.to_summed_mobilogram()

    # Then
    assert np.allclose(rebinned.mobilities, summed.mobilities)
    assert np.allclose(rebinned.intensities, summed.intensities)


@pytest.mark.parametrize("coarse_bin_width", [2, 3, 4])
def test_coarsening_conserves_intensity(tims_traces, coarse_bin_width):
    # Given: a mobilogram binned at width 1
    fine_binner = MobilogramBinner(tims_traces, bin_width=1)
    fine_binner.set_mobilograms(tims_traces)
    fine = fine_binner.to_summed_mobilogram()

    # When: re-binned at a coarser width
    coarse_binner = MobilogramBinner(tims_traces, bin_width=coarse_bin_width)
    coarse_binner.set_summed_mobilogram(fine)
    coarse = coarse_binner.to_summed_mobilogram()

    # Then
    assert coarse.total_intensity == pytest.approx(fine.total_intensity)
    assert len(coarse) < len(fine)
    assert coarse.bin_width == coarse_bin_width


def test_rebinning_at_finer_width_raises(tims_traces):
    binner = MobilogramBinner(tims_traces, bin_width=1)
    coarse = BinnedMobilogram([0.7, 0.9], [1.0, 2.0], bin_width=2)

    with pytest.raises(InvalidParameterError):
        binner.set_summed_mobilogram(coarse)


@pytest.mark.parametrize(
    "non_zero_indices, expected_start, expected_stop",
    [
        ([4, 5], 3, 7),
        ([0, 1], 0, 3),
        ([8, 9], 7, 10),
        ([2, 7], 1, 9),
    ],
)
def test_output_keeps_one_zero_bin_of_padding(non_zero_indices, expected_start, expected_stop):
    # Given: a drift tube trace starting at mobility 0 with signal at a few scans only
    mobilities = np.arange(10, dtype=np.float64)
    intensities = np.zeros(10)
    intensities[non_zero_indices] = 1.0
    binner = MobilogramBinner(
        [mock_mobilogram(mobilities)], bin_width=1, mobility_type=MobilityType.DRIFT_TUBE
    )

    # When
    binner.set_mobilograms([mock_mobilogram(mobilities, intensities)])
    summed = binner.to_summed_mobilogram()

    # Then
    assert np.allclose(summed.mobilities, mobilities[expected_start:expected_stop])
    assert np.allclose(summed.intensities, intensities[expected_start:expected_stop])


def test_all_zero_output_is_empty(tims_traces):
    binner = MobilogramBinner(tims_traces, bin_width=1)

    binner.set_mobilograms([mock_mobilogram([1.0, 0.9], [0.0, 0.0])])

    assert len(binner.to_summed_mobilogram()) == 0


def test_unassigned_samples_are_logged(tims_traces, caplog):
    # Given: a trace with a mobility outside of all bins
    binner = MobilogramBinner(tims_traces, bin_width=1)

    # When
    with caplog.at_level(logging.WARNING):
        binner.set_mobilograms([mock_mobilogram([1.8, 1.5, 1.4], [1.0, 2.0, 3.0])])

    # Then: the assigned samples are summed and the mismatch is logged
    assert binner.to_summed_mobilogram().total_intensity == pytest.approx(5.0)
    assert "Assigned 2 of 3" in caplog.text


def test_single_sample_trace(tims_traces):
    binner = MobilogramBinner(tims_traces, bin_width=1)

    binner.set_mobilograms([mock_mobilogram([1.0], [7.0])])
    summed = binner.to_summed_mobilogram()

    assert summed.total_intensity == pytest.approx(7.0)


@pytest.mark.parametrize("bin_width", [0, -1, 1.5])
def test_invalid_bin_width(tims_traces, bin_width):
    with pytest.raises(InvalidParameterError):
        MobilogramBinner(tims_traces, bin_width=bin_width)


def test_binner_from_config(tims_traces):
    binner = MobilogramBinner.from_config(tims_traces, load_default_config())

    assert binner.bin_width == 1
    assert binner.mobility_type == MobilityType.TIMS
    assert binner.n_bins == 10


@pytest.mark.parametrize(
    "mobility_type, spacing, expected_bin_width",
    [
        (MobilityType.TIMS, 0.00015, 5),
        (MobilityType.TIMS, 0.001, 1),
        (MobilityType.DRIFT_TUBE, 0.00015, 1),
        (MobilityType.TRAVELING_WAVE, 0.00015, 1),
        (MobilityType.FAIMS, 0.00015, 1),
    ],
)
def test_recommended_bin_width(mobility_type, spacing, expected_bin_width):
    mobilities = 1.6 - np.arange(100) * spacing

    assert get_recommended_bin_width(mobility_type, mobilities) == expected_bin_width
